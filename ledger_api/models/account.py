"""
Account model — the single table behind the ledger.

Each account has:
  - An internal integer id (store-assigned, used to address resources in paths)
  - A unique ten-digit account number (caller-visible, carried in tokens)
  - The holder's first and last name
  - A balance in integer minor units (cents)
  - An Argon2id hash of the account password

Identity:
  The id is what URLs point at (/accounts/{id}/...). The number is what
  tokens assert and what a transfer names as its destination. The access
  guard is the one place that resolves one to the other.

Balance management:
  The balance column is only ever changed by the ledger service, through
  single UPDATE statements inside one database transaction. A CHECK
  constraint at the database level enforces that the balance can never go
  negative or past MAX_BALANCE, backing up the conditional debit and
  credit in code.

Why integer minor units?
  Floating-point numbers introduce rounding errors in financial arithmetic.
  Integers are exact: 10.99 is stored as 1099.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_api.database import Base


# Ten-digit account numbers
ACCOUNT_NUMBER_MIN = 10**9
ACCOUNT_NUMBER_MAX = 10**10

# Largest value the Integer id column holds
MAX_ACCOUNT_ID = 2**31 - 1

# Largest balance a signed 64-bit column holds exactly
MAX_BALANCE = 2**63 - 1


class Account(Base):
    __tablename__ = "accounts"

    # Database-level constraints: balance stays within [0, MAX_BALANCE]
    __table_args__ = (
        CheckConstraint(
            "balance >= 0",
            name="ck_accounts_non_negative_balance",
        ),
        CheckConstraint(
            f"balance <= {MAX_BALANCE}",
            name="ck_accounts_max_balance",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Unique 10-digit account number, assigned once at creation
    number: Mapped[int] = mapped_column(
        BigInteger,
        unique=True,
        nullable=False,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Argon2id hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Balance in minor units
    balance: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        # never include hashed_password
        return f"<Account id={self.id} number={self.number}>"
