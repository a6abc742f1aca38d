"""
Account service — business logic for account lifecycle operations.

This module handles:
  - Account creation (password hashing, unique account number generation)
  - Account retrieval by internal id or by public number, and listing
  - Updates to the mutable fields (names, password)
  - Hard deletion

Ownership is NOT checked here. Every route that reaches update/delete has
already passed the access guard, which loaded the account and matched it
against the caller's token. These functions take that Account instance.

Balances are never written by this module: create_account starts every
account at zero, and update_account has no balance parameter. Money only
moves through transfer_service.
"""

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import storage_call
from ledger_api.exceptions import AccountNotFoundError
from ledger_api.models.account import ACCOUNT_NUMBER_MAX, ACCOUNT_NUMBER_MIN, Account
from ledger_api.security import hash_password


logger = logging.getLogger(__name__)


def _generate_account_number() -> int:
    """
    Generate a random 10-digit account number.

    Drawn from the OS CSPRNG so numbers cannot be guessed sequentially.
    """
    return ACCOUNT_NUMBER_MIN + secrets.randbelow(ACCOUNT_NUMBER_MAX - ACCOUNT_NUMBER_MIN)


async def create_account(
    db: AsyncSession,
    first_name: str,
    last_name: str,
    password: str,
) -> Account:
    """
    Register a new account.

    Hashes the password, generates a unique account number and initializes
    the balance to zero.

    Args:
        db: Database session.
        first_name: Holder's first name.
        last_name: Holder's last name.
        password: Plaintext password (hashed before it touches the session).

    Returns:
        The newly created Account instance.
    """
    hashed = hash_password(password)

    async with storage_call(db):
        # Generate a unique account number (retry if collision, extremely unlikely)
        for _ in range(10):
            number = _generate_account_number()
            existing = await db.execute(
                select(Account.id).where(Account.number == number)
            )
            if existing.scalar_one_or_none() is None:
                break
        else:
            # This should effectively never happen with 10-digit random numbers
            raise RuntimeError("Failed to generate a unique account number")

        account = Account(
            first_name=first_name,
            last_name=last_name,
            number=number,
            hashed_password=hashed,
            balance=0,
        )
        db.add(account)
        await db.commit()

    logger.info("account created", extra={"account_id": account.id, "number": number})
    return account


async def list_accounts(db: AsyncSession) -> list[Account]:
    """List every account, ordered by id."""
    async with storage_call(db):
        result = await db.execute(select(Account).order_by(Account.id))
        return list(result.scalars().all())


async def find_account(db: AsyncSession, account_id: int) -> Account | None:
    """Load an account by internal id, or None when it does not exist."""
    async with storage_call(db):
        result = await db.execute(select(Account).where(Account.id == account_id))
        return result.scalar_one_or_none()


async def find_account_by_number(db: AsyncSession, number: int) -> Account | None:
    """Load an account by its public number, or None when it does not exist."""
    async with storage_call(db):
        result = await db.execute(select(Account).where(Account.number == number))
        return result.scalar_one_or_none()


async def get_account_by_number(db: AsyncSession, number: int) -> Account:
    """
    Get a single account by its public number.

    Raises:
        AccountNotFoundError: If no account carries that number.
    """
    account = await find_account_by_number(db, number)
    if account is None:
        raise AccountNotFoundError(number)
    return account


async def update_account(
    db: AsyncSession,
    account: Account,
    first_name: str | None = None,
    last_name: str | None = None,
    password: str | None = None,
) -> Account:
    """
    Change the mutable fields of an account.

    Fields left as None are not touched. A new password is re-hashed with a
    fresh salt.
    """
    if first_name is not None:
        account.first_name = first_name
    if last_name is not None:
        account.last_name = last_name
    if password is not None:
        account.hashed_password = hash_password(password)

    async with storage_call(db):
        await db.commit()

    return account


async def delete_account(db: AsyncSession, account: Account) -> int:
    """
    Hard-delete an account. Returns the id that was removed.

    Tokens issued for the account stay cryptographically valid until they
    expire, but the access guard will no longer find the account they point
    at, so they grant nothing.
    """
    account_id = account.id
    async with storage_call(db):
        await db.delete(account)
        await db.commit()

    logger.info("account deleted", extra={"account_id": account_id})
    return account_id
