"""
Transfer service — the core financial business logic.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Moving funds between two accounts (transfer)
  - Crediting the caller's own account (deposit)
  - Balance enforcement (no negative balances)

Atomicity:
  Both legs of a transfer (debit source, credit destination) run inside ONE
  database transaction that this module commits itself. Any failure rolls
  the whole transaction back, so a reader can never observe a debit without
  its credit.

No read-modify-write:
  Balances are never read into Python, changed, and written back. Each leg
  is a single UPDATE that does the arithmetic in SQL:

      UPDATE accounts SET balance = balance - :amount
       WHERE id = :source AND balance >= :amount

  The WHERE clause is the funds check. Two concurrent debits against the
  same row serialize on the row (PostgreSQL) or on the database write lock
  (SQLite), and the second one re-evaluates the condition against the
  committed balance. If it no longer holds, zero rows change and the
  transfer is rejected. Lost updates and negative balances cannot happen.

  Credits are conditional the same way (balance <= MAX_BALANCE - :amount),
  so a balance never leaves the signed 64-bit range. SQLite would otherwise
  silently turn an overflowing balance into a REAL.

Deadlock prevention:
  Before either UPDATE, both rows are locked with SELECT ... FOR UPDATE in
  ascending id order. Transfers A->B and B->A therefore always lock in the
  same order. with_for_update() is a no-op on SQLite, where writers are
  serialized by the database lock instead.
"""

import logging

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import storage_call
from ledger_api.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidInputError,
    LedgerAPIError,
)
from ledger_api.models.account import MAX_BALANCE, Account


logger = logging.getLogger(__name__)


async def transfer(
    db: AsyncSession,
    source_account_id: int,
    destination_account_number: int,
    amount: int,
) -> Account:
    """
    Execute an atomic transfer between two accounts.

    The caller's control over the source account is established by the
    access guard before this runs and is not re-checked here.

    Args:
        db: Database session.
        source_account_id: Internal id of the account being debited.
        destination_account_number: Public number of the account being credited.
        amount: Positive integer amount in minor units.

    Returns:
        The source Account, refreshed with its post-transfer balance.

    Raises:
        InvalidInputError: Amount out of range, source and destination are
                           the same account, or the credit would take the
                           destination past MAX_BALANCE.
        AccountNotFoundError: Either account is missing at execution time.
        InsufficientFundsError: The debit would take the source below zero.
    """
    if amount <= 0:
        raise InvalidInputError("Transfer amount must be positive")
    if amount > MAX_BALANCE:
        raise InvalidInputError("Transfer amount is too large")

    async with storage_call(db):
        try:
            source = await _apply_transfer(
                db, source_account_id, destination_account_number, amount
            )
            await db.commit()
        except LedgerAPIError as exc:
            await db.rollback()
            logger.info(
                "transfer rejected: %s",
                exc.__class__.__name__,
                extra={
                    "account_id": source_account_id,
                    "to_number": destination_account_number,
                    "amount": amount,
                },
            )
            raise

    logger.info(
        "transfer committed",
        extra={
            "account_id": source_account_id,
            "to_number": destination_account_number,
            "amount": amount,
        },
    )
    return source


async def _apply_transfer(
    db: AsyncSession,
    source_account_id: int,
    destination_account_number: int,
    amount: int,
) -> Account:
    # Lock both rows in ascending id order to prevent deadlocks
    result = await db.execute(
        select(Account)
        .where(
            or_(
                Account.id == source_account_id,
                Account.number == destination_account_number,
            )
        )
        .order_by(Account.id)
        .with_for_update()  # No-op on SQLite, locks rows on PostgreSQL
        .execution_options(populate_existing=True)
    )
    locked = list(result.scalars().all())

    source = next((a for a in locked if a.id == source_account_id), None)
    dest = next((a for a in locked if a.number == destination_account_number), None)

    if source is None:
        raise AccountNotFoundError(source_account_id)
    if dest is None:
        raise AccountNotFoundError(destination_account_number)
    if source.id == dest.id:
        raise InvalidInputError("Cannot transfer to the same account")

    # Debit: the WHERE clause is the funds check
    debit = await db.execute(
        update(Account)
        .where(Account.id == source.id)
        .where(Account.balance >= amount)
        .values(balance=Account.balance - amount)
        .execution_options(synchronize_session=False)
    )
    if debit.rowcount != 1:
        current = await db.scalar(select(Account.balance).where(Account.id == source.id))
        if current is None:
            raise AccountNotFoundError(source_account_id)
        raise InsufficientFundsError(
            account_id=source.id,
            requested=amount,
            available=current,
        )

    # Credit: keyed by number, the identity the caller named
    credit = await db.execute(
        update(Account)
        .where(Account.number == destination_account_number)
        .where(Account.balance <= MAX_BALANCE - amount)
        .values(balance=Account.balance + amount)
        .execution_options(synchronize_session=False)
    )
    if credit.rowcount != 1:
        await _raise_credit_refused(
            db, Account.number == destination_account_number, destination_account_number
        )

    await db.refresh(source)
    return source


async def _raise_credit_refused(db: AsyncSession, where, account_ref) -> None:
    """Explain a credit UPDATE that changed no rows: the row is gone or full."""
    if await db.scalar(select(Account.id).where(where)) is None:
        raise AccountNotFoundError(account_ref)
    raise InvalidInputError("Credit would exceed the maximum account balance")


async def deposit(db: AsyncSession, account_id: int, amount: int) -> Account:
    """
    Credit an account with new funds.

    Single atomic increment, refused if the balance would pass MAX_BALANCE.

    Raises:
        InvalidInputError: Amount out of range, or the credit would take
                           the balance past MAX_BALANCE.
        AccountNotFoundError: The account vanished before the update ran.
    """
    if amount <= 0:
        raise InvalidInputError("Deposit amount must be positive")
    if amount > MAX_BALANCE:
        raise InvalidInputError("Deposit amount is too large")

    async with storage_call(db):
        try:
            result = await db.execute(
                update(Account)
                .where(Account.id == account_id)
                .where(Account.balance <= MAX_BALANCE - amount)
                .values(balance=Account.balance + amount)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await _raise_credit_refused(db, Account.id == account_id, account_id)

            account = await db.get(Account, account_id, populate_existing=True)
            await db.commit()
        except LedgerAPIError:
            await db.rollback()
            raise

    logger.info("deposit committed", extra={"account_id": account_id, "amount": amount})
    return account
