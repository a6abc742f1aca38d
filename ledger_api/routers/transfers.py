"""
Transfers router — balance-changing endpoints.

Endpoints (both guarded; the token must belong to {account_id}):
  POST /accounts/{account_id}/transfer — Move funds to another account number
  POST /accounts/{account_id}/deposit  — Add funds to the caller's account

A transfer debits the caller's account and credits the destination in one
atomic database transaction. The response carries the caller's number and
new balance only.

A missing account at execution time (deleted between the guard check and
the update, or an unknown destination) is answered with the same 403 as
any other guard denial, so this endpoint cannot be used to probe which
account numbers exist.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.dependencies import deny_access, require_account_access
from ledger_api.exceptions import AccountNotFoundError
from ledger_api.models.account import Account
from ledger_api.schemas.transfer import BalanceResponse, DepositRequest, TransferRequest
from ledger_api.services import transfer_service

router = APIRouter()


@router.post(
    "/{account_id}/transfer",
    response_model=BalanceResponse,
    summary="Transfer money to another account",
)
async def create_transfer(
    request: Request,
    body: TransferRequest,
    account: Account = Depends(require_account_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Transfer money from the caller's account to another account number.

    - **toAccountNumber**: Any existing account other than the caller's own
    - **amount**: Positive integer in minor units (e.g., 50.00 = 5000)

    Returns 422 with the available balance if funds are insufficient, and
    400 for a transfer to the caller's own account or one that would take
    the destination past the maximum balance.
    """
    try:
        source = await transfer_service.transfer(
            db=db,
            source_account_id=account.id,
            destination_account_number=body.to_account_number,
            amount=body.amount,
        )
    except AccountNotFoundError as exc:
        raise deny_access(request, "account_not_found") from exc

    return BalanceResponse(number=source.number, balance=source.balance)


@router.post(
    "/{account_id}/deposit",
    response_model=BalanceResponse,
    summary="Deposit money into your account",
)
async def create_deposit(
    request: Request,
    body: DepositRequest,
    account: Account = Depends(require_account_access),
    db: AsyncSession = Depends(get_db),
):
    """Credit the caller's own account and return its new balance."""
    try:
        updated = await transfer_service.deposit(db, account.id, body.amount)
    except AccountNotFoundError as exc:
        raise deny_access(request, "account_not_found") from exc

    return BalanceResponse(number=updated.number, balance=updated.balance)
