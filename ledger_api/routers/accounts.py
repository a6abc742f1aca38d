"""
Accounts router — account registration and management endpoints.

Open endpoints (no token):
    POST   /accounts                      — Register a new account
    GET    /accounts                      — List account summaries
    GET    /accounts/by-number/{number}   — Look up one summary by number

Guarded endpoints (token must belong to {account_id}):
    GET    /accounts/{account_id}         — Full account details
    PATCH  /accounts/{account_id}         — Change names or password
    DELETE /accounts/{account_id}         — Hard-delete the account

The open endpoints return summaries without balances. Everything that
shows or changes a balance sits behind the access guard.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.dependencies import require_account_access
from ledger_api.models.account import ACCOUNT_NUMBER_MAX, ACCOUNT_NUMBER_MIN, Account
from ledger_api.schemas.account import (
    AccountCreateRequest,
    AccountDeletedResponse,
    AccountResponse,
    AccountSummaryResponse,
    AccountUpdateRequest,
)
from ledger_api.services import account_service

router = APIRouter()


# ---------------------------------------------------------------------------
# Open endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def create_account(
    request: AccountCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new account with a zero balance.

    A random 10-digit account number is assigned. The password is hashed
    before storage and is never part of any response.
    """
    return await account_service.create_account(
        db=db,
        first_name=request.first_name,
        last_name=request.last_name,
        password=request.password,
    )


@router.get(
    "",
    response_model=list[AccountSummaryResponse],
    summary="List accounts",
)
async def list_accounts(db: AsyncSession = Depends(get_db)):
    """List every account as a summary (no balances)."""
    return await account_service.list_accounts(db)


@router.get(
    "/by-number/{number}",
    response_model=AccountSummaryResponse,
    summary="Look up an account by number",
)
async def get_account_by_number(
    number: int = Path(ge=ACCOUNT_NUMBER_MIN, lt=ACCOUNT_NUMBER_MAX),
    db: AsyncSession = Depends(get_db),
):
    """
    Verify a destination account number before initiating a transfer.

    Returns 404 if no account carries the number, and 422 for anything that
    is not a ten-digit number.
    """
    return await account_service.get_account_by_number(db, number)


# ---------------------------------------------------------------------------
# Guarded endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(account: Account = Depends(require_account_access)):
    """
    Get details for the caller's own account, including the balance.

    Returns 403 for a missing or foreign account alike.
    """
    return account


@router.patch(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Update account details",
)
async def update_account(
    request: AccountUpdateRequest,
    account: Account = Depends(require_account_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Change first name, last name or password.

    The account number and balance cannot be changed here.
    """
    return await account_service.update_account(
        db,
        account,
        first_name=request.first_name,
        last_name=request.last_name,
        password=request.password,
    )


@router.delete(
    "/{account_id}",
    response_model=AccountDeletedResponse,
    summary="Delete an account",
)
async def delete_account(
    account: Account = Depends(require_account_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Permanently delete the caller's account.

    Outstanding tokens for the account stop working immediately, because
    the access guard can no longer resolve the account they name.
    """
    deleted_id = await account_service.delete_account(db, account)
    return AccountDeletedResponse(deleted=deleted_id)
