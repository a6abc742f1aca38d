"""
Pydantic schemas for balance-changing endpoints.

All monetary amounts are in integer minor units (e.g., 10.50 = 1050).
Amounts and account numbers are range-checked here, so an out-of-range
integer is a 422 before it reaches the database driver.
"""

from pydantic import Field

from ledger_api.models.account import ACCOUNT_NUMBER_MAX, ACCOUNT_NUMBER_MIN, MAX_BALANCE
from ledger_api.schemas.account import CamelModel


class TransferRequest(CamelModel):
    """Request body for POST /accounts/{id}/transfer."""
    to_account_number: int = Field(ge=ACCOUNT_NUMBER_MIN, lt=ACCOUNT_NUMBER_MAX)
    amount: int = Field(
        gt=0, le=MAX_BALANCE, description="Amount in minor units (must be positive)"
    )


class DepositRequest(CamelModel):
    """Request body for POST /accounts/{id}/deposit."""
    amount: int = Field(
        gt=0, le=MAX_BALANCE, description="Amount in minor units (must be positive)"
    )


class BalanceResponse(CamelModel):
    """
    Number and balance of the account that initiated the operation.

    For a transfer this is always the SOURCE account; the destination's
    balance is never returned to the initiator.
    """
    number: int
    balance: int
