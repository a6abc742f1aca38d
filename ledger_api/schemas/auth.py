"""
Pydantic schemas for the login endpoint.

Pydantic validates incoming data automatically: if a required field is
missing or the wrong type, FastAPI returns a 422 error before our code
even runs.
"""

from pydantic import Field

from ledger_api.models.account import ACCOUNT_NUMBER_MAX, ACCOUNT_NUMBER_MIN
from ledger_api.schemas.account import CamelModel


class LoginRequest(CamelModel):
    """Request body for POST /login."""
    number: int = Field(ge=ACCOUNT_NUMBER_MIN, lt=ACCOUNT_NUMBER_MAX)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(CamelModel):
    """Response body for a successful login."""
    token: str
    number: int
    token_type: str = "bearer"
