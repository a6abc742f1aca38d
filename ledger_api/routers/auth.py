"""
Authentication router — the login endpoint.

Endpoints:
  POST /login  — Exchange an account number and password for a token

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are compared against the stored hash and never logged.
  - Tokens appear only in response bodies, which are not logged by
    uvicorn (it logs method, path, and status code only).
  - Validation errors are rendered without the submitted values, so a
    rejected password never comes back in a 422 body.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.dependencies import get_token_service
from ledger_api.schemas.auth import LoginRequest, TokenResponse
from ledger_api.security import TokenService
from ledger_api.services import auth_service

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: LoginRequest,
    token_service: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with account number and password.

    Returns a bearer token that must be included in the Authorization
    header for every account-scoped request:

        Authorization: Bearer <token>

    The token expires after ACCESS_TOKEN_EXPIRE_MINUTES (default: 30).
    """
    account, token = await auth_service.login(
        db=db,
        token_service=token_service,
        number=request.number,
        password=request.password,
    )
    return TokenResponse(token=token, number=account.number)
