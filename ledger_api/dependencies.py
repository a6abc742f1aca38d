"""
FastAPI dependencies for configuration, tokens and access control.

Dependencies are reusable functions that FastAPI injects into route handlers.
The chain for every account-scoped endpoint is:

  require_account_access (the access guard)
      ├── bearer token       (Authorization: Bearer, or x-jwt-token)
      ├── get_token_service  (TokenService from app.state)
      └── get_db             (AsyncSession for this request)

The guard runs five checks in order and stops at the first failure:

  1. A token is present
  2. TokenService.verify() accepts it
  3. The {account_id} path segment is a positive integer the id column
     can hold
  4. An account with that id exists right now
  5. The token's account number equals that account's number

Every failure raises AccessDeniedError, which renders as the same
403 {"error": "forbidden"} no matter which check failed. "No such account"
and "not your account" are indistinguishable to the caller; the real reason
goes to the log only. There is no retry: a denial ends the request.

The account is re-read from the store on every request rather than trusted
from the token, so a token for a deleted account grants nothing.
"""

import logging

from fastapi import Depends, Header, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.database import get_db
from ledger_api.exceptions import AccessDeniedError, TokenError
from ledger_api.models.account import MAX_ACCOUNT_ID, Account
from ledger_api.security import TokenService
from ledger_api.services.account_service import find_account


logger = logging.getLogger(__name__)

# auto_error=False: a missing header must become our uniform 403, not
# FastAPI's own error body.
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def deny_access(request: Request, reason: str) -> AccessDeniedError:
    """Log a denial with its reason and return the uniform 403 error to raise."""
    logger.warning("access denied: %s", reason, extra={"path": request.url.path})
    return AccessDeniedError(reason)


def _parse_account_id(raw: str) -> int | None:
    if not (raw.isascii() and raw.isdigit()):
        return None
    # int() refuses very long digit strings outright
    if len(raw) > len(str(MAX_ACCOUNT_ID)):
        return None
    value = int(raw)
    return value if 0 < value <= MAX_ACCOUNT_ID else None


async def require_account_access(
    request: Request,
    account_id: str = Path(description="Internal id of the target account"),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    x_jwt_token: str | None = Header(default=None),
    token_service: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> Account:
    """
    Gate an account-scoped operation and return the target Account.

    Raises:
        AccessDeniedError: On any of the five checks failing.
    """
    # 1. Extract the bearer token
    token = credentials.credentials if credentials is not None else x_jwt_token
    if not token:
        raise deny_access(request, "missing_token")

    # 2. Verify it
    try:
        claims = token_service.verify(token)
    except TokenError as exc:
        raise deny_access(request, exc.reason) from exc

    # 3. Parse the target id
    target_id = _parse_account_id(account_id)
    if target_id is None:
        raise deny_access(request, "malformed_account_id")

    # 4. Load the target account
    account = await find_account(db, target_id)
    if account is None:
        raise deny_access(request, "account_not_found")

    # 5. The token must speak for this account
    if claims.subject_account_number != account.number:
        raise deny_access(request, "account_mismatch")

    return account
