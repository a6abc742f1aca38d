"""
Authentication service — login business logic.

Login flow:
  1. Look up the account by its public number
  2. Verify the password against the stored Argon2 hash
  3. Issue a capability token naming that account number

Security notes:
  - Returns the same error for "wrong password" and "number not found" to
    prevent account enumeration. When the number is unknown, a dummy hash
    verification still runs so both paths take comparable time.
  - Failed logins are logged with the account number only, never with the
    password that was tried.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ledger_api.exceptions import InvalidCredentialsError
from ledger_api.models.account import Account
from ledger_api.security import TokenService, dummy_verify, verify_password
from ledger_api.services.account_service import find_account_by_number


logger = logging.getLogger(__name__)


async def login(
    db: AsyncSession,
    token_service: TokenService,
    number: int,
    password: str,
) -> tuple[Account, str]:
    """
    Authenticate an account holder and return a capability token.

    Args:
        db: Database session.
        token_service: Signs the token.
        number: Public account number.
        password: Plaintext password to verify.

    Returns:
        Tuple of (Account instance, token string).

    Raises:
        InvalidCredentialsError: If the number doesn't exist or the password is wrong.
    """
    account = await find_account_by_number(db, number)

    # Same error for both cases — prevents account enumeration
    if account is None:
        dummy_verify()
        logger.info("login failed", extra={"number": number})
        raise InvalidCredentialsError()

    if not verify_password(password, account.hashed_password):
        logger.info("login failed", extra={"number": number})
        raise InvalidCredentialsError()

    token = token_service.issue(account)
    return account, token
