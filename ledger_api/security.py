"""
Security utilities: password hashing and capability tokens.

This module centralizes all cryptographic operations so they're easy to
audit and update. Two concerns are handled here:

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - Argon2id is memory-hard and time-hard, which makes GPU cracking of a
     leaked hash expensive
   - passlib's CryptContext wraps the scheme; the work factor is pinned
     below so every hash in the table costs the same to verify
   - Each call draws a fresh random salt: the same password hashed twice
     gives two different strings, and both verify

2. CAPABILITY TOKENS (JWT)
   - A token asserts "bearer controls account number N" until it expires
   - "sub" carries the account NUMBER (not the internal id), "exp" the
     absolute expiry
   - Tokens are signed with SECRET_KEY using the single configured algorithm
   - The server is stateless: tokens cannot be revoked one by one, only all
     at once by rotating SECRET_KEY

Algorithm confusion:
   verify() reads the token header and rejects any declared algorithm other
   than the configured one BEFORE the secret is handed to the JWT library.
   A token signed with HS512 (or "none") is refused even if the signature
   would check out.
"""

import logging
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict

from ledger_api.config import Settings
from ledger_api.exceptions import (
    AlgorithmMismatchError,
    MalformedTokenError,
    SignatureInvalidError,
    TokenExpiredError,
)


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# Fixed work factor: 3 passes over 64 MiB with 4 lanes.
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__time_cost=3,
    argon2__memory_cost=65536,
    argon2__parallelism=4,
)


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against a stored Argon2 hash.

    Never raises: a malformed or unrecognised hash, or a non-string input,
    simply fails verification.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("password verification against an unusable hash")
        return False


def dummy_verify() -> None:
    """Spend the time of one verification when there is no hash to check."""
    pwd_context.dummy_verify()


# ---------------------------------------------------------------------------
# 2. Capability Tokens
# ---------------------------------------------------------------------------


class TokenClaims(BaseModel):
    """
    Claims of a token that passed verification.

    Only TokenService.verify() builds these, so holding one means the
    signature, algorithm and expiry all checked out.
    """

    model_config = ConfigDict(frozen=True)

    subject_account_number: int
    expires_at: datetime


class TokenService:
    """
    Issues and verifies capability tokens.

    The secret, algorithm and lifetime come from the Settings object passed
    in at construction and never change for the life of the process.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.SECRET_KEY
        self._algorithm = settings.ALGORITHM
        self._ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue(self, account, expires_delta: timedelta | None = None) -> str:
        """
        Create a signed token for an account.

        Args:
            account: Anything with a `number` attribute (normally an Account).
            expires_delta: Optional custom lifetime. Defaults to
                           ACCESS_TOKEN_EXPIRE_MINUTES from settings.

        Returns:
            An encoded JWT string.
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self._ttl)
        claims = {
            "sub": str(account.number),
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token and return its typed claims.

        Raises:
            MalformedTokenError: Not a decodable JWT, or claims missing/ill-typed.
            AlgorithmMismatchError: Header declares a different algorithm.
            SignatureInvalidError: Signature does not match the current secret.
            TokenExpiredError: The expiry has passed.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedTokenError() from exc

        declared = header.get("alg")
        if declared != self._algorithm:
            raise AlgorithmMismatchError(declared)

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTClaimsError as exc:
            raise MalformedTokenError() from exc
        except JWTError as exc:
            raise SignatureInvalidError() from exc

        return self._claims_from_payload(payload)

    @staticmethod
    def _claims_from_payload(payload: dict) -> TokenClaims:
        subject = payload.get("sub")
        expires = payload.get("exp")

        if not isinstance(subject, str) or not subject.isdigit():
            raise MalformedTokenError("token_malformed: bad subject")
        # bool is an int subclass; a JSON true is not a timestamp
        if not isinstance(expires, (int, float)) or isinstance(expires, bool):
            raise MalformedTokenError("token_malformed: bad expiry")

        return TokenClaims(
            subject_account_number=int(subject),
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
        )
