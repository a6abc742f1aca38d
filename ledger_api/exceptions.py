"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientFundsError)
without importing HTTP concepts. The handlers registered here translate them
into HTTP responses with one envelope shape:

    {"error": "<message>", "error_type": "<machine-readable kind>"}

Exception hierarchy:
    LedgerAPIError (base)
    ├── InvalidInputError         — malformed or contradictory input (400)
    ├── AccessDeniedError         — uniform 403 for every guard denial
    ├── TokenError                — token failed verification (the guard
    │                               re-raises it as AccessDeniedError)
    │   ├── MalformedTokenError
    │   ├── SignatureInvalidError
    │   ├── AlgorithmMismatchError
    │   └── TokenExpiredError
    ├── AccountNotFoundError      — 404 on open lookups only
    ├── InvalidCredentialsError   — login failed (401)
    ├── InsufficientFundsError    — debit would make a balance negative (422)
    └── StorageUnavailableError   — store timed out or is unreachable (503)

Security notes:
  - Every token failure and every guard denial produces the exact same 403
    body. The subclass and its `reason` exist for audit logging only.
  - Request validation errors are re-rendered without the submitted input,
    so a rejected password is never echoed back to the caller.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class LedgerAPIError(Exception):
    """Base exception for all Ledger API domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class InvalidInputError(LedgerAPIError):
    """Raised for input that passes schema validation but breaks a rule."""


class AccessDeniedError(LedgerAPIError):
    """Raised by the access guard. The detail is never sent to the caller."""

    def __init__(self, reason: str = "forbidden"):
        self.reason = reason
        super().__init__(reason)


class TokenError(LedgerAPIError):
    """Base class for capability token verification failures."""

    reason = "token_invalid"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.reason)


class MalformedTokenError(TokenError):
    reason = "token_malformed"


class SignatureInvalidError(TokenError):
    reason = "token_signature_invalid"


class AlgorithmMismatchError(TokenError):
    """The token declares a signing algorithm other than the configured one."""

    reason = "token_algorithm_mismatch"

    def __init__(self, declared: str | None):
        self.declared = declared
        super().__init__(f"{self.reason}: declared {declared!r}")


class TokenExpiredError(TokenError):
    reason = "token_expired"


class AccountNotFoundError(LedgerAPIError):
    """Raised when a requested account does not exist."""

    def __init__(self, account_ref: int | str):
        self.account_ref = account_ref
        super().__init__(f"Account {account_ref} not found")


class InvalidCredentialsError(LedgerAPIError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid account number or password")


class InsufficientFundsError(LedgerAPIError):
    """
    Raised when a transfer would cause a negative balance.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested: The amount the caller tried to move (minor units).
        available: The balance at the time of the attempt (minor units).
    """

    def __init__(self, account_id: int, requested: int, available: int):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds: requested {requested}, available {available}"
        )


class StorageUnavailableError(LedgerAPIError):
    """Raised when the store does not answer within the configured bound."""

    def __init__(self, detail: str = "Storage temporarily unavailable"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

FORBIDDEN_BODY = {"error": "forbidden", "error_type": "forbidden"}


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Render pydantic errors as 'location: message' pairs without inputs."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Called once from create_app() in main.py.
    """

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error": _format_validation_errors(exc),
                "error_type": "validation_error",
            },
        )

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(
        request: Request, exc: InvalidInputError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": exc.detail, "error_type": "invalid_input"},
        )

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(
        request: Request, exc: AccessDeniedError
    ) -> JSONResponse:
        return JSONResponse(status_code=403, content=FORBIDDEN_BODY)

    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        request: Request, exc: AccountNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"error": exc.detail, "error_type": "account_not_found"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"error": exc.detail, "error_type": "invalid_credentials"},
        )

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,  # Unprocessable Entity: valid request, business rule rejects it
            content={
                "error": exc.detail,
                "error_type": "insufficient_funds",
                "requested": exc.requested,
                "available": exc.available,
            },
        )

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable_handler(
        request: Request, exc: StorageUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"error": exc.detail, "error_type": "storage_unavailable"},
        )
