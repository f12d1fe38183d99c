"""
Custom exception classes and FastAPI exception handlers.

Why custom exceptions?
  The service layer raises domain-specific errors (like InsufficientFundsError)
  without importing HTTP concepts. Each error kind carries the status code it
  maps to, and a single handler turns any of them into the standard envelope.

  This separation means:
    - Service code is testable without HTTP
    - Error responses are consistent across all endpoints
    - Adding new error types is a two-line subclass

Exception hierarchy:
    LedgerAPIError (base)
    ├── BadRequestError (400)
    │   ├── InvalidAmountError
    │   ├── InactiveAccountError
    │   └── InsufficientFundsError
    ├── UnauthorizedError (401)
    │   ├── InvalidCredentialsError
    │   └── MissingTokenError
    ├── ForbiddenError (403)
    │   ├── InvalidTokenError
    │   ├── AccountAccessDeniedError
    │   └── UserAccessDeniedError
    ├── NotFoundError (404)
    │   ├── AccountNotFoundError
    │   ├── TransactionNotFoundError
    │   └── UserNotFoundError
    ├── ConflictError (409)
    │   ├── DuplicateEmailError
    │   ├── DuplicateAccountNumberError
    │   ├── AccountHasTransactionsError
    │   └── UserHasAccountsError
    ├── PayloadTooLargeError (413)
    └── InternalError (500)

Every error renders as {"success": false, "error": "<message>"}.
"""

import logging
import traceback
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ledger_api.config import settings


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception and error kinds
# ---------------------------------------------------------------------------

class LedgerAPIError(Exception):
    """Base exception for all Ledger API domain errors."""

    status_code: int = 500

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


class BadRequestError(LedgerAPIError):
    status_code = 400


class UnauthorizedError(LedgerAPIError):
    status_code = 401


class ForbiddenError(LedgerAPIError):
    status_code = 403


class NotFoundError(LedgerAPIError):
    status_code = 404


class ConflictError(LedgerAPIError):
    status_code = 409


class PayloadTooLargeError(LedgerAPIError):
    status_code = 413

    def __init__(self, detail: str = "Input too large"):
        super().__init__(detail)


class InternalError(LedgerAPIError):
    """Unexpected failure, typically the storage layer rejecting a write."""

    status_code = 500

    def __init__(self, detail: str = "Internal Server Error"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Ledger errors
# ---------------------------------------------------------------------------

class InvalidAmountError(BadRequestError):
    """Raised when an amount is zero, negative, non-finite or too precise."""

    def __init__(self, detail: str = "Transaction amount must be positive"):
        super().__init__(detail)


class InactiveAccountError(BadRequestError):
    """Raised when a deposit or withdrawal targets a non-ACTIVE account."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__("Cannot perform transactions on inactive account")


class InsufficientFundsError(BadRequestError):
    """
    Raised when a withdrawal exceeds the current balance.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested_cents: The amount the user tried to withdraw.
        available_cents: The current balance of the account.
    """

    def __init__(
        self,
        account_id: uuid.UUID,
        requested_cents: int,
        available_cents: int,
    ):
        self.account_id = account_id
        self.requested_cents = requested_cents
        self.available_cents = available_cents
        super().__init__("Insufficient funds")


# ---------------------------------------------------------------------------
# Lookup / ownership errors
# ---------------------------------------------------------------------------

class AccountNotFoundError(NotFoundError):
    """Raised when an account does not exist or is not visible to the caller."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__("Account not found")


class AccountAccessDeniedError(ForbiddenError):
    """Raised when an account exists but belongs to another user."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__("Forbidden: You can only access your own accounts")


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: uuid.UUID):
        self.transaction_id = transaction_id
        super().__init__("Transaction not found")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__("User not found")


class UserAccessDeniedError(ForbiddenError):
    def __init__(self):
        super().__init__("Forbidden: You can only access your own user profile")


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class DuplicateEmailError(ConflictError):
    """Raised when registering (or switching to) an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("User with this email already exists")


class DuplicateAccountNumberError(ConflictError):
    def __init__(self, account_number: str):
        self.account_number = account_number
        super().__init__("Account number already exists")


class AccountHasTransactionsError(ConflictError):
    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__("Cannot delete account with existing transactions")


class UserHasAccountsError(ConflictError):
    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__("Cannot delete user with existing accounts")


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class InvalidCredentialsError(UnauthorizedError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid email or password")


class MissingTokenError(UnauthorizedError):
    def __init__(self):
        super().__init__("Access token required")


class InvalidTokenError(ForbiddenError):
    """Raised for a bearer token that is malformed, tampered with or expired."""

    def __init__(self):
        super().__init__("Invalid or expired token")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """Build the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Collapse every field error into one "field: message" list."""
    messages = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix; clients only know field names
        loc = [str(part) for part in error.get("loc", ())[1:]]
        field = ".".join(loc)
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "Validation failed: " + ", ".join(messages)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Every handler renders the same envelope: {"success": false, "error": "..."}.
    This is called once during app construction in main.py.
    """

    @app.exception_handler(LedgerAPIError)
    async def ledger_api_error_handler(
        request: Request, exc: LedgerAPIError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed: %s",
                exc.detail,
                exc_info=exc,
                extra={"path": request.url.path},
            )
        return error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # 400 rather than FastAPI's default 422
        return error_response(400, _format_validation_errors(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        response = error_response(exc.status_code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        if settings.is_development:
            return error_response(
                500,
                "Internal Server Error",
                stack="".join(traceback.format_exception(exc)),
            )
        return error_response(500, "Internal Server Error")
