"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes."""

    # Authentication errors (401)
    CREDENTIAL_ERROR = "CREDENTIAL_ERROR"
    SESSION_INIT_ERROR = "SESSION_INIT_ERROR"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server / upstream errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    IDENTITY_PROVIDER_ERROR = "IDENTITY_PROVIDER_ERROR"
    STORE_WRITE_ERROR = "STORE_WRITE_ERROR"
    STORE_READ_ERROR = "STORE_READ_ERROR"
    SUBMISSION_ERROR = "SUBMISSION_ERROR"
    SUBSCRIPTION_ERROR = "SUBSCRIPTION_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class CredentialError(AppException):
    """Sign-up or sign-in rejected by the identity provider."""

    def __init__(self, message: str = "Invalid credentials", reason: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.CREDENTIAL_ERROR,
            message=message,
            status_code=401,
            details={"reason": reason} if reason else None,
        )


class SessionInitError(AppException):
    """The fallback (anonymous or custom token) session could not be established."""

    def __init__(self, message: str = "Could not establish a session") -> None:
        super().__init__(
            error_code=ErrorCode.SESSION_INIT_ERROR,
            message=message,
            status_code=401,
        )


class IdentityProviderError(AppException):
    """The identity provider could not be reached."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.IDENTITY_PROVIDER_ERROR,
            message=message,
            status_code=503,
        )


class ValidationError(AppException):
    """Listing input rejected before reaching the store."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_ERROR,
            message=message,
            status_code=400,
            details={"field": field} if field else None,
        )


class StoreWriteError(AppException):
    """A write to the document store failed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.STORE_WRITE_ERROR,
            message=message,
            status_code=502,
            details={"path": path} if path else None,
        )


class SubmissionError(AppException):
    """A new listing could not be submitted."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.SUBMISSION_ERROR,
            message=message,
            status_code=502,
        )


class StoreReadError(AppException):
    """A one-shot query against the document store failed."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.STORE_READ_ERROR,
            message=message,
            status_code=500,
            details=details,
        )


class SubscriptionError(AppException):
    """A live subscription channel failed; the subscription is finished."""

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.SUBSCRIPTION_ERROR,
            message=message,
            status_code=503,
            details={"target": target} if target else None,
        )
