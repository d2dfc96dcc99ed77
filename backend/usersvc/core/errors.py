"""Domain errors and their mapping to HTTP status codes.

Every domain error class is tagged with an ``ErrorKind``. Status codes are
chosen from the kind of the *root cause*, i.e. the innermost exception of an
explicit ``raise ... from ...`` chain, so wrapping an error with context
never changes how it is classified.
"""

import enum

from fastapi import status


class ErrorKind(enum.Enum):
    USER_NOT_FOUND = "user_not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID_PASSWORD = "invalid_password"
    INVALID_RESET_KEY = "invalid_reset_key"
    MISSING_FIELD = "missing_field"
    PASSWORD_MISMATCH = "password_mismatch"
    MALFORMED_REQUEST = "malformed_request"
    EMAIL_TAKEN = "email_taken"


class ServiceError(Exception):
    """Base class for every error raised by this service."""


class DomainError(ServiceError):
    kind: ErrorKind
    message = "domain error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class UserNotFound(DomainError):
    kind = ErrorKind.USER_NOT_FOUND
    message = "user: not found"


class Unauthorized(DomainError):
    kind = ErrorKind.UNAUTHORIZED
    message = "user: unauthorized"


class InvalidPassword(DomainError):
    kind = ErrorKind.INVALID_PASSWORD
    message = "user: invalid password"


class InvalidResetKey(DomainError):
    kind = ErrorKind.INVALID_RESET_KEY
    message = "user: invalid reset key"


class MissingField(DomainError):
    kind = ErrorKind.MISSING_FIELD
    message = "missing required field"


class PasswordMismatch(DomainError):
    kind = ErrorKind.PASSWORD_MISMATCH
    message = "passwords do not match"


class MalformedRequest(DomainError):
    kind = ErrorKind.MALFORMED_REQUEST
    message = "malformed request"


class EmailTaken(DomainError):
    kind = ErrorKind.EMAIL_TAKEN
    message = "user: email already registered"


class OperationError(ServiceError):
    """Adds operation context to an underlying error.

    Always raise it ``from`` the error it wraps.
    """

    def __init__(self, context: str, cause: BaseException) -> None:
        super().__init__(f"{context}: {cause}")
        self.context = context


class StorageError(OperationError):
    """A persistence failure other than "not found"."""


class PaginationError(ServiceError):
    pass


class NoNextPage(PaginationError):
    def __init__(self) -> None:
        super().__init__("no next page")


class NoPrevPage(PaginationError):
    def __init__(self) -> None:
        super().__init__("no prev page")


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_RESET_KEY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PASSWORD_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MALFORMED_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EMAIL_TAKEN: status.HTTP_409_CONFLICT,
}


def root_cause(exc: BaseException) -> BaseException:
    """Follow the explicit ``__cause__`` chain down to the innermost error."""
    while exc.__cause__ is not None:
        exc = exc.__cause__
    return exc


def code_from(exc: BaseException) -> int:
    """Map an error to a status code by its kind. Unknown errors are 500."""
    kind = getattr(exc, "kind", None)
    if not isinstance(kind, ErrorKind):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
