"""Error types raised by the user service and mapped to responses by the API."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    """A single violated constraint on an input field."""

    path: str
    message: str


class UserFieldError(ValueError):
    """Raised by the model when a stored field would break its constraints."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class UserServiceError(Exception):
    """Base class for errors reported to API clients."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UserValidationError(UserServiceError):
    """Input violates one or more field constraints."""

    status_code = 400
    default_message = "Validation error"

    def __init__(self, errors: list[FieldViolation], message: str | None = None):
        super().__init__(message)
        self.errors = errors


class UserConflictError(UserServiceError):
    """Another user already holds the requested email."""

    status_code = 400
    default_message = "User with this email already exists"


class UserNotFoundError(UserServiceError):
    """No user exists with the requested identifier."""

    status_code = 404
    default_message = "User not found"


class StorageError(UserServiceError):
    """The store failed to complete an operation."""

    status_code = 500
