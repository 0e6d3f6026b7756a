"""User schemas.

Field rules live in one table of ``Annotated`` types so the create and update
schemas, which are declared separately, cannot drift apart.
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    Strict,
    StringConstraints,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from src.models.user import AGE_MAX, AGE_MIN, NAME_MAX_LENGTH, NAME_MIN_LENGTH
from src.services.errors import FieldViolation, UserValidationError


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UserName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH),
]
UserEmail = Annotated[EmailStr, AfterValidator(str.lower)]
UserAge = Annotated[int, Strict(), Field(ge=AGE_MIN, le=AGE_MAX)]
Timestamp = Annotated[datetime, AfterValidator(_as_utc)]


class UserCreate(BaseModel):
    """Create a new user."""

    name: UserName
    email: UserEmail
    age: UserAge = None  # type: ignore[assignment]


class UserUpdate(BaseModel):
    """Partially update a user. Omitted fields keep their stored values."""

    name: UserName = None  # type: ignore[assignment]
    email: UserEmail = None  # type: ignore[assignment]
    age: UserAge = None  # type: ignore[assignment]

    def changes(self) -> dict[str, Any]:
        """Fields supplied by the client."""
        return self.model_dump(exclude_unset=True)


class UserResponse(BaseModel):
    """User record as returned to clients."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str
    age: int | None = None
    created_at: Timestamp
    updated_at: Timestamp


class UserEnvelope(BaseModel):
    """Single user response."""

    success: bool = True
    message: str | None = None
    data: UserResponse


class UserListEnvelope(BaseModel):
    """User listing response."""

    success: bool = True
    count: int
    data: list[UserResponse]


class FieldViolationResponse(BaseModel):
    """One violated constraint in a validation failure."""

    path: str
    message: str


class ErrorEnvelope(BaseModel):
    """Failure response. ``errors`` is only present for validation failures."""

    success: bool = False
    message: str
    errors: list[FieldViolationResponse] | None = None


def _violations(exc: ValidationError) -> list[FieldViolation]:
    return [
        FieldViolation(path=".".join(str(part) for part in error["loc"]), message=error["msg"])
        for error in exc.errors()
    ]


def validate_user_create(payload: Any) -> UserCreate:
    """Validate a create payload, reporting every violated constraint."""
    try:
        return UserCreate.model_validate(payload)
    except ValidationError as e:
        raise UserValidationError(_violations(e)) from e


def validate_user_update(payload: Any) -> UserUpdate:
    """Validate a partial update payload, reporting every violated constraint."""
    try:
        return UserUpdate.model_validate(payload)
    except ValidationError as e:
        raise UserValidationError(_violations(e)) from e
