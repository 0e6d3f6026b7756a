"""Pydantic schemas for API requests and responses."""

from src.schemas.user import (
    ErrorEnvelope,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserResponse,
    UserUpdate,
    validate_user_create,
    validate_user_update,
)

__all__ = [
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserEnvelope",
    "UserListEnvelope",
    "ErrorEnvelope",
    "validate_user_create",
    "validate_user_update",
]
