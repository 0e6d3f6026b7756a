"""User API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from src.api.dependencies import get_user_repository
from src.schemas.user import (
    ErrorEnvelope,
    UserEnvelope,
    UserListEnvelope,
    UserResponse,
    validate_user_create,
    validate_user_update,
)
from src.services.errors import UserConflictError
from src.services.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorEnvelope},
    status.HTTP_404_NOT_FOUND: {"model": ErrorEnvelope},
}


@router.get(
    "",
    response_model=UserEnvelope | UserListEnvelope,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
def get_users(
    repository: Annotated[UserRepository, Depends(get_user_repository)],
    user_id: Annotated[str | None, Query(alias="id")] = None,
):
    """Get all users, or a single user when ``id`` is given."""
    if user_id:
        user = repository.get_by_id(user_id)
        return UserEnvelope(data=UserResponse.model_validate(user))

    users = [UserResponse.model_validate(user) for user in repository.list_all()]
    return UserListEnvelope(count=len(users), data=users)


@router.post(
    "",
    response_model=UserEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def create_user(
    payload: Annotated[Any, Body()],
    repository: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Create a new user."""
    user_data = validate_user_create(payload)

    # Check if user already exists
    if repository.exists_by_email(user_data.email):
        logger.info("Rejected create: email already registered")
        raise UserConflictError("User with this email already exists")

    user = repository.create(user_data.model_dump(exclude_unset=True))
    return UserEnvelope(message="User created successfully", data=UserResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=UserEnvelope,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
def update_user(
    user_id: str,
    payload: Annotated[Any, Body()],
    repository: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Update the supplied fields of a user."""
    changes = validate_user_update(payload).changes()

    if "email" in changes and repository.exists_by_email(changes["email"], exclude_id=user_id):
        logger.info(f"Rejected update of user {user_id}: email in use")
        raise UserConflictError("Email already in use by another user")

    user = repository.update_partial(user_id, changes)
    return UserEnvelope(message="User updated successfully", data=UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=UserEnvelope,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
def delete_user(
    user_id: str,
    repository: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Permanently delete a user."""
    user = repository.delete(user_id)
    return UserEnvelope(message="User deleted successfully", data=UserResponse.model_validate(user))
