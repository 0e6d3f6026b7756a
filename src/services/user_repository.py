"""Persistence of users."""

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.models.user import User
from src.services.errors import (
    FieldViolation,
    StorageError,
    UserConflictError,
    UserFieldError,
    UserNotFoundError,
    UserValidationError,
)

logger = logging.getLogger(__name__)

USER_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")
UPDATABLE_FIELDS = ("name", "email", "age")


def is_valid_user_id(user_id: str) -> bool:
    """Check that an identifier has the shape of one the store generates."""
    return isinstance(user_id, str) and USER_ID_PATTERN.match(user_id) is not None


class UserRepository:
    """Document-style CRUD over the users table.

    Email uniqueness is checked by the caller with :meth:`exists_by_email`
    before writing. The unique index on ``users.email`` catches a concurrent
    writer that slips between the check and the write; that case is reported
    as a conflict as well.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Storage failure during {operation}")
            raise StorageError() from e

    def list_all(self) -> list[User]:
        """All users, newest first."""
        with self._storage("list"):
            return self.db.query(User).order_by(User.created_at.desc()).all()

    def get_by_id(self, user_id: str) -> User:
        """Get a user or raise UserNotFoundError."""
        if not is_valid_user_id(user_id):
            raise UserNotFoundError()
        with self._storage("get"):
            user = self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def exists_by_email(self, email: str, exclude_id: str | None = None) -> bool:
        """Check whether any user, other than ``exclude_id``, holds this email."""
        with self._storage("email lookup"):
            query = self.db.query(User).filter(User.email == email.strip().lower())
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            return bool(self.db.query(query.exists()).scalar())

    def create(self, fields: dict[str, Any]) -> User:
        """Insert a new user. The caller has already checked email uniqueness."""
        try:
            user = User(**{key: fields[key] for key in UPDATABLE_FIELDS if key in fields})
        except UserFieldError as e:
            raise UserValidationError([FieldViolation(e.field, e.message)]) from e

        with self._storage("create"):
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                logger.info("Concurrent create rejected by unique email index")
                raise UserConflictError() from e
            self.db.refresh(user)

        logger.info(f"Created user {user.id}")
        return user

    def update_partial(self, user_id: str, fields: dict[str, Any]) -> User:
        """Apply the supplied fields to an existing user and refresh updated_at."""
        user = self.get_by_id(user_id)

        try:
            for key in UPDATABLE_FIELDS:
                if key in fields:
                    setattr(user, key, fields[key])
        except UserFieldError as e:
            self.db.rollback()
            raise UserValidationError([FieldViolation(e.field, e.message)]) from e
        user.touch()

        with self._storage("update"):
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                logger.info(f"Update of user {user_id} rejected by unique index")
                raise UserConflictError("Email already in use by another user") from e
            self.db.refresh(user)

        logger.info(f"Updated user {user.id}")
        return user

    def delete(self, user_id: str) -> User:
        """Permanently remove a user and return the removed record."""
        user = self.get_by_id(user_id)
        with self._storage("delete"):
            self.db.delete(user)
            self.db.commit()
        logger.info(f"Deleted user {user_id}")
        return user
