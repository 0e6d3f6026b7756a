"""User model."""

import uuid

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import validates

from src.database import Base
from src.models.mixins import TimestampMixin
from src.services.errors import UserFieldError

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
AGE_MIN = 0
AGE_MAX = 150


def generate_user_id() -> str:
    """Generate an opaque identifier for a new user."""
    return uuid.uuid4().hex


class User(Base, TimestampMixin):
    """A registered user."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_user_id)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    age = Column(Integer, nullable=True)

    @validates("name")
    def validate_name(self, key, value):
        if not isinstance(value, str):
            raise UserFieldError(key, "Name must be a string")
        value = value.strip()
        if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
            raise UserFieldError(
                key, f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            )
        return value

    @validates("email")
    def validate_email_address(self, key, value):
        if not isinstance(value, str):
            raise UserFieldError(key, "Email must be a string")
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise UserFieldError(key, "Invalid email address") from e
        return value.strip().lower()

    @validates("age")
    def validate_age(self, key, value):
        if value is None:
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise UserFieldError(key, "Age must be an integer")
        if not AGE_MIN <= value <= AGE_MAX:
            raise UserFieldError(key, f"Age must be between {AGE_MIN} and {AGE_MAX}")
        return value
