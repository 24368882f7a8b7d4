"""
Authentication Service - registration, login and the user listing.

Credentials are checked by plain equality against the stored row. Both an
unknown email and a wrong password raise the same AuthenticationError so a
caller cannot tell which one was wrong.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from student_records.errors import (
    AuthenticationError, ConflictError, StoreError, ValidationError
)
from student_records.logging_config import get_logger, log_with_context
from student_records.models.user import User

logger = get_logger("auth")


def register(db: Session, name: str, email: str, password: str) -> int:
    """
    Create a user account and return its id.

    Raises:
        ValidationError: a field is missing or blank
        ConflictError: the email is already registered
        StoreError: the database failed
    """
    if not name or not email or not password:
        raise ValidationError("All fields are required")

    try:
        existing = db.scalar(select(User).where(User.email == email))
    except SQLAlchemyError as e:
        log_with_context(logger, "ERROR", "Registration Error: {}".format(e))
        raise StoreError("Database error")

    if existing is not None:
        raise ConflictError("User with this email already exists")

    user = User(name=name, email=email, password=password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another request registered the same email after our check
        db.rollback()
        raise ConflictError("User with this email already exists")
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Registration Error: {}".format(e))
        raise StoreError("Database error")

    log_with_context(logger, "INFO", "Registered user {}".format(user.id),
                     context={"user_id": user.id})
    return user.id


def login(db: Session, email: str, password: str) -> User:
    """Return the user whose email and password both match exactly."""
    if not email or not password:
        raise ValidationError("Email and password are required")

    try:
        user = db.scalar(
            select(User).where(User.email == email, User.password == password)
        )
    except SQLAlchemyError as e:
        log_with_context(logger, "ERROR", "Login Error: {}".format(e))
        raise StoreError("Database error")

    if user is None:
        log_with_context(logger, "INFO", "Failed login attempt")
        raise AuthenticationError("Invalid email or password")

    log_with_context(logger, "INFO", "User {} logged in".format(user.id),
                     context={"user_id": user.id})
    return user


def list_users(db: Session) -> List[dict]:
    try:
        users = db.scalars(select(User).order_by(User.id)).all()
    except SQLAlchemyError as e:
        log_with_context(logger, "ERROR", "Error fetching users: {}".format(e))
        raise StoreError("Database error")
    return [u.to_dict() for u in users]
