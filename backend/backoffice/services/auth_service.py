# Overview: Service-layer operations for auth; password hashing, login and profile updates.

"""
Authentication Service

Passwords are hashed with bcrypt at a fixed cost factor of 12. New passwords
must be at least 6 characters and at most 72 bytes (UTF-8). Login is by phone number.

A failed login never says which part was wrong: unknown phone, inactive
account and bad password all look the same to the caller.
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import User
from ..time_utils import utcnow


logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 6
# bcrypt only accepts up to 72 bytes of input
MAX_PASSWORD_BYTES = 72


class PasswordValidationError(Exception):
    """Raised when a new password does not meet the policy."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Never raises: empty input, a malformed hash or a wrong password all
    return False.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def find_by_phone(phone: str) -> User | None:
    return db.session.query(User).filter(User.phone == phone).one_or_none()


def authenticate(phone: str, password: str) -> User | None:
    """Returns the active user whose phone and password match, else None."""
    if not phone or not password:
        return None
    user = find_by_phone(phone.strip())
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def record_login(user: User) -> None:
    """
    Best-effort last-login timestamp. A failure here must not fail the login,
    so it is logged and rolled back.
    """
    try:
        user.last_login_at = utcnow()
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("Could not record last login for user %s", user.id, exc_info=True)


def create_user(phone: str, password: str, role: str, name: str | None = None, is_active: bool = True) -> User:
    """
    Create a user. Caller is responsible for phone uniqueness checks; a
    duplicate phone surfaces as IntegrityError on commit.
    """
    user = User(
        phone=phone,
        password_hash=hash_password(password),
        role=role,
        name=name,
        is_active=is_active,
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Created user %s with role %s", user.id, role)
    return user


def update_profile(user: User, patch: dict) -> User:
    """
    Self-service profile update. Accepts name, password and avatar_url only;
    role, phone and is_active are not reachable from here.
    """
    if "name" in patch:
        user.name = patch["name"]
    if "avatar_url" in patch:
        user.avatar_url = patch["avatar_url"]
    if patch.get("password"):
        user.password_hash = hash_password(patch["password"])
    db.session.commit()
    return user
