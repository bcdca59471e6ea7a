# Overview: Service-layer operations for staff accounts managed by super admins.

"""
Admin Service

Manages every back-office account except shop agents (they are listed
elsewhere). Deleting an account deactivates it; the row is kept so orders
and stock history still name their author.
"""

from __future__ import annotations

import logging

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..models.users import SHOP_AGENT
from ..validation import is_storable_id, page_body, paginate
from .auth_service import create_user, find_by_phone, hash_password


logger = logging.getLogger(__name__)


def _staff_query():
    return db.session.query(User).filter(User.role != SHOP_AGENT)


def list_admins(page: int = 1, limit: int = 10) -> dict:
    query = _staff_query().order_by(User.created_at.desc(), User.id.desc())
    users, total = paginate(query, page, limit)
    return page_body("admins", [u.to_dict() for u in users], total, page, limit)


def get_admin(user_id: int) -> User:
    user = _staff_query().filter(User.id == user_id).one_or_none() if is_storable_id(user_id) else None
    if user is None:
        raise NotFoundError("Admin not found")
    return user


def create_admin(patch: dict) -> User:
    if find_by_phone(patch["phone"]) is not None:
        raise ConflictError("A user with this phone number already exists")
    return create_user(
        phone=patch["phone"],
        password=patch["password"],
        role=patch["role"],
        name=patch.get("name"),
    )


def update_admin(user: User, patch: dict, acting_user: User) -> User:
    if user.id == acting_user.id and patch.get("is_active") is False:
        raise ValidationError.for_field("isActive", "You cannot deactivate your own account")

    if "name" in patch:
        user.name = patch["name"]
    if "role" in patch:
        user.role = patch["role"]
    if "is_active" in patch:
        user.is_active = patch["is_active"]
    if patch.get("password"):
        user.password_hash = hash_password(patch["password"])
    db.session.commit()
    logger.info("Updated user %s", user.id)
    return user


def deactivate_admin(user: User, acting_user: User) -> User:
    if user.id == acting_user.id:
        raise ValidationError.for_field("id", "You cannot delete your own account", "You cannot delete your own account")
    user.is_active = False
    db.session.commit()
    logger.info("Deactivated user %s", user.id)
    return user
