# Overview: Resolves the calling user from a bearer header or the auth cookie.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import User
from ..validation import is_storable_id
from .token_service import verify_token


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_token(request, cookie_name: str = "auth_token") -> str | None:
    """Authorization: Bearer <token> wins over the cookie."""
    header = request.headers.get("Authorization", "")
    if header.startswith(BEARER_PREFIX):
        token = header[len(BEARER_PREFIX):].strip()
        if token:
            return token
    return request.cookies.get(cookie_name) or None


def resolve_user(request, cookie_name: str = "auth_token") -> User | None:
    """
    token -> payload -> user by id -> active only.

    Every failure (no token, bad token, unknown user, inactive user, store
    error) yields None.
    """
    payload = verify_token(extract_token(request, cookie_name))
    if payload is None or not is_storable_id(payload.user_id):
        return None

    try:
        user = db.session.get(User, payload.user_id)
    except SQLAlchemyError:
        logger.exception("User lookup failed during authentication")
        db.session.rollback()
        return None

    if user is None or not user.is_active:
        return None
    return user
