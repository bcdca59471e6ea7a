# Overview: Signed identity tokens (HS256 JWT) issued at login and verified on every request.

"""
Tokens are stateless: nothing is stored server-side and logout only clears
the cookie. A token carries userId, phone and role and expires after the
configured lifetime (7 days).

verify_token never raises. Bad signature, expiry, malformed input and
missing claims all come back as None so callers treat them the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
from flask import current_app

from ..config import AuthSettings


logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("userId", "phone", "role", "iat", "exp")


@dataclass(frozen=True)
class TokenPayload:
    user_id: int
    phone: str
    role: str
    issued_at: datetime
    expires_at: datetime


def _settings(settings: AuthSettings | None) -> AuthSettings:
    return settings if settings is not None else current_app.extensions["auth_settings"]


def issue_token(user_id: int, phone: str, role: str, settings: AuthSettings | None = None, now: datetime | None = None) -> str:
    settings = _settings(settings)
    issued = now or datetime.now(timezone.utc)
    claims = {
        "userId": user_id,
        "phone": phone,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + settings.token_lifetime).timestamp()),
    }
    return jwt.encode(claims, settings.secret, algorithm=settings.algorithm)


def verify_token(token: str | None, settings: AuthSettings | None = None) -> TokenPayload | None:
    if not token or not isinstance(token, str):
        return None
    settings = _settings(settings)

    try:
        claims = jwt.decode(
            token,
            settings.secret,
            algorithms=[settings.algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Rejected invalid token")
        return None

    if any(claim not in claims for claim in REQUIRED_CLAIMS):
        return None

    user_id = claims["userId"]
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        return None
    if not isinstance(claims["phone"], str) or not isinstance(claims["role"], str):
        return None

    return TokenPayload(
        user_id=user_id,
        phone=claims["phone"],
        role=claims["role"],
        issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )
