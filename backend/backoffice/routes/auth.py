# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/backoffice/routes/auth.py
"""
Authentication API routes

Tokens are stateless JWTs. Login returns the token in the body and also sets
it as an httpOnly cookie so browser pages and fetch calls share one session.
Logout clears the cookie; there is nothing to revoke server-side.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..errors import AuthenticationError, ErrorMessages
from ..services import auth_service
from ..services.token_service import issue_token
from ..validation import FieldRule, Schema, validate_payload


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

LOGIN_SCHEMA = Schema(fields={
    "phone": FieldRule("phone", required=True, min_length=1, max_length=50),
    "password": FieldRule("password", required=True, min_length=1, strip=False),
})

PROFILE_SCHEMA = Schema(fields={
    "name": FieldRule("name", min_length=1, max_length=255),
    "password": FieldRule("password", min_length=auth_service.MIN_PASSWORD_LENGTH,
                          max_bytes=auth_service.MAX_PASSWORD_BYTES, strip=False),
    "avatarUrl": FieldRule("avatar_url", nullable=True),
})


def _set_auth_cookie(response, token: str):
    settings = current_app.extensions["auth_settings"]
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=int(settings.token_lifetime.total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="Lax",
        path="/",
    )
    return response


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by phone + password.

    Unknown phone, deactivated account and wrong password all return the
    same 401 so the response does not reveal which accounts exist.
    """
    patch = validate_payload(LOGIN_SCHEMA, request.get_json(silent=True), partial=False)

    user = auth_service.authenticate(patch["phone"], patch["password"])
    if user is None:
        current_app.logger.info("Failed login attempt")
        raise AuthenticationError(ErrorMessages.INVALID_CREDENTIALS)

    auth_service.record_login(user)
    token = issue_token(user.id, user.phone, user.role)
    current_app.logger.info("User %s logged in", user.id)

    response = current_app.make_response(({"token": token, "user": user.to_session_dict()}, 200))
    return _set_auth_cookie(response, token)


@auth_bp.post("/logout")
def logout_route():
    settings = current_app.extensions["auth_settings"]
    response = current_app.make_response(({"message": "Logged out"}, 200))
    response.delete_cookie(settings.cookie_name, path="/", httponly=True, samesite="Lax", secure=settings.cookie_secure)
    return response


@auth_bp.get("/me")
@require_auth
def me_route():
    return {"user": g.current_user.to_session_dict()}


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    """Role, phone and account status cannot be changed here."""
    patch = validate_payload(PROFILE_SCHEMA, request.get_json(silent=True), partial=True)
    user = auth_service.update_profile(g.current_user, patch)
    return {"user": user.to_session_dict(), "message": "Profile updated"}
