# Overview: Browser page guard; redirects by cookie session and role before serving the UI shell.

"""
Page routing for the browser UI.

This is a convenience for people, not a security boundary: every API route
checks roles again on its own.

- no token / invalid token on a dashboard path -> /login?callbackUrl=<path>
  (an invalid cookie is also cleared)
- dashboard path outside the role's prefixes -> the role's landing page
- "/" and "/login" with a valid session -> the role's landing page
"""

from urllib.parse import urlencode

from flask import Blueprint, current_app, redirect, render_template, request

from ..permissions import DASHBOARD_SEGMENTS, landing_path, landing_redirect
from ..services import session_service

pages_bp = Blueprint("pages", __name__)

LOGIN_PATH = "/login"


def _session():
    """(user, had_token). user is None when the cookie is missing or invalid."""
    settings = current_app.extensions["auth_settings"]
    had_token = bool(request.cookies.get(settings.cookie_name))
    user = session_service.resolve_user(request, settings.cookie_name) if had_token else None
    return user, had_token


def _to_login(callback_path: str | None, clear_cookie: bool):
    target = LOGIN_PATH
    if callback_path:
        target = f"{LOGIN_PATH}?{urlencode({'callbackUrl': callback_path})}"
    response = redirect(target)
    if clear_cookie:
        response.delete_cookie(current_app.extensions["auth_settings"].cookie_name, path="/")
    return response


def _shell(user=None, page: str = "login"):
    return render_template("shell.html", user=user, page=page)


@pages_bp.get("/")
def index_page():
    user, had_token = _session()
    if user is None:
        return _to_login(None, clear_cookie=had_token)
    return redirect(landing_path(user.role))


@pages_bp.get(LOGIN_PATH)
def login_page():
    user, had_token = _session()
    if user is not None:
        return redirect(landing_path(user.role))
    response = current_app.make_response(_shell())
    if had_token:
        response.delete_cookie(current_app.extensions["auth_settings"].cookie_name, path="/")
    return response


def dashboard_page(rest: str = ""):
    path = request.path
    user, had_token = _session()
    if user is None:
        return _to_login(path, clear_cookie=had_token)

    target = landing_redirect(user.role, path)
    if target is not None:
        current_app.logger.info("Redirecting role %s from %s to %s", user.role, path, target)
        return redirect(target)
    return _shell(user=user, page=path)


for _segment in sorted(DASHBOARD_SEGMENTS):
    _name = _segment.replace("-", "_")
    pages_bp.add_url_rule(f"/{_segment}", f"{_name}_root", dashboard_page, methods=["GET"])
    pages_bp.add_url_rule(f"/{_segment}/<path:rest>", f"{_name}_page", dashboard_page, methods=["GET"])
