# backend/backoffice/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta


TOKEN_LIFETIME = timedelta(days=7)
AUTH_COOKIE_NAME = "auth_token"


class Config:
    # Required. create_app refuses to start without it.
    JWT_SECRET = os.environ.get("JWT_SECRET")

    # SQLite DB stored next to the app unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///backoffice.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_ENV = os.environ.get("APP_ENV", "development")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )


@dataclass(frozen=True)
class AuthSettings:
    """
    Token and cookie settings, built once by create_app.

    Stored on app.extensions["auth_settings"] and never reassigned.
    """
    secret: str
    token_lifetime: timedelta = TOKEN_LIFETIME
    cookie_name: str = AUTH_COOKIE_NAME
    cookie_secure: bool = False
    algorithm: str = "HS256"

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        secret = (config.get("JWT_SECRET") or "").strip()
        if not secret:
            raise RuntimeError("JWT_SECRET environment variable is not set")
        return cls(
            secret=secret,
            cookie_secure=config.get("APP_ENV") == "production",
        )
