from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


SUPER_ADMIN = "SUPER_ADMIN"
ADMIN = "ADMIN"
SHOP_AGENT = "SHOP_AGENT"
WAREHOUSE_AGENT = "WAREHOUSE_AGENT"
CONFIRMER = "CONFIRMER"

USER_ROLES = (SUPER_ADMIN, ADMIN, SHOP_AGENT, WAREHOUSE_AGENT, CONFIRMER)


class User(db.Model):
    """
    Back-office account. Phone number is the login key.

    Role is a business classification assigned by a SUPER_ADMIN; users cannot
    change it through their own profile.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(50), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default=SHOP_AGENT)
    name = db.Column(db.String(255), nullable=True)
    avatar_url = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} phone={self.phone!r} role={self.role}>"

    def to_session_dict(self) -> dict:
        """Shape returned by login / me / profile."""
        return {
            "id": self.id,
            "phone": self.phone,
            "name": self.name,
            "role": self.role,
            "avatarUrl": self.avatar_url,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_session_dict(),
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }
