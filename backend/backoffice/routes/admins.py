# Overview: Flask API routes for staff account management (SUPER_ADMIN only).

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..models.users import USER_ROLES
from ..services import admin_service
from ..services.auth_service import MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH
from ..validation import FieldRule, Schema, pagination_schema, parse_query, validate_payload

admins_bp = Blueprint("admins", __name__, url_prefix="/api/admins")

CREATE_ADMIN_SCHEMA = Schema(fields={
    "phone": FieldRule("phone", required=True, min_length=1, max_length=50),
    "password": FieldRule("password", required=True, min_length=MIN_PASSWORD_LENGTH,
                          max_bytes=MAX_PASSWORD_BYTES, strip=False),
    "name": FieldRule("name", required=True, min_length=1, max_length=255),
    "role": FieldRule("role", "enum", required=True, choices=USER_ROLES),
})

UPDATE_ADMIN_SCHEMA = Schema(fields={
    "name": FieldRule("name", min_length=1, max_length=255),
    "password": FieldRule("password", min_length=MIN_PASSWORD_LENGTH,
                          max_bytes=MAX_PASSWORD_BYTES, strip=False),
    "role": FieldRule("role", "enum", choices=USER_ROLES),
    "isActive": FieldRule("is_active", "bool"),
})

ADMIN_QUERY_SCHEMA = pagination_schema()


@admins_bp.get("")
@require_auth
@require_action("admins", "view")
def list_admins_route():
    """Every account except shop agents."""
    query = parse_query(ADMIN_QUERY_SCHEMA, request.args)
    return admin_service.list_admins(**query)


@admins_bp.post("")
@require_auth
@require_action("admins", "manage")
def create_admin_route():
    patch = validate_payload(CREATE_ADMIN_SCHEMA, request.get_json(silent=True), partial=False)
    user = admin_service.create_admin(patch)
    return {"admin": user.to_dict()}, 201


@admins_bp.get("/<int:user_id>")
@require_auth
@require_action("admins", "view")
def get_admin_route(user_id: int):
    return {"admin": admin_service.get_admin(user_id).to_dict()}


@admins_bp.put("/<int:user_id>")
@require_auth
@require_action("admins", "manage")
def update_admin_route(user_id: int):
    user = admin_service.get_admin(user_id)
    patch = validate_payload(UPDATE_ADMIN_SCHEMA, request.get_json(silent=True), partial=True)
    user = admin_service.update_admin(user, patch, g.current_user)
    return {"admin": user.to_dict()}


@admins_bp.delete("/<int:user_id>")
@require_auth
@require_action("admins", "manage")
def delete_admin_route(user_id: int):
    """Deactivates; the account row is kept."""
    user = admin_service.get_admin(user_id)
    admin_service.deactivate_admin(user, g.current_user)
    return {"message": "Admin deactivated", "admin": user.to_dict()}
