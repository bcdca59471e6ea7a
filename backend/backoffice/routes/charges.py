# Overview: Flask API routes for charges; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..models.finance import CHARGE_TYPES
from ..services import charges_service
from ..validation import FieldRule, Schema, pagination_schema, parse_query, required_when, validate_payload

charges_bp = Blueprint("charges", __name__, url_prefix="/api/charges")

CHARGE_SCHEMA = Schema(
    fields={
        "type": FieldRule("type", "enum", required=True, choices=CHARGE_TYPES, case_insensitive=True),
        "customType": FieldRule("custom_type", nullable=True, max_length=100),
        "amount": FieldRule("amount", "money", required=True, gt=0),
        "description": FieldRule("description", nullable=True),
        "chargeDate": FieldRule("charge_date", "date", required=True),
    },
    rules=(required_when("type", "OTHER", "custom_type", "customType"),),
)

CHARGE_QUERY_SCHEMA = pagination_schema(
    type=FieldRule("charge_type", "enum", choices=CHARGE_TYPES, case_insensitive=True),
    fromDate=FieldRule("from_date", "date"),
    toDate=FieldRule("to_date", "date"),
)


@charges_bp.get("")
@require_auth
@require_action("charges", "view")
def list_charges_route():
    query = parse_query(CHARGE_QUERY_SCHEMA, request.args)
    return charges_service.list_charges(**query)


@charges_bp.post("")
@require_auth
@require_action("charges", "manage")
def create_charge_route():
    patch = validate_payload(CHARGE_SCHEMA, request.get_json(silent=True), partial=False)
    charge = charges_service.create_charge(patch, created_by=g.current_user.id)
    return {"charge": charge.to_dict()}, 201


@charges_bp.get("/<int:charge_id>")
@require_auth
@require_action("charges", "view")
def get_charge_route(charge_id: int):
    return {"charge": charges_service.get_charge(charge_id).to_dict()}


@charges_bp.put("/<int:charge_id>")
@require_auth
@require_action("charges", "manage")
def update_charge_route(charge_id: int):
    charge = charges_service.get_charge(charge_id)
    patch = validate_payload(CHARGE_SCHEMA, request.get_json(silent=True), partial=True, existing=charge)
    charge = charges_service.update_charge(charge, patch)
    return {"charge": charge.to_dict()}


@charges_bp.delete("/<int:charge_id>")
@require_auth
@require_action("charges", "manage")
def delete_charge_route(charge_id: int):
    charge = charges_service.get_charge(charge_id)
    charges_service.delete_charge(charge)
    return {"message": "Charge deleted"}
