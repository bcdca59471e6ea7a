# Overview: Flask API routes for scan-orders; warehouse hand-off to delivery companies.

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..services import scan_service
from ..validation import FieldRule, Schema, pagination_schema, parse_query, validate_payload

scan_orders_bp = Blueprint("scan_orders", __name__, url_prefix="/api/scan-orders")

SCAN_SCHEMA = Schema(fields={
    "orderId": FieldRule("order_id", "int", required=True, ge=1),
    "deliveryCompany": FieldRule("delivery_company", nullable=True, max_length=100),
    "trackingNumber": FieldRule("tracking_number", nullable=True, max_length=100),
    "notes": FieldRule("notes", nullable=True),
})

SCAN_QUERY_SCHEMA = pagination_schema(default_limit=20)


@scan_orders_bp.get("")
@require_auth
@require_action("scan_orders", "view")
def list_scans_route():
    query = parse_query(SCAN_QUERY_SCHEMA, request.args)
    return scan_service.list_scans(**query)


@scan_orders_bp.post("")
@require_auth
@require_action("scan_orders", "create")
def scan_order_route():
    """Order must be CONFIRMED; it moves to IN_TRANSIT. Scanning twice is a 409."""
    patch = validate_payload(SCAN_SCHEMA, request.get_json(silent=True), partial=False)
    scan = scan_service.scan_order(patch, g.current_user.id)
    return {"scannedOrder": scan.to_dict(), "message": "Order scanned and marked as IN_TRANSIT"}, 201
