# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/backoffice/routes/orders.py
"""
Order routes.

- List / read: every role; SHOP_AGENT only sees orders it created
- Create: SUPER_ADMIN, ADMIN, SHOP_AGENT
- Update: SUPER_ADMIN, ADMIN, WAREHOUSE_AGENT, CONFIRMER
  (WAREHOUSE_AGENT and CONFIRMER may only change status)
- Delete: SUPER_ADMIN
- Stats: SUPER_ADMIN, ADMIN
"""

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..models.orders import ORDER_STATUSES, PAYMENT_STATUSES
from ..permissions import ORDER_STATUS_ONLY_ROLES
from ..services import orders_service
from ..services.dashboard_service import build_order_stats
from ..validation import FieldRule, Schema, pagination_schema, parse_query, validate_payload

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

ORDER_ITEM_RULES = {
    "productId": FieldRule("product_id", "int", required=True, ge=1),
    "quantity": FieldRule("quantity", "int", required=True, gt=0),
}

CREATE_ORDER_SCHEMA = Schema(fields={
    "customerName": FieldRule("customer_name", required=True, min_length=1, max_length=255),
    "customerPhone": FieldRule("customer_phone", nullable=True, max_length=50),
    "customerAddress": FieldRule("customer_address", required=True, min_length=1),
    "customerCity": FieldRule("customer_city", nullable=True, max_length=100),
    "deliveryPrice": FieldRule("delivery_price", "money", ge=0),
    "notes": FieldRule("notes", nullable=True),
    "items": FieldRule("items", "list", required=True, item_rules=ORDER_ITEM_RULES, min_items=1),
})

UPDATE_ORDER_SCHEMA = Schema(fields={
    "status": FieldRule("status", "enum", choices=ORDER_STATUSES),
    "paymentStatus": FieldRule("payment_status", "enum", choices=PAYMENT_STATUSES),
    "notes": FieldRule("notes", nullable=True),
})

ORDER_STATUS_SCHEMA = Schema(fields={
    "status": FieldRule("status", "enum", required=True, choices=ORDER_STATUSES),
})

ORDER_QUERY_SCHEMA = pagination_schema(
    search=FieldRule("search"),
    status=FieldRule("status", "enum", choices=ORDER_STATUSES),
    paymentStatus=FieldRule("payment_status", "enum", choices=PAYMENT_STATUSES),
    fromDate=FieldRule("from_date", "date"),
    toDate=FieldRule("to_date", "date"),
)


@orders_bp.get("")
@require_auth
@require_action("orders", "view")
def list_orders_route():
    query = parse_query(ORDER_QUERY_SCHEMA, request.args)
    return orders_service.list_orders(g.current_user, **query)


@orders_bp.post("")
@require_auth
@require_action("orders", "create")
def create_order_route():
    patch = validate_payload(CREATE_ORDER_SCHEMA, request.get_json(silent=True), partial=False)
    order = orders_service.create_order(patch, g.current_user)
    return {"order": order.to_dict(), "message": f"Order {order.order_number} created"}, 201


@orders_bp.get("/stats")
@require_auth
@require_action("orders", "stats")
def order_stats_route():
    return build_order_stats()


@orders_bp.get("/<int:order_id>")
@require_auth
@require_action("orders", "view")
def get_order_route(order_id: int):
    return {"order": orders_service.get_order(order_id, g.current_user).to_dict()}


@orders_bp.put("/<int:order_id>")
@require_auth
@require_action("orders", "update")
def update_order_route(order_id: int):
    order = orders_service.get_order(order_id, g.current_user)
    patch = validate_payload(UPDATE_ORDER_SCHEMA, request.get_json(silent=True), partial=True)
    order = orders_service.update_order(
        order,
        patch,
        g.current_user,
        status_only=g.current_user.role in ORDER_STATUS_ONLY_ROLES,
    )
    return {"order": order.to_dict()}


@orders_bp.put("/<int:order_id>/status")
@require_auth
@require_action("orders", "update")
def update_order_status_route(order_id: int):
    order = orders_service.get_order(order_id, g.current_user)
    patch = validate_payload(ORDER_STATUS_SCHEMA, request.get_json(silent=True), partial=False)
    order = orders_service.update_status(order, patch["status"], g.current_user.id)
    return {"order": order.to_dict(), "message": f"Order status is {order.status}"}


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_action("orders", "delete")
def delete_order_route(order_id: int):
    order = orders_service.get_order(order_id)
    orders_service.delete_order(order)
    return {"message": "Order deleted"}
