# Overview: Flask API routes for stock operations; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..models.catalog import STOCK_ADD, STOCK_ADJUSTMENT, STOCK_REMOVE
from ..services import stock_service
from ..validation import FieldRule, Schema, pagination_schema, parse_query, validate_payload

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")

STOCK_QUERY_SCHEMA = Schema(fields={
    "lowStock": FieldRule("low_stock", "bool", default=False),
})

HISTORY_QUERY_SCHEMA = pagination_schema(
    default_limit=20,
    productId=FieldRule("product_id", "int", ge=1),
)

STOCK_CHANGE_SCHEMA = Schema(fields={
    "productId": FieldRule("product_id", "int", required=True, ge=1),
    "quantity": FieldRule("quantity", "int", required=True, gt=0),
    "reason": FieldRule("reason", nullable=True, max_length=500),
})

STOCK_ADJUST_SCHEMA = Schema(fields={
    "productId": FieldRule("product_id", "int", required=True, ge=1),
    "quantity": FieldRule("quantity", "int", required=True, ge=0),
    "reason": FieldRule("reason", nullable=True, max_length=500),
})

STOCK_SETTINGS_SCHEMA = Schema(fields={
    "minStockLevel": FieldRule("min_stock_level", "int", ge=0),
    "warehouseLocation": FieldRule("warehouse_location", nullable=True, max_length=100),
})


@stock_bp.get("")
@require_auth
@require_action("stock", "view")
def list_stock_route():
    query = parse_query(STOCK_QUERY_SCHEMA, request.args)
    return stock_service.list_stock(low_stock=query.get("low_stock", False))


@stock_bp.get("/history")
@require_auth
@require_action("stock", "view")
def stock_history_route():
    query = parse_query(HISTORY_QUERY_SCHEMA, request.args)
    return stock_service.list_history(**query)


def _change(change_type: str, schema: Schema):
    patch = validate_payload(schema, request.get_json(silent=True), partial=False)
    return stock_service.change_stock(
        patch["product_id"],
        change_type,
        patch["quantity"],
        patch.get("reason"),
        g.current_user.id,
    )


@stock_bp.post("/add")
@require_auth
@require_action("stock", "update")
def add_stock_route():
    return _change(STOCK_ADD, STOCK_CHANGE_SCHEMA)


@stock_bp.post("/remove")
@require_auth
@require_action("stock", "update")
def remove_stock_route():
    return _change(STOCK_REMOVE, STOCK_CHANGE_SCHEMA)


@stock_bp.post("/adjust")
@require_auth
@require_action("stock", "update")
def adjust_stock_route():
    """Sets the absolute quantity."""
    return _change(STOCK_ADJUSTMENT, STOCK_ADJUST_SCHEMA)


@stock_bp.put("/<int:product_id>")
@require_auth
@require_action("stock", "update")
def update_stock_settings_route(product_id: int):
    stock = stock_service.get_stock_for_product(product_id)
    patch = validate_payload(STOCK_SETTINGS_SCHEMA, request.get_json(silent=True), partial=True)
    stock = stock_service.update_stock_settings(stock.product_id, patch)
    return {"stock": stock.to_dict()}
