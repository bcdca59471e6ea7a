# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/backoffice/routes/products.py
"""
Product management routes.

- Read: SUPER_ADMIN, ADMIN, SHOP_AGENT
- Create / update / CSV import: SUPER_ADMIN, ADMIN
- Delete (soft): SUPER_ADMIN
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_action, require_auth
from ..errors import ValidationError
from ..models.catalog import PRODUCT_CATEGORIES
from ..services import products_service
from ..validation import FieldRule, Schema, pagination_schema, parse_query, required_when, validate_payload

products_bp = Blueprint("products", __name__, url_prefix="/api/products")

PRODUCT_SCHEMA = Schema(
    fields={
        "name": FieldRule("name", required=True, min_length=1, max_length=255),
        "sku": FieldRule("sku", required=True, min_length=1, max_length=100),
        "barcode": FieldRule("barcode", nullable=True, max_length=100),
        "category": FieldRule("category", "enum", required=True, choices=PRODUCT_CATEGORIES, case_insensitive=True),
        "customCategory": FieldRule("custom_category", nullable=True, max_length=100),
        "sellingPrice": FieldRule("selling_price", "money", required=True, gt=0),
        "costPrice": FieldRule("cost_price", "money", required=True, ge=0),
        "description": FieldRule("description", nullable=True),
        "imageUrl": FieldRule("image_url", nullable=True),
        "minStockLevel": FieldRule("min_stock_level", "int", ge=0),
        "warehouseLocation": FieldRule("warehouse_location", nullable=True, max_length=100),
    },
    rules=(required_when("category", "OTHER", "custom_category", "customCategory"),),
)

PRODUCT_QUERY_SCHEMA = pagination_schema(
    search=FieldRule("search"),
    category=FieldRule("category", "enum", choices=PRODUCT_CATEGORIES, case_insensitive=True),
    sort=FieldRule("sort", "enum", choices=tuple(products_service.SORT_COLUMNS)),
    order=FieldRule("order", "enum", choices=("asc", "desc")),
)


@products_bp.get("")
@require_auth
@require_action("products", "view")
def list_products_route():
    """
    Query params: page, limit (<= 100), search (name / sku / barcode),
    category, sort (name | sku | sellingPrice | createdAt), order (asc | desc).
    """
    query = parse_query(PRODUCT_QUERY_SCHEMA, request.args)
    return products_service.list_products(**query)


@products_bp.post("")
@require_auth
@require_action("products", "create")
def create_product_route():
    patch = validate_payload(PRODUCT_SCHEMA, request.get_json(silent=True), partial=False)
    product = products_service.create_product(patch, created_by=g.current_user.id)
    return {"product": product.to_dict()}, 201


@products_bp.get("/<int:product_id>")
@require_auth
@require_action("products", "view")
def get_product_route(product_id: int):
    return {"product": products_service.get_product(product_id).to_dict()}


@products_bp.put("/<int:product_id>")
@require_auth
@require_action("products", "update")
def update_product_route(product_id: int):
    product = products_service.get_product(product_id)
    patch = validate_payload(PRODUCT_SCHEMA, request.get_json(silent=True), partial=True, existing=product)
    product = products_service.update_product(product, patch)
    return {"product": product.to_dict()}


@products_bp.delete("/<int:product_id>")
@require_auth
@require_action("products", "delete")
def delete_product_route(product_id: int):
    product = products_service.get_product(product_id)
    products_service.delete_product(product)
    return {"message": "Product deleted", "product": product.to_dict()}


@products_bp.post("/import-csv")
@require_auth
@require_action("products", "import")
def import_products_route():
    """Multipart upload, field name `file`, must be a .csv."""
    upload = request.files.get("file")
    if upload is None:
        raise ValidationError.for_field("file", "No file provided")
    if not (upload.filename or "").lower().endswith(".csv"):
        raise ValidationError.for_field("file", "File must be a CSV")

    try:
        text = upload.stream.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError.for_field("file", "File must be UTF-8 encoded")

    result = products_service.import_products_csv(text, created_by=g.current_user.id)
    current_app.logger.info("User %s imported %d product(s) from %s", g.current_user.id, result["imported"], upload.filename)
    return result
