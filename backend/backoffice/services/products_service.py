# Overview: Service-layer operations for products; catalog CRUD and CSV import.

"""
Products Service

Every product has exactly one stock row, created with it. Deleting a product
only clears is_active so existing order lines and stock history still
resolve.
"""

from __future__ import annotations

import csv
import io
import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Stock
from ..models.catalog import DEFAULT_MIN_STOCK_LEVEL, PRODUCT_CATEGORIES
from ..validation import MAX_MONEY, is_storable_id, page_body, paginate, to_money


logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "sku",
    "barcode",
    "category",
    "custom_category",
    "selling_price",
    "cost_price",
    "description",
    "image_url",
}
STOCK_MUTABLE_FIELDS = {"min_stock_level", "warehouse_location"}

SORT_COLUMNS = {
    "name": Product.name,
    "sku": Product.sku,
    "sellingPrice": Product.selling_price,
    "createdAt": Product.created_at,
}

CSV_REQUIRED_COLUMNS = ("name", "sku", "sellingprice", "costprice")
CSV_DEFAULT_CUSTOM_CATEGORY = "Uncategorized"


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id) if is_storable_id(product_id) else None
    if product is None:
        raise NotFoundError("Product not found")
    return product


def list_products(
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    category: str | None = None,
    sort: str | None = None,
    order: str | None = None,
) -> dict:
    query = (
        db.session.query(Product)
        .outerjoin(Stock, Stock.product_id == Product.id)
        .filter(Product.is_active.is_(True))
    )
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Product.name.ilike(pattern),
            Product.sku.ilike(pattern),
            Product.barcode.ilike(pattern),
        ))
    if category:
        query = query.filter(Product.category == category)

    if sort in SORT_COLUMNS:
        column = SORT_COLUMNS[sort]
        query = query.order_by(column.desc() if order == "desc" else column.asc(), Product.id.asc())
    else:
        query = query.order_by(Product.created_at.desc(), Product.id.desc())

    products, total = paginate(query, page, limit)
    return page_body("products", [p.to_dict() for p in products], total, page, limit)


def _ensure_unique(sku: str | None, barcode: str | None, exclude_id: int | None = None) -> None:
    if sku:
        query = db.session.query(Product.id).filter(Product.sku == sku)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ConflictError("A product with this SKU already exists")
    if barcode:
        query = db.session.query(Product.id).filter(Product.barcode == barcode)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ConflictError("A product with this barcode already exists")


def _apply_product_patch(product: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k in PRODUCT_MUTABLE_FIELDS:
            setattr(product, k, v)
    if product.category != "OTHER":
        product.custom_category = None


def create_product(patch: dict, created_by: int | None = None) -> Product:
    _ensure_unique(patch.get("sku"), patch.get("barcode"))

    product = Product(created_by=created_by, is_active=True)
    _apply_product_patch(product, patch)
    db.session.add(product)
    db.session.flush()

    min_level = patch.get("min_stock_level")
    db.session.add(Stock(
        product_id=product.id,
        quantity=0,
        min_stock_level=DEFAULT_MIN_STOCK_LEVEL if min_level is None else min_level,
        warehouse_location=patch.get("warehouse_location"),
    ))
    db.session.commit()
    logger.info("Created product %s (sku=%s)", product.id, product.sku)
    return product


def update_product(product: Product, patch: dict) -> Product:
    _ensure_unique(
        patch.get("sku") if patch.get("sku") != product.sku else None,
        patch.get("barcode") if patch.get("barcode") != product.barcode else None,
        exclude_id=product.id,
    )
    _apply_product_patch(product, patch)

    stock_patch = {k: v for k, v in patch.items() if k in STOCK_MUTABLE_FIELDS}
    if stock_patch:
        stock = product.stock
        if stock is None:
            stock = Stock(product_id=product.id, quantity=0, min_stock_level=DEFAULT_MIN_STOCK_LEVEL)
            db.session.add(stock)
            product.stock = stock
        for k, v in stock_patch.items():
            setattr(stock, k, v)

    db.session.commit()
    return product


def delete_product(product: Product) -> Product:
    product.is_active = False
    db.session.commit()
    logger.info("Deactivated product %s", product.id)
    return product


# =============================================================================
# CSV IMPORT
# =============================================================================

def _parse_price(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw)
    except (InvalidOperation, TypeError):
        return None
    if not value.is_finite() or value < 0 or value > MAX_MONEY:
        return None
    return to_money(value)


def import_products_csv(text: str, created_by: int | None = None) -> dict:
    """
    Import products from CSV text. Header names are matched case-insensitively
    and must include name, sku, sellingprice and costprice; barcode,
    description, category and customcategory are optional.

    Rows are independent: a bad row is reported in `errors` (1-based line
    number, header is line 1) and the rest are still imported.
    """
    reader = csv.reader(io.StringIO(text))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        raise ValidationError.for_field("file", "CSV file is empty or has no data rows")

    header = [h.strip().lower() for h in rows[0]]
    missing = [c for c in CSV_REQUIRED_COLUMNS if c not in header]
    if missing:
        raise ValidationError.for_field("file", f"Missing required columns: {', '.join(missing)}")

    imported: list[dict] = []
    errors: list[dict] = []
    seen_skus: set[str] = set()

    for line_no, values in enumerate(rows[1:], start=2):
        record = {h: (values[i].strip() if i < len(values) else "") for i, h in enumerate(header)}
        name, sku = record.get("name", ""), record.get("sku", "")

        if not name or not sku:
            errors.append({"row": line_no, "error": "Name and SKU are required"})
            continue

        selling_price = _parse_price(record.get("sellingprice", ""))
        cost_price = _parse_price(record.get("costprice", ""))
        if selling_price is None or cost_price is None or selling_price <= 0:
            errors.append({"row": line_no, "error": "Invalid price values"})
            continue

        category = (record.get("category") or "OTHER").upper()
        if category not in PRODUCT_CATEGORIES:
            errors.append({"row": line_no, "error": f"Unknown category '{record.get('category')}'"})
            continue
        custom_category = record.get("customcategory") or None
        if category == "OTHER" and not custom_category:
            custom_category = CSV_DEFAULT_CUSTOM_CATEGORY

        barcode = record.get("barcode") or None
        if sku in seen_skus or db.session.query(Product.id).filter(Product.sku == sku).first():
            errors.append({"row": line_no, "error": f"SKU '{sku}' already exists"})
            continue
        if barcode and db.session.query(Product.id).filter(Product.barcode == barcode).first():
            errors.append({"row": line_no, "error": f"Barcode '{barcode}' already exists"})
            continue

        product = Product(
            name=name,
            sku=sku,
            barcode=barcode,
            category=category,
            custom_category=custom_category,
            selling_price=selling_price,
            cost_price=cost_price,
            description=record.get("description") or None,
            created_by=created_by,
            is_active=True,
        )
        db.session.add(product)
        db.session.flush()
        db.session.add(Stock(product_id=product.id, quantity=0, min_stock_level=DEFAULT_MIN_STOCK_LEVEL))
        seen_skus.add(sku)
        imported.append({"sku": sku, "name": name})

    db.session.commit()
    logger.info("CSV import: %d imported, %d rejected", len(imported), len(errors))
    return {"imported": len(imported), "products": imported, "errors": errors}
