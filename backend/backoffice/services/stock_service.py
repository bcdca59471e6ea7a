# Overview: Service-layer operations for stock; quantity changes and the append-only history.

"""
Stock Service

Every quantity change goes through apply_stock_change, which updates the
stock row and appends exactly one StockHistory row in the same transaction.
Callers commit (or let a larger unit of work, such as order creation,
commit).

Quantity never goes below zero.
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Stock, StockHistory
from ..models.catalog import STOCK_ADD, STOCK_ADJUSTMENT, STOCK_REMOVE
from ..validation import is_storable_id, page_body, paginate
from .dashboard_service import active_stock_query, as_number


logger = logging.getLogger(__name__)

STOCK_SETTINGS_FIELDS = {"min_stock_level", "warehouse_location"}


def lock_for_update(query):
    """
    Row-level lock for read-modify-write on stock.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, other databases honor it.
    """
    return query.with_for_update()


def get_stock_for_product(product_id: int, *, lock: bool = False) -> Stock:
    product = db.session.get(Product, product_id) if is_storable_id(product_id) else None
    if product is None:
        raise NotFoundError("Product not found")

    query = db.session.query(Stock).filter(Stock.product_id == product_id)
    if lock:
        query = lock_for_update(query)
    stock = query.one_or_none()
    if stock is None:
        raise NotFoundError("Stock record not found")
    return stock


def apply_stock_change(
    stock: Stock,
    change_type: str,
    quantity: int,
    *,
    reason: str | None = None,
    user_id: int | None = None,
) -> StockHistory:
    """
    ADD: quantity is added
    REMOVE: quantity is subtracted (must not go below zero)
    ADJUSTMENT: quantity becomes the new absolute level
    """
    previous = stock.quantity
    if change_type == STOCK_ADD:
        new_quantity = previous + quantity
    elif change_type == STOCK_REMOVE:
        new_quantity = previous - quantity
        if new_quantity < 0:
            raise ValidationError.for_field(
                "quantity",
                f"Insufficient stock: {previous} available, {quantity} requested",
                "Insufficient stock",
            )
    elif change_type == STOCK_ADJUSTMENT:
        new_quantity = quantity
    else:
        raise ValueError(f"Unknown stock change type: {change_type}")

    stock.quantity = new_quantity
    entry = StockHistory(
        product_id=stock.product_id,
        quantity_change=new_quantity - previous,
        type=change_type,
        reason=reason,
        previous_quantity=previous,
        new_quantity=new_quantity,
        created_by=user_id,
    )
    db.session.add(entry)
    return entry


_DEFAULT_REASONS = {
    STOCK_ADD: "Added {quantity} units",
    STOCK_REMOVE: "Removed {quantity} units",
    STOCK_ADJUSTMENT: "Adjusted to {quantity} units",
}

_MESSAGES = {
    STOCK_ADD: "Added {quantity} units to {name}",
    STOCK_REMOVE: "Removed {quantity} units from {name}",
    STOCK_ADJUSTMENT: "Set {name} stock to {quantity} units",
}


def change_stock(product_id: int, change_type: str, quantity: int, reason: str | None, user_id: int | None) -> dict:
    stock = get_stock_for_product(product_id, lock=True)
    apply_stock_change(
        stock,
        change_type,
        quantity,
        reason=reason or _DEFAULT_REASONS[change_type].format(quantity=quantity),
        user_id=user_id,
    )
    db.session.commit()
    logger.info("Stock %s for product %s: %s -> now %s", change_type, product_id, quantity, stock.quantity)
    return {
        "stock": stock.to_dict(),
        "message": _MESSAGES[change_type].format(quantity=quantity, name=stock.product.name),
    }


def update_stock_settings(product_id: int, patch: dict) -> Stock:
    stock = get_stock_for_product(product_id)
    for k, v in patch.items():
        if k in STOCK_SETTINGS_FIELDS:
            setattr(stock, k, v)
    db.session.commit()
    return stock


def stock_stats() -> dict:
    """Always computed over every active product, whatever the list filter."""
    totals = (
        active_stock_query()
        .with_entities(
            func.count(Stock.id),
            func.coalesce(func.sum(Stock.quantity), 0),
            func.coalesce(func.sum(Stock.quantity * Product.cost_price), 0),
        )
        .one()
    )
    low = active_stock_query().filter(Stock.quantity < Stock.min_stock_level).count()
    out = active_stock_query().filter(Stock.quantity == 0).count()
    return {
        "totalProducts": int(totals[0] or 0),
        "totalUnits": int(totals[1] or 0),
        "totalValue": as_number(totals[2]),
        "lowStockCount": low,
        "outOfStockCount": out,
    }


def list_stock(low_stock: bool = False) -> dict:
    """lowStock=false (or absent) lists every active product."""
    query = active_stock_query()
    if low_stock:
        query = query.filter(Stock.quantity < Stock.min_stock_level)
    rows = query.order_by(Product.name.asc(), Stock.id.asc()).all()
    return {"stock": [s.to_dict() for s in rows], "stats": stock_stats()}


def list_history(page: int = 1, limit: int = 20, product_id: int | None = None) -> dict:
    query = db.session.query(StockHistory)
    if product_id is not None:
        query = query.filter(StockHistory.product_id == product_id)
    query = query.order_by(StockHistory.created_at.desc(), StockHistory.id.desc())
    entries, total = paginate(query, page, limit)
    return page_body("history", [e.to_dict() for e in entries], total, page, limit)
