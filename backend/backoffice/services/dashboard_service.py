# Overview: Service-layer operations for dashboard statistics; read-only aggregation queries.

"""
Each figure is an independent query so one can be changed (or dropped)
without touching the others. build_dashboard assembles them.

Conventions:
- revenue only counts DELIVERED orders
- "today" starts at UTC midnight
- monetary aggregates are floats rounded to 2 decimals; empty sums are 0
- stock figures only cover active products
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, Product, Stock
from ..models.orders import DELIVERED, ORDER_STATUSES, PENDING
from ..time_utils import first_of_month, start_of_day, utcnow


REVENUE_MONTHS = 6
TOP_PRODUCTS_LIMIT = 5
RECENT_ORDERS_LIMIT = 10
LOW_STOCK_LIMIT = 10


def as_number(value) -> float:
    return round(float(value or 0), 2)


def month_key(column):
    """YYYY-MM bucket expression for the active database dialect."""
    if db.engine.dialect.name == "postgresql":
        return func.to_char(column, "YYYY-MM")
    return func.strftime("%Y-%m", column)


def active_stock_query():
    return (
        db.session.query(Stock)
        .join(Product, Stock.product_id == Product.id)
        .filter(Product.is_active.is_(True))
    )


# =============================================================================
# STOCK SIDE
# =============================================================================

def count_active_products() -> int:
    return db.session.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar() or 0


def stock_totals() -> dict:
    value, units = (
        active_stock_query()
        .with_entities(
            func.coalesce(func.sum(Stock.quantity * Product.cost_price), 0),
            func.coalesce(func.sum(Stock.quantity), 0),
        )
        .one()
    )
    return {"totalValue": as_number(value), "totalUnits": int(units or 0)}


def count_low_stock() -> int:
    return (
        active_stock_query()
        .filter(Stock.quantity < Stock.min_stock_level)
        .with_entities(func.count(Stock.id))
        .scalar()
        or 0
    )


def count_out_of_stock() -> int:
    return (
        active_stock_query()
        .filter(Stock.quantity == 0)
        .with_entities(func.count(Stock.id))
        .scalar()
        or 0
    )


def low_stock_products(limit: int = LOW_STOCK_LIMIT) -> list[dict]:
    rows = (
        active_stock_query()
        .filter(Stock.quantity < Stock.min_stock_level)
        .with_entities(Product.id, Product.name, Product.sku, Stock.quantity, Stock.min_stock_level)
        .order_by(Stock.quantity.asc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": row.id,
            "name": row.name,
            "sku": row.sku,
            "quantity": row.quantity,
            "minStockLevel": row.min_stock_level,
        }
        for row in rows
    ]


# =============================================================================
# ORDER SIDE
# =============================================================================

def count_orders(status: str | None = None, since: datetime | None = None) -> int:
    query = db.session.query(func.count(Order.id))
    if status is not None:
        query = query.filter(Order.status == status)
    if since is not None:
        query = query.filter(Order.created_at >= since)
    return query.scalar() or 0


def delivered_revenue(since: datetime | None = None) -> float:
    query = db.session.query(func.coalesce(func.sum(Order.total_amount), 0)).filter(Order.status == DELIVERED)
    if since is not None:
        query = query.filter(Order.created_at >= since)
    return as_number(query.scalar())


def orders_by_status() -> list[dict]:
    rows = (
        db.session.query(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .all()
    )
    counts = dict(rows)
    # Stable order for the chart: lifecycle order, then anything unexpected
    ordered = [s for s in ORDER_STATUSES if s in counts] + sorted(s for s in counts if s not in ORDER_STATUSES)
    return [{"status": status, "count": counts[status]} for status in ordered]


def revenue_by_month(now: datetime | None = None, months: int = REVENUE_MONTHS) -> list[dict]:
    """
    One bucket per calendar month, oldest first, current month included.
    Months without delivered orders are reported with zeros.
    """
    now = now or utcnow()
    window_start = first_of_month(now, months - 1)
    bucket = month_key(Order.created_at)

    rows = (
        db.session.query(
            bucket.label("month"),
            func.coalesce(func.sum(Order.total_amount), 0).label("revenue"),
            func.count(Order.id).label("count"),
        )
        .filter(Order.status == DELIVERED, Order.created_at >= window_start)
        .group_by(bucket)
        .all()
    )
    found = {row.month: row for row in rows}

    result = []
    for back in range(months - 1, -1, -1):
        key = first_of_month(now, back).strftime("%Y-%m")
        row = found.get(key)
        result.append({
            "month": key,
            "revenue": as_number(row.revenue) if row else 0,
            "count": int(row.count) if row else 0,
        })
    return result


def top_products(limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    quantity = func.sum(OrderItem.quantity)
    rows = (
        db.session.query(
            OrderItem.product_id,
            Product.name,
            Product.sku,
            quantity.label("total_quantity"),
            func.coalesce(func.sum(OrderItem.subtotal), 0).label("total_revenue"),
        )
        .join(Product, OrderItem.product_id == Product.id)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(Order.status == DELIVERED)
        .group_by(OrderItem.product_id, Product.name, Product.sku)
        .order_by(quantity.desc(), OrderItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "productId": row.product_id,
            "productName": row.name,
            "productSku": row.sku,
            "totalQuantity": int(row.total_quantity or 0),
            "totalRevenue": as_number(row.total_revenue),
        }
        for row in rows
    ]


def recent_orders(limit: int = RECENT_ORDERS_LIMIT) -> list[dict]:
    orders = (
        db.session.query(Order)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )
    return [order.to_summary_dict() for order in orders]


# =============================================================================
# ASSEMBLY
# =============================================================================

def build_dashboard(now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)
    totals = stock_totals()

    return {
        "stats": {
            "totalProducts": count_active_products(),
            "totalStockValue": totals["totalValue"],
            "totalStockUnits": totals["totalUnits"],
            "lowStockCount": count_low_stock(),
            "outOfStockCount": count_out_of_stock(),
            "totalOrders": count_orders(),
            "pendingOrders": count_orders(status=PENDING),
            "totalRevenue": delivered_revenue(),
            "todayRevenue": delivered_revenue(since=today),
            "todayOrders": count_orders(since=today),
        },
        "charts": {
            "ordersByStatus": orders_by_status(),
            "revenueByMonth": revenue_by_month(now),
            "topProducts": top_products(),
        },
        "recentOrders": recent_orders(),
        "lowStockProducts": low_stock_products(),
    }


def build_order_stats(now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)
    return {
        "stats": {
            "totalOrders": count_orders(),
            "pendingOrders": count_orders(status=PENDING),
            "deliveredOrders": count_orders(status=DELIVERED),
            "totalRevenue": delivered_revenue(),
            "todayRevenue": delivered_revenue(since=today),
            "todayOrders": count_orders(since=today),
            "ordersByStatus": orders_by_status(),
            "revenueByMonth": revenue_by_month(now),
        },
    }
