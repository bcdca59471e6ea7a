# Overview: Service-layer operations for orders; creation, status lifecycle and stock side effects.

"""
Orders Service

Lifecycle:

    PENDING    -> CONFIRMED, CANCELLED
    CONFIRMED  -> IN_TRANSIT, CANCELLED
    IN_TRANSIT -> DELIVERED, RETURNED, CANCELLED
    DELIVERED  -> RETURNED

RETURNED and CANCELLED are terminal. Setting the current status again is a
no-op (no side effects, no error).

Side effects of a status change:
- DELIVERED: payment becomes PAID
- RETURNED: payment becomes REFUNDED if it was PAID; items are restocked
- CANCELLED: items are restocked

Stock for every line is taken when the order is created.
"""

from __future__ import annotations

import logging
import secrets
import string
from datetime import date, datetime, timedelta

from sqlalchemy import or_

from ..errors import AuthorizationError, ErrorMessages, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, OrderItem, Product, User
from ..models.catalog import STOCK_ADD, STOCK_REMOVE
from ..models.orders import (
    CANCELLED,
    CONFIRMED,
    DELIVERED,
    IN_TRANSIT,
    PAID,
    PENDING,
    REFUNDED,
    RETURNED,
    UNPAID,
)
from ..models.users import SHOP_AGENT
from ..time_utils import utcnow
from ..validation import is_storable_id, page_body, paginate, to_money
from .stock_service import get_stock_for_product, apply_stock_change


logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({IN_TRANSIT, CANCELLED}),
    IN_TRANSIT: frozenset({DELIVERED, RETURNED, CANCELLED}),
    DELIVERED: frozenset({RETURNED}),
    RETURNED: frozenset(),
    CANCELLED: frozenset(),
}

RESTOCKING_STATUSES = frozenset({CANCELLED, RETURNED})

# Orders whose goods are still in the warehouse
UNSHIPPED_STATUSES = frozenset({PENDING, CONFIRMED})

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_SUFFIX_LENGTH = 6
ORDER_NUMBER_ATTEMPTS = 5


class OrderTransitionError(ValidationError):
    pass


def can_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def generate_order_number(today: date | None = None) -> str:
    """ORD-YYYYMMDD-XXXXXX, unique; retried on the rare suffix collision."""
    today = today or utcnow().date()
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH))
        number = f"ORD-{today:%Y%m%d}-{suffix}"
        if not db.session.query(Order.id).filter(Order.order_number == number).first():
            return number
    raise RuntimeError("Could not allocate a unique order number")


# =============================================================================
# READ
# =============================================================================

def _visible_to(query, user: User):
    if user.role == SHOP_AGENT:
        query = query.filter(Order.created_by == user.id)
    return query


def get_order(order_id: int, user: User | None = None) -> Order:
    """
    SHOP_AGENT callers only see orders they created; anyone else's order is
    reported as not found.
    """
    order = db.session.get(Order, order_id) if is_storable_id(order_id) else None
    if order is None:
        raise NotFoundError("Order not found")
    if user is not None and user.role == SHOP_AGENT and order.created_by != user.id:
        raise NotFoundError("Order not found")
    return order


def list_orders(
    user: User,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    status: str | None = None,
    payment_status: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
) -> dict:
    query = _visible_to(db.session.query(Order), user)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Order.order_number.ilike(pattern),
            Order.customer_name.ilike(pattern),
            Order.customer_phone.ilike(pattern),
        ))
    if status:
        query = query.filter(Order.status == status)
    if payment_status:
        query = query.filter(Order.payment_status == payment_status)
    if from_date:
        query = query.filter(Order.created_at >= datetime.combine(from_date, datetime.min.time()))
    if to_date:
        # toDate is inclusive of the whole day
        query = query.filter(Order.created_at < datetime.combine(to_date + timedelta(days=1), datetime.min.time()))

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    orders, total = paginate(query, page, limit)
    return page_body("orders", [o.to_dict() for o in orders], total, page, limit)


# =============================================================================
# WRITE
# =============================================================================

def create_order(patch: dict, user: User) -> Order:
    """
    Items are validated as a whole before anything is written: every product
    must exist, be active and have enough stock for the summed quantity.
    """
    requested: dict[int, int] = {}
    for item in patch["items"]:
        requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["quantity"]

    problems = []
    products: dict[int, Product] = {}
    stocks = {}
    for index, item in enumerate(patch["items"]):
        product_id = item["product_id"]
        if product_id in products:
            continue
        product = db.session.get(Product, product_id) if is_storable_id(product_id) else None
        if product is None or not product.is_active:
            problems.append({"field": f"items.{index}.productId", "message": f"Product {product_id} not found"})
            continue
        stock = get_stock_for_product(product_id, lock=True)
        if stock.quantity < requested[product_id]:
            problems.append({
                "field": f"items.{index}.quantity",
                "message": f"Insufficient stock for {product.name}: {stock.quantity} available",
            })
            continue
        products[product_id] = product
        stocks[product_id] = stock

    if problems:
        raise ValidationError(ErrorMessages.VALIDATION_ERROR, problems)

    order = Order(
        order_number=generate_order_number(),
        customer_name=patch["customer_name"],
        customer_phone=patch.get("customer_phone"),
        customer_address=patch["customer_address"],
        customer_city=patch.get("customer_city"),
        delivery_price=to_money(patch.get("delivery_price")),
        notes=patch.get("notes"),
        status=PENDING,
        payment_status=UNPAID,
        created_by=user.id,
    )

    items_total = to_money(0)
    for item in patch["items"]:
        product = products[item["product_id"]]
        unit_price = to_money(product.selling_price)
        subtotal = to_money(unit_price * item["quantity"])
        items_total += subtotal
        order.items.append(OrderItem(
            product_id=product.id,
            quantity=item["quantity"],
            unit_price=unit_price,
            subtotal=subtotal,
        ))

    order.total_amount = to_money(items_total + order.delivery_price)
    db.session.add(order)
    db.session.flush()

    for item in patch["items"]:
        apply_stock_change(
            stocks[item["product_id"]],
            STOCK_REMOVE,
            item["quantity"],
            reason=f"Order {order.order_number}",
            user_id=user.id,
        )

    db.session.commit()
    logger.info("Created order %s (%s) with %d item(s)", order.id, order.order_number, len(order.items))
    return order


def _restock(order: Order, user_id: int | None, target: str) -> None:
    for item in order.items:
        stock = get_stock_for_product(item.product_id, lock=True)
        apply_stock_change(
            stock,
            STOCK_ADD,
            item.quantity,
            reason=f"Order {order.order_number} {target.lower()}",
            user_id=user_id,
        )


def apply_status(order: Order, target: str, user_id: int | None = None) -> bool:
    """
    Move `order` to `target` with its side effects. Does not commit.

    Returns False for the same-status no-op, True when the status changed.
    Raises OrderTransitionError for a transition outside the lifecycle.
    """
    current = order.status
    if current == target:
        return False
    if not can_transition(current, target):
        raise OrderTransitionError.for_field(
            "status",
            f"Cannot change status from {current} to {target}",
            "Invalid status transition",
        )

    order.status = target
    if target == DELIVERED:
        order.payment_status = PAID
    elif target == RETURNED and order.payment_status == PAID:
        order.payment_status = REFUNDED

    if target in RESTOCKING_STATUSES:
        _restock(order, user_id, target)

    logger.info("Order %s: %s -> %s", order.id, current, target)
    return True


def update_status(order: Order, target: str, user_id: int | None = None) -> Order:
    if apply_status(order, target, user_id):
        db.session.commit()
    return order


def update_order(order: Order, patch: dict, user: User, status_only: bool = False) -> Order:
    """
    status_only callers (warehouse agents, confirmers) may send status alone;
    payment status and notes are refused for them.
    """
    if status_only:
        refused = [k for k in patch if k != "status"]
        if refused:
            raise AuthorizationError("You may only change the order status")

    changed = False
    if "status" in patch:
        changed = apply_status(order, patch["status"], user.id) or changed
    if "payment_status" in patch and patch["payment_status"] != order.payment_status:
        order.payment_status = patch["payment_status"]
        changed = True
    if "notes" in patch and patch["notes"] != order.notes:
        order.notes = patch["notes"]
        changed = True

    if changed:
        db.session.commit()
    return order


def delete_order(order: Order) -> None:
    """
    Hard delete. Stock is returned only for orders that have not left the
    warehouse yet.
    """
    if order.status in UNSHIPPED_STATUSES:
        _restock(order, None, "deleted")
    db.session.delete(order)
    db.session.commit()
    logger.info("Deleted order %s (%s)", order.id, order.order_number)
