# Overview: Service-layer operations for scan-orders; warehouse hand-off of confirmed orders.

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, ScannedOrder
from ..models.orders import CONFIRMED, IN_TRANSIT
from ..time_utils import start_of_day, utcnow
from ..validation import page_body, paginate
from .orders_service import apply_status


logger = logging.getLogger(__name__)


def count_scans_since(since: datetime) -> int:
    return db.session.query(func.count(ScannedOrder.id)).filter(ScannedOrder.scanned_at >= since).scalar() or 0


def list_scans(page: int = 1, limit: int = 20, now: datetime | None = None) -> dict:
    query = db.session.query(ScannedOrder).order_by(ScannedOrder.scanned_at.desc(), ScannedOrder.id.desc())
    scans, total = paginate(query, page, limit)
    body = page_body("scannedOrders", [s.to_dict() for s in scans], total, page, limit)
    body["todayScans"] = count_scans_since(start_of_day(now or utcnow()))
    return body


def scan_order(patch: dict, user_id: int) -> ScannedOrder:
    """
    Record the hand-off and move the order to IN_TRANSIT.

    Only CONFIRMED orders can be scanned; a second scan of the same order is
    a conflict.
    """
    order = db.session.get(Order, patch["order_id"])
    if order is None:
        raise NotFoundError("Order not found")

    existing = db.session.query(ScannedOrder.id).filter(ScannedOrder.order_id == order.id).first()
    if existing:
        raise ConflictError("Order has already been scanned")

    if order.status != CONFIRMED:
        raise ValidationError.for_field(
            "orderId",
            f"Order is {order.status}; only CONFIRMED orders can be scanned",
            "Order cannot be scanned",
        )

    scan = ScannedOrder(
        order_id=order.id,
        delivery_company=patch.get("delivery_company"),
        tracking_number=patch.get("tracking_number"),
        notes=patch.get("notes"),
        scanned_by=user_id,
    )
    db.session.add(scan)
    apply_status(order, IN_TRANSIT, user_id)
    db.session.commit()
    logger.info("Order %s scanned by user %s", order.id, user_id)
    return scan
