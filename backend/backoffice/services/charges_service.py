# Overview: Service-layer operations for charges; operating expenses and their summary.

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from ..errors import NotFoundError
from ..extensions import db
from ..models import Charge
from ..validation import is_storable_id, page_body, paginate, to_money
from .dashboard_service import as_number


logger = logging.getLogger(__name__)

CHARGE_MUTABLE_FIELDS = {"type", "custom_type", "amount", "description", "charge_date"}


def get_charge(charge_id: int) -> Charge:
    charge = db.session.get(Charge, charge_id) if is_storable_id(charge_id) else None
    if charge is None:
        raise NotFoundError("Charge not found")
    return charge


def _filtered(query, charge_type: str | None, from_date: date | None, to_date: date | None):
    if charge_type:
        query = query.filter(Charge.type == charge_type)
    if from_date:
        query = query.filter(Charge.charge_date >= from_date)
    if to_date:
        query = query.filter(Charge.charge_date <= to_date)
    return query


def summarize(charge_type: str | None = None, from_date: date | None = None, to_date: date | None = None) -> dict:
    """Totals over the same filter as the list (all pages)."""
    rows = (
        _filtered(db.session.query(Charge.type, func.coalesce(func.sum(Charge.amount), 0), func.count(Charge.id)),
                  charge_type, from_date, to_date)
        .group_by(Charge.type)
        .order_by(Charge.type.asc())
        .all()
    )
    by_type = [{"type": t, "total": as_number(total), "count": count} for t, total, count in rows]
    total_amount = sum((to_money(total) for _, total, _ in rows), Decimal("0"))
    return {
        "totalAmount": as_number(total_amount),
        "byType": by_type,
    }


def list_charges(
    page: int = 1,
    limit: int = 10,
    charge_type: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
) -> dict:
    query = _filtered(db.session.query(Charge), charge_type, from_date, to_date)
    query = query.order_by(Charge.charge_date.desc(), Charge.id.desc())
    charges, total = paginate(query, page, limit)
    body = page_body("charges", [c.to_dict() for c in charges], total, page, limit)
    body["summary"] = summarize(charge_type, from_date, to_date)
    return body


def _apply_patch(charge: Charge, patch: dict) -> None:
    for k, v in patch.items():
        if k in CHARGE_MUTABLE_FIELDS:
            setattr(charge, k, v)
    if charge.type != "OTHER":
        charge.custom_type = None


def create_charge(patch: dict, created_by: int | None = None) -> Charge:
    charge = Charge(created_by=created_by)
    _apply_patch(charge, patch)
    db.session.add(charge)
    db.session.commit()
    logger.info("Created charge %s (%s)", charge.id, charge.type)
    return charge


def update_charge(charge: Charge, patch: dict) -> Charge:
    _apply_patch(charge, patch)
    db.session.commit()
    return charge


def delete_charge(charge: Charge) -> None:
    db.session.delete(charge)
    db.session.commit()
    logger.info("Deleted charge %s", charge.id)
