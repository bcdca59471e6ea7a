# Overview: Service-layer operations for salaries; monthly pay records and paid/pending totals.

from __future__ import annotations

import logging

from sqlalchemy import case, func

from ..errors import NotFoundError
from ..extensions import db
from ..models import Salary
from ..validation import is_storable_id, page_body, paginate, to_money
from .dashboard_service import as_number


logger = logging.getLogger(__name__)

SALARY_MUTABLE_FIELDS = {
    "employee_name",
    "position",
    "base_salary",
    "bonuses",
    "deductions",
    "month",
    "year",
    "notes",
    "paid_at",
}


def salary_total(base_salary, bonuses, deductions):
    return to_money(to_money(base_salary) + to_money(bonuses) - to_money(deductions))


def get_salary(salary_id: int) -> Salary:
    salary = db.session.get(Salary, salary_id) if is_storable_id(salary_id) else None
    if salary is None:
        raise NotFoundError("Salary not found")
    return salary


def _filtered(query, month: int | None, year: int | None):
    if month is not None:
        query = query.filter(Salary.month == month)
    if year is not None:
        query = query.filter(Salary.year == year)
    return query


def salary_stats(month: int | None = None, year: int | None = None) -> dict:
    paid = Salary.paid_at.isnot(None)
    row = _filtered(
        db.session.query(
            func.coalesce(func.sum(case((paid, Salary.total_amount), else_=0)), 0),
            func.coalesce(func.sum(case((paid, 0), else_=Salary.total_amount)), 0),
            func.coalesce(func.sum(case((paid, 1), else_=0)), 0),
            func.coalesce(func.sum(case((paid, 0), else_=1)), 0),
        ),
        month,
        year,
    ).one()
    return {
        "totalPaid": as_number(row[0]),
        "totalPending": as_number(row[1]),
        "paidCount": int(row[2] or 0),
        "pendingCount": int(row[3] or 0),
    }


def list_salaries(page: int = 1, limit: int = 10, month: int | None = None, year: int | None = None) -> dict:
    query = _filtered(db.session.query(Salary), month, year).order_by(
        Salary.year.desc(), Salary.month.desc(), Salary.created_at.desc(), Salary.id.desc()
    )
    salaries, total = paginate(query, page, limit)
    body = page_body("salaries", [s.to_dict() for s in salaries], total, page, limit)
    body["stats"] = salary_stats(month, year)
    return body


def _apply_patch(salary: Salary, patch: dict) -> None:
    for k, v in patch.items():
        if k in SALARY_MUTABLE_FIELDS:
            setattr(salary, k, v)
    if salary.bonuses is None:
        salary.bonuses = to_money(0)
    if salary.deductions is None:
        salary.deductions = to_money(0)
    # Derived; always from the merged record
    salary.total_amount = salary_total(salary.base_salary, salary.bonuses, salary.deductions)


def create_salary(patch: dict, created_by: int | None = None) -> Salary:
    salary = Salary(created_by=created_by)
    _apply_patch(salary, patch)
    db.session.add(salary)
    db.session.commit()
    logger.info("Created salary %s for %02d/%d", salary.id, salary.month, salary.year)
    return salary


def update_salary(salary: Salary, patch: dict) -> Salary:
    _apply_patch(salary, patch)
    db.session.commit()
    return salary


def delete_salary(salary: Salary) -> None:
    db.session.delete(salary)
    db.session.commit()
    logger.info("Deleted salary %s", salary.id)
