# Overview: Flask API routes for salaries; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..services import salary_service
from ..validation import FieldRule, Schema, pagination_schema, parse_query, validate_payload

salaries_bp = Blueprint("salaries", __name__, url_prefix="/api/salaries")


def _total_not_negative(merged: dict):
    if merged.get("base_salary") is None:
        return None
    total = salary_service.salary_total(merged.get("base_salary"), merged.get("bonuses"), merged.get("deductions"))
    if total < 0:
        return "deductions", "cannot exceed base salary plus bonuses"
    return None


# totalAmount is derived server-side and is not an accepted field
SALARY_SCHEMA = Schema(
    fields={
        "employeeName": FieldRule("employee_name", required=True, min_length=1, max_length=255),
        "position": FieldRule("position", nullable=True, max_length=100),
        "baseSalary": FieldRule("base_salary", "money", required=True, gt=0),
        "bonuses": FieldRule("bonuses", "money", ge=0),
        "deductions": FieldRule("deductions", "money", ge=0),
        "month": FieldRule("month", "int", required=True, ge=1, le=12),
        "year": FieldRule("year", "int", required=True, ge=2020, le=2100),
        "notes": FieldRule("notes", nullable=True),
        "paidAt": FieldRule("paid_at", "datetime", nullable=True),
    },
    rules=(_total_not_negative,),
)

SALARY_QUERY_SCHEMA = pagination_schema(
    month=FieldRule("month", "int", ge=1, le=12),
    year=FieldRule("year", "int", ge=2020, le=2100),
)


@salaries_bp.get("")
@require_auth
@require_action("salaries", "view")
def list_salaries_route():
    query = parse_query(SALARY_QUERY_SCHEMA, request.args)
    return salary_service.list_salaries(**query)


@salaries_bp.post("")
@require_auth
@require_action("salaries", "manage")
def create_salary_route():
    patch = validate_payload(SALARY_SCHEMA, request.get_json(silent=True), partial=False)
    salary = salary_service.create_salary(patch, created_by=g.current_user.id)
    return {"salary": salary.to_dict()}, 201


@salaries_bp.get("/<int:salary_id>")
@require_auth
@require_action("salaries", "view")
def get_salary_route(salary_id: int):
    return {"salary": salary_service.get_salary(salary_id).to_dict()}


@salaries_bp.put("/<int:salary_id>")
@require_auth
@require_action("salaries", "manage")
def update_salary_route(salary_id: int):
    salary = salary_service.get_salary(salary_id)
    patch = validate_payload(SALARY_SCHEMA, request.get_json(silent=True), partial=True, existing=salary)
    salary = salary_service.update_salary(salary, patch)
    return {"salary": salary.to_dict()}


@salaries_bp.delete("/<int:salary_id>")
@require_auth
@require_action("salaries", "manage")
def delete_salary_route(salary_id: int):
    salary = salary_service.get_salary(salary_id)
    salary_service.delete_salary(salary)
    return {"message": "Salary deleted"}
