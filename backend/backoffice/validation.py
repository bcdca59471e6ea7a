from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Mapping

from .errors import ErrorMessages, ValidationError
from .time_utils import parse_iso_date, parse_iso_datetime


# Largest amount a NUMERIC(10, 2) column can hold
MAX_MONEY = Decimal("99999999.99")
CENTS = Decimal("0.01")
# Largest value an INTEGER column is guaranteed to hold
MAX_INT = 2**31 - 1


def to_money(value) -> Decimal:
    """Quantize to 2 decimal places (half-up). None -> Decimal('0.00')."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value) -> str | None:
    """Entity money fields are serialized as 2-decimal strings ("4.00")."""
    if value is None:
        return None
    return f"{to_money(value):.2f}"


@dataclass(frozen=True)
class FieldRule:
    """
    One accepted input field.

    - attr: model attribute / service keyword the cleaned value is stored under
    - kind: str | int | money | bool | date | datetime | enum | list
    - gt / ge / le: numeric bounds (gt is exclusive)
    - item_rules: nested rules for kind="list" (each item is an object)
    - max_bytes: UTF-8 length limit for kind="str"
    """
    attr: str
    kind: str = "str"
    required: bool = False
    nullable: bool = False
    default: Any = None
    gt: Any = None
    ge: Any = None
    le: Any = None
    min_length: int | None = None
    max_length: int | None = None
    choices: tuple[str, ...] | None = None
    case_insensitive: bool = False
    item_rules: Mapping[str, "FieldRule"] | None = None
    min_items: int | None = None
    max_bytes: int | None = None
    strip: bool = True


# A cross-field rule receives the merged view (existing values overlaid with the
# patch, keyed by attr) and returns (wire_field, message) when it is violated.
CrossFieldRule = Callable[[dict], "tuple[str, str] | None"]


@dataclass(frozen=True)
class Schema:
    fields: Mapping[str, FieldRule]
    rules: tuple[CrossFieldRule, ...] = field(default_factory=tuple)


class _FieldProblem(ValueError):
    pass


def _coerce_int(value: Any) -> int:
    # bool is a subclass of int and is never a valid integer here
    if isinstance(value, bool):
        raise _FieldProblem("must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise _FieldProblem("must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise _FieldProblem("must be an integer")
        if "e" in stripped.lower() or "." in stripped:
            raise _FieldProblem("must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise _FieldProblem("must be an integer")
    raise _FieldProblem("must be an integer")


def _coerce_money(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise _FieldProblem("must be a number")
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
    else:
        raise _FieldProblem("must be a number")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise _FieldProblem("must be a number")
    if not amount.is_finite():
        raise _FieldProblem("must be a finite number")
    if abs(amount) > MAX_MONEY:
        raise _FieldProblem(f"cannot exceed {MAX_MONEY}")
    return to_money(amount)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise _FieldProblem("must be true or false")


def _coerce(rule: FieldRule, value: Any, path: str, problems: list[dict]) -> Any:
    kind = rule.kind

    if kind == "str":
        if not isinstance(value, str):
            raise _FieldProblem("must be a string")
        if rule.strip:
            value = value.strip()
        if value == "" and rule.nullable and not rule.min_length:
            return None
        if rule.min_length and len(value) < rule.min_length:
            if rule.min_length == 1:
                raise _FieldProblem("cannot be blank")
            raise _FieldProblem(f"must be at least {rule.min_length} characters")
        if rule.max_length and len(value) > rule.max_length:
            raise _FieldProblem(f"must be at most {rule.max_length} characters")
        if rule.max_bytes and len(value.encode("utf-8")) > rule.max_bytes:
            raise _FieldProblem(f"must be at most {rule.max_bytes} bytes")
        return value

    if kind == "int":
        value = _coerce_int(value)
        if abs(value) > MAX_INT:
            raise _FieldProblem(f"must be between {-MAX_INT} and {MAX_INT}")
    elif kind == "money":
        value = _coerce_money(value)
    elif kind == "bool":
        return _coerce_bool(value)
    elif kind == "date":
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        try:
            parsed = parse_iso_date(value) if isinstance(value, str) else None
        except ValueError:
            parsed = None
        if parsed is None:
            raise _FieldProblem("must be a date in YYYY-MM-DD format")
        return parsed
    elif kind == "datetime":
        try:
            parsed = parse_iso_datetime(value) if isinstance(value, str) else None
        except ValueError:
            parsed = None
        if parsed is None:
            raise _FieldProblem("must be an ISO-8601 datetime")
        return parsed
    elif kind == "enum":
        if not isinstance(value, str):
            raise _FieldProblem(f"must be one of: {', '.join(rule.choices or ())}")
        candidate = value.strip().upper() if rule.case_insensitive else value.strip()
        if candidate not in (rule.choices or ()):
            raise _FieldProblem(f"must be one of: {', '.join(rule.choices or ())}")
        return candidate
    elif kind == "list":
        if not isinstance(value, list):
            raise _FieldProblem("must be a list")
        if rule.min_items and len(value) < rule.min_items:
            raise _FieldProblem(f"must contain at least {rule.min_items} item(s)")
        items = []
        for index, item in enumerate(value):
            item_path = f"{path}.{index}"
            if not isinstance(item, dict):
                problems.append({"field": item_path, "message": "must be an object"})
                continue
            items.append(_clean(rule.item_rules or {}, item, partial=False, prefix=f"{item_path}.", problems=problems))
        return items
    else:
        raise ValueError(f"Unknown field kind: {kind}")

    # Numeric bounds for int / money
    if rule.gt is not None and not value > rule.gt:
        raise _FieldProblem(f"must be greater than {rule.gt}")
    if rule.ge is not None and value < rule.ge:
        raise _FieldProblem(f"must be at least {rule.ge}")
    if rule.le is not None and value > rule.le:
        raise _FieldProblem(f"must be at most {rule.le}")
    return value


def _clean(
    rules: Mapping[str, FieldRule],
    payload: Mapping[str, Any],
    *,
    partial: bool,
    prefix: str,
    problems: list[dict],
    apply_defaults: bool = False,
) -> dict:
    cleaned: dict = {}

    for key in payload.keys():
        if key not in rules:
            problems.append({"field": f"{prefix}{key}", "message": "Field not allowed"})

    for key, rule in rules.items():
        path = f"{prefix}{key}"
        present = key in payload and not (apply_defaults and payload[key] in (None, ""))

        if not present:
            if rule.required and not partial:
                problems.append({"field": path, "message": "is required"})
            elif apply_defaults and rule.default is not None:
                cleaned[rule.attr] = rule.default
            continue

        raw = payload[key]
        if raw is None:
            if rule.nullable:
                cleaned[rule.attr] = None
            else:
                problems.append({"field": path, "message": "cannot be null"})
            continue

        try:
            cleaned[rule.attr] = _coerce(rule, raw, path, problems)
        except _FieldProblem as e:
            problems.append({"field": path, "message": str(e)})

    return cleaned


def _wire_name(schema: Schema, attr: str) -> str:
    for key, rule in schema.fields.items():
        if rule.attr == attr:
            return key
    return attr


def validate_payload(
    schema: Schema,
    payload: Any,
    *,
    partial: bool,
    existing: Any = None,
) -> dict:
    """
    Validates + normalizes an incoming JSON body.

    partial=False: create semantics (required fields enforced)
    partial=True: update semantics (validate only provided keys)

    Returns a dict keyed by attr with only the provided (or required) fields.
    Raises ValidationError listing every offending field.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError.for_field("body", "must be a JSON object", ErrorMessages.VALIDATION_ERROR)

    problems: list[dict] = []
    cleaned = _clean(schema.fields, payload, partial=partial, prefix="", problems=problems)

    if not problems and schema.rules:
        merged = {}
        if existing is not None:
            for rule in schema.fields.values():
                merged[rule.attr] = getattr(existing, rule.attr, None)
        merged.update(cleaned)
        for check in schema.rules:
            violation = check(merged)
            if violation:
                problems.append({"field": violation[0], "message": violation[1]})

    if problems:
        raise ValidationError(ErrorMessages.VALIDATION_ERROR, problems)
    return cleaned


def parse_query(schema: Schema, args: Mapping[str, str]) -> dict:
    """
    Validates query-string arguments. Unknown arguments are ignored, blank
    values count as absent and defaults are applied.
    """
    known = {k: args.get(k) for k in schema.fields if k in args}
    problems: list[dict] = []
    cleaned = _clean(schema.fields, known, partial=False, prefix="", problems=problems, apply_defaults=True)
    if not problems:
        for check in schema.rules:
            violation = check(cleaned)
            if violation:
                problems.append({"field": violation[0], "message": violation[1]})
    if problems:
        raise ValidationError(ErrorMessages.INVALID_QUERY, problems)
    return cleaned


def pagination_schema(default_limit: int = 10, **extra: FieldRule) -> Schema:
    fields = {
        "page": FieldRule("page", "int", default=1, ge=1),
        "limit": FieldRule("limit", "int", default=default_limit, ge=1, le=100),
    }
    fields.update(extra)
    return Schema(fields=fields, rules=(_date_range_rule,))


def _date_range_rule(merged: dict):
    start, end = merged.get("from_date"), merged.get("to_date")
    if start is not None and end is not None and end < start:
        return "toDate", "must not be before fromDate"
    return None


def required_when(attr: str, equals: str, required_attr: str, wire_field: str) -> CrossFieldRule:
    """Build a rule: `required_attr` must be non-blank whenever `attr == equals`."""
    def check(merged: dict):
        if merged.get(attr) == equals and not (merged.get(required_attr) or "").strip():
            return wire_field, f"is required when {attr.split('_')[0]} is {equals}"
        return None
    return check


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def paginate(query, page: int, limit: int) -> tuple[list, int]:
    """Returns (items on this page, total). A page past the end is empty."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def page_body(items_name: str, items: list[dict], total: int, page: int, limit: int) -> dict:
    return {
        items_name: items,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages(total, limit),
    }


def is_storable_id(value) -> bool:
    """Ids outside the INTEGER range can never match a row."""
    return isinstance(value, int) and 0 < value <= MAX_INT
