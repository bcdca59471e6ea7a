# Overview: Service-layer operations for ads costs; campaign spend and cost-per-result.

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func

from ..errors import NotFoundError
from ..extensions import db
from ..models import AdsCost
from ..validation import is_storable_id, page_body, paginate, to_money
from .dashboard_service import as_number


logger = logging.getLogger(__name__)

ADS_COST_MUTABLE_FIELDS = {"campaign_name", "platform", "cost", "results", "campaign_date", "notes"}


def cost_per_result(cost, results: int | None) -> Decimal:
    """cost / results rounded half-up to cents; 0.00 when there are no results."""
    if not results:
        return to_money(0)
    return to_money(to_money(cost) / Decimal(results))


def get_ads_cost(ads_cost_id: int) -> AdsCost:
    ads_cost = db.session.get(AdsCost, ads_cost_id) if is_storable_id(ads_cost_id) else None
    if ads_cost is None:
        raise NotFoundError("Ads cost not found")
    return ads_cost


def summarize() -> dict:
    rows = (
        db.session.query(
            AdsCost.platform,
            func.coalesce(func.sum(AdsCost.cost), 0),
            func.coalesce(func.sum(AdsCost.results), 0),
            func.count(AdsCost.id),
        )
        .group_by(AdsCost.platform)
        .order_by(AdsCost.platform.asc())
        .all()
    )
    by_platform = [
        {
            "platform": platform,
            "totalCost": as_number(cost),
            "totalResults": int(results or 0),
            "count": count,
        }
        for platform, cost, results, count in rows
    ]
    total_cost = sum((to_money(cost) for _, cost, _, _ in rows), Decimal("0"))
    total_results = sum(entry["totalResults"] for entry in by_platform)
    return {
        "byPlatform": by_platform,
        "totalCost": as_number(total_cost),
        "totalResults": total_results,
        "avgCostPerResult": as_number(cost_per_result(total_cost, total_results)),
    }


def list_ads_costs(page: int = 1, limit: int = 10) -> dict:
    query = db.session.query(AdsCost).order_by(
        AdsCost.campaign_date.desc(), AdsCost.created_at.desc(), AdsCost.id.desc()
    )
    ads_costs, total = paginate(query, page, limit)
    body = page_body("adsCosts", [a.to_dict() for a in ads_costs], total, page, limit)
    body["summary"] = summarize()
    return body


def _apply_patch(ads_cost: AdsCost, patch: dict) -> None:
    for k, v in patch.items():
        if k in ADS_COST_MUTABLE_FIELDS:
            setattr(ads_cost, k, v)
    if ads_cost.results is None:
        ads_cost.results = 0
    # Derived; always from the merged record
    ads_cost.cost_per_result = cost_per_result(ads_cost.cost, ads_cost.results)


def create_ads_cost(patch: dict, created_by: int | None = None) -> AdsCost:
    ads_cost = AdsCost(created_by=created_by)
    _apply_patch(ads_cost, patch)
    db.session.add(ads_cost)
    db.session.commit()
    logger.info("Created ads cost %s (%s)", ads_cost.id, ads_cost.platform)
    return ads_cost


def update_ads_cost(ads_cost: AdsCost, patch: dict) -> AdsCost:
    _apply_patch(ads_cost, patch)
    db.session.commit()
    return ads_cost


def delete_ads_cost(ads_cost: AdsCost) -> None:
    db.session.delete(ads_cost)
    db.session.commit()
    logger.info("Deleted ads cost %s", ads_cost.id)
