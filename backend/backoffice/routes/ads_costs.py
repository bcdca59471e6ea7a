# Overview: Flask API routes for ads costs; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_action, require_auth
from ..models.finance import AD_PLATFORMS
from ..services import ads_cost_service
from ..validation import FieldRule, Schema, pagination_schema, parse_query, validate_payload

ads_costs_bp = Blueprint("ads_costs", __name__, url_prefix="/api/ads-costs")

# costPerResult is derived server-side and is not an accepted field
ADS_COST_SCHEMA = Schema(fields={
    "campaignName": FieldRule("campaign_name", required=True, min_length=1, max_length=255),
    "platform": FieldRule("platform", "enum", required=True, choices=AD_PLATFORMS, case_insensitive=True),
    "cost": FieldRule("cost", "money", required=True, gt=0),
    "results": FieldRule("results", "int", ge=0),
    "campaignDate": FieldRule("campaign_date", "date", required=True),
    "notes": FieldRule("notes", nullable=True),
})

ADS_COST_QUERY_SCHEMA = pagination_schema()


@ads_costs_bp.get("")
@require_auth
@require_action("ads_costs", "view")
def list_ads_costs_route():
    query = parse_query(ADS_COST_QUERY_SCHEMA, request.args)
    return ads_cost_service.list_ads_costs(**query)


@ads_costs_bp.post("")
@require_auth
@require_action("ads_costs", "manage")
def create_ads_cost_route():
    patch = validate_payload(ADS_COST_SCHEMA, request.get_json(silent=True), partial=False)
    ads_cost = ads_cost_service.create_ads_cost(patch, created_by=g.current_user.id)
    return {"adsCost": ads_cost.to_dict()}, 201


@ads_costs_bp.get("/<int:ads_cost_id>")
@require_auth
@require_action("ads_costs", "view")
def get_ads_cost_route(ads_cost_id: int):
    return {"adsCost": ads_cost_service.get_ads_cost(ads_cost_id).to_dict()}


@ads_costs_bp.put("/<int:ads_cost_id>")
@require_auth
@require_action("ads_costs", "manage")
def update_ads_cost_route(ads_cost_id: int):
    ads_cost = ads_cost_service.get_ads_cost(ads_cost_id)
    patch = validate_payload(ADS_COST_SCHEMA, request.get_json(silent=True), partial=True, existing=ads_cost)
    ads_cost = ads_cost_service.update_ads_cost(ads_cost, patch)
    return {"adsCost": ads_cost.to_dict()}


@ads_costs_bp.delete("/<int:ads_cost_id>")
@require_auth
@require_action("ads_costs", "manage")
def delete_ads_cost_route(ads_cost_id: int):
    ads_cost = ads_cost_service.get_ads_cost(ads_cost_id)
    ads_cost_service.delete_ads_cost(ads_cost)
    return {"message": "Ads cost deleted"}
