# Overview: Flask API routes for dashboard statistics.

from flask import Blueprint

from ..decorators import require_action, require_auth
from ..services.dashboard_service import build_dashboard

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
@require_action("dashboard", "view")
def dashboard_stats_route():
    return build_dashboard()
