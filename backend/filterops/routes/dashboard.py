# Overview: Flask API route for dashboard counts.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_roles
from ..permissions import OFFICE_ROLES
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
@require_roles(OFFICE_ROLES)
def dashboard_stats_route(identity):
    return jsonify(dashboard_service.get_dashboard_stats())
