# Overview: Flask API routes for driver operations; parses input and returns JSON responses.

"""
Driver Routes

SECURITY: admin and back_office only; delete is admin only.
Passwords are accepted on create/update and never returned.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..permissions import ADMIN_ONLY, OFFICE_ROLES
from ..services import driver_service


drivers_bp = Blueprint("drivers", __name__, url_prefix="/api/drivers")


@drivers_bp.post("")
@require_auth
@require_roles(OFFICE_ROLES)
def create_driver_route(identity):
    driver = driver_service.create_driver(request.get_json(silent=True), identity)
    return jsonify(driver.to_dict()), 201


@drivers_bp.get("")
@require_auth
@require_roles(OFFICE_ROLES)
def list_drivers_route(identity):
    drivers = driver_service.list_drivers(
        search=request.args.get("search"),
        status=request.args.get("status"),
    )
    return jsonify([d.to_dict() for d in drivers])


@drivers_bp.get("/<int:driver_id>")
@require_auth
@require_roles(OFFICE_ROLES)
def get_driver_route(driver_id: int, identity):
    return jsonify(driver_service.get_driver(driver_id).to_dict())


@drivers_bp.patch("/<int:driver_id>")
@require_auth
@require_roles(OFFICE_ROLES)
def update_driver_route(driver_id: int, identity):
    driver = driver_service.update_driver(driver_id, request.get_json(silent=True), identity)
    return jsonify(driver.to_dict())


@drivers_bp.delete("/<int:driver_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def delete_driver_route(driver_id: int, identity):
    driver_service.delete_driver(driver_id, identity)
    return jsonify({"message": "Driver deleted successfully"})
