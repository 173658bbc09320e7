# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

"""
Customer Routes

SECURITY: admin and back_office only; delete is admin only.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..permissions import ADMIN_ONLY, OFFICE_ROLES
from ..services import customer_service


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.post("")
@require_auth
@require_roles(OFFICE_ROLES)
def create_customer_route(identity):
    """
    Request body (camelCase):
    customerNumber, name, street, houseNumber, postalCode (5 digits), city  // required
    mobileNumber, email, status, vacationStartDate, vacationEndDate,
    visitTimeRange, latitude, longitude                                     // optional
    """
    customer = customer_service.create_customer(request.get_json(silent=True), identity)
    return jsonify(customer.to_dict()), 201


@customers_bp.get("")
@require_auth
@require_roles(OFFICE_ROLES)
def list_customers_route(identity):
    """
    Query parameters:
    - search: customer number, name, city or postal code
    - status: active | on_vacation | inactive
    - deleted: "true" lists soft-deleted customers
    """
    customers = customer_service.list_customers(
        search=request.args.get("search"),
        status=request.args.get("status"),
        deleted=request.args.get("deleted", "false").lower() == "true",
    )
    return jsonify([c.to_dict() for c in customers])


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_roles(OFFICE_ROLES)
def get_customer_route(customer_id: int, identity):
    return jsonify(customer_service.get_customer(customer_id).to_dict())


@customers_bp.patch("/<int:customer_id>")
@require_auth
@require_roles(OFFICE_ROLES)
def update_customer_route(customer_id: int, identity):
    customer = customer_service.update_customer(customer_id, request.get_json(silent=True), identity)
    return jsonify(customer.to_dict())


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def delete_customer_route(customer_id: int, identity):
    customer_service.delete_customer(customer_id, identity)
    return jsonify({"message": "Customer deleted successfully"})


@customers_bp.get("/<int:customer_id>/orders")
@require_auth
@require_roles(OFFICE_ROLES)
def customer_orders_route(customer_id: int, identity):
    orders = customer_service.get_customer_orders(customer_id)
    return jsonify([o.to_customer_history_row() for o in orders])
