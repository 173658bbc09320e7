# Overview: Flask API routes for user accounts and sessions; parses input and returns JSON responses.

"""
User and Authentication API routes

- register/login are public and return {user, token}
- logout/profile need any authenticated user
- account administration is admin only
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..permissions import ADMIN_ONLY
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _client_meta() -> dict:
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


@users_bp.post("/register")
def register_route():
    """
    Self-registration.

    Request body: {email, password, firstName, lastName, role?}
    role defaults to field_service.
    """
    user, token = user_service.register(request.get_json(silent=True), **_client_meta())
    return jsonify(user_service.login_payload(user, token)), 201


@users_bp.post("/login")
def login_route():
    """
    Authenticate with email + password and create a session token.

    Token must be included in Authorization header for protected routes.
    """
    user, token = user_service.login(request.get_json(silent=True), **_client_meta())
    return jsonify(user_service.login_payload(user, token))


@users_bp.post("/logout")
@require_auth
def logout_route(identity):
    """Revoke the presented token."""
    token = request.headers.get("Authorization", "").split(" ", 1)[1].strip()
    user_service.logout(token)
    return jsonify({"message": "Logged out successfully"})


@users_bp.get("/profile")
@require_auth
def get_profile_route(identity):
    return jsonify(user_service.get_user(identity.user_id).to_dict())


@users_bp.patch("/profile")
@require_auth
def update_profile_route(identity):
    """Allowed fields: firstName, lastName, email, password."""
    user = user_service.update_profile(identity, request.get_json(silent=True))
    return jsonify(user.to_dict())


@users_bp.get("/all")
@require_auth
@require_roles(ADMIN_ONLY)
def list_users_route(identity):
    return jsonify([u.to_dict() for u in user_service.list_users()])


@users_bp.post("")
@require_auth
@require_roles(ADMIN_ONLY)
def create_user_route(identity):
    """
    Create a user account.

    Request body: {email, password, firstName, lastName, role?, isActive?, permissions?}
    Without permissions the role's default page grants are applied.
    """
    user = user_service.create_user(request.get_json(silent=True), identity)
    return jsonify(user.to_dict()), 201


@users_bp.get("/<int:user_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def get_user_route(user_id: int, identity):
    return jsonify(user_service.get_user(user_id).to_dict())


@users_bp.put("/<int:user_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def update_user_route(user_id: int, identity):
    user = user_service.update_user(user_id, request.get_json(silent=True), identity)
    return jsonify(user.to_dict())


@users_bp.delete("/<int:user_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def delete_user_route(user_id: int, identity):
    user_service.delete_user(user_id, identity)
    return jsonify({"message": "User deleted successfully"})


@users_bp.patch("/<int:user_id>/status")
@require_auth
@require_roles(ADMIN_ONLY)
def update_user_status_route(user_id: int, identity):
    """Request body: {isActive: bool}. Deactivation revokes the user's sessions."""
    data = request.get_json(silent=True) or {}
    user = user_service.set_user_status(user_id, data.get("isActive"), identity)
    return jsonify(user.to_dict())
