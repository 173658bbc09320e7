# Overview: Request and permission decorators for API routes.

from functools import wraps
from typing import Iterable

from flask import request

from .errors import AuthenticationError, PermissionDeniedError
from .permissions import UserRole, is_role_allowed
from .services import session_service
from .services.session_service import AuthIdentity


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid bearer token.

    The resolved caller is passed to the view as the `identity` keyword
    argument (an immutable AuthIdentity).

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise AuthenticationError("No token provided")

        user = session_service.validate_session(token)
        if not user:
            raise AuthenticationError("Invalid or expired token")

        kwargs["identity"] = AuthIdentity(
            user_id=user.id,
            name=user.display_name,
            email=user.email,
            role=user.role,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: UserRole | Iterable[UserRole]):
    """
    Require the caller's role to be one of `roles`.

    Must be stacked below @require_auth. Accepts individual roles or the
    role groups from filterops.permissions.
    """
    allowed: set[UserRole] = set()
    for entry in roles:
        if isinstance(entry, UserRole):
            allowed.add(entry)
        else:
            allowed.update(entry)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            identity = kwargs.get("identity")
            if identity is None:
                raise AuthenticationError("Authentication required")

            if not is_role_allowed(identity.role, allowed):
                raise PermissionDeniedError(
                    "You do not have permission to perform this action",
                    details={"role": identity.role},
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator
