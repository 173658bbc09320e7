# Overview: Service-layer operations for users; encapsulates business logic and database work.

"""
User accounts, login/logout and per-page permissions.

Permissions are stored one row per page. When an account is created without
an explicit permission list it receives the default grants of its role.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConflictError, NotFoundError, StateError, ValidationError
from ..extensions import db
from ..models import User, UserPagePermission
from ..permissions import (
    PageAction,
    UserRole,
    default_grants_for_role,
    parse_page_permissions,
)
from ..validation import PatchModel, apply_patch, wire_field
from . import audit_service, session_service
from .auth_service import authenticate, hash_password
from .session_service import AuthIdentity


COLLECTION = "users"


@dataclass
class UserPatch(PatchModel):
    REQUIRED_ON_CREATE = ("email", "password", "first_name", "last_name")

    email: str = wire_field("email", "email", nullable=False, max_length=255)
    password: str = wire_field("password", "raw", nullable=False)
    first_name: str = wire_field("firstName", "str", nullable=False, max_length=128)
    last_name: str = wire_field("lastName", "str", nullable=False, max_length=128)
    role: str = wire_field("role", "enum", nullable=False, enum=UserRole)
    is_active: bool = wire_field("isActive", "bool", nullable=False)
    permissions: list = wire_field("permissions", "raw", nullable=False)


@dataclass
class ProfilePatch(PatchModel):
    email: str = wire_field("email", "email", nullable=False, max_length=255)
    password: str = wire_field("password", "raw", nullable=False)
    first_name: str = wire_field("firstName", "str", nullable=False, max_length=128)
    last_name: str = wire_field("lastName", "str", nullable=False, max_length=128)


@dataclass
class RegisterPayload(PatchModel):
    REQUIRED_ON_CREATE = ("email", "password", "first_name", "last_name")

    email: str = wire_field("email", "email", nullable=False, max_length=255)
    password: str = wire_field("password", "raw", nullable=False)
    first_name: str = wire_field("firstName", "str", nullable=False, max_length=128)
    last_name: str = wire_field("lastName", "str", nullable=False, max_length=128)
    role: str = wire_field("role", "enum", nullable=False, enum=UserRole)


def identity_for(user: User, *, ip_address: str | None = None, user_agent: str | None = None) -> AuthIdentity:
    return AuthIdentity(
        user_id=user.id,
        name=user.display_name,
        email=user.email,
        role=user.role,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def login_payload(user: User, token: str) -> dict:
    return {
        "user": {
            "id": user.id,
            "email": user.email,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "role": user.role,
        },
        "token": token,
    }


def _ensure_unique_email(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ConflictError(
            "email", email,
            status_code=400,
            message=f"Email '{email}' is already registered",
        )


def _set_permissions(user: User, grants) -> None:
    """Rows are updated in place; (user_id, page) is unique."""
    existing = {row.page: row for row in user.page_permissions}
    wanted = {page.value: actions for page, actions in grants.items()}

    for page, row in existing.items():
        if page not in wanted:
            user.page_permissions.remove(row)

    for page, actions in wanted.items():
        row = existing.get(page)
        if row is None:
            row = UserPagePermission(page=page)
            user.page_permissions.append(row)
        row.can_view = PageAction.VIEW in actions
        row.can_add = PageAction.ADD in actions
        row.can_edit = PageAction.EDIT in actions
        row.can_delete = PageAction.DELETE in actions


def _parse_permissions(raw):
    try:
        return parse_page_permissions(raw)
    except ValueError as exc:
        raise ValidationError(str(exc))


def _build_user(values: dict) -> User:
    _ensure_unique_email(values["email"])

    user = User(
        email=values["email"],
        password_hash=hash_password(values["password"]),
        first_name=values["first_name"],
        last_name=values["last_name"],
        role=values.get("role") or UserRole.FIELD_SERVICE.value,
        is_active=values.get("is_active", True),
    )

    if "permissions" in values:
        _set_permissions(user, _parse_permissions(values["permissions"]))
    else:
        _set_permissions(user, default_grants_for_role(user.role))
    return user


def register(payload, *, ip_address: str | None = None, user_agent: str | None = None) -> tuple[User, str]:
    """Public self-registration. Returns the new user and a session token."""
    values = RegisterPayload.from_payload(payload, partial=False).provided()
    user = _build_user(values)
    db.session.add(user)
    db.session.commit()

    audit_service.record_create(
        identity_for(user, ip_address=ip_address, user_agent=user_agent), COLLECTION, user,
    )

    _, token = session_service.create_session(user, user_agent=user_agent, ip_address=ip_address)
    return user, token


def login(payload, *, ip_address: str | None = None, user_agent: str | None = None) -> tuple[User, str]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    email = str(payload.get("email") or "").strip().lower()
    user = authenticate(email, payload.get("password") or "")
    _, token = session_service.create_session(user, user_agent=user_agent, ip_address=ip_address)
    return user, token


def logout(token: str) -> bool:
    return session_service.revoke_session(token)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.last_name.asc(), User.first_name.asc()).all()


def _apply_user_values(user: User, values: dict) -> None:
    if "email" in values and values["email"] != user.email:
        _ensure_unique_email(values["email"], exclude_id=user.id)

    password = values.pop("password", None)
    if password:
        user.password_hash = hash_password(password)

    permissions = values.pop("permissions", None)
    if permissions is not None:
        _set_permissions(user, _parse_permissions(permissions))

    apply_patch(user, values)


def update_profile(identity: AuthIdentity, payload) -> User:
    values = ProfilePatch.from_payload(payload, partial=True).provided()
    user = get_user(identity.user_id)

    before = audit_service.snapshot(user)
    _apply_user_values(user, values)
    db.session.commit()

    audit_service.record_update(identity, COLLECTION, user, before)
    return user


def create_user(payload, identity: AuthIdentity) -> User:
    values = UserPatch.from_payload(payload, partial=False).provided()
    user = _build_user(values)
    db.session.add(user)
    db.session.commit()

    audit_service.record_create(identity, COLLECTION, user)
    return user


def update_user(user_id: int, payload, identity: AuthIdentity) -> User:
    values = UserPatch.from_payload(payload, partial=True).provided()
    user = get_user(user_id)

    if user.id == identity.user_id and values.get("is_active") is False:
        raise StateError("You cannot deactivate your own account")

    before = audit_service.snapshot(user)
    password_changed = bool(values.get("password"))
    _apply_user_values(user, values)
    db.session.commit()

    if password_changed or not user.is_active:
        session_service.revoke_all_user_sessions(user.id, reason="Account updated by administrator")

    audit_service.record_update(identity, COLLECTION, user, before)
    return user


def set_user_status(user_id: int, is_active, identity: AuthIdentity) -> User:
    if not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean")

    user = get_user(user_id)
    if user.id == identity.user_id and not is_active:
        raise StateError("You cannot deactivate your own account")

    before = audit_service.snapshot(user)
    user.is_active = is_active
    db.session.commit()

    if not is_active:
        session_service.revoke_all_user_sessions(user.id, reason="User account deactivated")

    audit_service.record_update(identity, COLLECTION, user, before)
    return user


def delete_user(user_id: int, identity: AuthIdentity) -> None:
    user = get_user(user_id)
    if user.id == identity.user_id:
        raise StateError("You cannot delete your own account")

    before = audit_service.snapshot(user)
    db.session.delete(user)
    db.session.commit()

    audit_service.record_delete(identity, COLLECTION, user_id, before)


def bootstrap_user(email: str, password: str, first_name: str, last_name: str, role: str) -> User:
    """
    Create an account from the command line.

    No audit record is written: there is no acting user yet.
    """
    values = UserPatch.from_payload({
        "email": email,
        "password": password,
        "firstName": first_name,
        "lastName": last_name,
        "role": role,
    }, partial=False).provided()
    user = _build_user(values)
    db.session.add(user)
    db.session.commit()
    return user
