# Overview: User roles, the role capability check and default page grants per role.

from __future__ import annotations

from enum import Enum
from typing import Iterable

from .definitions import Page, PageAction


class UserRole(str, Enum):
    ADMIN = "admin"
    BACK_OFFICE = "back_office"
    FIELD_SERVICE = "field_service"
    WAREHOUSE = "warehouse"


ALL_ROLES = frozenset(UserRole)
OFFICE_ROLES = frozenset({UserRole.ADMIN, UserRole.BACK_OFFICE})
FIELD_ROLES = frozenset({UserRole.ADMIN, UserRole.BACK_OFFICE, UserRole.FIELD_SERVICE})
ADMIN_ONLY = frozenset({UserRole.ADMIN})


def is_role_allowed(role: UserRole | str | None, required_roles: Iterable[UserRole]) -> bool:
    """Pure allow/deny decision. Unknown or missing roles are denied."""
    if role is None:
        return False
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return role in frozenset(required_roles)


_ALL_ACTIONS = frozenset(PageAction)
_VIEW_ONLY = frozenset({PageAction.VIEW})


DEFAULT_ROLE_PAGE_GRANTS: dict[UserRole, dict[Page, frozenset[PageAction]]] = {
    UserRole.ADMIN: {page: _ALL_ACTIONS for page in Page},
    UserRole.BACK_OFFICE: {
        Page.DASHBOARD: _VIEW_ONLY,
        Page.CUSTOMERS: frozenset({PageAction.VIEW, PageAction.ADD, PageAction.EDIT}),
        Page.ORDERS: frozenset({PageAction.VIEW, PageAction.ADD, PageAction.EDIT}),
        Page.ITEMS: frozenset({PageAction.VIEW, PageAction.ADD, PageAction.EDIT}),
        Page.DRIVERS: frozenset({PageAction.VIEW, PageAction.ADD, PageAction.EDIT}),
        Page.DELIVERY_ROUTES: frozenset({PageAction.VIEW, PageAction.EDIT}),
        Page.PLANNING_BOARD: frozenset({PageAction.VIEW, PageAction.EDIT}),
        Page.ASSIGN_DRIVER: frozenset({PageAction.VIEW, PageAction.EDIT}),
        Page.REPORTS: _VIEW_ONLY,
        Page.AUDIT: _VIEW_ONLY,
    },
    UserRole.FIELD_SERVICE: {
        Page.ORDERS: frozenset({PageAction.VIEW, PageAction.EDIT}),
        Page.ITEMS: _VIEW_ONLY,
        Page.DELIVERY_ROUTES: _VIEW_ONLY,
        Page.AUDIT: _VIEW_ONLY,
    },
    UserRole.WAREHOUSE: {
        Page.ITEMS: _VIEW_ONLY,
        Page.ORDERS: _VIEW_ONLY,
        Page.AUDIT: _VIEW_ONLY,
    },
}
