# Overview: Permission system package.
# Re-exports roles, pages and helpers for flat imports.

from .definitions import ACTION_FLAGS, PAGE_DEFINITIONS, Page, PageAction
from .roles import (
    ADMIN_ONLY,
    ALL_ROLES,
    DEFAULT_ROLE_PAGE_GRANTS,
    FIELD_ROLES,
    OFFICE_ROLES,
    UserRole,
    is_role_allowed,
)
from .helpers import (
    default_grants_for_role,
    get_all_page_codes,
    parse_page_permissions,
    serialize_page_permissions,
)

__all__ = [
    "ACTION_FLAGS",
    "PAGE_DEFINITIONS",
    "Page",
    "PageAction",
    "ADMIN_ONLY",
    "ALL_ROLES",
    "DEFAULT_ROLE_PAGE_GRANTS",
    "FIELD_ROLES",
    "OFFICE_ROLES",
    "UserRole",
    "is_role_allowed",
    "default_grants_for_role",
    "get_all_page_codes",
    "parse_page_permissions",
    "serialize_page_permissions",
]
