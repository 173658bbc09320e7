# Overview: Utility functions for page permission parsing and serialization.

from __future__ import annotations

from .definitions import ACTION_FLAGS, PAGE_DEFINITIONS, Page, PageAction
from .roles import DEFAULT_ROLE_PAGE_GRANTS, UserRole


PagePermissionMap = dict[Page, frozenset[PageAction]]


def get_all_page_codes() -> list[str]:
    """Get list of all page codes."""
    return [page.value for page, _, _ in PAGE_DEFINITIONS]


def default_grants_for_role(role: UserRole | str) -> PagePermissionMap:
    return dict(DEFAULT_ROLE_PAGE_GRANTS.get(UserRole(role), {}))


def parse_page_permissions(raw) -> PagePermissionMap:
    """
    Parse the wire format into a page -> actions map.

    Wire format is a list of
    {"page": "orders", "canView": true, "canAdd": false, "canEdit": true, "canDelete": false}.
    Raises ValueError with a readable message on bad input.
    """
    if not isinstance(raw, list):
        raise ValueError("permissions must be a list")

    grants: PagePermissionMap = {}
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError("each permission must be an object")
        try:
            page = Page(entry.get("page"))
        except ValueError:
            raise ValueError(f"Unknown page: {entry.get('page')}")
        if page in grants:
            raise ValueError(f"Duplicate permission entry for page: {page.value}")
        grants[page] = frozenset(
            action for action, flag in ACTION_FLAGS.items() if bool(entry.get(flag, False))
        )
    return grants


def serialize_page_permissions(grants: PagePermissionMap) -> list[dict]:
    result = []
    for page, _, _ in PAGE_DEFINITIONS:
        if page not in grants:
            continue
        actions = grants[page]
        entry = {"page": page.value}
        for action, flag in ACTION_FLAGS.items():
            entry[flag] = action in actions
        result.append(entry)
    return result
