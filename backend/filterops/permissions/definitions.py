# Overview: Page and action definitions for per-user page permissions.
# Each page is defined as: (code, name, description)

from __future__ import annotations

from enum import Enum


class Page(str, Enum):
    DASHBOARD = "dashboard"
    CUSTOMERS = "customers"
    ORDERS = "orders"
    ITEMS = "items"
    DRIVERS = "drivers"
    DELIVERY_ROUTES = "delivery-routes"
    PLANNING_BOARD = "planning-board"
    ASSIGN_DRIVER = "assign-driver"
    REPORTS = "reports"
    EMPLOYEES = "employees"
    AUDIT = "audit"


class PageAction(str, Enum):
    VIEW = "view"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


# Wire names of the action flags, in PageAction order
ACTION_FLAGS = {
    PageAction.VIEW: "canView",
    PageAction.ADD: "canAdd",
    PageAction.EDIT: "canEdit",
    PageAction.DELETE: "canDelete",
}


PAGE_DEFINITIONS = [
    (Page.DASHBOARD, "Dashboard", "Aggregate counts for the back office"),
    (Page.CUSTOMERS, "Customers", "Customer master data"),
    (Page.ORDERS, "Orders", "Delivery orders and recurring series"),
    (Page.ITEMS, "Items", "Filter catalog"),
    (Page.DRIVERS, "Drivers", "Driver master data"),
    (Page.DELIVERY_ROUTES, "Delivery Routes", "Per-driver daily delivery sequence"),
    (Page.PLANNING_BOARD, "Planning Board", "Order planning calendar"),
    (Page.ASSIGN_DRIVER, "Assign Driver", "Bulk driver assignment"),
    (Page.REPORTS, "Reports", "Operational reports"),
    (Page.EMPLOYEES, "Employees", "User accounts and permissions"),
    (Page.AUDIT, "Audit", "Change history and revert"),
]
