"""Tables rendered by the restaurant admin pages."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from resto_admin.services.columns import column
from resto_admin.services.dynamic_filters import FilterDefinition, FilterOption, OperandType
from resto_admin.services.resources import BRANCHES, EMPLOYEES, PRODUCTS, ROLES, TABLE_BOOKINGS
from resto_admin.services.table_config import TableRegistry

STATUS_OPTIONS = (
    FilterOption("ACTIVE", "Active"),
    FilterOption("INACTIVE", "Inactive"),
    FilterOption("DELETED", "Deleted"),
)


def _format_datetime(value: Any) -> str:
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    return parsed.strftime("%d/%m/%Y %H:%M")


def _date_cell(key: str):
    def render(row: Mapping[str, Any]) -> str:
        return _format_datetime(row.get(key))

    return render


def _manager_name(row: Mapping[str, Any]) -> str:
    manager = row.get("manager") or {}
    return manager.get("fullName") or "-"


def _role_names(row: Mapping[str, Any]) -> str:
    roles = row.get("roles") or []
    names = [role.get("name", "") if isinstance(role, Mapping) else str(role) for role in roles]
    return ", ".join(name for name in names if name) or "-"


def _reservation_time(row: Mapping[str, Any]) -> str:
    start = row.get("timeStart")
    end = row.get("timeEnd")
    if not start:
        return "-"
    try:
        start_at = datetime.fromisoformat(str(start).replace("Z", "+00:00"))
        end_at = datetime.fromisoformat(str(end).replace("Z", "+00:00")) if end else None
    except ValueError:
        return f"{start} - {end or ''}".strip(" -")
    text = start_at.strftime("%d/%m/%Y %H:%M")
    if end_at is not None:
        text += f" - {end_at.strftime('%H:%M')}"
    return text


def _table_names(row: Mapping[str, Any]) -> str:
    tables = row.get("tables") or []
    names = [str(table.get("tableName", "")) for table in tables if isinstance(table, Mapping)]
    return ", ".join(name for name in names if name) or "-"


def _yes_no(key: str):
    def render(row: Mapping[str, Any]) -> str:
        return "Yes" if row.get(key) else "No"

    return render


BRANCHES_TABLE = TableRegistry.register(
    table_id="branches",
    resource=BRANCHES,
    page_size=20,
    columns=[
        column("name", "Name", pin="left", hideable=False),
        column("address", "Address"),
        column("phone", "Phone"),
        column("manager", "Manager", cell=_manager_name, sortable=False),
        column("status", "Status"),
        column("createdAt", "Created At", cell=_date_cell("createdAt")),
        column("updatedAt", "Updated At", cell=_date_cell("updatedAt"), hidden_by_default=True),
    ],
    filters=[
        FilterDefinition("name", "Name", OperandType.STRING),
        FilterDefinition("address", "Address", OperandType.STRING),
        FilterDefinition("status", "Status", OperandType.ENUM, STATUS_OPTIONS),
        FilterDefinition("createdAt", "Created At", OperandType.DATETIME),
    ],
    row_meta_fields=["id"],
)

ROLES_TABLE = TableRegistry.register(
    table_id="roles",
    resource=ROLES,
    page_size=20,
    columns=[
        column("hexColor", "Color", sortable=False),
        column("name", "Name"),
        column("description", "Description", sortable=False),
        column("status", "Status"),
    ],
    filters=[
        FilterDefinition("name", "Name", OperandType.STRING),
        FilterDefinition("description", "Description", OperandType.STRING),
        FilterDefinition("status", "Status", OperandType.ENUM, STATUS_OPTIONS),
    ],
    row_meta_fields=["id"],
)

EMPLOYEES_TABLE = TableRegistry.register(
    table_id="employees",
    resource=EMPLOYEES,
    page_size=20,
    columns=[
        column("fullName", "Employee", pin="left", hideable=False),
        column("email", "Email"),
        column("roles", "Roles", cell=_role_names, sortable=False),
        column("birthdate", "Birthdate"),
        column("gender", "Gender"),
        column("phoneNumber", "Phone"),
        column("createdAt", "Created At", cell=_date_cell("createdAt")),
        column("updatedAt", "Updated At", cell=_date_cell("updatedAt"), hidden_by_default=True),
        column("status", "Status"),
    ],
    filters=[
        FilterDefinition("fullName", "Full Name", OperandType.STRING),
        FilterDefinition("email", "Email", OperandType.STRING),
        FilterDefinition("birthdate", "Birthdate", OperandType.DATE),
        FilterDefinition(
            "gender",
            "Gender",
            OperandType.ENUM,
            (
                FilterOption("FEMALE", "Female"),
                FilterOption("MALE", "Male"),
                FilterOption("OTHER", "Other"),
            ),
        ),
        FilterDefinition("status", "Status", OperandType.ENUM, STATUS_OPTIONS),
    ],
    row_meta_fields=["id"],
)

TABLE_BOOKINGS_TABLE = TableRegistry.register(
    table_id="table_bookings",
    resource=TABLE_BOOKINGS,
    page_size=10,
    default_sort="createdAt:desc",
    columns=[
        column("id", "Booking ID", pin="left"),
        column("customerName", "Customer"),
        column("timeRange", "Reservation Time", cell=_reservation_time, sortable=False),
        column("guestCount", "Guests"),
        column("tables", "Tables", cell=_table_names, sortable=False),
        column("bookingStatus", "Booking Status"),
        column("totalDeposit", "Total Deposit"),
        column("expireTime", "Payment Expires", cell=_date_cell("expireTime")),
        column("note", "Note", sortable=False, hidden_by_default=True),
        column("status", "Status"),
        column("createdAt", "Created", cell=_date_cell("createdAt")),
    ],
    filters=[
        FilterDefinition("customerName", "Customer Name", OperandType.STRING),
        FilterDefinition("customerPhone", "Customer Phone", OperandType.STRING),
        FilterDefinition("guestCount", "Guests", OperandType.INTEGER),
        FilterDefinition("totalDeposit", "Total Deposit", OperandType.DECIMAL),
        FilterDefinition(
            "bookingStatus",
            "Booking Status",
            OperandType.ENUM,
            (
                FilterOption("BOOKED", "Booked"),
                FilterOption("DEPOSIT_PAID", "Deposit Paid"),
                FilterOption("COMPLETED", "Completed"),
                FilterOption("CANCELLED", "Cancelled"),
            ),
        ),
        FilterDefinition("timeStart", "Start Time", OperandType.DATETIME),
    ],
    row_meta_fields=["id"],
)

PRODUCTS_TABLE = TableRegistry.register(
    table_id="products",
    resource=PRODUCTS,
    page_size=25,
    default_sort="name:asc",
    columns=[
        column("name", "Product Name", pin="left", hideable=False),
        column("type", "Type"),
        column("categoryName", "Category"),
        column("price", "Sale Price"),
        column("cost", "Cost"),
        column("size", "Size", sortable=False),
        column("canBeSold", "Can Be Sold", cell=_yes_no("canBeSold")),
        column("stockQuantity", "Stock"),
        column("status", "Status"),
    ],
    filters=[
        FilterDefinition(
            "type",
            "Type",
            OperandType.ENUM,
            (
                FilterOption("CONSUMABLE", "Consumable"),
                FilterOption("STOCKABLE", "Stockable"),
                FilterOption("SERVICE", "Service"),
                FilterOption("EXTRA", "Extra"),
            ),
        ),
        FilterDefinition("canBeSold", "Can Be Sold", OperandType.BOOLEAN),
        FilterDefinition("canBePurchased", "Can Be Purchased", OperandType.BOOLEAN),
        FilterDefinition("price", "Sale Price", OperandType.DECIMAL),
        FilterDefinition("status", "Status", OperandType.ENUM, STATUS_OPTIONS),
    ],
    row_meta_fields=["id"],
)
