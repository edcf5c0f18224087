from __future__ import annotations

import pytest
from fastapi import HTTPException

from resto_admin.schemas.table_config import TableColumnPreference
from resto_admin.services.columns import TableConfigError, column
from resto_admin.services.table_config import TableRegistry, TableStateStore, build_definition


def test_registry_has_restaurant_tables():
    assert TableRegistry.table_ids() == [
        "branches",
        "employees",
        "products",
        "roles",
        "table_bookings",
    ]
    assert TableRegistry.get("products").default_sort == "name:asc"
    assert TableRegistry.get("products").page_size == 25


def test_unknown_table_is_404():
    with pytest.raises(HTTPException) as excinfo:
        TableRegistry.get("missing")

    assert excinfo.value.status_code == 404


def test_definitions_reject_duplicate_columns():
    with pytest.raises(TableConfigError):
        build_definition(table_id="dupes", columns=[column("name"), column("name")])


def test_definitions_reject_default_sort_on_unknown_column():
    with pytest.raises(TableConfigError):
        build_definition(table_id="bad", columns=[column("name")], default_sort="email:asc")


def test_default_columns_without_saved_state(db_session):
    columns = TableStateStore.get_columns(db_session, "owner-1", "branches")

    assert columns[0].column_key == "name"
    assert columns[0].pinned == "left"
    updated_at = next(c for c in columns if c.column_key == "updatedAt")
    assert updated_at.is_visible is False


def test_save_columns_persists_order_visibility_and_pin(db_session):
    updated = TableStateStore.save_columns(
        db_session,
        "owner-1",
        "branches",
        payload=[
            TableColumnPreference(column_key="status", display_order=0, is_visible=True, pinned="right"),
            TableColumnPreference(column_key="phone", display_order=1, is_visible=False),
        ],
    )

    assert [c.column_key for c in updated[:2]] == ["status", "phone"]
    assert updated[0].pinned == "right"
    assert updated[1].is_visible is False
    assert [c.display_order for c in updated] == list(range(len(updated)))


def test_saved_state_is_isolated_per_owner(db_session):
    TableStateStore.save_columns(
        db_session,
        "owner-a",
        "roles",
        payload=[TableColumnPreference(column_key="description", display_order=0, is_visible=False)],
    )

    columns_a = TableStateStore.get_columns(db_session, "owner-a", "roles")
    columns_b = TableStateStore.get_columns(db_session, "owner-b", "roles")

    assert next(c for c in columns_a if c.column_key == "description").is_visible is False
    assert next(c for c in columns_b if c.column_key == "description").is_visible is True


def test_empty_payload_resets_to_defaults(db_session):
    TableStateStore.save_columns(
        db_session,
        "owner-1",
        "roles",
        payload=[TableColumnPreference(column_key="status", display_order=0, is_visible=True)],
    )

    reset = TableStateStore.save_columns(db_session, "owner-1", "roles", payload=[])

    assert [c.column_key for c in reset] == ["hexColor", "name", "description", "status"]


@pytest.mark.parametrize(
    "payload",
    [
        [TableColumnPreference(column_key="nope", display_order=0, is_visible=True)],
        [
            TableColumnPreference(column_key="email", display_order=0, is_visible=True),
            TableColumnPreference(column_key="email", display_order=1, is_visible=False),
        ],
        [TableColumnPreference(column_key="fullName", display_order=0, is_visible=False)],
    ],
)
def test_invalid_payloads_are_rejected(db_session, payload):
    with pytest.raises(HTTPException) as excinfo:
        TableStateStore.save_columns(db_session, "owner-1", "employees", payload)

    assert excinfo.value.status_code == 400


def test_hiding_every_column_is_rejected(db_session):
    payload = [
        TableColumnPreference(column_key=key, display_order=index, is_visible=False)
        for index, key in enumerate(["hexColor", "name", "description", "status"])
    ]

    with pytest.raises(HTTPException) as excinfo:
        TableStateStore.save_columns(db_session, "owner-1", "roles", payload)

    assert excinfo.value.detail == "At least one column must be visible"


def test_default_state_ignores_pin_on_unpinnable_columns():
    definition = build_definition(
        table_id="locked",
        columns=[column("name", pin="left", pinnable=False), column("email", pin="right")],
    )

    state = TableStateStore._default_state(definition)

    assert state["name"]["pinned"] is None
    assert state["email"]["pinned"] == "right"
