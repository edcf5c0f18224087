from __future__ import annotations

import pytest

from resto_admin.services.export import export_filename, rows_to_csv
from resto_admin.services.table_controller import TableController
from tests.mocks import FakeBackend


def test_export_before_load_writes_only_headers(staff_definition):
    controller = TableController(staff_definition)

    content, count = rows_to_csv(controller)

    assert count == 0
    assert content.strip() == "Name,Email,Status,Manager"


@pytest.mark.asyncio
async def test_export_uses_raw_values_and_visible_columns(staff_definition):
    controller = TableController(staff_definition, FakeBackend(total=2))
    controller.set_column_visibility("email", False)
    controller.set_column_visibility("createdAt", True)
    await controller.load()

    content, count = rows_to_csv(controller, delimiter=";")

    lines = content.strip().splitlines()
    assert count == 2
    assert lines[0] == "Name;Status;Manager;Created At"
    assert lines[1] == "Person 0;ACTIVE;;2026-01-01T10:00:00Z"
    assert lines[2] == 'Person 1;ACTIVE;"{""fullName"":""Lan""}";2026-01-01T10:00:00Z'


def test_export_filename_is_one_based(staff_definition):
    controller = TableController(staff_definition)
    controller.set_page(2)

    assert export_filename(controller) == "staff-page-3.csv"
