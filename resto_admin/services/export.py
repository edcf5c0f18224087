from __future__ import annotations

import csv
import io
import json
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from resto_admin.services.table_controller import TableController


def _coerce_delimiter(value: str | None) -> str:
    token = (value or ",").strip().lower()
    mapping = {",": ",", ";": ";", "\\t": "\t", "tab": "\t", "|": "|"}
    return mapping.get(token, ",")


def _serialize_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str, separators=(",", ":"))
    return str(value)


def rows_to_csv(
    controller: TableController,
    *,
    delimiter: str | None = None,
    include_headers: bool = True,
) -> tuple[str, int]:
    """Write the loaded page as CSV over the visible columns.

    Cells use the raw accessor value, not the rendered cell, so exported
    dates and nested objects stay machine readable.
    """
    columns = controller.visible_columns()
    items = controller.result.items if controller.result is not None else []

    output = io.StringIO()
    writer = csv.writer(output, delimiter=_coerce_delimiter(delimiter))
    if include_headers:
        writer.writerow([descriptor.label for descriptor in columns])
    for item in items:
        writer.writerow([_serialize_value(descriptor.raw_value(item)) for descriptor in columns])
    return output.getvalue(), len(items)


def export_filename(controller: TableController) -> str:
    return f"{controller.table_id}-page-{controller.pagination.page_index + 1}.csv"
