from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

CellRenderer = Callable[[Mapping[str, Any]], Any]


class TableConfigError(ValueError):
    """Raised when a table or column is declared or addressed incorrectly."""


class PinPosition(str, Enum):
    left = "left"
    right = "right"


def coerce_pin(value: PinPosition | str | bool | None) -> PinPosition | None:
    """Normalize ``'left' | 'right' | False | None`` to a pin position."""
    if value is None or value is False:
        return None
    if isinstance(value, PinPosition):
        return value
    text = str(value).strip().lower()
    if text in {"", "false", "none"}:
        return None
    try:
        return PinPosition(text)
    except ValueError as exc:
        raise TableConfigError(f"Invalid pin position: {value}") from exc


@dataclass(frozen=True)
class ColumnDescriptor:
    accessor_key: str
    header: str | Callable[[], str]
    cell: CellRenderer | None = None
    sortable: bool = True
    pinnable: bool = True
    hideable: bool = True
    hidden_by_default: bool = False
    pin: PinPosition | None = None

    @property
    def id(self) -> str:
        return self.accessor_key

    @property
    def label(self) -> str:
        if callable(self.header):
            return str(self.header())
        return self.header

    def raw_value(self, row: Mapping[str, Any]) -> Any:
        """Resolve the accessor, following dotted paths into nested objects."""
        value: Any = row
        for part in self.accessor_key.split("."):
            if isinstance(value, Mapping):
                value = value.get(part)
            else:
                value = getattr(value, part, None)
            if value is None:
                return None
        return value

    def render(self, row: Mapping[str, Any]) -> Any:
        if self.cell is not None:
            return self.cell(row)
        return self.raw_value(row)


def column(
    accessor_key: str,
    header: str | None = None,
    **options: Any,
) -> ColumnDescriptor:
    """Shorthand for declaring a column with a title-cased default header."""
    if header is None:
        header = accessor_key.replace("_", " ").replace(".", " ").title()
    if "pin" in options:
        options["pin"] = coerce_pin(options["pin"])
    return ColumnDescriptor(accessor_key=accessor_key, header=header, **options)
