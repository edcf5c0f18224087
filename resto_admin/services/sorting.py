"""Single-column sort descriptor encoded as ``field:direction``."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from resto_admin.services.dynamic_filters import FilterValidationError


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


@dataclass(frozen=True)
class SortDescriptor:
    field: str
    direction: SortDirection = SortDirection.asc

    def __str__(self) -> str:
        return f"{self.field}:{self.direction.value}"

    @classmethod
    def parse(cls, value: str | SortDescriptor | None) -> SortDescriptor | None:
        """Parse a wire sort string. Empty or missing values mean unsorted."""
        if value is None or isinstance(value, SortDescriptor):
            return value
        text = str(value).strip()
        if not text:
            return None
        field, _, direction = text.partition(":")
        field = field.strip()
        if not field:
            raise FilterValidationError("Sort field is required")
        try:
            parsed_direction = SortDirection((direction or "asc").strip().lower())
        except ValueError as exc:
            raise FilterValidationError("Sort direction must be 'asc' or 'desc'") from exc
        return cls(field=field, direction=parsed_direction)


def direction_for(sort: SortDescriptor | None, column_id: str) -> SortDirection | None:
    if sort is None or sort.field != column_id:
        return None
    return sort.direction


def next_sort(sort: SortDescriptor | None, column_id: str) -> SortDescriptor | None:
    """Advance the unsorted -> asc -> desc -> unsorted cycle for one column.

    A column that is not the active sort starts at ascending, which replaces
    whatever other column was sorted.
    """
    current = direction_for(sort, column_id)
    if current is None:
        return SortDescriptor(column_id, SortDirection.asc)
    if current is SortDirection.asc:
        return SortDescriptor(column_id, SortDirection.desc)
    return None


def sort_string(sort: SortDescriptor | None) -> str | None:
    return str(sort) if sort is not None else None
