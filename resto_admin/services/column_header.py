"""Interactive affordances of one column header.

The header never mutates table state itself. Every action is delegated to the
callbacks supplied by the owning table controller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from resto_admin.services.columns import ColumnDescriptor, PinPosition, coerce_pin
from resto_admin.services.sorting import (
    SortDescriptor,
    SortDirection,
    direction_for,
    next_sort,
    sort_string,
)

logger = logging.getLogger(__name__)

DRAG_TYPE = "column"

SortChangeHandler = Callable[[str | None], None]
PinHandler = Callable[[str, PinPosition | None], None]
VisibilityHandler = Callable[[bool], None]
ReorderHandler = Callable[[str, str], None]


@dataclass(frozen=True)
class PinAction:
    label: str
    position: PinPosition | None
    disabled: bool


@dataclass(frozen=True)
class DragItem:
    type: str
    column_id: str


class ColumnHeaderController:
    def __init__(
        self,
        column: ColumnDescriptor,
        *,
        sorting: str | SortDescriptor | None = None,
        pinned: PinPosition | str | bool | None = None,
        on_sort_change: SortChangeHandler | None = None,
        on_pin_column: PinHandler | None = None,
        on_toggle_visibility: VisibilityHandler | None = None,
        on_column_reorder: ReorderHandler | None = None,
        enable_sorting: bool = True,
        enable_drag_and_drop: bool = True,
    ) -> None:
        self.column = column
        self.sorting = SortDescriptor.parse(sorting)
        self.pinned = coerce_pin(pinned)
        self._on_sort_change = on_sort_change
        self._on_pin_column = on_pin_column
        self._on_toggle_visibility = on_toggle_visibility
        self._on_column_reorder = on_column_reorder
        self.enable_sorting = enable_sorting
        self.enable_drag_and_drop = enable_drag_and_drop

    @property
    def column_id(self) -> str:
        return self.column.id

    # Sorting

    @property
    def can_sort(self) -> bool:
        return self.enable_sorting and self.column.sortable and self._on_sort_change is not None

    @property
    def sort_direction(self) -> SortDirection | None:
        return direction_for(self.sorting, self.column_id)

    def toggle_sort(self) -> str | None:
        """Advance this column's sort cycle and report the new sort string."""
        if not self.can_sort:
            return sort_string(self.sorting)
        new_sort = next_sort(self.sorting, self.column_id)
        self.sorting = new_sort
        value = sort_string(new_sort)
        self._on_sort_change(value)
        return value

    # Pinning

    @property
    def can_pin(self) -> bool:
        return self.column.pinnable and self._on_pin_column is not None

    def pin_actions(self) -> list[PinAction]:
        if not self.can_pin:
            return []
        return [
            PinAction("Pin left", PinPosition.left, self.pinned is PinPosition.left),
            PinAction("Pin right", PinPosition.right, self.pinned is PinPosition.right),
            PinAction("Unpin", None, self.pinned is None),
        ]

    def pin(self, position: PinPosition | str | bool | None) -> bool:
        """Request a pin change. Returns False when the action is disabled."""
        target = coerce_pin(position)
        if not self.can_pin or target is self.pinned:
            return False
        self._on_pin_column(self.column_id, target)
        self.pinned = target
        return True

    # Visibility

    @property
    def can_hide(self) -> bool:
        return self.column.hideable and self._on_toggle_visibility is not None

    def hide(self) -> bool:
        if not self.can_hide:
            return False
        self._on_toggle_visibility(False)
        return True

    # Drag and drop

    def drag_item(self) -> DragItem | None:
        if not self.enable_drag_and_drop:
            return None
        return DragItem(type=DRAG_TYPE, column_id=self.column_id)

    def accepts(self, item: DragItem) -> bool:
        return (
            self.enable_drag_and_drop
            and self._on_column_reorder is not None
            and item.type == DRAG_TYPE
            and item.column_id != self.column_id
        )

    def drop(self, item: DragItem | str) -> bool:
        """Handle a header dropped onto this one; self-drops are ignored."""
        if isinstance(item, str):
            item = DragItem(type=DRAG_TYPE, column_id=item)
        if not self.accepts(item):
            return False
        logger.debug("Column %s dropped on %s", item.column_id, self.column_id)
        self._on_column_reorder(item.column_id, self.column_id)
        return True
