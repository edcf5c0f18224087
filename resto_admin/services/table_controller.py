"""Generic data table controller.

One controller owns the query state of one table: pagination, the single sort
descriptor, the filter set, the search keyword and the local column UI state
(visibility, order, pinning). It turns that state into a memoized
``ListRequest`` for a caller-supplied data hook and renders the outcome as a
``TableView``. It never talks to the network itself.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from resto_admin.config import settings
from resto_admin.errors import ApiError, Notice, error_notice
from resto_admin.schemas.list_request import ListRequest, PageResult
from resto_admin.schemas.table_config import TableColumnPreference, TableColumnResolved
from resto_admin.schemas.table_view import HeaderView, PagerView, TableView
from resto_admin.services.column_header import ColumnHeaderController
from resto_admin.services.columns import (
    ColumnDescriptor,
    PinPosition,
    TableConfigError,
    coerce_pin,
)
from resto_admin.services.dynamic_filters import (
    FilterCondition,
    OperatorType,
    serialize_conditions,
)
from resto_admin.services.query_client import QueryClient
from resto_admin.services.sorting import SortDescriptor, direction_for, next_sort, sort_string
from resto_admin.services.table_config import TableDefinition

logger = logging.getLogger(__name__)

DataHook = Callable[[ListRequest], Awaitable[Any]]
FetchStatus = Literal["idle", "loading", "error", "success"]

EMPTY_MESSAGE = "No results."


@dataclass
class PaginationState:
    page_index: int = 0
    page_size: int = 20


@dataclass
class ColumnUIState:
    visible: bool = True
    pinned: PinPosition | None = None
    order: int = 0


class TableController:
    def __init__(
        self,
        definition: TableDefinition,
        data_hook: DataHook | None = None,
        *,
        query_client: QueryClient | None = None,
        page_size: int | None = None,
        extra_params: Mapping[str, Any] | None = None,
        notify: Callable[[Notice], None] | None = None,
        reset_page_on_size_change: bool = True,
        page_size_options: Iterable[int] | None = None,
    ) -> None:
        self.definition = definition
        self._data_hook = data_hook
        self.query_client = query_client or QueryClient()
        self._notify = notify
        self.reset_page_on_size_change = reset_page_on_size_change
        self.page_size_options = sorted(set(page_size_options or settings.page_size_options))

        if page_size is None:
            page_size = definition.page_size or settings.default_page_size
        size = page_size
        self._check_page_size(size)
        self.pagination = PaginationState(page_index=0, page_size=size)
        self.sorting: SortDescriptor | None = SortDescriptor.parse(definition.default_sort)
        self.filters: tuple[FilterCondition, ...] = ()
        self.keyword = ""
        self.extra_params: dict[str, Any] = dict(extra_params or {})
        self._columns = self._default_columns()

        self.status: FetchStatus = "idle"
        self.result: PageResult | None = None
        self.error: ApiError | None = None
        self._memo: tuple[tuple, ListRequest] | None = None
        self._unsubscribe: Callable[[], None] = lambda: None
        if data_hook is not None:
            self._unsubscribe = self.query_client.subscribe(definition.query_root, self.load)

    @property
    def table_id(self) -> str:
        return self.definition.table_id

    def close(self) -> None:
        """Stop listening for invalidations. Call when the page unmounts."""
        self._unsubscribe()

    # Pagination

    def _check_page_size(self, size: int) -> None:
        if size < 1 or size > settings.max_page_size:
            raise TableConfigError(f"page_size must be between 1 and {settings.max_page_size}")

    @property
    def total(self) -> int:
        return self.result.total if self.result is not None else 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.pagination.page_size)

    def set_page(self, page_index: int) -> None:
        if page_index < 0:
            raise TableConfigError("page_index must be >= 0")
        self.pagination.page_index = page_index

    def set_page_size(self, page_size: int) -> None:
        self._check_page_size(page_size)
        if page_size == self.pagination.page_size:
            return
        self.pagination.page_size = page_size
        if self.reset_page_on_size_change:
            self.pagination.page_index = 0

    def set_pagination(self, page_index: int, page_size: int) -> None:
        """Apply a pager change carrying both index and size."""
        size_changed = page_size != self.pagination.page_size
        self.set_page_size(page_size)
        if size_changed and self.reset_page_on_size_change:
            return
        self.set_page(page_index)

    def first_page(self) -> None:
        self.pagination.page_index = 0

    def previous_page(self) -> None:
        self.pagination.page_index = max(0, self.pagination.page_index - 1)

    def next_page(self) -> None:
        if self.result is None:
            self.pagination.page_index += 1
            return
        last = max(0, self.total_pages - 1)
        self.pagination.page_index = min(last, self.pagination.page_index + 1)

    def last_page(self) -> None:
        self.pagination.page_index = max(0, self.total_pages - 1)

    # Sorting

    def set_sort(self, value: str | SortDescriptor | None) -> None:
        sort = SortDescriptor.parse(value)
        if sort is not None:
            descriptor = self.definition.column(sort.field)
            if not descriptor.sortable:
                raise TableConfigError(f"Column is not sortable: {sort.field}")
        self.sorting = sort

    def toggle_sort(self, column_id: str) -> str | None:
        descriptor = self.definition.column(column_id)
        if not descriptor.sortable:
            raise TableConfigError(f"Column is not sortable: {column_id}")
        self.sorting = next_sort(self.sorting, column_id)
        return sort_string(self.sorting)

    # Filtering and search

    def _reset_page(self) -> None:
        self.pagination.page_index = 0

    def set_filters(self, conditions: Iterable[FilterCondition]) -> bool:
        """Replace the whole filter set. Returns True when it changed."""
        validated = self.definition.filters.validate_all(conditions)
        if validated == self.filters:
            return False
        self.filters = validated
        self._reset_page()
        return True

    def add_filter(self, field_name: str, operator: OperatorType | str, value: Any) -> FilterCondition:
        condition = self.definition.filters.build(field_name, operator, value)
        self.set_filters((*self.filters, condition))
        return condition

    def remove_filter(self, index: int) -> None:
        if not 0 <= index < len(self.filters):
            raise TableConfigError(f"No filter at index {index}")
        remaining = self.filters[:index] + self.filters[index + 1 :]
        self.set_filters(remaining)

    def clear_filters(self) -> bool:
        return self.set_filters(())

    def set_keyword(self, keyword: str | None) -> bool:
        normalized = (keyword or "").strip()
        if normalized == self.keyword:
            return False
        self.keyword = normalized
        self._reset_page()
        return True

    def clear_all(self) -> bool:
        keyword_changed = self.set_keyword("")
        filters_changed = self.clear_filters()
        return keyword_changed or filters_changed

    def set_extra_param(self, key: str, value: Any) -> None:
        """Set a domain filter sent alongside the standard parameters."""
        if self.extra_params.get(key) == value:
            return
        if value is None:
            self.extra_params.pop(key, None)
        else:
            self.extra_params[key] = value
        self._reset_page()

    @property
    def active_filter_count(self) -> int:
        return len(self.filters) + (1 if self.keyword else 0)

    # Column UI state

    def _default_columns(self) -> dict[str, ColumnUIState]:
        return {
            descriptor.id: ColumnUIState(
                visible=not descriptor.hidden_by_default,
                pinned=descriptor.pin if descriptor.pinnable else None,
                order=index,
            )
            for index, descriptor in enumerate(self.definition.columns)
        }

    def column_ui_state(self, column_id: str) -> ColumnUIState:
        self.definition.column(column_id)
        return self._columns[column_id]

    def column_order(self) -> list[str]:
        return sorted(self._columns, key=lambda column_id: self._columns[column_id].order)

    def reorder_columns(self, dragged_id: str, target_id: str) -> bool:
        """Move the dragged column to the target column's position."""
        order = self.column_order()
        if dragged_id == target_id or dragged_id not in order or target_id not in order:
            return False
        target_index = order.index(target_id)
        order.remove(dragged_id)
        order.insert(target_index, dragged_id)
        for index, column_id in enumerate(order):
            self._columns[column_id].order = index
        return True

    def pin_column(self, column_id: str, position: PinPosition | str | bool | None) -> bool:
        descriptor = self.definition.column(column_id)
        target = coerce_pin(position)
        state = self._columns[column_id]
        if not descriptor.pinnable or state.pinned is target:
            return False
        state.pinned = target
        return True

    def set_column_visibility(self, column_id: str, visible: bool) -> bool:
        descriptor = self.definition.column(column_id)
        state = self._columns[column_id]
        if state.visible == visible:
            return False
        if not visible:
            if not descriptor.hideable:
                return False
            if sum(1 for item in self._columns.values() if item.visible) <= 1:
                return False
        state.visible = visible
        return True

    def reset_columns(self) -> None:
        self._columns = self._default_columns()

    def visible_columns(self) -> list[ColumnDescriptor]:
        """Visible columns: left-pinned first, then unpinned, then right-pinned."""

        def group(column_id: str) -> int:
            pinned = self._columns[column_id].pinned
            if pinned is PinPosition.left:
                return 0
            if pinned is PinPosition.right:
                return 2
            return 1

        ordered = sorted(
            (column_id for column_id in self._columns if self._columns[column_id].visible),
            key=lambda column_id: (group(column_id), self._columns[column_id].order),
        )
        return [self.definition.column(column_id) for column_id in ordered]

    def column_state(self) -> list[TableColumnPreference]:
        return [
            TableColumnPreference(
                column_key=column_id,
                display_order=self._columns[column_id].order,
                is_visible=self._columns[column_id].visible,
                pinned=self._columns[column_id].pinned.value if self._columns[column_id].pinned else None,
            )
            for column_id in self.column_order()
        ]

    def restore_column_state(
        self, saved: Iterable[TableColumnPreference | TableColumnResolved]
    ) -> None:
        """Apply saved column state; unknown keys are ignored."""
        columns = self._default_columns()
        for item in saved:
            state = columns.get(item.column_key)
            if state is None:
                logger.debug("Ignoring saved state for unknown column %s", item.column_key)
                continue
            state.visible = item.is_visible
            state.order = item.display_order
            descriptor = self.definition.column(item.column_key)
            state.pinned = coerce_pin(item.pinned) if descriptor.pinnable else None
        if not any(state.visible for state in columns.values()):
            logger.warning("Saved state for %s hides every column; using defaults", self.table_id)
            return
        ordered = sorted(columns, key=lambda column_id: columns[column_id].order)
        for index, column_id in enumerate(ordered):
            columns[column_id].order = index
        self._columns = columns

    # Headers

    def header(self, column_id: str) -> ColumnHeaderController:
        descriptor = self.definition.column(column_id)
        return ColumnHeaderController(
            descriptor,
            sorting=self.sorting,
            pinned=self._columns[column_id].pinned,
            on_sort_change=self.set_sort,
            on_pin_column=self.pin_column,
            on_toggle_visibility=lambda visible: self.set_column_visibility(column_id, visible),
            on_column_reorder=self.reorder_columns,
            enable_drag_and_drop=self.definition.enable_drag_and_drop,
        )

    # Request and fetch

    def _state_key(self) -> tuple:
        return (
            self.pagination.page_index,
            self.pagination.page_size,
            sort_string(self.sorting),
            self.filters,
            self.keyword,
            tuple(sorted(self.extra_params.items())),
        )

    def build_request(self) -> ListRequest:
        """Return the request for the current state, reusing the last one if unchanged."""
        key = self._state_key()
        if self._memo is not None and self._memo[0] == key:
            return self._memo[1]
        request = ListRequest(
            page=self.pagination.page_index,
            size=self.pagination.page_size,
            sort_by=sort_string(self.sorting),
            search_condition=serialize_conditions(self.filters),
            keyword=self.keyword,
            extra=dict(self.extra_params),
        )
        self._memo = (key, request)
        return request

    async def load(self) -> TableView:
        if self._data_hook is None:
            raise TableConfigError(f"Table {self.table_id} has no data hook")
        request = self.build_request()
        self.status = "loading"
        key = (*self.definition.query_root, request.query_key())
        try:
            payload = await self.query_client.fetch_query(key, lambda: self._data_hook(request))
            result = PageResult.from_payload(payload, page=request.page, size=request.size)
        except (ApiError, ValueError) as exc:
            self._fail(exc)
        else:
            self.result = result
            self.error = None
            self.status = "success"
        return self.view()

    async def retry(self) -> TableView:
        """User-initiated refetch after an error."""
        return await self.load()

    def _fail(self, exc: ApiError | ValueError) -> None:
        if not isinstance(exc, ApiError):
            # A malformed page is still an upstream failure.
            error = ApiError(None, payload=str(exc))
            error.__cause__ = exc
            exc = error
        self.status = "error"
        self.error = exc
        notice = error_notice(exc, f"Failed to fetch {self.definition.label}")
        logger.warning("Fetching %s failed: %s", self.table_id, exc)
        if self._notify is not None:
            self._notify(notice)

    @property
    def error_message(self) -> str | None:
        if self.status != "error":
            return None
        return error_notice(self.error, f"Failed to fetch {self.definition.label}").message

    # Rendering

    def _render_row(self, item: Mapping[str, Any], columns: list[ColumnDescriptor]) -> dict[str, Any]:
        row = {descriptor.id: descriptor.render(item) for descriptor in columns}
        for key in self.definition.row_meta_fields:
            if key not in row:
                row[key] = item.get(key)
        return row

    def pager(self) -> PagerView:
        index = self.pagination.page_index
        size = self.pagination.page_size
        total = self.total
        total_pages = self.total_pages
        return PagerView(
            page_index=index,
            page_size=size,
            total=total,
            total_pages=total_pages,
            can_previous=index > 0,
            can_next=index < total_pages - 1,
            start_row=index * size + 1 if total else 0,
            end_row=min((index + 1) * size, total),
            page_size_options=self.page_size_options,
        )

    def view(self) -> TableView:
        columns = self.visible_columns()
        headers = []
        for descriptor in columns:
            direction = direction_for(self.sorting, descriptor.id)
            pinned = self._columns[descriptor.id].pinned
            headers.append(
                HeaderView(
                    column_id=descriptor.id,
                    label=descriptor.label,
                    sortable=descriptor.sortable,
                    sort_direction=direction.value if direction else None,
                    pinned=pinned.value if pinned else None,
                )
            )

        view = TableView(
            table_id=self.table_id,
            status=self.status,
            headers=headers,
            sorting=sort_string(self.sorting),
            keyword=self.keyword,
            active_filter_count=self.active_filter_count,
        )
        if self.status == "error":
            view.error_message = self.error_message
        elif self.status == "success" and self.result is not None:
            view.pager = self.pager()
            if self.result.is_empty:
                view.status = "empty"
                view.empty_message = EMPTY_MESSAGE
            else:
                view.rows = [self._render_row(item, columns) for item in self.result.items]
        return view


class KeywordDebouncer:
    """Collapse rapid keystrokes into one keyword change after a quiet period."""

    def __init__(
        self,
        controller: TableController,
        *,
        delay_ms: int | None = None,
        reload: bool = True,
    ) -> None:
        self.controller = controller
        self.delay = (delay_ms if delay_ms is not None else settings.search_debounce_ms) / 1000
        self.reload = reload
        self._task: asyncio.Task | None = None

    def submit(self, text: str) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._apply(text))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        task = self._task
        if task is None:
            return
        await asyncio.wait({task})
        if not task.cancelled():
            task.result()

    async def _apply(self, text: str) -> None:
        await asyncio.sleep(self.delay)
        if self.controller.set_keyword(text) and self.reload:
            await self.controller.load()
