from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ViewStatus = Literal["idle", "loading", "error", "empty", "success"]


class HeaderView(BaseModel):
    column_id: str
    label: str
    sortable: bool
    sort_direction: Literal["asc", "desc"] | None = None
    pinned: Literal["left", "right"] | None = None


class PagerView(BaseModel):
    page_index: int
    page_size: int
    total: int
    total_pages: int
    can_previous: bool
    can_next: bool
    start_row: int
    end_row: int
    page_size_options: list[int] = Field(default_factory=list)


class TableView(BaseModel):
    table_id: str
    status: ViewStatus
    headers: list[HeaderView]
    rows: list[dict[str, Any]] = Field(default_factory=list)
    pager: PagerView | None = None
    sorting: str | None = None
    keyword: str = ""
    active_filter_count: int = 0
    error_message: str | None = None
    empty_message: str | None = None
