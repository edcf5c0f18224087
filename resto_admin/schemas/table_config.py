from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

PinSide = Literal["left", "right"]


class TableColumnAvailable(BaseModel):
    key: str
    label: str
    sortable: bool = True
    pinnable: bool = True
    hideable: bool = True
    hidden_by_default: bool = False


class TableColumnPreference(BaseModel):
    column_key: str = Field(min_length=1, max_length=120)
    display_order: int = Field(ge=0)
    is_visible: bool
    pinned: PinSide | None = None


class TableColumnResolved(BaseModel):
    column_key: str
    label: str
    sortable: bool
    display_order: int
    is_visible: bool
    pinned: PinSide | None = None


class TableColumnsResponse(BaseModel):
    table_id: str
    available_columns: list[TableColumnAvailable]
    columns: list[TableColumnResolved]


class FilterOptionRead(BaseModel):
    value: str
    label: str


class FilterDefinitionRead(BaseModel):
    field: str
    label: str
    operand_type: str
    options: list[FilterOptionRead] = Field(default_factory=list)
    operators: list[FilterOptionRead] = Field(default_factory=list)


class TableFiltersResponse(BaseModel):
    table_id: str
    filters: list[FilterDefinitionRead]
