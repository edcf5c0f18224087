from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from resto_admin.models.table_column_state import TableColumnState
from resto_admin.schemas.table_config import (
    TableColumnAvailable,
    TableColumnPreference,
    TableColumnResolved,
)
from resto_admin.services.columns import ColumnDescriptor, TableConfigError
from resto_admin.services.dynamic_filters import FilterDefinition, FilterRegistry
from resto_admin.services.resources import ListResource
from resto_admin.services.sorting import SortDescriptor

logger = logging.getLogger(__name__)

ANONYMOUS_OWNER = "anonymous"


@dataclass(frozen=True)
class TableDefinition:
    table_id: str
    columns: tuple[ColumnDescriptor, ...]
    filters: FilterRegistry = field(default_factory=FilterRegistry)
    resource: ListResource | None = None
    page_size: int | None = None
    default_sort: str | None = None
    row_meta_fields: tuple[str, ...] = ()
    enable_drag_and_drop: bool = True

    @property
    def label(self) -> str:
        if self.resource is not None:
            return self.resource.label
        return self.table_id.replace("_", " ")

    @property
    def query_root(self) -> tuple[str]:
        if self.resource is not None:
            return self.resource.query_key
        return (self.table_id,)

    def column(self, column_id: str) -> ColumnDescriptor:
        for descriptor in self.columns:
            if descriptor.id == column_id:
                return descriptor
        raise TableConfigError(f"Unknown column: {column_id}")

    def has_column(self, column_id: str) -> bool:
        return any(descriptor.id == column_id for descriptor in self.columns)


def build_definition(
    *,
    table_id: str,
    columns: list[ColumnDescriptor],
    filters: list[FilterDefinition] | None = None,
    resource: ListResource | None = None,
    page_size: int | None = None,
    default_sort: str | None = None,
    row_meta_fields: list[str] | None = None,
    enable_drag_and_drop: bool = True,
) -> TableDefinition:
    if not table_id:
        raise TableConfigError("table_id is required")
    if not columns:
        raise TableConfigError(f"Table {table_id} declares no columns")

    seen: set[str] = set()
    for descriptor in columns:
        if descriptor.id in seen:
            raise TableConfigError(f"Duplicate column in table {table_id}: {descriptor.id}")
        seen.add(descriptor.id)

    if default_sort:
        sort = SortDescriptor.parse(default_sort)
        if sort is not None and sort.field not in seen:
            raise TableConfigError(f"Default sort field is not a column: {sort.field}")

    if page_size is not None and page_size < 1:
        raise TableConfigError("page_size must be >= 1")

    return TableDefinition(
        table_id=table_id,
        columns=tuple(columns),
        filters=FilterRegistry(tuple(filters or ())),
        resource=resource,
        page_size=page_size,
        default_sort=default_sort,
        row_meta_fields=tuple(row_meta_fields or ()),
        enable_drag_and_drop=enable_drag_and_drop,
    )


class TableRegistry:
    _tables: dict[str, TableDefinition] = {}

    @classmethod
    def register(cls, **kwargs: Any) -> TableDefinition:
        definition = build_definition(**kwargs)
        cls._tables[definition.table_id] = definition
        return definition

    @classmethod
    def get(cls, table_id: str) -> TableDefinition:
        definition = cls._tables.get(table_id)
        if not definition:
            raise HTTPException(status_code=404, detail="Unregistered table_id")
        return definition

    @classmethod
    def exists(cls, table_id: str) -> bool:
        return table_id in cls._tables

    @classmethod
    def table_ids(cls) -> list[str]:
        return sorted(cls._tables)


class TableStateStore:
    """Persists per-owner column visibility, order and pinning."""

    @staticmethod
    def _default_state(definition: TableDefinition) -> dict[str, dict[str, Any]]:
        state: dict[str, dict[str, Any]] = {}
        for index, descriptor in enumerate(definition.columns):
            state[descriptor.id] = {
                "display_order": index,
                "is_visible": not descriptor.hidden_by_default,
                "pinned": descriptor.pin.value if descriptor.pin and descriptor.pinnable else None,
            }
        return state

    @staticmethod
    def _resolve(
        definition: TableDefinition, state: dict[str, dict[str, Any]]
    ) -> list[TableColumnResolved]:
        registry_order = {descriptor.id: i for i, descriptor in enumerate(definition.columns)}
        resolved = [
            TableColumnResolved(
                column_key=descriptor.id,
                label=descriptor.label,
                sortable=descriptor.sortable,
                display_order=state[descriptor.id]["display_order"],
                is_visible=state[descriptor.id]["is_visible"],
                pinned=state[descriptor.id]["pinned"],
            )
            for descriptor in definition.columns
        ]
        resolved.sort(
            key=lambda column: (column.display_order, registry_order[column.column_key])
        )
        return resolved

    @staticmethod
    def get_available_columns(table_id: str) -> list[TableColumnAvailable]:
        definition = TableRegistry.get(table_id)
        return [
            TableColumnAvailable(
                key=descriptor.id,
                label=descriptor.label,
                sortable=descriptor.sortable,
                pinnable=descriptor.pinnable,
                hideable=descriptor.hideable,
                hidden_by_default=descriptor.hidden_by_default,
            )
            for descriptor in definition.columns
        ]

    @staticmethod
    def get_columns(db: Session, owner_id: str, table_id: str) -> list[TableColumnResolved]:
        definition = TableRegistry.get(table_id)
        state = TableStateStore._default_state(definition)

        saved = (
            db.query(TableColumnState)
            .filter(TableColumnState.owner_id == owner_id)
            .filter(TableColumnState.table_id == table_id)
            .all()
        )
        for config in saved:
            if config.column_key in state:
                state[config.column_key] = {
                    "display_order": config.display_order,
                    "is_visible": config.is_visible,
                    "pinned": config.pinned,
                }
        return TableStateStore._resolve(definition, state)

    @staticmethod
    def save_columns(
        db: Session,
        owner_id: str,
        table_id: str,
        payload: list[TableColumnPreference],
    ) -> list[TableColumnResolved]:
        definition = TableRegistry.get(table_id)

        # An empty payload resets the owner back to registry defaults.
        if not payload:
            (
                db.query(TableColumnState)
                .filter(TableColumnState.owner_id == owner_id)
                .filter(TableColumnState.table_id == table_id)
                .delete(synchronize_session=False)
            )
            db.commit()
            return TableStateStore.get_columns(db, owner_id, table_id)

        seen: set[str] = set()
        for item in payload:
            if not definition.has_column(item.column_key):
                raise HTTPException(status_code=400, detail=f"Invalid column_key: {item.column_key}")
            if item.column_key in seen:
                raise HTTPException(status_code=400, detail=f"Duplicate column_key: {item.column_key}")
            seen.add(item.column_key)
            descriptor = definition.column(item.column_key)
            if item.pinned and not descriptor.pinnable:
                raise HTTPException(status_code=400, detail=f"Column cannot be pinned: {item.column_key}")
            if not item.is_visible and not descriptor.hideable:
                raise HTTPException(status_code=400, detail=f"Column cannot be hidden: {item.column_key}")

        state = TableStateStore._default_state(definition)
        for item in payload:
            state[item.column_key] = {
                "display_order": item.display_order,
                "is_visible": item.is_visible,
                "pinned": item.pinned,
            }

        max_specified_order = max(item.display_order for item in payload)
        for key, config in state.items():
            if key not in seen:
                config["display_order"] = max_specified_order + 1 + config["display_order"]

        if not any(item["is_visible"] for item in state.values()):
            raise HTTPException(status_code=400, detail="At least one column must be visible")

        normalized = sorted(state.items(), key=lambda kv: kv[1]["display_order"])

        (
            db.query(TableColumnState)
            .filter(TableColumnState.owner_id == owner_id)
            .filter(TableColumnState.table_id == table_id)
            .delete(synchronize_session=False)
        )
        for index, (column_key, config) in enumerate(normalized):
            db.add(
                TableColumnState(
                    owner_id=owner_id,
                    table_id=table_id,
                    column_key=column_key,
                    display_order=index,
                    is_visible=config["is_visible"],
                    pinned=config["pinned"],
                )
            )
        db.commit()
        logger.info("Saved column state for %s/%s", owner_id, table_id)
        return TableStateStore.get_columns(db, owner_id, table_id)
