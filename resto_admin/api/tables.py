from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from resto_admin.api.deps import get_api_client, get_db, get_owner_id, get_query_client
from resto_admin.config import settings
from resto_admin.schemas.table_config import (
    FilterDefinitionRead,
    FilterOptionRead,
    TableColumnPreference,
    TableColumnsResponse,
    TableFiltersResponse,
)
from resto_admin.schemas.table_view import TableView
from resto_admin.services import table_definitions  # noqa: F401
from resto_admin.services.api_client import RestaurantApiClient
from resto_admin.services.export import export_filename, rows_to_csv
from resto_admin.services.query_client import QueryClient
from resto_admin.services.table_config import TableRegistry, TableStateStore
from resto_admin.services.table_controller import TableController

router = APIRouter(prefix="/tables", tags=["tables"])

# Query parameters the controller owns; anything else is a domain filter.
RESERVED_PARAMS = {"page", "size", "sortBy", "keyword", "searchCondition", "delimiter"}


@router.get("", response_model=list[str])
def list_tables():
    return TableRegistry.table_ids()


@router.get("/{table_id}/columns", response_model=TableColumnsResponse)
def get_table_columns(
    table_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    columns = TableStateStore.get_columns(db, owner_id, table_id)
    return TableColumnsResponse(
        table_id=table_id,
        available_columns=TableStateStore.get_available_columns(table_id),
        columns=columns,
    )


@router.post("/{table_id}/columns", response_model=TableColumnsResponse)
def save_table_columns(
    table_id: str,
    payload: list[TableColumnPreference],
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    columns = TableStateStore.save_columns(db, owner_id, table_id, payload)
    return TableColumnsResponse(
        table_id=table_id,
        available_columns=TableStateStore.get_available_columns(table_id),
        columns=columns,
    )


@router.get("/{table_id}/filters", response_model=TableFiltersResponse)
def get_table_filters(table_id: str):
    definition = TableRegistry.get(table_id)
    return TableFiltersResponse(
        table_id=table_id,
        filters=[
            FilterDefinitionRead(
                field=item.field,
                label=item.label,
                operand_type=item.operand_type.value,
                options=[FilterOptionRead(value=o.value, label=o.label) for o in item.options],
                operators=[
                    FilterOptionRead(value=op.value, label=item.operator_label(op))
                    for op in item.operators
                ],
            )
            for item in definition.filters
        ],
    )


def _build_controller(
    request: Request,
    table_id: str,
    *,
    page: int,
    size: int | None,
    sort_by: str | None,
    keyword: str | None,
    search_condition: str | None,
    db: Session,
    owner_id: str,
    client: RestaurantApiClient,
    query_client: QueryClient,
) -> TableController:
    definition = TableRegistry.get(table_id)
    if definition.resource is None:
        raise HTTPException(status_code=404, detail="Table has no data source")

    extra = {
        key: value
        for key, value in request.query_params.items()
        if key not in RESERVED_PARAMS and value != ""
    }
    controller = TableController(
        definition,
        definition.resource.fetcher(client),
        query_client=query_client,
        page_size=size,
        extra_params=extra,
    )
    controller.restore_column_state(TableStateStore.get_columns(db, owner_id, table_id))
    if sort_by is not None:
        controller.set_sort(sort_by or None)
    controller.set_filters(definition.filters.parse_wire(search_condition))
    controller.set_keyword(keyword)
    controller.set_page(page)
    return controller


@router.get("/{table_id}/data", response_model=TableView)
async def get_table_data(
    table_id: str,
    request: Request,
    page: int = Query(default=0, ge=0),
    size: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    keyword: str | None = Query(default=None),
    search_condition: str | None = Query(default=None, alias="searchCondition"),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    client: RestaurantApiClient = Depends(get_api_client),
    query_client: QueryClient = Depends(get_query_client),
):
    controller = _build_controller(
        request,
        table_id,
        page=page,
        size=size,
        sort_by=sort_by,
        keyword=keyword,
        search_condition=search_condition,
        db=db,
        owner_id=owner_id,
        client=client,
        query_client=query_client,
    )
    try:
        return await controller.load()
    finally:
        controller.close()


@router.get("/{table_id}/export")
async def export_table_data(
    table_id: str,
    request: Request,
    page: int = Query(default=0, ge=0),
    size: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    keyword: str | None = Query(default=None),
    search_condition: str | None = Query(default=None, alias="searchCondition"),
    delimiter: str | None = Query(default=None),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
    client: RestaurantApiClient = Depends(get_api_client),
    query_client: QueryClient = Depends(get_query_client),
):
    controller = _build_controller(
        request,
        table_id,
        page=page,
        size=size,
        sort_by=sort_by,
        keyword=keyword,
        search_condition=search_condition,
        db=db,
        owner_id=owner_id,
        client=client,
        query_client=query_client,
    )
    try:
        await controller.load()
    finally:
        controller.close()
    if controller.status == "error":
        raise controller.error
    content, _count = rows_to_csv(controller, delimiter=delimiter)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(controller)}"'},
    )
