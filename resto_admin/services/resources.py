"""Remote list endpoints and their create/update/delete hooks."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from resto_admin.schemas.list_request import ListRequest
from resto_admin.services.api_client import RestaurantApiClient
from resto_admin.services.query_client import Mutation, QueryClient
from resto_admin.services.sorting import SortDescriptor

ParamMapper = Callable[[ListRequest], dict[str, Any]]
Fetcher = Callable[[ListRequest], Awaitable[Any]]


def standard_params(request: ListRequest) -> dict[str, Any]:
    return request.to_params()


def search_sort_direction_params(request: ListRequest) -> dict[str, Any]:
    """Parameters for endpoints taking ``search``, ``sort`` and ``direction``."""
    params = request.to_params()
    sort = SortDescriptor.parse(params.pop("sortBy", None))
    if sort is not None:
        params["sort"] = sort.field
        params["direction"] = sort.direction.value
    keyword = params.pop("keyword", None)
    if keyword:
        params["search"] = keyword
    return params


@dataclass(frozen=True)
class ResourceMutations:
    create: Mutation
    update: Mutation | None
    delete: Mutation | None


@dataclass(frozen=True)
class ListResource:
    key: str
    label: str
    list_path: str
    base_path: str | None = None
    create_path: str | None = None
    param_mapper: ParamMapper = standard_params
    supports_update: bool = True
    supports_delete: bool = True

    @property
    def query_key(self) -> tuple[str]:
        return (self.key,)

    def fetcher(self, client: RestaurantApiClient) -> Fetcher:
        async def fetch(request: ListRequest) -> Any:
            return await client.get(self.list_path, params=self.param_mapper(request))

        return fetch

    def mutations(self, client: RestaurantApiClient, query_client: QueryClient) -> ResourceMutations:
        base_path = self.base_path or self.list_path
        create_path = self.create_path or base_path

        async def create(payload: dict[str, Any]) -> Any:
            return await client.post(create_path, json=payload)

        async def update(payload: dict[str, Any]) -> Any:
            return await client.put(f"{base_path}/{payload['id']}", json=payload["data"])

        async def delete(item_id: Any) -> Any:
            return await client.delete(f"{base_path}/{item_id}")

        def hook(fn) -> Mutation:
            return Mutation(fn, query_client=query_client, invalidates=[self.query_key])

        return ResourceMutations(
            create=hook(create),
            update=hook(update) if self.supports_update else None,
            delete=hook(delete) if self.supports_delete else None,
        )


BRANCHES = ListResource(key="branches", label="branches", list_path="/branch")
ROLES = ListResource(key="roles", label="roles", list_path="/role")
EMPLOYEES = ListResource(
    key="employees",
    label="employees",
    list_path="/user/list",
    base_path="/user",
)
TABLE_BOOKINGS = ListResource(
    key="table_bookings",
    label="table bookings",
    list_path="/booking-table",
    create_path="/booking-table/admin/create",
    supports_update=False,
    supports_delete=False,
)
PRODUCTS = ListResource(
    key="products",
    label="products",
    list_path="/api/menu/products/list",
    base_path="/api/menu/products",
    param_mapper=search_sort_direction_params,
    supports_delete=False,
)

RESOURCES: dict[str, ListResource] = {
    resource.key: resource
    for resource in (BRANCHES, ROLES, EMPLOYEES, TABLE_BOOKINGS, PRODUCTS)
}
