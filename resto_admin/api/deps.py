from collections.abc import AsyncIterator

from fastapi import Header

from resto_admin.db import get_db
from resto_admin.services.api_client import RestaurantApiClient
from resto_admin.services.query_client import QueryClient
from resto_admin.services.table_config import ANONYMOUS_OWNER


async def get_api_client() -> AsyncIterator[RestaurantApiClient]:
    """REST client for the request; closed once the response is sent."""
    async with RestaurantApiClient() as client:
        yield client


def get_query_client() -> QueryClient:
    return QueryClient()


def get_owner_id(x_owner_id: str | None = Header(default=None)) -> str:
    """Whose column layout to read and write.

    Falls back to a shared anonymous layout when the caller sends no owner.
    """
    owner = (x_owner_id or "").strip()
    return owner[:120] or ANONYMOUS_OWNER


__all__ = [
    "get_api_client",
    "get_db",
    "get_owner_id",
    "get_query_client",
]
