"""Shared list fetching keyed by query key, with invalidation-driven refetch.

Results are never kept once delivered: asking for a key again goes back to the
server, and only concurrent identical requests share one fetch. Mutations never
merge their results into loaded pages. A successful mutation invalidates the
resource's key and every subscribed table refetches from the server, which
stays the only source of truth.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from resto_admin.errors import ApiError, Notice, error_notice

logger = logging.getLogger(__name__)

QueryKey = tuple[Any, ...]
Refetch = Callable[[], Awaitable[Any]]


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryClient:
    def __init__(self) -> None:
        self._in_flight: dict[QueryKey, asyncio.Task] = {}
        self._subscribers: dict[int, tuple[QueryKey, Refetch]] = {}
        self._next_subscriber = 0

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._in_flight

    async def fetch_query(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``fetcher`` for ``key``, sharing one request among concurrent callers.

        The in-flight entry is dropped as soon as the request settles, so the
        next call for the same key always reaches the server.
        """
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetcher())
            self._in_flight[key] = task
            task.add_done_callback(lambda _done, key=key: self._in_flight.pop(key, None))

        return await asyncio.shield(task)

    def subscribe(self, prefix: QueryKey, refetch: Refetch) -> Callable[[], None]:
        """Register a refetch callback for invalidations under ``prefix``."""
        token = self._next_subscriber
        self._next_subscriber += 1
        self._subscribers[token] = (tuple(prefix), refetch)

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    async def invalidate(self, prefix: QueryKey) -> None:
        prefix = tuple(prefix)
        listeners = [
            refetch
            for sub_prefix, refetch in list(self._subscribers.values())
            if _matches(sub_prefix, prefix) or _matches(prefix, sub_prefix)
        ]
        logger.debug("Invalidated %s: refetching %d tables", prefix, len(listeners))
        if listeners:
            await asyncio.gather(*(refetch() for refetch in listeners))


class Mutation:
    """Create/update/delete hook. ``is_pending`` while a call is running."""

    def __init__(
        self,
        mutation_fn: Callable[[Any], Awaitable[Any]],
        *,
        query_client: QueryClient,
        invalidates: Sequence[QueryKey] = (),
    ) -> None:
        self._mutation_fn = mutation_fn
        self._query_client = query_client
        self._invalidates = [tuple(key) for key in invalidates]
        self._pending = 0

    @property
    def is_pending(self) -> bool:
        return self._pending > 0

    async def mutate_async(self, payload: Any = None) -> Any:
        self._pending += 1
        try:
            result = await self._mutation_fn(payload)
        finally:
            self._pending -= 1
        for key in self._invalidates:
            await self._query_client.invalidate(key)
        return result


async def run_mutation(
    mutation: Mutation,
    payload: Any,
    *,
    success_message: str,
    fallback: str,
    notify: Callable[[Notice], None] | None = None,
) -> Notice:
    """Run a mutation and turn its outcome into a toast."""
    try:
        await mutation.mutate_async(payload)
    except ApiError as exc:
        logger.warning("Mutation failed: %s", exc)
        notice = error_notice(exc, fallback)
    else:
        notice = Notice(level="success", title="Success", message=success_message)
    if notify is not None:
        notify(notice)
    return notice
