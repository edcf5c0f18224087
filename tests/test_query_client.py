from __future__ import annotations

import asyncio

import pytest

from resto_admin.errors import ApiError
from resto_admin.services.query_client import Mutation, QueryClient, run_mutation


@pytest.mark.asyncio
async def test_settled_fetch_is_not_reused():
    client = QueryClient()
    calls = []

    async def fetcher():
        calls.append(1)
        return {"content": [], "totalElements": len(calls)}

    first = await client.fetch_query(("branches", "p0"), fetcher)
    second = await client.fetch_query(("branches", "p0"), fetcher)

    assert len(calls) == 2
    assert first["totalElements"] == 1
    assert second["totalElements"] == 2
    assert client.is_fetching(("branches", "p0")) is False


@pytest.mark.asyncio
async def test_concurrent_identical_fetches_share_one_request():
    client = QueryClient()
    release = asyncio.Event()
    calls = []

    async def fetcher():
        calls.append(1)
        await release.wait()
        return "page"

    first = asyncio.ensure_future(client.fetch_query(("roles",), fetcher))
    second = asyncio.ensure_future(client.fetch_query(("roles",), fetcher))
    await asyncio.sleep(0)
    assert client.is_fetching(("roles",)) is True
    release.set()

    assert await asyncio.gather(first, second) == ["page", "page"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_failed_fetch_is_retried_on_next_call():
    client = QueryClient()
    outcomes = [ApiError("down"), "page"]

    async def flaky():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with pytest.raises(ApiError):
        await client.fetch_query(("roles",), flaky)

    assert client.is_fetching(("roles",)) is False
    assert await client.fetch_query(("roles",), flaky) == "page"


@pytest.mark.asyncio
async def test_invalidate_refetches_matching_subscribers_only():
    client = QueryClient()
    refetched = []

    async def branches():
        refetched.append("branches")

    async def roles():
        refetched.append("roles")

    client.subscribe(("branches", "list"), branches)
    client.subscribe(("roles",), roles)

    await client.invalidate(("branches",))

    assert refetched == ["branches"]


@pytest.mark.asyncio
async def test_mutation_invalidates_after_success():
    client = QueryClient()
    refetched = []

    async def refetch():
        refetched.append(True)

    client.subscribe(("branches",), refetch)

    async def create(payload):
        assert mutation.is_pending is True
        return {"id": 1, **payload}

    mutation = Mutation(create, query_client=client, invalidates=[("branches",)])

    result = await mutation.mutate_async({"name": "District 1"})

    assert result == {"id": 1, "name": "District 1"}
    assert mutation.is_pending is False
    assert refetched == [True]


@pytest.mark.asyncio
async def test_failed_mutation_does_not_invalidate():
    client = QueryClient()
    refetched = []

    async def refetch():
        refetched.append(True)

    client.subscribe(("branches",), refetch)

    async def create(_payload):
        raise ApiError("Branch name already exists", status_code=409)

    mutation = Mutation(create, query_client=client, invalidates=[("branches",)])

    with pytest.raises(ApiError):
        await mutation.mutate_async({"name": "District 1"})

    assert refetched == []
    assert mutation.is_pending is False


@pytest.mark.asyncio
async def test_run_mutation_reports_notices():
    client = QueryClient()
    notices = []

    async def ok(_payload):
        return None

    async def conflict(_payload):
        raise ApiError("Branch name already exists", status_code=409)

    async def silent(_payload):
        raise ApiError(None, status_code=500)

    success = await run_mutation(
        Mutation(ok, query_client=client),
        {},
        success_message="Branch created",
        fallback="Failed to create branch",
        notify=notices.append,
    )
    server = await run_mutation(
        Mutation(conflict, query_client=client),
        {},
        success_message="Branch created",
        fallback="Failed to create branch",
    )
    generic = await run_mutation(
        Mutation(silent, query_client=client),
        {},
        success_message="Branch created",
        fallback="Failed to create branch",
    )

    assert success.level == "success"
    assert notices == [success]
    assert server.message == "Branch name already exists"
    assert generic.message == "Failed to create branch"
