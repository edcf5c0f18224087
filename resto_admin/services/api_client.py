"""Async client for the restaurant REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from resto_admin.config import settings
from resto_admin.errors import ApiError

logger = logging.getLogger(__name__)


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def unwrap_envelope(body: Any) -> Any:
    """Strip the ``{success, code, message, payload}`` envelope.

    Raises ApiError when the envelope reports ``success: false``.
    """
    if isinstance(body, dict) and "payload" in body and ("success" in body or "code" in body):
        if body.get("success") is False:
            raise ApiError(body.get("message"), status_code=body.get("code"), payload=body)
        return body["payload"]
    return body


class RestaurantApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> RestaurantApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            message = _server_message(exc.response)
            logger.warning(
                "%s %s failed with %s: %s",
                method,
                path,
                exc.response.status_code,
                message or "no message",
            )
            raise ApiError(message, status_code=exc.response.status_code) from exc
        except httpx.RequestError as exc:
            logger.warning("%s %s could not reach the API: %s", method, path, exc)
            raise ApiError(None) from exc

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError("Invalid JSON in API response", status_code=response.status_code) from exc
        return unwrap_envelope(body)

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
