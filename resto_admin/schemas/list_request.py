from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ListRequest(BaseModel):
    """Outbound list query handed to a remote data hook."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1)
    sort_by: str | None = Field(default=None, alias="sortBy")
    search_condition: str | None = Field(default=None, alias="searchCondition")
    keyword: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"page": self.page, "size": self.size}
        if self.sort_by:
            params["sortBy"] = self.sort_by
        if self.search_condition:
            params["searchCondition"] = self.search_condition
        if self.keyword:
            params["keyword"] = self.keyword
        for key, value in self.extra.items():
            if value is None or value == "":
                continue
            params[key] = value
        return params

    def query_key(self) -> tuple[tuple[str, str], ...]:
        return tuple(sorted((key, str(value)) for key, value in self.to_params().items()))


class PageResult(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @classmethod
    def from_payload(cls, payload: Any, *, page: int = 0, size: int = 0) -> PageResult:
        """Normalize the backend's list shapes into one page result.

        Accepts ``{content, totalElements, number, size}``, the flat
        ``{data, page, size, total}`` shape, or a bare list, optionally wrapped
        in ``{success, code, message, payload}`` or ``{data: {...}}``.
        """
        body = _unwrap(payload)

        if isinstance(body, list):
            return cls(items=body, total=len(body), page=page, size=size or len(body))

        if not isinstance(body, dict):
            raise ValueError("Unrecognized list payload")

        if "content" in body:
            items = body.get("content") or []
            return cls(
                items=items,
                total=int(body.get("totalElements", len(items)) or 0),
                page=int(body.get("number", page) or 0),
                size=int(body.get("size", size) or size),
            )

        if isinstance(body.get("data"), list):
            items = body["data"]
            return cls(
                items=items,
                total=int(body.get("total", len(items)) or 0),
                page=int(body.get("page", page) or 0),
                size=int(body.get("size", size) or size),
            )

        raise ValueError("Unrecognized list payload")


def _unwrap(payload: Any) -> Any:
    body = payload
    while isinstance(body, dict):
        if "payload" in body and ("success" in body or "code" in body):
            body = body["payload"]
            continue
        data = body.get("data")
        if isinstance(data, dict) and "content" not in body:
            body = data
            continue
        break
    return body
