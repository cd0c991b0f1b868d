from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rt_connector.host import HttpMethod, RTTransport

MAX_PER_PAGE = 100


@dataclass(slots=True)
class PageResult:
    items: list[Any] = field(default_factory=list)
    # Server-reported count from the first page, when it is a number.
    total: int | None = None


def page_size_for(*, return_all: bool, limit: int) -> int:
    return MAX_PER_PAGE if return_all else max(1, min(int(limit), MAX_PER_PAGE))


async def collect_pages(
    transport: RTTransport,
    method: HttpMethod,
    path: str,
    *,
    params: Mapping[str, Any] | None = None,
    json: Any | None = None,
    data: Mapping[str, Any] | None = None,
    per_page: int = MAX_PER_PAGE,
    limit: int | None = None,
    fetch_all: bool = True,
) -> PageResult:
    """
    Walk an RT collection endpoint page by page.

    Stops on a short or empty page, once ``limit`` items were collected, or after the
    first page when ``fetch_all`` is false. Results are truncated to ``limit``.
    """
    result = PageResult()
    page = 1
    while True:
        query = {**(params or {}), "page": page, "per_page": per_page}
        response = await transport.request(method, path, params=query, json=json, data=data)

        items: list[Any] = []
        if isinstance(response, Mapping):
            raw_items = response.get("items")
            items = list(raw_items) if isinstance(raw_items, list) else []
            count = response.get("count")
            if page == 1 and isinstance(count, int) and not isinstance(count, bool):
                result.total = count
        result.items.extend(items)

        if not fetch_all or not items or len(items) < per_page:
            break
        if limit is not None and len(result.items) >= limit:
            break
        page += 1

    if limit is not None:
        result.items = result.items[:limit]
    return result
