from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rt_connector.adapters.rt.fields import QUEUE_FIELDS, QUEUE_LIST_FIELDS
from rt_connector.adapters.rt.pagination import collect_pages, page_size_for
from rt_connector.adapters.rt.query import clause
from rt_connector.app.context import OperationContext, as_output, listing_params
from rt_connector.app.params import QueueGetManyParams, QueueGetParams
from rt_connector.domain.resources import QUEUE, transform_resource, transform_resources
from rt_connector.host import OutputItem


async def get_queue(ctx: OperationContext, params: QueueGetParams) -> list[OutputItem]:
    body = await ctx.transport.request(
        "GET", f"queue/{params.queue_id}", params={"fields": QUEUE_FIELDS}
    )
    if not isinstance(body, Mapping):
        return [as_output(body)]
    return [OutputItem(json=transform_resource(body, QUEUE, simplify=params.simplify))]


def queue_filters(params: QueueGetManyParams) -> list[dict[str, Any]]:
    filters: list[dict[str, Any]] = []
    if params.queue_name:
        filters.append(clause("Name", "LIKE", params.queue_name))
    if params.description:
        filters.append(clause("Description", "LIKE", params.description, aggregator="AND"))
    if params.lifecycle:
        filters.append(clause("Lifecycle", "=", params.lifecycle, aggregator="AND"))
    # RT rejects an empty search; match every queue instead.
    return filters or [clause("id", ">", "0")]


async def get_queues(ctx: OperationContext, params: QueueGetManyParams) -> list[OutputItem]:
    result = await collect_pages(
        ctx.transport,
        "POST",
        "queues",
        params={
            "fields": QUEUE_LIST_FIELDS,
            **listing_params(
                order_by=params.order_by,
                order=params.order,
                find_disabled_rows=params.find_disabled_rows,
            ),
        },
        json=queue_filters(params),
        per_page=page_size_for(return_all=params.return_all, limit=params.limit),
        limit=None if params.return_all else params.limit,
    )
    queues = transform_resources(result.items, QUEUE, simplify=params.simplify)
    return [as_output(queue) for queue in queues]
