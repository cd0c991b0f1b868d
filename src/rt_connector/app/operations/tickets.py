from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from rt_connector.adapters.attachments.aggregate import process_transactions
from rt_connector.adapters.rt.fields import ticket_field_params, transaction_field_params
from rt_connector.adapters.rt.pagination import collect_pages, page_size_for
from rt_connector.adapters.rt.query import clause, created_range
from rt_connector.app.context import OperationContext, as_output, listing_params
from rt_connector.app.params import (
    TicketCreateParams,
    TicketGetParams,
    TicketHistoryParams,
    TicketMessageParams,
    TicketSearchParams,
    TicketUpdateParams,
)
from rt_connector.app.request_body import build_create_body, build_message_body, build_update_body
from rt_connector.domain.operation_response import transform_operation_response
from rt_connector.domain.resources import TICKET, transform_resource, transform_resources
from rt_connector.host import BinaryPayload, OutputItem


async def get_ticket(ctx: OperationContext, params: TicketGetParams) -> list[OutputItem]:
    body = await ctx.transport.request(
        "GET", f"ticket/{params.ticket_id}", params=ticket_field_params(params.output_fields)
    )
    if not isinstance(body, Mapping):
        return [as_output(body)]
    return [OutputItem(json=transform_resource(body, TICKET, simplify=params.simplify))]


async def create_ticket(
    ctx: OperationContext,
    params: TicketCreateParams,
    binary: Mapping[str, BinaryPayload] | None = None,
) -> list[OutputItem]:
    body = build_create_body(params, binary)
    ctx.logger.debug(
        "tickets.create", queue=params.queue, attachments=len(body.get("Attachments", []))
    )
    return [as_output(await ctx.transport.request("POST", "ticket", json=body))]


async def update_ticket(ctx: OperationContext, params: TicketUpdateParams) -> list[OutputItem]:
    body = build_update_body(params)
    response = await ctx.transport.request("PUT", f"ticket/{params.ticket_id}", json=body)
    return [as_output(transform_operation_response(response, ticket_id=params.ticket_id))]


async def _post_message(
    ctx: OperationContext,
    params: TicketMessageParams,
    binary: Mapping[str, BinaryPayload] | None,
    kind: Literal["comment", "correspond"],
) -> list[OutputItem]:
    body = build_message_body(params, binary)
    response = await ctx.transport.request("POST", f"ticket/{params.ticket_id}/{kind}", json=body)
    return [as_output(transform_operation_response(response, ticket_id=params.ticket_id))]


async def add_comment(
    ctx: OperationContext,
    params: TicketMessageParams,
    binary: Mapping[str, BinaryPayload] | None = None,
) -> list[OutputItem]:
    return await _post_message(ctx, params, binary, "comment")


async def add_correspondence(
    ctx: OperationContext,
    params: TicketMessageParams,
    binary: Mapping[str, BinaryPayload] | None = None,
) -> list[OutputItem]:
    return await _post_message(ctx, params, binary, "correspond")


async def search_tickets(ctx: OperationContext, params: TicketSearchParams) -> list[OutputItem]:
    query_params = {
        **ticket_field_params(params.output_fields),
        **listing_params(
            order_by=params.order_by,
            order=params.order,
            find_disabled_rows=params.find_disabled_rows,
        ),
    }
    if params.search_type == "simple":
        query_params["simple"] = "1"

    result = await collect_pages(
        ctx.transport,
        "POST",
        "tickets",
        params=query_params,
        data={"query": params.query},
        per_page=page_size_for(return_all=params.return_all, limit=params.limit),
        limit=None if params.return_all else params.limit,
    )
    tickets = transform_resources(result.items, TICKET, simplify=params.simplify)
    return [as_output(ticket) for ticket in tickets]


async def get_ticket_history(
    ctx: OperationContext, params: TicketHistoryParams
) -> list[OutputItem]:
    filters = [
        clause("Type", "=", tx_type, aggregator="OR") for tx_type in params.transaction_types
    ]
    filters.extend(created_range(params.created_after, params.created_before))

    result = await collect_pages(
        ctx.transport,
        "POST",
        f"ticket/{params.ticket_id}/history",
        params={
            **transaction_field_params(),
            **listing_params(order_by=params.order_by, order=params.order),
        },
        json=filters,
        per_page=page_size_for(return_all=params.return_all, limit=params.limit),
        limit=None if params.return_all else params.limit,
    )
    return await process_transactions(
        ctx.transport,
        [t for t in result.items if isinstance(t, Mapping)],
        include_content=params.include_content,
        include_attachments=params.include_attachments,
        simplify=params.simplify,
        binary_preparer=ctx.binary_preparer,
        logger=ctx.logger,
    )
