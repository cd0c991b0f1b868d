from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rt_connector.adapters.attachments.content import process_attachments
from rt_connector.adapters.rt.errors import NotFoundError
from rt_connector.adapters.rt.fields import ATTACHMENT_DETAIL_FIELDS, USER_REF_FIELDS
from rt_connector.adapters.rt.pagination import collect_pages, page_size_for
from rt_connector.adapters.rt.query import clause, created_range
from rt_connector.app.context import OperationContext, listing_params
from rt_connector.app.params import AttachmentGetManyParams, AttachmentGetParams
from rt_connector.host import OutputItem

_LIST_FIELDS = (
    "Subject,Filename,ContentType,ContentLength,Created,Creator,TransactionId,MessageId,Headers"
)


def _items(body: Any) -> list[Mapping[str, Any]]:
    if isinstance(body, Mapping):
        items = body.get("items")
        if isinstance(items, list):
            return [item for item in items if isinstance(item, Mapping)]
        return [body]
    return []


async def get_attachment(ctx: OperationContext, params: AttachmentGetParams) -> list[OutputItem]:
    body = await ctx.transport.request(
        "POST",
        "attachments",
        params={
            "fields": ATTACHMENT_DETAIL_FIELDS,
            "fields[Creator]": USER_REF_FIELDS,
            "per_page": 1,
        },
        json=[clause("id", "=", params.attachment_id)],
    )
    items = _items(body)
    if not items:
        raise NotFoundError(f"Attachment {params.attachment_id} not found")
    return await process_attachments(
        items,
        download_content=params.download_content,
        simplify=params.simplify,
        binary_preparer=ctx.binary_preparer,
        logger=ctx.logger,
    )


def attachment_filters(params: AttachmentGetManyParams) -> list[dict[str, Any]]:
    filters: list[dict[str, Any]] = []
    if params.filename:
        filters.append(clause("Filename", "LIKE", params.filename))
    if params.only_named:
        filters.append(clause("Filename", "!=", "", aggregator="AND"))
    if params.content_type:
        filters.append(clause("ContentType", "LIKE", params.content_type))
    filters.extend(created_range(params.created_after, params.created_before))
    return filters


async def get_attachments(
    ctx: OperationContext, params: AttachmentGetManyParams
) -> list[OutputItem]:
    fields = _LIST_FIELDS + (",Content" if params.download_content else "")
    result = await collect_pages(
        ctx.transport,
        "POST",
        f"{params.parent_type}/{params.parent_id}/attachments",
        params={
            "fields": fields,
            "fields[Creator]": USER_REF_FIELDS,
            **listing_params(order_by=params.order_by, order=params.order),
        },
        json=attachment_filters(params),
        per_page=page_size_for(return_all=params.return_all, limit=params.limit),
        limit=None if params.return_all else params.limit,
    )
    return await process_attachments(
        [item for item in result.items if isinstance(item, Mapping)],
        download_content=params.download_content,
        simplify=params.simplify,
        binary_preparer=ctx.binary_preparer,
        logger=ctx.logger,
    )
