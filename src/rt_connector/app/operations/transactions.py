from __future__ import annotations

from collections.abc import Mapping

from rt_connector.adapters.attachments.aggregate import process_transactions
from rt_connector.adapters.rt.fields import transaction_field_params
from rt_connector.adapters.rt.pagination import collect_pages, page_size_for
from rt_connector.app.context import OperationContext, as_output, listing_params
from rt_connector.app.params import TransactionGetManyParams, TransactionGetParams
from rt_connector.host import OutputItem


async def get_transaction(
    ctx: OperationContext, params: TransactionGetParams
) -> list[OutputItem]:
    body = await ctx.transport.request(
        "GET", f"transaction/{params.transaction_id}", params=transaction_field_params()
    )
    if not isinstance(body, Mapping):
        return [as_output(body)]
    return await process_transactions(
        ctx.transport,
        [body],
        include_content=params.include_content,
        include_attachments=params.include_attachments,
        simplify=params.simplify,
        binary_preparer=ctx.binary_preparer,
        logger=ctx.logger,
    )


async def get_transactions(
    ctx: OperationContext, params: TransactionGetManyParams
) -> list[OutputItem]:
    """Search transactions with TransactionSQL (``POST transactions``)."""
    result = await collect_pages(
        ctx.transport,
        "POST",
        "transactions",
        params={
            **transaction_field_params(),
            **listing_params(order_by=params.order_by, order=params.order),
        },
        data={"query": params.query},
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
