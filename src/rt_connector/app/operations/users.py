from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from rt_connector.adapters.rt.fields import USER_FIELDS, user_ref_params
from rt_connector.adapters.rt.pagination import collect_pages, page_size_for
from rt_connector.adapters.rt.query import clause
from rt_connector.app.context import OperationContext, as_output, listing_params
from rt_connector.app.params import UserGetManyParams, UserGetParams
from rt_connector.domain.resources import USER, transform_resource, transform_resources
from rt_connector.host import OutputItem


async def get_user(ctx: OperationContext, params: UserGetParams) -> list[OutputItem]:
    body = await ctx.transport.request(
        "GET",
        f"user/{params.user_id}",
        params={"fields": USER_FIELDS, **user_ref_params("Creator", "LastUpdatedBy")},
    )
    if not isinstance(body, Mapping):
        return [as_output(body)]
    return [OutputItem(json=transform_resource(body, USER, simplify=params.simplify))]


def user_filters(params: UserGetManyParams) -> list[dict[str, Any]]:
    filters: list[dict[str, Any]] = []
    if params.name:
        filters.append(clause("Name", "LIKE", params.name))
    if params.email_address:
        filters.append(clause("EmailAddress", "LIKE", params.email_address, aggregator="AND"))
    return filters


async def get_users(ctx: OperationContext, params: UserGetManyParams) -> list[OutputItem]:
    """List users; unprivileged users are only included when asked for."""
    path = "users" if params.include_all_users else "users/privileged"
    result = await collect_pages(
        ctx.transport,
        "GET",
        path,
        params={
            "query": json.dumps(user_filters(params)),
            "fields": USER_FIELDS,
            **user_ref_params("Creator", "LastUpdatedBy"),
            **listing_params(order_by=params.order_by, order=params.order),
        },
        per_page=page_size_for(return_all=params.return_all, limit=params.limit),
        limit=None if params.return_all else params.limit,
    )
    users = transform_resources(result.items, USER, simplify=params.simplify)
    return [as_output(user) for user in users]
