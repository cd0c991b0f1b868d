from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from rt_connector.adapters.rt.errors import NotFoundError, RTApiError
from rt_connector.adapters.rt.query import clause
from rt_connector.app.context import OperationContext
from rt_connector.app.params import CustomFieldListParams
from rt_connector.host import OutputItem, RTTransport

TICKET_CF_LOOKUP_TYPE = "RT::Queue-RT::Ticket"
DEFINITION_FIELDS = "id,Name,Type,MaxValues,Disabled"

_FIELD_TYPES = {
    "Date": "dateTime",
    "DateTime": "dateTime",
    "Integer": "number",
}


async def resolve_queue_id(transport: RTTransport, queue: str) -> str:
    if queue.isdigit():
        return queue
    body = await transport.request("GET", f"queue/{quote(queue, safe='')}", params={"fields": "id"})
    if isinstance(body, Mapping) and body.get("id"):
        return str(body["id"])
    raise NotFoundError(f"Queue not found: {queue}")


async def queue_id_from_ticket(transport: RTTransport, ticket_id: str) -> str | None:
    body = await transport.request("GET", f"ticket/{ticket_id}", params={"fields": "Queue"})
    if not isinstance(body, Mapping):
        return None
    queue = body.get("Queue")
    if isinstance(queue, Mapping):
        return str(queue["id"]) if queue.get("id") else None
    if isinstance(queue, (str, int)) and not isinstance(queue, bool) and queue != "":
        return str(queue)
    return None


def _item_ids(body: Any) -> list[str]:
    if not isinstance(body, Mapping):
        return []
    items = body.get("items") or []
    return [str(item["id"]) for item in items if isinstance(item, Mapping) and "id" in item]


async def _definition(ctx: OperationContext, cf_id: str) -> dict[str, Any] | None:
    try:
        body = await ctx.transport.request(
            "GET", f"customfield/{cf_id}", params={"fields": DEFINITION_FIELDS}
        )
    except RTApiError as exc:
        ctx.logger.warning("custom_fields.definition_failed", custom_field=cf_id, error=str(exc))
        return None
    if not isinstance(body, Mapping) or str(body.get("Disabled", "")) == "1":
        return None
    return dict(body)


async def _definitions(ctx: OperationContext, ids: list[str]) -> list[dict[str, Any]]:
    results = await asyncio.gather(*(_definition(ctx, cf_id) for cf_id in ids))
    return [definition for definition in results if definition is not None and definition.get("Name")]


async def _select_options(ctx: OperationContext, definition: Mapping[str, Any]) -> list[dict[str, str]]:
    try:
        body = await ctx.transport.request(
            "GET", f"customfield/{definition['id']}/values", params={"per_page": 200}
        )
    except RTApiError as exc:
        ctx.logger.warning(
            "custom_fields.values_failed", custom_field=definition.get("Name"), error=str(exc)
        )
        return []
    options: list[dict[str, str]] = []
    for item in (body.get("items") or []) if isinstance(body, Mapping) else []:
        if not isinstance(item, Mapping):
            continue
        label = item.get("name") or item.get("Name")
        if label:
            options.append({"name": str(label), "value": str(label)})
    return options


def _max_values(definition: Mapping[str, Any]) -> int:
    raw = definition.get("MaxValues")
    if raw is None or raw == "":
        return 1
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 1


def build_descriptor(
    definition: Mapping[str, Any], options: list[dict[str, str]] | None = None
) -> dict[str, Any]:
    """Describe one custom field the way a field mapper expects it."""
    name = str(definition["Name"])
    cf_type = definition.get("Type")
    field_type = _FIELD_TYPES.get(str(cf_type), "string")
    multi = False
    if cf_type == "Select":
        max_values = _max_values(definition)
        multi = max_values == 0 or max_values > 1
        if options:
            field_type = "options"

    descriptor: dict[str, Any] = {
        "id": name,
        "displayName": f"{name} (multi)" if multi else name,
        "type": field_type,
        "required": False,
    }
    if cf_type == "Select" and options:
        descriptor["options"] = options
    return descriptor


async def list_ticket_custom_fields(
    ctx: OperationContext, params: CustomFieldListParams
) -> list[OutputItem]:
    queue_id: str | None = None
    if params.queue:
        queue_id = await resolve_queue_id(ctx.transport, params.queue)
    elif params.ticket_id:
        queue_id = await queue_id_from_ticket(ctx.transport, params.ticket_id)

    if queue_id is not None:
        listing = await ctx.transport.request(
            "GET", f"queue/{queue_id}/customfields", params={"per_page": 100}
        )
    else:
        listing = await ctx.transport.request(
            "POST",
            "customfields",
            params={"per_page": 100},
            json=[
                clause("Disabled", "=", "0"),
                clause("LookupType", "=", TICKET_CF_LOOKUP_TYPE),
            ],
        )

    definitions = await _definitions(ctx, _item_ids(listing))
    selects = [definition for definition in definitions if definition.get("Type") == "Select"]
    option_lists = await asyncio.gather(*(_select_options(ctx, definition) for definition in selects))
    options_by_name = {
        str(definition["Name"]): options for definition, options in zip(selects, option_lists)
    }

    ctx.logger.debug("custom_fields.listed", queue=queue_id, count=len(definitions))
    return [
        OutputItem(json=build_descriptor(definition, options_by_name.get(str(definition["Name"]))))
        for definition in definitions
    ]
