"""Polling trigger: emit tickets whose Created/LastUpdated moved past the stored watermark."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from rt_connector.adapters.rt.errors import RTApiError, TriggerError
from rt_connector.adapters.rt.fields import ticket_field_params
from rt_connector.adapters.rt.pagination import MAX_PER_PAGE
from rt_connector.app.params import TriggerParams
from rt_connector.domain.resources import TICKET, transform_resources
from rt_connector.domain.time_utils import format_rt_datetime, normalize_rt_timestamp, now_utc
from rt_connector.host import OutputItem, RTTransport, StaticData
from rt_connector.observability.logger import null_logger

MANUAL_LIMIT = 10


def state_key(trigger_on_field: str) -> str:
    # One watermark per field so Created and LastUpdated triggers never share state.
    return f"lastTimeChecked_{trigger_on_field}"


def build_query(ticket_sql: str, trigger_on_field: str, last_checked: str) -> str:
    return f"({ticket_sql}) AND {trigger_on_field} > '{normalize_rt_timestamp(last_checked)}'"


async def _fetch_tickets(
    transport: RTTransport,
    *,
    query: str,
    params: TriggerParams,
    order: str,
    limit: int,
) -> list[Any]:
    tickets: list[Any] = []
    page = 1
    while len(tickets) < limit:
        per_page = min(limit - len(tickets), MAX_PER_PAGE)
        body = await transport.request(
            "POST",
            "tickets",
            params={
                **ticket_field_params(params.output_fields),
                "orderby": params.trigger_on_field,
                "order": order,
                "per_page": per_page,
                "page": page,
            },
            data={"query": query},
        )
        items = body.get("items") if isinstance(body, Mapping) else None
        items = items or []
        tickets.extend(items)
        if len(items) != per_page:
            break
        page += 1
    return tickets


async def poll_tickets(
    transport: RTTransport,
    params: TriggerParams,
    static_data: StaticData,
    *,
    manual: bool = False,
    now: datetime | None = None,
    logger: Any = None,
) -> list[OutputItem] | None:
    """Run one poll cycle; returns ``None`` when nothing matched.

    ``static_data`` is the host's persistent per-trigger store and is only
    advanced in normal (non-manual) mode.
    """
    log = logger or null_logger()
    key = state_key(params.trigger_on_field)
    if not static_data.get(key):
        static_data[key] = format_rt_datetime(now or now_utc())
        log.info("trigger.initialized", state_key=key, value=static_data[key])
    previous = static_data[key]

    if manual:
        query, order, limit = params.ticket_sql, "DESC", min(params.limit, MANUAL_LIMIT)
    else:
        query, order, limit = (
            build_query(params.ticket_sql, params.trigger_on_field, previous),
            "ASC",
            params.limit,
        )
    log.debug("trigger.poll", query=query, order=order, limit=limit, manual=manual)

    try:
        tickets = await _fetch_tickets(transport, query=query, params=params, order=order, limit=limit)
    except RTApiError as exc:
        raise TriggerError(f"Polling tickets failed: {exc}") from exc

    log.info("trigger.fetched", count=len(tickets), ids=[_ticket_id(t) for t in tickets])
    if not tickets:
        return None

    if not manual:
        latest = tickets[-1]
        stamp = latest.get(params.trigger_on_field) if isinstance(latest, Mapping) else None
        if isinstance(stamp, str) and stamp:
            static_data[key] = normalize_rt_timestamp(stamp)
            log.info("trigger.advanced", state_key=key, previous=previous, current=static_data[key])
        else:
            log.warning("trigger.missing_timestamp", state_key=key, field=params.trigger_on_field)

    return [
        OutputItem(json=ticket if isinstance(ticket, dict) else {"result": ticket})
        for ticket in transform_resources(tickets, TICKET, simplify=params.simplify)
    ]


def _ticket_id(ticket: Any) -> Any:
    return ticket.get("id") if isinstance(ticket, Mapping) else None
