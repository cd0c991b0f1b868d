from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rt_connector.domain.custom_fields import normalize_custom_fields
from rt_connector.domain.links import classify_links
from rt_connector.domain.ordering import (
    QUEUE_PREFERRED_ORDER,
    TICKET_PREFERRED_ORDER,
    USER_PREFERRED_ORDER,
    sort_with_preferred_order,
)
from rt_connector.domain.simplify import simplify_resource


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    name: str
    preferred_order: tuple[str, ...]
    user_fields: tuple[str, ...] = ()
    user_array_fields: tuple[str, ...] = ()
    classify_links: bool = False
    collapse_queue: bool = False


TICKET = ResourceDescriptor(
    name="ticket",
    preferred_order=TICKET_PREFERRED_ORDER,
    user_fields=("Creator", "LastUpdatedBy", "Owner"),
    user_array_fields=("Requestors", "Cc", "AdminCc"),
    classify_links=True,
    collapse_queue=True,
)
QUEUE = ResourceDescriptor(
    name="queue",
    preferred_order=QUEUE_PREFERRED_ORDER,
    user_fields=("Creator", "LastUpdatedBy"),
)
USER = ResourceDescriptor(
    name="user",
    preferred_order=USER_PREFERRED_ORDER,
    user_fields=("Creator", "LastUpdatedBy"),
)


def transform_resource(
    record: Mapping[str, Any], descriptor: ResourceDescriptor, *, simplify: bool
) -> dict[str, Any]:
    out = dict(record)

    custom_fields = normalize_custom_fields(out.get("CustomFields"))
    if custom_fields is not None:
        out["CustomFields"] = custom_fields

    if descriptor.classify_links and isinstance(out.get("_hyperlinks"), list):
        out["Links"] = classify_links(out.pop("_hyperlinks"))

    if simplify:
        out = simplify_resource(
            out,
            user_fields=descriptor.user_fields,
            user_array_fields=descriptor.user_array_fields,
        )
        queue = out.get("Queue")
        if descriptor.collapse_queue and isinstance(queue, Mapping) and queue.get("Name"):
            out["Queue"] = queue["Name"]

    return sort_with_preferred_order(out, descriptor.preferred_order)


def transform_resources(
    records: list[Any], descriptor: ResourceDescriptor, *, simplify: bool
) -> list[Any]:
    return [
        transform_resource(r, descriptor, simplify=simplify) if isinstance(r, Mapping) else r
        for r in records
    ]
