from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rt_connector.adapters.rt.errors import AttachmentFetchError, RTApiError
from rt_connector.adapters.rt.fields import ATTACHMENT_LIST_FIELDS, USER_REF_FIELDS
from rt_connector.adapters.rt.pagination import MAX_PER_PAGE, PageResult, collect_pages
from rt_connector.domain.attachment_meta import transaction_group_key
from rt_connector.host import RTTransport


def _list_fields(*, include_content: bool, include_transaction_id: bool = False) -> str:
    fields = ATTACHMENT_LIST_FIELDS
    if include_transaction_id:
        fields += ",TransactionId"
    if include_content:
        fields += ",Content"
    return fields


async def fetch_transaction_attachments(
    transport: RTTransport,
    transaction_id: str,
    *,
    include_content: bool,
    fetch_all: bool,
) -> PageResult:
    """
    GET transaction/<id>/attachments.

    ``total`` is the server-reported count of the first page.
    Raises AttachmentFetchError on any API failure.
    """
    try:
        return await collect_pages(
            transport,
            "GET",
            f"transaction/{transaction_id}/attachments",
            params={
                "fields": _list_fields(include_content=include_content),
                "fields[Creator]": USER_REF_FIELDS,
            },
            per_page=MAX_PER_PAGE,
            fetch_all=fetch_all,
        )
    except RTApiError as exc:
        raise AttachmentFetchError(
            f"Unable to fetch attachments for transaction {transaction_id}: {exc!s}"
        ) from exc


def _as_int_ids(transaction_ids: Iterable[str]) -> list[int | str]:
    out: list[int | str] = []
    for tid in transaction_ids:
        try:
            out.append(int(tid))
        except ValueError:
            out.append(tid)
    return out


async def fetch_attachments_bulk(
    transport: RTTransport,
    transaction_ids: list[str],
    *,
    include_content: bool,
) -> dict[str, list[dict[str, Any]]]:
    """
    POST attachments filtered by ``TransactionId IN [...]``, grouped by transaction id.

    Every requested id gets an entry (possibly empty), so callers can tell
    "no attachments" from "not fetched". Raises AttachmentFetchError on failure.
    """
    if not transaction_ids:
        return {}

    try:
        result = await collect_pages(
            transport,
            "POST",
            "attachments",
            params={
                "fields": _list_fields(include_content=include_content, include_transaction_id=True),
                "fields[Creator]": USER_REF_FIELDS,
            },
            json=[
                {
                    "field": "TransactionId",
                    "operator": "IN",
                    "value": _as_int_ids(transaction_ids),
                }
            ],
            per_page=MAX_PER_PAGE,
        )
    except RTApiError as exc:
        raise AttachmentFetchError(f"Bulk attachment fetch failed: {exc!s}") from exc

    grouped: dict[str, list[dict[str, Any]]] = {str(tid): [] for tid in transaction_ids}
    for attachment in result.items:
        if not isinstance(attachment, dict):
            continue
        key = transaction_group_key(attachment.get("TransactionId"))
        if key is None:
            continue
        grouped.setdefault(key, []).append(attachment)
    return grouped
