from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from rt_connector.adapters.attachments.fetch import (
    fetch_attachments_bulk,
    fetch_transaction_attachments,
)
from rt_connector.adapters.rt.errors import AttachmentFetchError
from rt_connector.domain.attachment_meta import (
    attachment_sort_key,
    binary_property_name,
    effective_content_type,
    is_placeholder,
    normalize_attachment,
    pick_content_attachment,
    simplified_attachment,
)
from rt_connector.domain.mime import is_text_like, latin1_bytes
from rt_connector.domain.simplify import simplify_user_object
from rt_connector.host import (
    BinaryPayload,
    BinaryPreparer,
    OutputItem,
    RTTransport,
    prepare_binary_data,
)
from rt_connector.observability.logger import null_logger

CONTENT_TRANSACTION_TYPES = frozenset(
    {"Comment", "Create", "Correspond", "EmailRecord", "CommentEmailRecord"}
)
TRANSACTION_BATCH_SIZE = 12

_CONSUMED_KEYS = frozenset(
    {
        "id",
        "Type",
        "Created",
        "Description",
        "Creator",
        "_url",
        "_hyperlinks",
        "Content",
        "Attachments",
    }
)
_HEADER_KEYS = ("Created", "Description", "Creator", "_url")
_CHANGE_KEYS = ("Field", "OldValue", "NewValue", "Data")


@dataclass(frozen=True, slots=True)
class _Context:
    transport: RTTransport
    include_content: bool
    include_attachments: bool
    simplify: bool
    binary_preparer: BinaryPreparer
    log: Any
    bulk: Mapping[str, list[dict[str, Any]]]


@dataclass(slots=True)
class _Resolved:
    attachments: list[dict[str, Any]] = field(default_factory=list)
    total: int | None = None
    content: str | None = None
    content_attachment_id: str | None = None


def is_content_transaction(transaction: Mapping[str, Any]) -> bool:
    return transaction.get("Type") in CONTENT_TRANSACTION_TYPES


def _ticket_id(transaction: Mapping[str, Any]) -> Any:
    obj = transaction.get("Object")
    if isinstance(obj, Mapping):
        if obj.get("type") == "ticket" and obj.get("id"):
            return obj["id"]
        return None
    object_id = transaction.get("ObjectId")
    object_type = transaction.get("ObjectType")
    if object_id and object_type and "ticket" in str(object_type).lower():
        return object_id
    return None


async def _resolve_attachments(transaction: Mapping[str, Any], ctx: _Context) -> _Resolved:
    resolved = _Resolved()
    if not is_content_transaction(transaction):
        return resolved
    if not (ctx.include_content or ctx.include_attachments):
        return resolved

    transaction_id = str(transaction.get("id"))
    bulk_items = ctx.bulk.get(transaction_id)
    if bulk_items is not None:
        resolved.attachments = bulk_items
        # Bulk responses carry no per-transaction total; report what was fetched.
        resolved.total = len(bulk_items)
    else:
        ctx.log.debug("transactions.attachments_fallback", transaction_id=transaction_id)
        try:
            page = await fetch_transaction_attachments(
                ctx.transport,
                transaction_id,
                include_content=True,
                fetch_all=ctx.include_attachments,
            )
        except AttachmentFetchError as exc:
            ctx.log.warning(
                "transactions.attachments_fetch_failed",
                transaction_id=transaction_id,
                error=str(exc),
            )
            return resolved
        resolved.attachments = page.items
        resolved.total = page.total

    if ctx.include_content:
        preferred = pick_content_attachment(resolved.attachments)
        if preferred is not None:
            resolved.content_attachment_id = str(preferred.get("id"))
            raw = preferred.get("Content")
            if isinstance(raw, str) and raw:
                resolved.content = raw
    return resolved


async def _shape_attachments(
    resolved: _Resolved, ctx: _Context
) -> tuple[list[dict[str, Any]], dict[str, BinaryPayload]]:
    shaped: list[dict[str, Any]] = []
    binary: dict[str, BinaryPayload] = {}
    used_names: set[str] = set()

    for attachment in resolved.attachments:
        if str(attachment.get("id")) == resolved.content_attachment_id:
            continue
        if is_placeholder(attachment):
            continue

        raw = attachment.get("Content") if ctx.include_attachments else None
        metadata = normalize_attachment(attachment)
        metadata.pop("Content", None)

        if not isinstance(raw, str) or not raw:
            shaped.append(simplified_attachment(metadata) if ctx.simplify else metadata)
            continue

        content_type = effective_content_type(attachment)
        if is_text_like(content_type):
            metadata["Content"] = raw
            shaped.append(
                simplified_attachment(metadata, include_content=True) if ctx.simplify else metadata
            )
            continue

        slot = binary_property_name(metadata, used_names)
        filename = metadata.get("Filename")
        file_name = filename if isinstance(filename, str) and filename.strip() else slot
        binary[slot] = await ctx.binary_preparer(
            latin1_bytes(raw), file_name, metadata.get("ContentType") or None
        )
        if ctx.simplify:
            shaped.append(simplified_attachment(metadata, binary_property_name=slot))
        else:
            shaped.append({**metadata, "binaryPropertyName": slot})

    shaped.sort(key=attachment_sort_key)
    return shaped, binary


def _simplified_transaction(record: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": record.get("id"),
        "Type": record.get("Type"),
        "Created": record.get("Created"),
    }
    if record.get("TicketId"):
        out["TicketId"] = record["TicketId"]
    for key in (*_CHANGE_KEYS, "Description", "Content"):
        if record.get(key) is not None:
            out[key] = record[key]
    if record.get("Creator"):
        out["Creator"] = simplify_user_object(record["Creator"])
    out["Attachments"] = record.get("Attachments", [])
    out["AttachmentsTotal"] = record.get("AttachmentsTotal")
    out["AttachmentsShowing"] = record.get("AttachmentsShowing", 0)
    return out


async def _process_one(transaction: Mapping[str, Any], ctx: _Context) -> OutputItem:
    resolved = await _resolve_attachments(transaction, ctx)
    attachments, binary = await _shape_attachments(resolved, ctx)

    record: dict[str, Any] = {"id": transaction.get("id"), "Type": transaction.get("Type")}
    for key in _HEADER_KEYS:
        if transaction.get(key) is not None:
            record[key] = transaction[key]
    ticket_id = _ticket_id(transaction)
    if ticket_id is not None:
        record["TicketId"] = ticket_id
    for key in _CHANGE_KEYS:
        if key in transaction:
            record[key] = transaction[key]
    if ctx.include_content and resolved.content:
        record["Content"] = resolved.content

    record["Attachments"] = attachments
    record["AttachmentsTotal"] = resolved.total
    record["AttachmentsShowing"] = len(attachments)

    for key, value in transaction.items():
        if key not in _CONSUMED_KEYS:
            record[key] = value

    if ctx.simplify:
        record = _simplified_transaction(record)
    return OutputItem(json=record, binary=binary or None)


async def process_transactions(
    transport: RTTransport,
    transactions: Sequence[Mapping[str, Any]],
    *,
    include_content: bool = False,
    include_attachments: bool = False,
    simplify: bool = False,
    binary_preparer: BinaryPreparer = prepare_binary_data,
    logger: Any | None = None,
) -> list[OutputItem]:
    """
    Shape RT transactions, resolving message content and attachments.

    Attachments for all content-bearing transactions are fetched in one bulk query
    up front; transactions missing from the bulk result fall back to a
    per-transaction fetch. Transactions are processed in concurrent batches of
    ``TRANSACTION_BATCH_SIZE``; output order matches input order. Attachment fetch
    failures degrade to empty attachment lists.
    """
    log = logger or null_logger()
    log.debug(
        "transactions.process",
        count=len(transactions),
        include_content=include_content,
        include_attachments=include_attachments,
        simplify=simplify,
    )

    bulk: dict[str, list[dict[str, Any]]] = {}
    if include_content or include_attachments:
        ids = [str(t.get("id")) for t in transactions if is_content_transaction(t)]
        if ids:
            try:
                bulk = await fetch_attachments_bulk(transport, ids, include_content=True)
            except AttachmentFetchError as exc:
                log.warning("transactions.bulk_fetch_failed", count=len(ids), error=str(exc))
            else:
                log.debug("transactions.bulk_fetched", transactions=len(bulk))

    ctx = _Context(
        transport=transport,
        include_content=include_content,
        include_attachments=include_attachments,
        simplify=simplify,
        binary_preparer=binary_preparer,
        log=log,
        bulk=bulk,
    )

    results: list[OutputItem] = []
    for start in range(0, len(transactions), TRANSACTION_BATCH_SIZE):
        batch = transactions[start : start + TRANSACTION_BATCH_SIZE]
        results.extend(await asyncio.gather(*(_process_one(t, ctx) for t in batch)))
    return results
