from __future__ import annotations

import re
import time
from collections.abc import Iterable, Mapping
from typing import Any

from rt_connector.domain.mime import base_mime_type, is_multipart
from rt_connector.domain.ordering import locale_sort_key
from rt_connector.domain.simplify import simplify_user_object

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_NAME_CHARS_RE = re.compile(r"[^a-zA-Z0-9_.-]")
_ORIGINAL_CONTENT_TYPE_RE = re.compile(r"X-RT-Original-Content-Type:\s*([^\n]+)", re.IGNORECASE)


def _coerce_length(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = re.match(r"\s*([+-]?\d+)", value)
        return int(match.group(1)) if match else 0
    return 0


def normalize_attachment(metadata: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(metadata)
    out["ContentLength"] = _coerce_length(out.get("ContentLength"))
    if out.get("id") is not None:
        out["id"] = str(out["id"])
    return out


def transaction_ref_id(value: Any) -> Any:
    """``{type: transaction, id}`` collapses to its id; scalars pass through."""
    if isinstance(value, Mapping):
        if value.get("type") == "transaction" and value.get("id"):
            return value["id"]
        return dict(value)
    return value


def transaction_group_key(value: Any) -> str | None:
    ref = value.get("id") if isinstance(value, Mapping) else value
    if ref is None or ref == "":
        return None
    return str(ref)


def effective_content_type(metadata: Mapping[str, Any]) -> str:
    content_type = metadata.get("ContentType")
    resolved = content_type if isinstance(content_type, str) and content_type else (
        "application/octet-stream"
    )
    headers = metadata.get("Headers")
    if isinstance(headers, str):
        match = _ORIGINAL_CONTENT_TYPE_RE.search(headers)
        if match:
            resolved = match.group(1).strip()
    return resolved


def is_placeholder(metadata: Mapping[str, Any]) -> bool:
    """RT stores multipart containers as empty, nameless attachments."""
    filename = metadata.get("Filename")
    has_name = isinstance(filename, str) and bool(filename.strip())
    return _coerce_length(metadata.get("ContentLength")) == 0 and not has_name


def pick_content_attachment(attachments: Iterable[Mapping[str, Any]]) -> Mapping[str, Any] | None:
    first_html: Mapping[str, Any] | None = None
    first_plain: Mapping[str, Any] | None = None
    for att in attachments:
        content_type = att.get("ContentType")
        if is_multipart(content_type):
            continue
        mime = base_mime_type(content_type)
        if mime == "text/html" and first_html is None:
            first_html = att
        elif mime == "text/plain" and first_plain is None:
            first_plain = att
    return first_html or first_plain


def simplified_attachment(
    metadata: Mapping[str, Any],
    *,
    include_content: bool = False,
    include_transaction_id: bool = False,
    binary_property_name: str | None = None,
) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": metadata.get("id"),
        "Filename": metadata.get("Filename"),
        "ContentType": metadata.get("ContentType"),
        "ContentLength": metadata.get("ContentLength"),
    }
    if include_transaction_id and metadata.get("TransactionId"):
        out["TransactionId"] = transaction_ref_id(metadata["TransactionId"])
    if metadata.get("Creator"):
        out["Creator"] = simplify_user_object(metadata["Creator"])
    if include_content and metadata.get("Content") is not None:
        out["Content"] = metadata["Content"]
    if binary_property_name:
        out["binaryPropertyName"] = binary_property_name
    return out


def binary_property_name(metadata: Mapping[str, Any], used_names: set[str]) -> str:
    """Filesystem-safe, unique slot name derived from the attachment filename."""
    id_part = str(metadata["id"]) if metadata.get("id") else str(time.time_ns() // 1_000_000)
    filename = metadata.get("Filename")
    base = ""
    if isinstance(filename, str) and filename:
        base = _UNSAFE_NAME_CHARS_RE.sub("", _WHITESPACE_RE.sub("_", filename))
    base = base or f"attachment_{id_part}"

    candidate = base
    suffix = 1
    while candidate in used_names:
        candidate = f"{base}_{suffix}"
        suffix += 1
    used_names.add(candidate)
    return candidate


def attachment_sort_key(metadata: Mapping[str, Any]) -> tuple[Any, ...]:
    filename = metadata.get("Filename")
    return (
        locale_sort_key(filename if isinstance(filename, str) else ""),
        locale_sort_key(str(metadata.get("id") or "")),
    )
