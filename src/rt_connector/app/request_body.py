from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from rt_connector.adapters.rt.errors import ParseError
from rt_connector.app.params import (
    TicketCreateParams,
    TicketMessageParams,
    TicketUpdateParams,
    UploadParams,
)
from rt_connector.host import BinaryPayload

_EMAIL_FIELDS = ("Requestor", "Cc", "AdminCc")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _put(body: dict[str, Any], key: str, value: Any) -> None:
    if _is_empty(value):
        return
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    body[key] = value


def _put_email_list(body: dict[str, Any], key: str, value: Any) -> None:
    # Ticket updates require arrays for watcher fields.
    if _is_empty(value):
        return
    if isinstance(value, str):
        value = [part.strip() for part in value.split(",")]
    body[key] = value


def merge_custom_fields(
    custom_fields_json: str | None,
    pairs: Iterable[Mapping[str, Any]] | None = None,
    mapped: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """JSON text is the base, name/value pairs override it, mapped values win.

    Invalid JSON raises ParseError.
    """
    base: dict[str, Any] = {}
    text = (custom_fields_json or "").strip()
    if text and text != "{}":
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON in custom fields: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise ParseError("Custom fields JSON must be an object")
        base = parsed
    for pair in pairs or ():
        name = pair.get("name")
        if isinstance(name, str) and name:
            base[name] = pair.get("value")
    return {**base, **dict(mapped or {})}


def _upload_entry(name: str, payload: BinaryPayload) -> dict[str, str]:
    return {
        "FileName": payload.file_name or name,
        "FileType": payload.mime_type or "application/octet-stream",
        "FileContent": payload.data,
    }


def attachments_for_upload(
    params: UploadParams, binary: Mapping[str, BinaryPayload] | None
) -> list[dict[str, Any]] | None:
    """Collect ``{FileName, FileType, FileContent}`` entries from the chosen source."""
    source = params.attachment_source
    if source == "none":
        return None

    if source == "manual":
        if not params.attachments_json:
            return None
        try:
            parsed = json.loads(params.attachments_json)
        except ValueError as exc:
            raise ParseError("Invalid JSON in Attachments field") from exc
        return parsed if isinstance(parsed, list) else None

    available = dict(binary or {})
    if source == "allBinaryData":
        names = list(available)
    else:
        names = [p.strip() for p in (params.binary_properties or "").split(",") if p.strip()]

    entries = [
        _upload_entry(name, available[name])
        for name in names
        if name in available and available[name].data
    ]
    return entries or None


def _with_custom_fields(
    body: dict[str, Any], params: TicketCreateParams | TicketUpdateParams
) -> dict[str, Any]:
    merged = merge_custom_fields(
        params.custom_fields_json, params.custom_field_pairs, params.custom_fields
    )
    if merged:
        body["CustomFields"] = merged
    return body


def build_create_body(
    params: TicketCreateParams, binary: Mapping[str, BinaryPayload] | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {"Queue": params.queue, "Subject": params.subject}
    _put(body, "Requestor", params.requestor)
    _put(body, "Content", params.content)
    if params.content:
        body["ContentType"] = params.content_type or "text/html"

    for key, value in (
        ("Priority", params.priority),
        ("Status", params.status),
        ("Owner", params.owner),
        ("Cc", params.cc),
        ("AdminCc", params.admin_cc),
        ("Due", params.due),
        ("Starts", params.starts),
        ("TimeEstimated", params.time_estimated),
        ("SLA", params.sla),
    ):
        _put(body, key, value)

    attachments = attachments_for_upload(params, binary)
    if attachments:
        body["Attachments"] = attachments
    return _with_custom_fields(body, params)


def build_update_body(params: TicketUpdateParams) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for key, value in (
        ("Subject", params.subject),
        ("Queue", params.queue),
        ("Status", params.status),
        ("Priority", params.priority),
        ("Owner", params.owner),
        ("Requestor", params.requestor),
        ("Cc", params.cc),
        ("AdminCc", params.admin_cc),
        ("Due", params.due),
        ("Starts", params.starts),
        ("TimeEstimated", params.time_estimated),
        ("TimeWorked", params.time_worked),
        ("TimeLeft", params.time_left),
        ("SLA", params.sla),
    ):
        if key in _EMAIL_FIELDS:
            _put_email_list(body, key, value)
        else:
            _put(body, key, value)
    return _with_custom_fields(body, params)


def build_message_body(
    params: TicketMessageParams, binary: Mapping[str, BinaryPayload] | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "Content": params.content,
        "ContentType": params.content_type or "text/html",
    }
    _put(body, "Subject", params.subject)
    _put(body, "Status", params.status)
    _put(body, "TimeTaken", params.time_taken)

    attachments = attachments_for_upload(params, binary)
    if attachments:
        body["Attachments"] = attachments
    return body
