from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _numeric_messages(body: Mapping[str, Any]) -> list[Any] | None:
    keys = [str(k) for k in body]
    if not keys or not all(k.isdigit() for k in keys):
        return None
    return [body[k] for k in sorted(body, key=lambda k: int(str(k)))]


def transform_operation_response(body: Any, *, ticket_id: str | None = None) -> Any:
    """
    Normalise RT's message-list replies (update/comment/correspond).

    RT answers with a JSON array of status messages; some hosts surface it as an
    object with numeric keys. Either becomes ``{success, ticketId?, messages}``.
    Other bodies are returned unchanged.
    """
    if isinstance(body, list) and all(isinstance(m, str) for m in body):
        messages: list[Any] | None = list(body)
    elif isinstance(body, Mapping):
        messages = _numeric_messages(body)
    else:
        messages = None

    if messages is None:
        return body

    out: dict[str, Any] = {"success": True}
    if ticket_id:
        out["ticketId"] = ticket_id
    out["messages"] = messages
    return out
