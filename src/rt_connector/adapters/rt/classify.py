from __future__ import annotations

import json
import re
from typing import Any

from rt_connector.adapters.rt.errors import (
    EmbeddedError,
    EmbeddedNotFoundError,
    HttpError,
    NotFoundError,
    RTApiError,
)

_NOT_FOUND_MARKERS = ("No matching results", "not found")
_EMBEDDED_ERROR_RE = re.compile(r"Error: (.*)")


def _resolve_message(body: Any) -> str:
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    try:
        return json.dumps(body, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(body)


def _embedded_message(body: str) -> str | None:
    if not body.startswith("RT/"):
        return None
    match = _EMBEDDED_ERROR_RE.search(body)
    return match.group(1) if match else None


def classify_response(body: Any, status_code: int) -> RTApiError | None:
    """
    Decide whether an RT response is a failure.

    RT reports some application errors inside a 200 response as a plain-text status
    line (``RT/5.0.1 200 Ok ... Error: <message>``). Returns the error to raise, or
    None when the body should be passed through unchanged.
    """
    if isinstance(body, str) and any(marker in body for marker in _NOT_FOUND_MARKERS):
        embedded = _embedded_message(body)
        if embedded is not None:
            return EmbeddedNotFoundError(embedded)
        return NotFoundError(body)

    if 400 <= status_code < 600:
        return HttpError(
            f"HTTP Error {status_code}: {_resolve_message(body)}", status_code=status_code
        )

    if isinstance(body, str):
        embedded = _embedded_message(body)
        if embedded is not None:
            return EmbeddedError(embedded)

    return None


def raise_for_response(body: Any, status_code: int) -> Any:
    error = classify_response(body, status_code)
    if error is not None:
        raise error
    return body
