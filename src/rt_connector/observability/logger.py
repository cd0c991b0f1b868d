from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from rt_connector.config.redact import redact_settings_dict

_FORMATS = frozenset({"json", "human"})


def _scrub_event_dict(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    return redact_settings_dict(event_dict)


def _pick_format(explicit: str | None, json_logs: bool) -> str:
    for candidate in (explicit, os.environ.get("LOG_FORMAT")):
        normalized = (candidate or "").strip().lower()
        if normalized in _FORMATS:
            return normalized
    return "json" if json_logs else "human"


def _drop_event(_: Any, __: str, ___: dict[str, Any]) -> dict[str, Any]:
    raise structlog.DropEvent


def null_logger() -> Any:
    """A structlog logger that drops every event; the default for library entry points."""
    return structlog.wrap_logger(
        structlog.ReturnLogger(),
        processors=[_drop_event],
        wrapper_class=structlog.BoundLogger,
    )


@contextmanager
def bound_operation(resource: str, operation: str) -> Iterator[None]:
    """Tag every event logged inside the block with the connector operation being run."""
    with structlog.contextvars.bound_contextvars(rt_resource=resource, rt_operation=operation):
        yield


def configure_logging(
    *,
    log_level: str = "INFO",
    json_logs: bool = False,
    log_format: str | None = None,
) -> None:
    """
    Route structlog and stdlib logging through one stderr handler.

    An explicit `log_format` wins, then LOG_FORMAT=human|json, then `json_logs`.
    LOG_LEVEL in the environment overrides `log_level`.
    """
    level = ((os.environ.get("LOG_LEVEL") or "").strip() or log_level).upper()
    fmt = _pick_format(log_format, json_logs)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _scrub_event_dict,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # httpx and httpcore log every request line; the client's own debug_http covers that.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
