from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    return datetime.now(UTC)


def format_rt_datetime(dt: datetime) -> str:
    """RT's TicketSQL date format: ``YYYY-MM-DD HH:MM:SS`` in UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S")


def normalize_rt_timestamp(value: str) -> str:
    """Coerce ISO-8601 (``2024-01-02T03:04:05Z``) into RT format; RT-format input passes through."""
    text = value.strip()
    if "T" in text:
        text = text[:19].replace("T", " ")
    return text.replace("Z", "").strip()
