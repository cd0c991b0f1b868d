from __future__ import annotations

import re

_STRUCTURED_SUFFIX_RE = re.compile(r"\+(xml|json|yaml|yml|html|xhtml)$")

# Unknown application/* types are treated as binary.
TEXTUAL_APPLICATION_TYPES = frozenset(
    {
        "application/json",
        "application/yaml",
        "application/yml",
        "application/xml",
        "application/xhtml+xml",
        "application/javascript",
        "application/x-javascript",
        "application/ecmascript",
        "application/x-www-form-urlencoded",
        "application/ld+json",
        "application/manifest+json",
        "application/vnd.api+json",
        "application/graphql",
        "application/x-sh",
        "application/x-csh",
        "application/sql",
    }
)


def base_mime_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.lower().split(";", 1)[0].strip()


def is_text_like(content_type: str | None) -> bool:
    normalized = base_mime_type(content_type)
    if normalized.startswith(("text/", "message/")):
        return True
    if _STRUCTURED_SUFFIX_RE.search(normalized):
        return True
    return normalized in TEXTUAL_APPLICATION_TYPES


def is_multipart(content_type: str | None) -> bool:
    return base_mime_type(content_type).startswith("multipart/")


def latin1_bytes(raw: str) -> bytes:
    """Reinterpret a one-char-per-byte string as the bytes it carries."""
    try:
        return raw.encode("latin-1")
    except UnicodeEncodeError:
        return bytes(ord(ch) & 0xFF for ch in raw)
