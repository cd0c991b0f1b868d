from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Mapping
from typing import Any

SortKey = tuple[tuple[tuple[int, str], ...], str, str]


def _char_class(ch: str) -> int:
    # Root collation groups: spaces and punctuation, symbols, digits, then letters.
    category = unicodedata.category(ch)
    if category[0] in "PZC":
        return 0
    if category[0] == "S":
        return 1
    if category[0] == "N":
        return 2
    return 3


def locale_sort_key(text: str) -> SortKey:
    """
    Sort key approximating a root-locale collation.

    Primary: punctuation before symbols before digits before letters, accents folded,
    case-insensitive. Ties: lowercase before uppercase, then raw code points.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    primary = tuple((_char_class(ch), ch) for ch in folded)
    return (primary, text.swapcase(), text)


def sort_with_preferred_order(
    record: Mapping[str, Any], preferred_order: Iterable[str]
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in preferred_order:
        if key in record and key not in out:
            out[key] = record[key]
    for key in sorted((k for k in record if k not in out), key=locale_sort_key):
        out[key] = record[key]
    return out


TICKET_PREFERRED_ORDER: tuple[str, ...] = (
    "id",
    "Queue",
    "Subject",
    "Status",
    "Type",
    "Priority",
    "Created",
    "Creator",
    "LastUpdated",
    "LastUpdatedBy",
    "Owner",
    "Requestors",
    "Cc",
    "AdminCc",
    "CustomFields",
    "Links",
)

QUEUE_PREFERRED_ORDER: tuple[str, ...] = (
    "id",
    "Name",
    "Description",
    "Lifecycle",
    "Created",
    "LastUpdated",
    "Creator",
    "LastUpdatedBy",
    "CorrespondAddress",
    "CommentAddress",
    "SubjectTag",
    "SortOrder",
    "SLADisabled",
    "Disabled",
    "CustomFields",
    "_url",
    "type",
)

USER_PREFERRED_ORDER: tuple[str, ...] = (
    "id",
    "Name",
    "RealName",
    "EmailAddress",
    "Organization",
    "Created",
    "LastUpdated",
    "Creator",
    "LastUpdatedBy",
    "Address1",
    "Address2",
    "City",
    "State",
    "Zip",
    "Country",
    "MobilePhone",
    "HomePhone",
    "WorkPhone",
    "PagerPhone",
    "Timezone",
    "Lang",
    "Signature",
    "Comments",
    "CustomFields",
    "_url",
    "type",
    "Gecos",
    "NickName",
)
