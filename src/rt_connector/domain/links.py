from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from rt_connector.domain.ordering import SortKey, locale_sort_key

TICKET_LINK_REFS = frozenset(
    {
        "refers-to",
        "referred-to-by",
        "depends-on",
        "depended-on-by",
        "parent",
        "child",
        "members",
        "member-of",
    }
)
ACTION_LINK_REFS = ("history", "correspond", "comment")


def _text(value: Any) -> SortKey:
    return locale_sort_key("" if value is None else str(value))


def _with_label(entry: dict[str, Any], link: Mapping[str, Any]) -> dict[str, Any]:
    if link.get("label"):
        entry["label"] = link["label"]
    return entry


def classify_links(hyperlinks: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Partition RT ``_hyperlinks`` descriptors into a ``Links`` object.

    Buckets: self, tickets (relations), external, actions, lifecycle, customfields and
    other. Empty list buckets are dropped; ``self`` and ``actions`` are always present.
    """
    self_url: str | None = None
    tickets: list[dict[str, Any]] = []
    external: list[dict[str, Any]] = []
    actions: dict[str, Any] = {ref: None for ref in ACTION_LINK_REFS}
    lifecycle: list[dict[str, Any]] = []
    customfields: list[dict[str, Any]] = []
    other: list[dict[str, Any]] = []

    for link in hyperlinks:
        if not isinstance(link, Mapping):
            continue
        ref = link.get("ref")
        url = link.get("_url")

        if ref == "self":
            self_url = url
        elif ref in TICKET_LINK_REFS:
            tickets.append(_with_label({"type": ref, "url": url, "id": link.get("id")}, link))
        elif ref == "external":
            external.append(_with_label({"url": url}, link))
        elif ref in ACTION_LINK_REFS:
            actions[ref] = url
        elif ref == "lifecycle":
            lifecycle.append(
                {
                    "label": link.get("label"),
                    "from": link.get("from"),
                    "to": link.get("to"),
                    "update": link.get("update"),
                    "url": url,
                }
            )
        elif ref == "customfield":
            entry = {"name": link.get("name"), "url": url}
            if link.get("id"):
                entry["id"] = link["id"]
            customfields.append(entry)
        else:
            other.append(dict(link))

    tickets.sort(key=lambda e: (_text(e.get("type")), _text(e.get("id"))))
    external.sort(key=lambda e: (_text(e.get("label")), _text(e.get("url"))))
    lifecycle.sort(key=lambda e: (_text(e.get("label")), _text(e.get("from")), _text(e.get("to"))))
    customfields.sort(key=lambda e: (_text(e.get("name")), _text(e.get("id"))))
    other.sort(key=lambda e: (_text(e.get("ref")), _text(e.get("id"))))

    links: dict[str, Any] = {"self": self_url}
    if tickets:
        links["tickets"] = tickets
    if external:
        links["external"] = external
    links["actions"] = actions
    if lifecycle:
        links["lifecycle"] = lifecycle
    if customfields:
        links["customfields"] = customfields
    if other:
        links["other"] = other
    return links
