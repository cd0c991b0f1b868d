from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rt_connector.domain.ordering import locale_sort_key


def _collapse_values(values: Any) -> Any:
    if not isinstance(values, list) or not values:
        return None
    if len(values) == 1:
        return values[0]
    return list(values)


def normalize_custom_fields(raw: Any) -> dict[str, Any] | None:
    """
    Flatten RT's ``[{name, values: [...]}]`` custom field list into ``{name: value}``.

    Empty value lists become None, singletons unwrap, multi-values stay lists.
    An already-flat mapping is only re-sorted. Anything else returns None.
    """
    if isinstance(raw, list):
        flat: dict[str, Any] = {}
        for entry in raw:
            if not isinstance(entry, Mapping):
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                continue
            flat[name] = _collapse_values(entry.get("values"))
    elif isinstance(raw, Mapping):
        flat = dict(raw)
    else:
        return None

    return {key: flat[key] for key in sorted(flat, key=locale_sort_key)}
