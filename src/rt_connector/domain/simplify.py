from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def simplify_user_object(obj: Any) -> Any:
    """Reduce an RT user reference to EmailAddress, then Name, then id; else pass through."""
    if not isinstance(obj, Mapping):
        return obj
    email = obj.get("EmailAddress")
    if isinstance(email, str) and email:
        return email
    name = obj.get("Name")
    if isinstance(name, str) and name:
        return name
    if obj.get("id") is not None:
        return str(obj["id"])
    return obj


def flatten_custom_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    custom_fields = record.get("CustomFields")
    if not isinstance(custom_fields, Mapping):
        return dict(record)

    out = {key: value for key, value in record.items() if key != "CustomFields"}
    for name, value in custom_fields.items():
        if name in out:
            out[f"CF_{name}"] = value
        else:
            out[name] = value
    return out


def simplify_resource(
    record: Mapping[str, Any],
    *,
    user_fields: Iterable[str] = (),
    user_array_fields: Iterable[str] = (),
    flatten: bool = True,
) -> dict[str, Any]:
    out = flatten_custom_fields(record) if flatten else dict(record)

    for field in user_fields:
        if field in out and out[field] is not None:
            out[field] = simplify_user_object(out[field])

    for field in user_array_fields:
        value = out.get(field)
        if isinstance(value, list):
            out[field] = [simplify_user_object(item) for item in value]

    return out
