from __future__ import annotations

from copy import deepcopy
from typing import Any

from rt_connector.config.settings import Settings


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def make_settings(
    *,
    base_url: str = "https://rt.example",
    api_token: str = "test-token",
    debug_http: bool = False,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    data: dict[str, Any] = {
        "rt": {"base_url": base_url, "api_token": api_token, "debug_http": debug_http},
    }
    if overrides:
        data = _deep_merge(data, overrides)
    return Settings.from_mapping(data)
