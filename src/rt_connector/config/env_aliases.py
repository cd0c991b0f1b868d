"""Flat environment variable names (``RT_BASE_URL`` etc.) mapped onto nested settings.

Legacy names still resolve but emit a DeprecationWarning.
"""
from __future__ import annotations

import os
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EnvAlias:
    name: str
    path: tuple[str, ...]
    # Set on legacy names: the variable that replaces this one.
    replaced_by: str | None = None


ENV_ALIASES: tuple[EnvAlias, ...] = (
    EnvAlias("RT_BASE_URL", ("rt", "base_url")),
    EnvAlias("RT_API_TOKEN", ("rt", "api_token")),
    EnvAlias("RT_TIMEOUT_SECONDS", ("rt", "timeout_seconds")),
    EnvAlias("RT_VERIFY_TLS", ("rt", "verify_tls")),
    EnvAlias("RT_DEBUG_HTTP", ("rt", "debug_http")),
    EnvAlias("LOG_LEVEL", ("observability", "log_level")),
    EnvAlias("LOG_FORMAT", ("observability", "log_format")),
    EnvAlias("LOG_JSON", ("observability", "json_logs")),
    EnvAlias("HARDENING_TRANSPORT_TRUST_ENV", ("hardening", "transport", "trust_env")),
    EnvAlias("HARDENING_TRANSPORT_ALLOW_INSECURE_HTTP", ("hardening", "transport", "allow_insecure_http")),
    EnvAlias("HARDENING_TRANSPORT_ALLOW_INSECURE_TLS", ("hardening", "transport", "allow_insecure_tls")),
    EnvAlias("HARDENING_TRANSPORT_ALLOW_LOCAL_UPSTREAMS", ("hardening", "transport", "allow_local_upstreams")),
    # Older host configs named the instance URL after the credential field.
    EnvAlias("RT_INSTANCE_URL", ("rt", "base_url"), replaced_by="RT_BASE_URL"),
)


def _set_nested(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    node = data
    for part in path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[path[-1]] = value


def flat_env_to_nested(env: Mapping[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for alias in ENV_ALIASES:
        value = env.get(alias.name)
        if not value:
            continue
        if alias.replaced_by is not None:
            if env.get(alias.replaced_by):
                continue
            warnings.warn(
                f"Environment variable '{alias.name}' is deprecated. Use '{alias.replaced_by}' instead.",
                DeprecationWarning,
                stacklevel=3,
            )
        _set_nested(data, alias.path, value)
    return data


def get_flat_env_settings_source() -> dict[str, Any]:
    return flat_env_to_nested(os.environ)
