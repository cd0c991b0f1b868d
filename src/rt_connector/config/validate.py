from __future__ import annotations

import ipaddress
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlsplit

from pydantic import ValidationError

from rt_connector.config.settings import Settings

ALLOWED_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


@dataclass(frozen=True)
class ConfigValidationIssue:
    path: str
    message: str


class ConfigValidationError(ValueError):
    def __init__(self, issues: Iterable[ConfigValidationIssue]):
        self.issues = list(issues)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = ["Configuration is invalid:"]
        for issue in self.issues:
            lines.append(f"- {issue.path}: {issue.message}")
        return "\n".join(lines)


def issues_from_pydantic_error(error: ValidationError) -> list[ConfigValidationIssue]:
    issues: list[ConfigValidationIssue] = []
    for item in error.errors(include_url=False):
        loc = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        issues.append(ConfigValidationIssue(path=loc, message=item.get("msg", "Invalid value")))
    return issues


def _is_local_upstream_host(host: str) -> bool:
    normalized = host.strip().lower().rstrip(".")
    if normalized in {"localhost", "localhost.localdomain"}:
        return True
    try:
        ip = ipaddress.ip_address(normalized.strip("[]"))
    except ValueError:
        return False
    return ip.is_loopback or ip.is_link_local or ip.is_unspecified


def _check_log_level(settings: Settings) -> ConfigValidationIssue | None:
    level = settings.observability.log_level
    if level.upper() in ALLOWED_LOG_LEVELS:
        return None
    return ConfigValidationIssue(
        "observability.log_level",
        f"Unsupported log level {level!r} (allowed: {sorted(ALLOWED_LOG_LEVELS)})",
    )


def _check_plain_http(settings: Settings) -> ConfigValidationIssue | None:
    if settings.rt.base_url.scheme != "http" or settings.hardening.transport.allow_insecure_http:
        return None
    return ConfigValidationIssue(
        "rt.base_url",
        "Plain HTTP would send the RT token in clear text. "
        "Use https:// or set hardening.transport.allow_insecure_http=true.",
    )


def _check_tls_verification(settings: Settings) -> ConfigValidationIssue | None:
    if settings.rt.verify_tls or settings.hardening.transport.allow_insecure_tls:
        return None
    return ConfigValidationIssue(
        "rt.verify_tls",
        "Disabling TLS verification requires hardening.transport.allow_insecure_tls=true.",
    )


def _check_local_upstream(settings: Settings) -> ConfigValidationIssue | None:
    if settings.hardening.transport.allow_local_upstreams:
        return None
    host = urlsplit(str(settings.rt.base_url)).hostname
    if not host or not _is_local_upstream_host(host):
        return None
    return ConfigValidationIssue(
        "rt.base_url",
        "Loopback/link-local RT hosts are blocked by default. "
        "Set hardening.transport.allow_local_upstreams=true to override.",
    )


_CHECKS = (_check_log_level, _check_plain_http, _check_tls_verification, _check_local_upstream)


def validate_settings(settings: Settings) -> None:
    """Policy checks that pydantic field types cannot express; raises with every failure at once."""
    issues = [issue for check in _CHECKS if (issue := check(settings)) is not None]
    if issues:
        raise ConfigValidationError(issues)
