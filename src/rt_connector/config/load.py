from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from rt_connector.config.settings import Settings
from rt_connector.config.validate import (
    ConfigValidationError,
    ConfigValidationIssue,
    issues_from_pydantic_error,
    validate_settings,
)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")

_RT_REQUIRED_HINTS = {
    "rt.base_url": "Set `RT_BASE_URL` (or YAML `rt.base_url`).",
    "rt.api_token": "Set `RT_API_TOKEN` (or YAML `rt.api_token`).",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        kind = "Invalid YAML" if isinstance(exc, yaml.YAMLError) else "Unable to read config file"
        raise ConfigValidationError([ConfigValidationIssue(str(path), f"{kind}: {exc}")]) from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigValidationError([ConfigValidationIssue(str(path), "YAML root must be a mapping")])
    return raw


def _yaml_overrides(config_path: str | Path | None) -> dict[str, Any]:
    """YAML from the argument, CONFIG_PATH, or config/config.yaml; only explicit paths must exist."""
    explicit = config_path if config_path is not None else os.environ.get("CONFIG_PATH")
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise ConfigValidationError(
                [ConfigValidationIssue("CONFIG_PATH", f"Config file not found: {path}")]
            )
        return _read_yaml(path)
    return _read_yaml(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.exists() else {}


def _explain(issues: Iterable[ConfigValidationIssue]) -> Iterator[ConfigValidationIssue]:
    for issue in issues:
        # A missing `rt` section means both connection fields are missing.
        if issue.path == "rt" and "Field required" in issue.message:
            yield from (ConfigValidationIssue(p, f"Field required. {h}") for p, h in _RT_REQUIRED_HINTS.items())
        elif issue.path in _RT_REQUIRED_HINTS:
            yield ConfigValidationIssue(issue.path, f"{issue.message}. {_RT_REQUIRED_HINTS[issue.path]}")
        else:
            yield issue


def load_settings(*, config_path: str | Path | None = None) -> Settings:
    """
    Resolve settings from `.env`, the environment and optional YAML, then apply policy checks.

    Environment values win over YAML; `.env` never overrides variables already set.
    """
    if Path(".env").is_file():
        load_dotenv(".env", override=False)

    yaml_data = _yaml_overrides(config_path)
    try:
        settings = Settings(**yaml_data)
    except ValidationError as exc:
        raise ConfigValidationError(list(_explain(issues_from_pydantic_error(exc)))) from exc

    validate_settings(settings)
    return settings
