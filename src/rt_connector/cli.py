"""CLI commands for rt-connector.

This module provides command-line utilities for:
- Validating configuration
- Dumping configuration (with secrets redacted)
- Checking that the configured RT instance answers with the configured token
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import structlog

from rt_connector._version import __version__
from rt_connector.adapters.rt.client import client_from_credentials
from rt_connector.adapters.rt.errors import RTApiError
from rt_connector.config.load import load_settings
from rt_connector.config.redact import redact_settings_dict
from rt_connector.config.settings import Settings
from rt_connector.config.validate import ConfigValidationError
from rt_connector.observability.logger import configure_logging

log = structlog.get_logger(__name__)


def cmd_validate_config(args: argparse.Namespace) -> int:
    """Validate configuration; exit 0 when valid, 1 otherwise."""
    try:
        settings = load_settings(config_path=args.config)
    except ConfigValidationError as exc:
        print(f"✗ Configuration is invalid: {exc}", file=sys.stderr)
        return 1

    print("✓ Configuration is valid")
    print(f"  - RT URL: {settings.rt.base_url}")
    print(f"  - TLS verification: {settings.rt.verify_tls}")
    print(f"  - HTTP debug logging: {settings.rt.debug_http}")
    return 0


def cmd_dump_config(args: argparse.Namespace) -> int:
    """Dump current configuration as JSON (with secrets redacted)."""
    try:
        settings = load_settings(config_path=args.config)
    except ConfigValidationError as exc:
        print(f"✗ Failed to load configuration: {exc}", file=sys.stderr)
        return 1

    redacted = redact_settings_dict(settings.model_dump(mode="json"))
    print(json.dumps(redacted, indent=2, default=str))
    return 0


async def _check_connection(settings: Settings) -> Any:
    client = client_from_credentials(
        settings.credentials(),
        timeout_seconds=settings.rt.timeout_seconds,
        trust_env=settings.hardening.transport.trust_env,
        debug_http=settings.rt.debug_http,
        logger=log,
    )
    async with client:
        return await client.check_connection()


def cmd_check_connection(args: argparse.Namespace) -> int:
    """Call GET /REST/2.0/rt and print the system information."""
    try:
        settings = load_settings(config_path=args.config)
    except ConfigValidationError as exc:
        print(f"✗ Failed to load configuration: {exc}", file=sys.stderr)
        return 1

    configure_logging(
        log_level=settings.observability.log_level,
        json_logs=settings.observability.json_logs,
        log_format=settings.observability.log_format,
    )
    try:
        info = asyncio.run(_check_connection(settings))
    except RTApiError as exc:
        print(f"✗ Connection to {settings.rt.base_url} failed: {exc}", file=sys.stderr)
        return 1

    print(f"✓ Connected to {settings.rt.base_url}")
    if isinstance(info, dict):
        print(json.dumps(info, indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rt-connector",
        description="Request Tracker REST 2.0 connector utilities",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file (default: CONFIG_PATH or config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate-config",
        help="Validate configuration and exit",
    )
    validate_parser.set_defaults(func=cmd_validate_config)

    dump_parser = subparsers.add_parser(
        "dump-config",
        help="Dump configuration as JSON (secrets redacted)",
    )
    dump_parser.set_defaults(func=cmd_dump_config)

    check_parser = subparsers.add_parser(
        "check-connection",
        help="Verify the RT instance URL and API token",
    )
    check_parser.set_defaults(func=cmd_check_connection)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
