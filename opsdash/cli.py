"""Command line interface for running reports and the dashboard API."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from .accounting import AccountingClient, AuthorizationGrant, authorization_url
from .config import DashboardSettings
from .errors import (
    ConfigurationError,
    NoTenantError,
    UpstreamAuthError,
    UpstreamReportError,
)
from .reports import REPORT_NAMES, UnknownReportError
from .service import AnalyticsService

UPSTREAM_ERRORS = (
    ConfigurationError,
    NoTenantError,
    UpstreamAuthError,
    UpstreamReportError,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query the operations dashboard upstreams or serve the dashboard API."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML configuration file (environment variables fill unset fields).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    report = commands.add_parser("report", help="Run one analytics report and print JSON.")
    report.add_argument("name", choices=REPORT_NAMES, help="Report to run.")
    report.add_argument("--start-date", default=None, help="Start date (defaults to 7daysAgo).")
    report.add_argument("--end-date", default=None, help="End date (defaults to today).")

    commands.add_parser("authorize-url", help="Print the accounting consent URL.")

    exchange = commands.add_parser(
        "exchange-code", help="Exchange an accounting authorization code for a refresh token."
    )
    exchange.add_argument("code", help="Authorization code from the consent redirect.")

    serve = commands.add_parser("serve", help="Run the dashboard API with the Flask server.")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address.")
    serve.add_argument("--port", type=int, default=5000, help="Port.")
    serve.add_argument("--debug", action="store_true", help="Enable Flask debug mode.")
    return parser


def _load_settings(args: argparse.Namespace) -> DashboardSettings:
    if args.config is not None:
        return DashboardSettings.from_file(args.config)
    return DashboardSettings.from_env()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def _exchange_code(settings: DashboardSettings, code: str) -> AuthorizationGrant:
    async with AccountingClient(settings.accounting, timeout=settings.http_timeout) as client:
        return await client.exchange_code(code)


def _run_command(args: argparse.Namespace, settings: DashboardSettings) -> int:
    if args.command == "report":
        service = AnalyticsService.from_settings(settings)
        payload = asyncio.run(
            service.report_by_name(args.name, start=args.start_date, end=args.end_date)
        )
        _print_json(payload)
        return 0

    if args.command == "authorize-url":
        print(authorization_url(settings.accounting))
        return 0

    if args.command == "exchange-code":
        grant = asyncio.run(_exchange_code(settings, args.code))
        _print_json(grant.to_payload())
        return 0

    from .app import create_app

    app = create_app(settings)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def run(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _load_settings(args)
        return _run_command(args, settings)
    except (UnknownReportError, *UPSTREAM_ERRORS) as exc:
        parser.error(str(exc))
        return 2


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
