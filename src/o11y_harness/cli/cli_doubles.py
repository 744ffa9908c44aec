# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""o11y-doubles CLI: run the test doubles outside of pytest.

Starts the telemetry collector and platform API doubles, prints their URLs
and serves until interrupted, so a worker can be pointed at them by hand.

Usage
-----
    o11y-doubles serve
    o11y-doubles serve --fixture-dir ./fixtures --host 127.0.0.1

Exit Codes
----------
    0: Interrupted after a clean start
    1: A double failed to start (bind failure, missing fixture)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from o11y_harness.errors import HarnessError
from o11y_harness.runtime.util_logging import configure_logging
from o11y_harness.services.service_platform_api import ServicePlatformApi
from o11y_harness.services.service_request_capture import DEFAULT_BIND_HOST
from o11y_harness.services.service_telemetry_collector import ServiceTelemetryCollector

logger = logging.getLogger(__name__)


async def _serve(
    host: str,
    fixture_dir: Path | None,
    stop_event: asyncio.Event | None = None,
) -> None:
    collector = ServiceTelemetryCollector(host=host)
    platform_api = ServicePlatformApi(fixture_dir=fixture_dir, host=host)
    stop = stop_event or asyncio.Event()
    try:
        await platform_api.start()
        await collector.start()
        click.echo(f"CLOUDFLARE_API_URL={platform_api.url}")
        click.echo(f"METRICS_URL={collector.metrics_url}")
        await stop.wait()
    finally:
        await collector.dispose()
        await platform_api.dispose()


@click.group()
def cli() -> None:
    """Worker observability harness test doubles."""


@cli.command()
@click.option("--host", default=DEFAULT_BIND_HOST, show_default=True, help="Bind host.")
@click.option(
    "--fixture-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Platform API fixture directory (defaults to the packaged fixtures).",
)
def serve(host: str, fixture_dir: Path | None) -> None:
    """Start both doubles and serve until interrupted."""
    try:
        asyncio.run(_serve(host, fixture_dir))
    except HarnessError as exc:
        click.echo(f"ERROR: {exc}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("Stopped.", err=True)


def main() -> None:
    """Entry point for the o11y-doubles CLI."""
    configure_logging()
    cli()


__all__ = ["cli", "main"]
