"""``exthost serve`` — run the host on stdin/stdout."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from exthost.cli_commands._output import err_console
from exthost.logging_config import configure_logging
from exthost.settings import HostSettings, SettingsError

logger = logging.getLogger(__name__)


@click.command()
@click.option("--log-level", default=None, help="Log level (default: $EXTHOST_LOG_LEVEL or WARNING).")
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans (stderr or OTLP).")
@click.option("--otlp-endpoint", default=None, help="OTLP/gRPC endpoint for span export.")
def serve(log_level: str | None, telemetry: bool, otlp_endpoint: str | None) -> None:
    """Serve one extension over newline-delimited JSON-RPC on stdio.

    Nothing but protocol frames is ever written to stdout; logs go to stderr.
    """
    from exthost.host.server import serve_stdio

    try:
        settings = HostSettings.from_env(
            log_level=log_level,
            telemetry_enabled=telemetry or None,
            otlp_endpoint=otlp_endpoint,
        )
    except SettingsError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(2)

    configure_logging(settings.log_level, settings.log_format)

    if settings.telemetry_enabled:
        from exthost.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(otlp_endpoint=settings.otlp_endpoint)
        except ImportError as exc:
            logger.warning("telemetry disabled: %s", exc)

    status = asyncio.run(serve_stdio())
    sys.exit(status)
