"""``exthost call`` — invoke one tool through a real host subprocess."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from exthost.cli_commands._output import console


@click.command()
@click.argument("extension_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("tool_id")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object.")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each response.")
def call(extension_dir: str, tool_id: str, args_json: str, timeout: float | None) -> None:
    """Spawn a host for EXTENSION_DIR, invoke TOOL_ID, and print the result."""
    from exthost.host.client import ExtensionHostClient
    from exthost.protocol.errors import HostClientError
    from exthost.settings import HostSettings, SettingsError

    try:
        args: Any = json.loads(args_json)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid --args:[/red] {exc}")
        sys.exit(2)
    if not isinstance(args, dict):
        console.print("[red]Invalid --args:[/red] must be a JSON object")
        sys.exit(2)

    try:
        settings = HostSettings.from_env(request_timeout=timeout)
    except SettingsError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(2)

    async def _call() -> Any:
        async with ExtensionHostClient(timeout=settings.request_timeout) as client:
            await client.initialize(extension_dir)
            output = await client.invoke_tool(tool_id, args)
            await client.shutdown()
            return output

    try:
        output = asyncio.run(_call())
    except HostClientError as exc:
        console.print(f"[red]Call error:[/red] {exc}")
        sys.exit(1)

    console.print_json(json.dumps(output, default=str))
