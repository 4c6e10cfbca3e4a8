"""``exthost inspect`` — load an extension in-process and show its tools."""

from __future__ import annotations

import json
import sys

import click

from exthost.cli_commands._output import console, print_extension_summary, print_tools_table


@click.command("inspect")
@click.argument("extension_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def inspect_cmd(extension_dir: str, as_json: bool) -> None:
    """Load EXTENSION_DIR and compare declared tools with resolved handlers.

    This executes the extension's entrypoint in the current process.
    """
    from exthost.extension.registry import load_extension
    from exthost.protocol.errors import LoaderError

    try:
        extension = load_extension(extension_dir)
    except LoaderError as exc:
        console.print(f"[red]Load error:[/red] {exc}")
        sys.exit(1)

    if as_json:
        payload = {
            "manifest": extension.manifest.model_dump(mode="json"),
            "tools": extension.tool_ids(),
            "missing": extension.missing_tools(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    print_extension_summary(extension)
    print_tools_table(extension)

    missing = extension.missing_tools()
    if missing:
        console.print(f"[yellow]Declared without handler:[/yellow] {', '.join(missing)}")
