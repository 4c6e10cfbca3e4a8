"""Shared CLI output formatters."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from exthost.extension.registry import LoadedExtension  # noqa: TC001

console = Console()
# `serve` owns stdout for protocol frames; anything human-readable goes here.
err_console = Console(stderr=True)


def print_extension_summary(extension: LoadedExtension) -> None:
    """Pretty-print an extension's identity and routing hints."""
    manifest = extension.manifest
    console.print(f"\n[bold]{manifest.name}[/bold] ({manifest.id})")
    console.print(f"  {_truncate(manifest.description)}")
    console.print(f"  Directory: {extension.directory}")
    console.print(f"  Entrypoint: {manifest.entrypoint}")

    routing = manifest.routing
    if routing.keywords:
        console.print(f"  Keywords: {', '.join(routing.keywords)}")
    if routing.verbs or routing.objects:
        console.print(f"  Verbs/objects: {', '.join(routing.verbs + routing.objects)}")


def print_tools_table(extension: LoadedExtension) -> None:
    """Pretty-print declared vs. resolved tools as a table."""
    table = Table(title="Tools")
    table.add_column("Id", style="cyan")
    table.add_column("Risk")
    table.add_column("Declared")
    table.add_column("Handler")

    declared = {tool.id: tool for tool in extension.manifest.tools}
    for tool_id in [*declared, *(t for t in extension.handlers if t not in declared)]:
        tool = declared.get(tool_id)
        risk = tool.risk_level if tool is not None else "-"
        table.add_row(
            tool_id,
            getattr(risk, "value", str(risk)),
            "yes" if tool is not None else "[yellow]no[/yellow]",
            "yes" if tool_id in extension.handlers else "[red]missing[/red]",
        )

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
