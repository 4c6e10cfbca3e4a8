"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from exthost.cli_commands.call import call
    from exthost.cli_commands.inspect import inspect_cmd
    from exthost.cli_commands.serve import serve

    cli.add_command(serve)
    cli.add_command(inspect_cmd)
    cli.add_command(call)
