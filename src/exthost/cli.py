"""exthost CLI entrypoint."""

from __future__ import annotations

import click

from exthost import __version__


@click.group()
@click.version_option(version=__version__, prog_name="exthost")
def main() -> None:
    """exthost — isolated extension host."""


# Register subcommands
from exthost.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
