"""Root CLI group for screencut."""

from __future__ import annotations

import click

from screencut import __version__


@click.group()
@click.version_option(version=__version__, prog_name="screencut")
def cli() -> None:
    """screencut — timeline resolution and camera paths for screen recordings."""


# Import and register subcommands
from screencut.cli.layout_cmd import layout_cmd  # noqa: E402
from screencut.cli.zooms_cmd import zooms_cmd  # noqa: E402
from screencut.cli.path_cmd import path_cmd  # noqa: E402
from screencut.cli.snapshot_cmd import snapshot_cmd  # noqa: E402

cli.add_command(layout_cmd, "layout")
cli.add_command(zooms_cmd, "zooms")
cli.add_command(path_cmd, "path")
cli.add_command(snapshot_cmd, "snapshot")
