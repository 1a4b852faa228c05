"""screencut layout — show how clips map onto frames."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from screencut.pipeline.engine import TimelineEngine, load_project
from screencut.utils.progress import log_error

console = Console()


@click.command()
@click.argument("project", type=click.Path())
def layout_cmd(project: str) -> None:
    """Print the frame layout of PROJECT."""
    try:
        engine = TimelineEngine.from_document(load_project(project))
        layout = engine.layout
    except Exception as e:
        log_error(f"Could not build layout: {e}")
        raise SystemExit(1)

    table = Table(title=f"Frame layout @ {engine.accessor.fps:g}fps", show_lines=False)
    table.add_column("Clip", style="bold")
    table.add_column("Recording")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Frames", justify="right")
    table.add_column("Group")

    for item in layout:
        table.add_row(
            item.clip.id,
            item.recording_id,
            str(item.start_frame),
            str(item.end_frame),
            str(item.duration_frames),
            item.group_id,
        )

    console.print(table)
    groups = len({item.group_id for item in layout})
    console.print(f"{len(layout)} item(s), {groups} group(s), {engine.total_frames} frame(s)")
