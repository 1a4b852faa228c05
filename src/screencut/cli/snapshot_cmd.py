"""screencut snapshot — inspect one frame."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from screencut.models.config import load_settings
from screencut.pipeline.engine import TimelineEngine, load_project
from screencut.utils.progress import log_error

console = Console()


@click.command()
@click.argument("project", type=click.Path())
@click.option("--frame", "-f", required=True, type=int, help="Frame index")
@click.option("--settings", "settings_path", default=None, type=click.Path(), help="Engine settings file")
@click.option("--rendering", is_flag=True, help="Resolve as an export render would")
def snapshot_cmd(project: str, frame: int, settings_path: str | None, rendering: bool) -> None:
    """Print what PROJECT shows at --frame."""
    try:
        document = load_project(project)
        settings = load_settings(settings_path) if settings_path else None
        snap = TimelineEngine.from_document(document, settings).snapshot(frame, is_rendering=rendering)
    except Exception as e:
        log_error(f"Snapshot failed: {e}")
        raise SystemExit(1)

    table = Table(title=f"Frame {snap.frame} ({snap.timeline_ms:.0f}ms)", show_header=False)
    table.add_column(style="bold")
    table.add_column()

    data = snap.clip_data
    table.add_row("Active", ", ".join(i.clip.id for i in snap.active_items) or "—")
    table.add_row("Visible", ", ".join(i.clip.id for i in snap.visible_items) or "—")
    if data is not None:
        table.add_row("Recording", data.recording.id)
        table.add_row("Source time", f"{data.source_time_ms:.1f}ms")
        table.add_row("Effects", ", ".join(e.id for e in data.active.all()) or "—")
        if data.inherited_types:
            table.add_row("Inherited", ", ".join(sorted(data.inherited_types)))
    if snap.geometry is not None:
        v = snap.geometry.video
        table.add_row("Video", f"{v.draw_width:.0f}x{v.draw_height:.0f} at {v.offset_x:.0f},{v.offset_y:.0f}")
    cam = snap.camera
    table.add_row("Camera", f"({cam.center.x:.3f}, {cam.center.y:.3f}) {cam.scale:.2f}x")
    table.add_row("Zoom block", cam.active_block_id or "—")
    if snap.boundary.should_hold_prev_frame:
        table.add_row("Boundary", "holding previous frame")

    console.print(table)
