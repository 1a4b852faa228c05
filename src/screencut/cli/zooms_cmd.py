"""screencut zooms — detect zoom blocks from recorded telemetry."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from screencut.models.config import EngineSettings, load_settings
from screencut.pipeline.engine import TimelineEngine, load_project
from screencut.telemetry.zoom_detector import zoom_blocks_to_effects
from screencut.utils.io import write_document
from screencut.utils.progress import log_error, log_success, log_warning

console = Console()


@click.command()
@click.argument("project", type=click.Path())
@click.option("--recording", "recording_id", default=None, help="Only detect in clips of this recording")
@click.option("--max-per-minute", default=None, type=float, help="Override the zoom frequency cap")
@click.option("--min-gap-ms", default=None, type=float, help="Override the minimum gap between zooms")
@click.option("--settings", "settings_path", default=None, type=click.Path(), help="Engine settings file")
@click.option(
    "--output", "-o",
    default=None,
    type=click.Path(),
    help="Write detected zooms as effects (.json/.yaml)",
)
def zooms_cmd(
    project: str,
    recording_id: str | None,
    max_per_minute: float | None,
    min_gap_ms: float | None,
    settings_path: str | None,
    output: str | None,
) -> None:
    """Detect zoom blocks in PROJECT."""
    try:
        document = load_project(project)
        settings = load_settings(settings_path) if settings_path else (document.settings or EngineSettings())
        overrides = settings.zoom_detection_overrides.model_copy(
            update={
                k: v
                for k, v in {"max_zooms_per_minute": max_per_minute, "min_zoom_gap_ms": min_gap_ms}.items()
                if v is not None
            }
        )
        settings = settings.model_copy(update={"zoom_detection_overrides": overrides})
        results = TimelineEngine.from_document(document, settings).detect_zooms(recording_id)
    except Exception as e:
        log_error(f"Zoom detection failed: {e}")
        raise SystemExit(1)

    if not results:
        log_warning("No clips with telemetry to analyze")

    table = Table(title="Detected zooms", show_lines=False)
    table.add_column("Clip", style="bold")
    table.add_column("Zoom")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Scale", justify="right")
    table.add_column("Target")
    table.add_column("Reason")

    effects = []
    for clip, blocks in results:
        for block in blocks:
            target = "—"
            if block.target_x is not None and block.target_y is not None:
                target = f"{block.target_x:.2f}, {block.target_y:.2f}"
            table.add_row(
                clip.id,
                block.id,
                f"{block.start_time:.0f}",
                f"{block.end_time:.0f}",
                f"{block.scale:.1f}x",
                target,
                block.reason,
            )
        effects.extend(zoom_blocks_to_effects(blocks, clip_id=clip.id))

    console.print(table)

    if output:
        try:
            write_document(output, [e.model_dump(mode="json") for e in effects])
        except Exception as e:
            log_error(f"Could not write {output}: {e}")
            raise SystemExit(1)
        log_success(f"Wrote {len(effects)} zoom effect(s) to {output}")
