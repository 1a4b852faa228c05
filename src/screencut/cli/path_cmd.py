"""screencut path — precompute the camera path for a project."""

from __future__ import annotations

import time

import click

from screencut.models.config import load_settings
from screencut.pipeline.engine import TimelineEngine, load_project
from screencut.utils.io import write_document
from screencut.utils.progress import log_error, log_success, show_stage_summary


@click.command()
@click.argument("project", type=click.Path())
@click.option("--settings", "settings_path", default=None, type=click.Path(), help="Engine settings file")
@click.option("--deterministic", is_flag=True, help="Use the stateless (export) camera follow")
@click.option(
    "--output", "-o",
    default=None,
    type=click.Path(),
    help="Write the path (.json/.yaml)",
)
def path_cmd(project: str, settings_path: str | None, deterministic: bool, output: str | None) -> None:
    """Build the camera path of PROJECT."""
    start = time.monotonic()
    try:
        document = load_project(project)
        settings = load_settings(settings_path) if settings_path else None
        engine = TimelineEngine.from_document(document, settings)
        path = engine.build_camera_path(deterministic=deterministic)
    except Exception as e:
        log_error(f"Camera path failed: {e}")
        raise SystemExit(1)

    if path is None:
        log_error("Project has no clips on the timeline")
        raise SystemExit(1)

    zoomed = sum(1 for f in path.frames if f.zoom_scale > 1.001)
    show_stage_summary(
        "Camera path",
        time.monotonic() - start,
        {
            "Frames": len(path),
            "Zoomed frames": zoomed,
            "Zoom blocks": len(path.blocks),
            "Static": "yes" if path.fast_path else "no",
        },
    )

    if output:
        data = {
            "fps": document.fps,
            "fast_path": path.fast_path,
            "frames": [
                {
                    "frame": f.frame,
                    "x": round(f.zoom_center.x, 6),
                    "y": round(f.zoom_center.y, 6),
                    "scale": round(f.zoom_scale, 6),
                    "vx": round(f.velocity.x, 6),
                    "vy": round(f.velocity.y, 6),
                    "block": f.active_block_id,
                }
                for f in path.frames
            ],
        }
        try:
            write_document(output, data)
        except Exception as e:
            log_error(f"Could not write {output}: {e}")
            raise SystemExit(1)
        log_success(f"Wrote {len(path)} frame(s) to {output}")
