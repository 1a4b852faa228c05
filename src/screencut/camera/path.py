"""Precomputed camera paths.

The path is built once by a single forward sweep over every frame; after
that any frame (in any order, from any worker) is a list lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from screencut.camera.output import get_camera_output_context
from screencut.camera.physics import CameraFrameInput, initial_camera_state, step_camera
from screencut.camera.zoom_blocks import resolve_zoom_block
from screencut.effects.filters import has_enabled_effect_of_type, has_enabled_mockup
from screencut.effects.resolver import EffectiveClipData, GetRecording, resolve_effective_clip_data
from screencut.models.camera import CENTER, CameraPath, CameraPathFrame, Point
from screencut.models.config import EngineSettings
from screencut.models.project import Effect
from screencut.telemetry.cache import TelemetryCaches
from screencut.timeline.layout import FrameLayoutItem, get_timeline_duration_in_frames
from screencut.utils.progress import log_step


@dataclass
class CameraPathArgs:
    layout: list[FrameLayoutItem]
    fps: float
    canvas_width: float
    canvas_height: float
    effects: list[Effect]
    get_recording: GetRecording
    settings: EngineSettings = field(default_factory=EngineSettings)
    caches: TelemetryCaches | None = None
    deterministic: bool = False


def _all_effects(args: CameraPathArgs) -> list[Effect]:
    """Timeline effects plus the effects of every recording on the layout."""
    effects = list(args.effects)
    seen: set[str] = set()
    for item in args.layout:
        rid = item.recording_id
        if rid in seen:
            continue
        seen.add(rid)
        recording = args.get_recording(rid)
        if recording is not None:
            effects.extend(recording.effects)
    return effects


def needs_camera_tracking(args: CameraPathArgs) -> bool:
    effects = _all_effects(args)
    return has_enabled_effect_of_type(effects, "zoom") or has_enabled_mockup(effects)


def build_frame_input(
    clip_data: EffectiveClipData,
    canvas_width: float,
    canvas_height: float,
    deterministic: bool = False,
) -> CameraFrameInput:
    """Camera inputs for one frame of resolved clip data.

    Generated clips borrow the telemetry of their visual source, frozen at
    the source's anchor time.
    """
    recording = clip_data.recording
    source_time = clip_data.source_time_ms
    visual = clip_data.visual_source
    if visual is not None:
        recording = visual.recording
        source_time = visual.base_source_time_ms

    active = clip_data.active
    output = get_camera_output_context(
        active.all(), clip_data.timeline_ms, canvas_width, canvas_height, recording
    )
    block, block_time = resolve_zoom_block(clip_data.effects, clip_data.timeline_ms, clip_data.source_time_ms)
    cursor = next((e for e in clip_data.effects if e.type == "cursor" and e.enabled), None)

    return CameraFrameInput(
        timeline_ms=clip_data.timeline_ms,
        source_time_ms=source_time,
        zoom_block=block,
        block_time_ms=block_time,
        mouse_events=recording.mouse_events,
        source_width=output.source_width,
        source_height=output.source_height,
        output=output,
        crop=active.crop.data if active.crop is not None else None,
        cursor=cursor.data if cursor is not None else None,
        deterministic=deterministic,
    )


def calculate_full_camera_path(args: CameraPathArgs) -> CameraPath | None:
    """Camera center and scale for every frame of the timeline.

    Returns None for an empty layout. Timelines with no enabled zoom and no
    device mockup get a constant centered, unscaled path without simulation.
    """
    if not args.layout:
        return None

    total = get_timeline_duration_in_frames(args.layout)

    if not needs_camera_tracking(args):
        frames = [CameraPathFrame(frame=f) for f in range(total)]
        log_step("Camera", f"{total} frames, no zoom or mockup (static path)")
        return CameraPath(frames=frames, fast_path=True)

    state = initial_camera_state()
    frames: list[CameraPathFrame] = []
    blocks = {}
    prev_center: Point | None = None

    for f in range(total):
        clip_data = resolve_effective_clip_data(f, args.layout, args.effects, args.get_recording, args.fps)
        if clip_data is None:
            frames.append(CameraPathFrame(frame=f))
            prev_center = CENTER
            continue

        frame_input = build_frame_input(clip_data, args.canvas_width, args.canvas_height, args.deterministic)
        state, out = step_camera(state, frame_input, args.settings, caches=args.caches)

        center = out.zoom_center
        prev = prev_center if prev_center is not None else center
        block_id = None
        if out.active_block is not None:
            block_id = out.active_block.id
            blocks.setdefault(block_id, out.active_block)
        frames.append(
            CameraPathFrame(
                frame=f,
                zoom_center=center,
                zoom_scale=out.zoom_scale,
                velocity=Point(center.x - prev.x, center.y - prev.y),
                active_block_id=block_id,
            )
        )
        prev_center = center

    log_step("Camera", f"{total} frames simulated, {len(blocks)} zoom blocks")
    return CameraPath(frames=frames, blocks=blocks)


def get_camera_path_frame(path: CameraPath | None, frame: int) -> CameraPathFrame | None:
    """Frame lookup, clamped to the path's range."""
    if path is None or not path.frames:
        return None
    index = min(max(frame, 0), len(path.frames) - 1)
    return path.frames[index]
