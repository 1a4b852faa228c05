"""Zoom blocks: parsing zoom effects, finding the active one, and easing its scale."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from screencut.models.camera import Point, ZoomBlock, ZoomTransform
from screencut.models.project import Effect, ZoomEffect
from screencut.utils.geometry import clamp, clamp01, ease_in_out_cubic, smootherstep

# Tolerance for frame rounding just outside a block
BLOCK_START_EPSILON_MS = 40.0
BLOCK_END_EPSILON_MS = 40.0

INTRO_EASE_EXPONENT = 1.35
MAX_REFOCUS_BLUR = 0.4


def zoom_effect_to_block(effect: ZoomEffect) -> ZoomBlock:
    data = effect.data
    return ZoomBlock(
        id=effect.id,
        start_time=effect.start_time,
        end_time=effect.end_time,
        scale=data.scale,
        target_x=data.target_x,
        target_y=data.target_y,
        intro_ms=data.intro_ms,
        outro_ms=data.outro_ms,
        origin=data.origin,
        smoothing=data.smoothing,
        follow_strategy=data.follow_strategy,
        auto_scale=data.auto_scale,
        mouse_idle_px=data.mouse_idle_px,
        dead_zone_ratio=data.dead_zone_ratio,
    )


def parse_zoom_blocks(effects: Iterable[Effect]) -> list[ZoomBlock]:
    """Enabled zoom effects as blocks, ordered by start (stable for equal starts).

    Effects with a non-positive duration are not blocks and are left out.
    """
    blocks = [
        zoom_effect_to_block(e)
        for e in effects
        if e.type == "zoom" and e.enabled and e.end_time > e.start_time
    ]
    blocks.sort(key=lambda b: b.start_time)
    return blocks


def get_zoom_block_at_time(blocks: Sequence[ZoomBlock], time_ms: float) -> ZoomBlock | None:
    """The block containing ``time_ms``; otherwise the nearest block within the
    pre/post-roll tolerance."""
    for block in blocks:
        if block.start_time <= time_ms <= block.end_time:
            return block

    best: ZoomBlock | None = None
    best_dist = math.inf
    for block in blocks:
        after_end = time_ms - block.end_time
        if 0 < after_end <= BLOCK_END_EPSILON_MS and after_end < best_dist:
            best, best_dist = block, after_end
        before_start = block.start_time - time_ms
        if 0 < before_start <= BLOCK_START_EPSILON_MS and before_start < best_dist:
            best, best_dist = block, before_start
    return best


def resolve_zoom_block(
    effects: Iterable[Effect],
    timeline_ms: float,
    source_time_ms: float,
) -> tuple[ZoomBlock | None, float]:
    """The active block and the time on that block's own clock.

    Clip-bound and recording-scoped zooms are placed in source ms and beat
    global zooms, which are placed in timeline ms.
    """
    effects = list(effects)
    scoped = parse_zoom_blocks(e for e in effects if not e.is_global)
    block = get_zoom_block_at_time(scoped, source_time_ms)
    if block is not None:
        return block, source_time_ms
    block = get_zoom_block_at_time(parse_zoom_blocks(e for e in effects if e.is_global), timeline_ms)
    return block, timeline_ms


def normalize_ease_durations(duration: float, intro_ms: float, outro_ms: float) -> tuple[float, float, float]:
    """(duration, intro, outro) with intro + outro scaled down to fit the block."""
    duration = max(0.0, duration)
    if duration <= 0:
        return 0.0, 0.0, 0.0
    intro = max(0.0, intro_ms)
    outro = max(0.0, outro_ms)
    total = intro + outro
    if total > duration:
        ratio = duration / total
        intro *= ratio
        outro *= ratio
    return duration, intro, outro


def calculate_zoom_scale(
    elapsed: float,
    duration: float,
    target_scale: float,
    intro_ms: float = 800,
    outro_ms: float = 800,
) -> float:
    """Eased scale at ``elapsed`` ms into a block: ease in, hold, ease out."""
    duration, intro, outro = normalize_ease_durations(duration, intro_ms, outro_ms)
    if duration <= 0:
        return 1.0
    if math.isinf(duration):
        # Inherited blocks are stretched over all time and only ever hold.
        return target_scale

    t = clamp(elapsed, 0.0, duration)
    if t < intro:
        progress = clamp01(t / intro)
        return 1 + (target_scale - 1) * smootherstep(progress) ** INTRO_EASE_EXPONENT
    if t > duration - outro:
        progress = clamp01((t - (duration - outro)) / outro) if outro > 0 else 1.0
        return target_scale - (target_scale - 1) * smootherstep(progress)
    return target_scale


def calculate_zoom_transform(
    block: ZoomBlock | None,
    time_ms: float,
    video_width: float,
    video_height: float,
    zoom_center: Point,
    scale: float | None = None,
    *,
    target_scale: float | None = None,
    refocus_blur: bool = True,
) -> ZoomTransform:
    """Pixel pan and scale that center the view on ``zoom_center``.

    ``scale`` is the camera's current scale (the eased block scale when
    omitted). Pan grows with zoom progress so the view never pans before
    it zooms, and blends back to center during the outro.
    """
    if block is None:
        return ZoomTransform(scale=scale if scale is not None else 1.0)

    duration_raw = block.end_time - block.start_time
    elapsed = time_ms - block.start_time
    target = target_scale if target_scale is not None else (block.scale or 2.0)
    current = scale if scale is not None else calculate_zoom_scale(
        elapsed, duration_raw, target, block.intro_ms, block.outro_ms
    )

    duration, intro, outro = normalize_ease_durations(duration_raw, block.intro_ms, block.outro_ms)
    t = clamp(elapsed, 0.0, duration)
    in_outro = outro > 0 and t > duration - outro and not math.isinf(duration)
    outro_progress = (t - (duration - outro)) / outro if in_outro else 0.0
    strength = 1 - ease_in_out_cubic(clamp01(outro_progress))
    center_x = 0.5 + (zoom_center.x - 0.5) * strength
    center_y = 0.5 + (zoom_center.y - 0.5) * strength

    scale_progress = clamp01((current - 1) / (target - 1)) if target > 1 else 0.0
    pan_x = (0.5 - center_x) * video_width * current * scale_progress
    pan_y = (0.5 - center_y) * video_height * current * scale_progress

    blur = 0.0
    if refocus_blur:
        if intro > 0 and t < intro:
            blur = math.sin(math.pi * (t / intro)) * MAX_REFOCUS_BLUR
        elif in_outro:
            blur = math.sin(math.pi * outro_progress) * MAX_REFOCUS_BLUR

    return ZoomTransform(scale=current, pan_x=pan_x, pan_y=pan_y, refocus_blur=blur)
