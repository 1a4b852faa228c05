"""One step of the spring-damped camera.

``step_camera`` is pure: it takes the previous state and this frame's
inputs and returns the next state plus the camera output. Whoever owns the
state must feed frames strictly in time order.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

from screencut.camera.dead_zone import calculate_follow_target, get_half_windows
from screencut.camera.output import NO_OVERSCAN, CameraOutputContext, Overscan, Rect
from screencut.camera.visibility import (
    ContentBounds,
    CursorMargins,
    clamp_center_to_content_bounds,
    cursor_type_at,
    get_cursor_margins,
    project_center_to_keep_cursor_visible,
)
from screencut.camera.zoom_blocks import calculate_zoom_scale
from screencut.models.camera import CENTER, CameraPhysicsState, Point, ZoomBlock
from screencut.models.config import CameraDynamics, EngineSettings
from screencut.models.project import CropEffectData, CursorEffectData, MouseEvent
from screencut.telemetry.cache import TelemetryCaches
from screencut.telemetry.clusters import calculate_attractor, normalize_smoothing_amount
from screencut.telemetry.interpolation import get_source_dimensions, interpolate_mouse_position
from screencut.telemetry.smoothing import get_exponentially_smoothed_cursor_norm
from screencut.telemetry.velocity import calculate_cursor_velocity
from screencut.utils.geometry import clamp, clamp01, lerp, smootherstep

ANCHOR_SLIDE_EPSILON = 1e-6
UNFREEZE_FACTOR = 1.5


@dataclass(frozen=True)
class CameraFrameInput:
    """What the camera needs to know about one frame."""

    timeline_ms: float
    source_time_ms: float
    zoom_block: ZoomBlock | None = None
    block_time_ms: float | None = None  # time on the zoom block's clock; timeline_ms when unset
    mouse_events: Sequence[MouseEvent] = ()
    source_width: float = 1920
    source_height: float = 1080
    output: CameraOutputContext | None = None
    crop: CropEffectData | None = None
    cursor: CursorEffectData | None = None  # enabled cursor effect, for glyph margins
    deterministic: bool = False


@dataclass(frozen=True)
class CameraStepOutput:
    zoom_center: Point
    zoom_scale: float
    commanded_scale: float
    active_block: ZoomBlock | None = None
    cursor_frozen: bool = False
    is_seek: bool = False


def initial_camera_state() -> CameraPhysicsState:
    return CameraPhysicsState()


def _to_output(p: Point, os: Overscan) -> Point:
    return Point((os.left + p.x) / os.denom_x, (os.top + p.y) / os.denom_y)


def _from_output(p: Point, os: Overscan) -> Point:
    return Point(p.x * os.denom_x - os.left, p.y * os.denom_y - os.top)


def _map_to_screen(p: Point, screen: Rect | None, output_w: float, output_h: float) -> Point:
    """Remap a video-normalized point into a mockup screen placed on the output."""
    if screen is None or not output_w or not output_h:
        return p
    sx = clamp01(screen.x / output_w)
    sy = clamp01(screen.y / output_h)
    sw = clamp01(screen.width / output_w)
    sh = clamp01(screen.height / output_h)
    return Point(sx + p.x * sw, sy + p.y * sh)


def _follow(
    cursor: Point,
    base: Point,
    hw_x: float,
    hw_y: float,
    scale: float,
    overscan: Overscan,
    dead_zone_override: float | None,
    base_ratio: float,
) -> Point:
    """Dead-zone follow, computed in output space when the output has overscan."""
    if not overscan.any:
        return calculate_follow_target(cursor, base, hw_x, hw_y, scale, dead_zone_override, base_ratio)
    target = calculate_follow_target(
        _to_output(cursor, overscan),
        _to_output(base, overscan),
        hw_x / overscan.denom_x,
        hw_y / overscan.denom_y,
        scale,
        dead_zone_override,
        base_ratio,
    )
    return _from_output(target, overscan)


def _intro_blend(block: ZoomBlock | None, t: float, target_scale: float, current_scale: float) -> float:
    """How far the pan should have moved toward its target during the intro."""
    if block is None:
        return 1.0
    intro = max(0.0, block.intro_ms)
    if intro <= 0:
        return 1.0
    if t <= block.start_time:
        return 0.0
    if t >= block.start_time + intro:
        return 1.0
    if target_scale <= 1.001:
        return smootherstep((t - block.start_time) / intro)
    return clamp01((current_scale - 1) / (target_scale - 1))


def _source_dt_ms(state: CameraPhysicsState, frame: CameraFrameInput, dt_timeline: float, seek_ms: float) -> float:
    """Elapsed source time since the last step; timeline time when the source jumped."""
    if state.last_source_time_ms is None:
        return dt_timeline
    dt_source = frame.source_time_ms - state.last_source_time_ms
    if dt_source < 0 or dt_source > seek_ms:
        return dt_timeline
    return dt_source


def step_camera(
    state: CameraPhysicsState,
    frame: CameraFrameInput,
    settings: EngineSettings | None = None,
    *,
    caches: TelemetryCaches | None = None,
) -> tuple[CameraPhysicsState, CameraStepOutput]:
    """Advance the camera to ``frame``."""
    settings = settings or EngineSettings()
    cfg = settings.camera
    stop_cfg = cfg.cursor_stop
    dynamics: CameraDynamics = cfg.effective_dynamics()
    deterministic = frame.deterministic

    output = frame.output
    overscan = output.overscan if output is not None else NO_OVERSCAN
    has_overscan = overscan.any
    screen = output.mockup_screen if output is not None else None
    force_follow = output.force_follow_cursor if output is not None else False

    block = frame.zoom_block
    block_t = frame.block_time_ms if frame.block_time_ms is not None else frame.timeline_ms

    # -- Scale -------------------------------------------------------------
    target_scale = 1.0
    commanded_scale = 1.0
    if block is not None:
        target_scale = max(overscan.denom_x, overscan.denom_y) if block.auto_scale == "fill" else block.scale
        commanded_scale = calculate_zoom_scale(
            block_t - block.start_time, block.end_time - block.start_time, target_scale, block.intro_ms, block.outro_ms
        )
    current_scale = commanded_scale if deterministic else state.scale

    events = frame.mouse_events
    source_w, source_h = get_source_dimensions(events, frame.source_time_ms, frame.source_width, frame.source_height)
    output_w = output.output_width if output is not None else None
    output_h = output.output_height if output is not None else None
    hw_x, hw_y = get_half_windows(current_scale, source_w, source_h, output_w, output_h)

    if has_overscan:
        lo_x, hi_x, lo_y, hi_y = -overscan.left, 1 + overscan.right, -overscan.top, 1 + overscan.bottom
    else:
        lo_x, hi_x, lo_y, hi_y = 0.0, 1.0, 0.0, 1.0

    def clamp_cursor(p: Point) -> Point:
        return Point(clamp(p.x, lo_x, hi_x), clamp(p.y, lo_y, hi_y))

    # -- Cursor attractor --------------------------------------------------
    explicit = cfg.has_explicit_dynamics
    cinematic = 0.0 if explicit or cfg.smoothness is None else normalize_smoothing_amount(cfg.smoothness)
    zoom_smoothing = normalize_smoothing_amount(block.smoothing if block is not None else None)
    base_pan = lerp(8, 22, clamp01((current_scale - 1) / 1.5)) if block is not None and not explicit else 0.0
    smoothing_amount = max(cinematic, zoom_smoothing, base_pan)

    dt_timeline = frame.timeline_ms - (state.last_time_ms if state.last_time_ms is not None else frame.timeline_ms)
    is_seek = not deterministic and abs(dt_timeline) > cfg.seek_threshold_ms
    intro_blend = _intro_blend(block, block_t, target_scale, current_scale)

    cursor = CENTER
    attractor = calculate_attractor(
        events,
        frame.source_time_ms,
        source_w,
        source_h,
        smoothing_amount,
        cfg,
        caches.motion_clusters if caches is not None else None,
    )
    if attractor is not None:
        cursor = Point(attractor.x / source_w, attractor.y / source_h)
    cursor = clamp_cursor(_map_to_screen(cursor, screen, output_w or 0, output_h or 0))

    # -- Cursor stop detection ---------------------------------------------
    jitter = settings.smoothing.jitter_threshold_px
    if block is not None and block.mouse_idle_px is not None:
        jitter = block.mouse_idle_px
    velocity = calculate_cursor_velocity(
        events,
        frame.source_time_ms,
        source_w,
        source_h,
        lookback_ms=settings.smoothing.velocity_lookback_ms,
        jitter_threshold_px=jitter,
    )
    apply_stop = current_scale >= stop_cfg.min_zoom
    stopped_at = state.cursor_stopped_at_ms
    frozen_target: Point | None = None

    if deterministic:
        stopped_at = None
        if apply_stop and velocity.velocity < stop_cfg.velocity_threshold:
            since = velocity.stopped_since_ms if velocity.stopped_since_ms is not None else frame.source_time_ms
            if frame.source_time_ms - since >= stop_cfg.dwell_ms:
                frozen_target = cursor
    else:
        stored = (
            Point(state.frozen_target_x, state.frozen_target_y)
            if state.frozen_target_x is not None and state.frozen_target_y is not None
            else None
        )
        if apply_stop and velocity.velocity < stop_cfg.velocity_threshold:
            if stopped_at is None:
                stopped_at = (
                    velocity.stopped_since_ms if velocity.stopped_since_ms is not None else frame.source_time_ms
                )
            if frame.source_time_ms - stopped_at >= stop_cfg.dwell_ms:
                frozen_target = stored or cursor
        elif stored is not None and velocity.velocity < stop_cfg.velocity_threshold * UNFREEZE_FACTOR:
            frozen_target = stored
        else:
            stopped_at = None

    cursor_frozen = frozen_target is not None
    follow_cursor = frozen_target if frozen_target is not None else cursor

    # -- Target center -----------------------------------------------------
    strategy = block.follow_strategy if block is not None else "mouse"
    follow_mouse = strategy == "mouse"
    center_lock = block is not None and (strategy == "center" or block.auto_scale == "fill")
    dead_zone_override = block.dead_zone_ratio if block is not None else None

    if deterministic:
        base = CENTER
    elif is_seek:
        base = follow_cursor
    else:
        base = state.center

    if center_lock:
        target = CENTER
    elif block is not None and strategy == "manual":
        if block.target_x is None or block.target_y is None:
            target = CENTER
        else:
            target = clamp_center_to_content_bounds(Point(block.target_x, block.target_y), hw_x, hw_y, overscan)
    else:
        target = _follow(
            follow_cursor, base, hw_x, hw_y, current_scale, overscan, dead_zone_override, cfg.dead_zone_ratio
        )

    in_intro = block is not None and block_t < block.start_time + block.intro_ms
    if in_intro and follow_mouse and not center_lock:
        target = Point(lerp(base.x, target.x, intro_blend), lerp(base.y, target.y, intro_blend))

    if deterministic and follow_mouse and block is not None:
        smoothed = frozen_target or get_exponentially_smoothed_cursor_norm(
            events,
            frame.source_time_ms,
            source_w,
            source_h,
            steps=settings.smoothing.steps,
            window_ms=settings.smoothing.window_ms,
            tau_ms=settings.smoothing.tau_ms,
            cache=caches.smoothing if caches is not None else None,
        )
        target = _follow(
            smoothed, CENTER, hw_x, hw_y, current_scale, overscan, dead_zone_override, cfg.dead_zone_ratio
        )
        if in_intro:
            target = Point(lerp(0.5, target.x, intro_blend), lerp(0.5, target.y, intro_blend))

    if force_follow:
        target = follow_cursor

    # -- Integrate ---------------------------------------------------------
    x, y, vx, vy = state.x, state.y, state.vx, state.vy
    scale, v_scale = state.scale, state.v_scale

    if deterministic or is_seek:
        x, y, vx, vy = target.x, target.y, 0.0, 0.0
        scale, v_scale = commanded_scale, 0.0
    else:
        dt_s = max(0.0, _source_dt_ms(state, frame, dt_timeline, cfg.seek_threshold_ms) / 1000)
        stiffness, damping, mass = dynamics.stiffness, dynamics.damping, dynamics.mass
        if cursor_frozen:
            stiffness, damping = stop_cfg.frozen_stiffness, stop_cfg.frozen_damping

        if dt_s > cfg.max_dt_s:
            x, y, vx, vy = target.x, target.y, 0.0, 0.0
            scale, v_scale = commanded_scale, 0.0
            dt_s = 0.0

        remaining = dt_s
        while remaining > 0:
            dt = min(remaining, cfg.max_step_s)
            if center_lock:
                x, y, vx, vy = 0.5, 0.5, 0.0, 0.0
            else:
                vx += (-stiffness * (x - target.x) - damping * vx) / mass * dt
                vy += (-stiffness * (y - target.y) - damping * vy) / mass * dt
                x += vx * dt
                y += vy * dt
            if dynamics.spring_scale:
                v_scale += (-dynamics.stiffness * (scale - commanded_scale) - dynamics.damping * v_scale) / mass * dt
                scale += v_scale * dt
            remaining -= dt

        if abs(vx) < cfg.velocity_snap:
            vx = 0.0
        if abs(vy) < cfg.velocity_snap:
            vy = 0.0
        if math.hypot(x - target.x, y - target.y) < cfg.distance_snap and abs(vx) < 1e-3 and abs(vy) < 1e-3:
            x, y, vx, vy = target.x, target.y, 0.0, 0.0

        if dynamics.spring_scale:
            if abs(v_scale) < cfg.velocity_snap:
                v_scale = 0.0
            if abs(scale - commanded_scale) < cfg.distance_snap and v_scale == 0.0:
                scale = commanded_scale
        else:
            scale, v_scale = commanded_scale, 0.0

    next_state = CameraPhysicsState(
        x=x,
        y=y,
        vx=vx,
        vy=vy,
        scale=scale,
        v_scale=v_scale,
        last_time_ms=frame.timeline_ms,
        last_source_time_ms=frame.source_time_ms,
        cursor_stopped_at_ms=stopped_at,
        frozen_target_x=frozen_target.x if frozen_target is not None and not deterministic else None,
        frozen_target_y=frozen_target.y if frozen_target is not None and not deterministic else None,
    )

    def finish(center: Point, st: CameraPhysicsState) -> tuple[CameraPhysicsState, CameraStepOutput]:
        st = replace(st, x=center.x, y=center.y)
        return st, CameraStepOutput(
            zoom_center=center,
            zoom_scale=st.scale,
            commanded_scale=commanded_scale,
            active_block=block,
            cursor_frozen=cursor_frozen,
            is_seek=is_seek,
        )

    if force_follow:
        return finish(follow_cursor, next_state)

    # -- Raw cursor for visibility -----------------------------------------
    raw = interpolate_mouse_position(events, frame.source_time_ms)
    raw_cursor = clamp_cursor(Point(raw.x / source_w, raw.y / source_h)) if raw is not None else cursor
    raw_cursor = _map_to_screen(raw_cursor, screen, output_w or 0, output_h or 0)

    margins: CursorMargins | None = None
    if frame.cursor is not None:
        out_w = output_w or source_w
        out_h = output_h or source_h
        margins = get_cursor_margins(
            cursor_type_at(events, frame.source_time_ms),
            frame.cursor.size,
            out_w / (overscan.denom_x if has_overscan else 1),
            out_h / (overscan.denom_y if has_overscan else 1),
            hw_x,
            hw_y,
        )

    # -- Content clamp, then cursor visibility -----------------------------
    before = Point(x, y)
    final = before
    bounds = None
    if frame.crop is not None:
        c = frame.crop
        bounds = ContentBounds(c.x, c.x + c.width, c.y, c.y + c.height)
    ignore_overscan = scale > 1.01

    if has_overscan:
        clamped = clamp_center_to_content_bounds(
            _to_output(final, overscan),
            hw_x / overscan.denom_x,
            hw_y / overscan.denom_y,
            NO_OVERSCAN,
            allow_full_range=True,
            ignore_overscan=ignore_overscan,
            bounds=bounds,
        )
        final = _from_output(clamped, overscan)
    else:
        final = clamp_center_to_content_bounds(
            final, hw_x, hw_y, overscan, ignore_overscan=ignore_overscan, bounds=bounds
        )

    if follow_mouse:
        if has_overscan:
            out_margins = margins.scaled(1 / overscan.denom_x, 1 / overscan.denom_y) if margins is not None else None
            projected = project_center_to_keep_cursor_visible(
                _to_output(final, overscan),
                _to_output(raw_cursor, overscan),
                hw_x / overscan.denom_x,
                hw_y / overscan.denom_y,
                NO_OVERSCAN,
                out_margins,
                allow_full_range=True,
            )
            final = _from_output(projected, overscan)
        else:
            final = project_center_to_keep_cursor_visible(final, raw_cursor, hw_x, hw_y, overscan, margins)

        # A visibility push drags a frozen anchor along with it.
        moved = abs(final.x - before.x) > ANCHOR_SLIDE_EPSILON or abs(final.y - before.y) > ANCHOR_SLIDE_EPSILON
        if cursor_frozen and moved and next_state.frozen_target_x is not None:
            next_state = replace(next_state, frozen_target_x=final.x, frozen_target_y=final.y)

    return finish(final, next_state)
