"""Dead-zone follow: the cursor moves freely inside a window before the camera pans."""

from __future__ import annotations

from screencut.models.camera import Point
from screencut.utils.geometry import smootherstep

DEFAULT_DEAD_ZONE_RATIO = 0.4
SHRINK_START_SCALE = 1.5
SHRINK_END_SCALE = 4.0
TRANSITION_WIDTH = 1.5  # soft band, as a multiple of the dead-zone half size


def get_adaptive_dead_zone_ratio(
    scale: float,
    override: float | None = None,
    base_ratio: float = DEFAULT_DEAD_ZONE_RATIO,
) -> float:
    """Dead-zone size as a fraction of the visible window.

    It shrinks between 1.5x and 4x zoom so the camera tracks tighter when
    deep in. ``base_ratio`` is the configured size; an explicit per-block
    override replaces it and keeps more of its value when shrunk.
    """
    max_ratio = override if override is not None else base_ratio
    shrink = 0.85 if override is not None else 0.7
    min_ratio = max(0.1, max_ratio * shrink)
    if scale <= SHRINK_START_SCALE:
        return max_ratio
    t = min(1.0, (scale - SHRINK_START_SCALE) / (SHRINK_END_SCALE - SHRINK_START_SCALE))
    return max_ratio + (min_ratio - max_ratio) * t


def get_half_windows(
    scale: float,
    source_width: float,
    source_height: float,
    output_width: float | None = None,
    output_height: float | None = None,
) -> tuple[float, float]:
    """Half the visible source window on each axis, normalized.

    When the output aspect differs from the source, the constrained axis
    sees proportionally more of the source.
    """
    if scale <= 1.001:
        return 0.5, 0.5

    rx = 1.0
    ry = 1.0
    if output_width and output_height and source_width > 0 and source_height > 0:
        source_aspect = source_width / source_height
        output_aspect = output_width / output_height
        if output_aspect > source_aspect:
            ry = output_aspect / source_aspect
        elif output_aspect < source_aspect:
            rx = source_aspect / output_aspect
    return 0.5 * rx / scale, 0.5 * ry / scale


def _track_factor(distance: float, dead_half: float, transition_half: float) -> float:
    if distance <= dead_half:
        return 0.0
    if distance >= transition_half:
        return 1.0
    return smootherstep((distance - dead_half) / (transition_half - dead_half))


def calculate_follow_target(
    cursor: Point,
    center: Point,
    half_window_x: float,
    half_window_y: float,
    scale: float,
    dead_zone_override: float | None = None,
    base_ratio: float = DEFAULT_DEAD_ZONE_RATIO,
) -> Point:
    """Next camera center for a cursor relative to the current center.

    Inside the dead zone the center stays put; past the soft band it keeps
    the cursor on the dead-zone edge; in between it blends. Not clamped.
    """
    ratio = get_adaptive_dead_zone_ratio(scale, dead_zone_override, base_ratio)
    dead_x = half_window_x * ratio
    dead_y = half_window_y * ratio

    dx = cursor.x - center.x
    dy = cursor.y - center.y
    tx = _track_factor(abs(dx), dead_x, dead_x * TRANSITION_WIDTH)
    ty = _track_factor(abs(dy), dead_y, dead_y * TRANSITION_WIDTH)

    full_x = cursor.x - (-1 if dx < 0 else 1) * dead_x
    full_y = cursor.y - (-1 if dy < 0 else 1) * dead_y
    return Point(center.x + (full_x - center.x) * tx, center.y + (full_y - center.y) * ty)
