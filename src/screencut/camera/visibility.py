"""Keep the camera on content and the cursor in view."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from screencut.camera.output import NO_OVERSCAN, Overscan
from screencut.models.camera import Point
from screencut.models.project import MouseEvent
from screencut.telemetry.interpolation import find_event_index
from screencut.utils.geometry import clamp, clamp01


@dataclass(frozen=True)
class ContentBounds:
    """Normalized region of the source that holds content (e.g. the crop rect)."""

    min_x: float = 0.0
    max_x: float = 1.0
    min_y: float = 0.0
    max_y: float = 1.0


@dataclass(frozen=True)
class CursorMargins:
    """How far the cursor glyph extends from its hotspot, normalized."""

    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    def scaled(self, sx: float, sy: float) -> CursorMargins:
        return CursorMargins(self.left * sx, self.right * sx, self.top * sy, self.bottom * sy)


FULL_CONTENT = ContentBounds()

# Glyph size in px and hotspot as a fraction of the glyph
CURSOR_DIMENSIONS: dict[str, tuple[float, float]] = {
    "arrow": (24, 32),
    "ibeam": (16, 32),
    "pointing_hand": (28, 28),
    "closed_hand": (28, 28),
    "open_hand": (32, 32),
    "crosshair": (24, 24),
    "resize": (24, 24),
    "resize_left_right": (32, 24),
    "resize_up_down": (24, 32),
}

CURSOR_HOTSPOTS: dict[str, tuple[float, float]] = {
    "arrow": (0.15, 0.12),
    "ibeam": (0.5, 0.5),
    "pointing_hand": (0.64, 0.18),
    "closed_hand": (0.5, 0.34),
    "open_hand": (0.5, 0.34),
    "crosshair": (0.5, 0.5),
    "resize": (0.5, 0.5),
    "resize_left_right": (0.5, 0.5),
    "resize_up_down": (0.5, 0.5),
}

# Recorded (CSS-style) cursor names to glyphs
CURSOR_TYPE_ALIASES: dict[str, str] = {
    "default": "arrow",
    "arrow": "arrow",
    "pointer": "pointing_hand",
    "text": "ibeam",
    "vertical-text": "ibeam",
    "crosshair": "crosshair",
    "zoom-in": "crosshair",
    "zoom-out": "crosshair",
    "move": "open_hand",
    "grab": "open_hand",
    "all-scroll": "open_hand",
    "grabbing": "closed_hand",
    "e-resize": "resize",
    "w-resize": "resize",
    "n-resize": "resize",
    "s-resize": "resize",
    "ne-resize": "resize",
    "nw-resize": "resize",
    "se-resize": "resize",
    "sw-resize": "resize",
    "ew-resize": "resize_left_right",
    "col-resize": "resize_left_right",
    "nesw-resize": "resize_left_right",
    "nwse-resize": "resize_left_right",
    "ns-resize": "resize_up_down",
    "row-resize": "resize_up_down",
}


def clamp_axis(center: float, min_center: float, max_center: float) -> float:
    """Clamp into [min, max]; the midpoint when the range is empty."""
    if min_center > max_center:
        return (min_center + max_center) / 2
    return clamp(center, min_center, max_center)


def clamp_center_to_content_bounds(
    center: Point,
    half_window_x: float,
    half_window_y: float,
    overscan: Overscan = NO_OVERSCAN,
    allow_full_range: bool = False,
    ignore_overscan: bool = False,
    bounds: ContentBounds | None = None,
) -> Point:
    """Clamp a camera center so the visible window stays on content.

    With overscan (and ``ignore_overscan`` off) the window may extend into
    the padding. ``allow_full_range`` is for output-space coordinates, where
    the center may go all the way to the content edge unless overscan is
    ignored.
    """
    b = bounds or FULL_CONTENT

    if allow_full_range:
        if ignore_overscan:
            return Point(
                clamp_axis(center.x, half_window_x + b.min_x, b.max_x - half_window_x),
                clamp_axis(center.y, half_window_y + b.min_y, b.max_y - half_window_y),
            )
        return Point(
            clamp_axis(center.x, b.min_x, b.max_x),
            clamp_axis(center.y, b.min_y, b.max_y),
        )

    left = 0.0 if ignore_overscan else -overscan.left
    right = 0.0 if ignore_overscan else overscan.right
    top = 0.0 if ignore_overscan else -overscan.top
    bottom = 0.0 if ignore_overscan else overscan.bottom
    return Point(
        clamp_axis(center.x, half_window_x + left + b.min_x, b.max_x - half_window_x + right),
        clamp_axis(center.y, half_window_y + top + b.min_y, b.max_y - half_window_y + bottom),
    )


def _project_axis(
    center: float,
    cursor: float,
    half_window: float,
    margin_min: float,
    margin_max: float,
    overscan_min: float,
    overscan_max: float,
    allow_full_range: bool,
) -> float:
    cursor = clamp01(cursor)
    # The window [c - hw, c + hw] must contain [cursor - margin_min, cursor + margin_max].
    min_center = cursor + margin_max - half_window
    max_center = cursor - margin_min + half_window

    if allow_full_range:
        min_allowed, max_allowed = half_window, 1 - half_window
    else:
        min_allowed, max_allowed = half_window - overscan_min, 1 - half_window + overscan_max

    min_center = max(min_center, min_allowed)
    max_center = min(max_center, max_allowed)
    if min_center > max_center:
        return clamp(center, min_allowed, max_allowed)
    return clamp(center, min_center, max_center)


def project_center_to_keep_cursor_visible(
    center: Point,
    cursor: Point,
    half_window_x: float,
    half_window_y: float,
    overscan: Overscan = NO_OVERSCAN,
    margins: CursorMargins | None = None,
    allow_full_range: bool = False,
) -> Point:
    """Move the center the least amount that keeps the whole cursor glyph in view.

    When no center can show the glyph (a huge cursor at deep zoom), the
    center is only clamped to the allowed range.
    """
    m = margins or CursorMargins()
    return Point(
        _project_axis(
            center.x, cursor.x, half_window_x, m.left, m.right, overscan.left, overscan.right, allow_full_range
        ),
        _project_axis(
            center.y, cursor.y, half_window_y, m.top, m.bottom, overscan.top, overscan.bottom, allow_full_range
        ),
    )


def resolve_cursor_glyph(cursor_type: str | None) -> str:
    return CURSOR_TYPE_ALIASES.get(cursor_type or "", "arrow")


def cursor_type_at(events: Sequence[MouseEvent], time_ms: float) -> str:
    if not events:
        return "arrow"
    index = find_event_index(events, time_ms)
    event = events[index] if index >= 0 else events[0]
    return resolve_cursor_glyph(event.cursor_type)


def get_cursor_margins(
    cursor_type: str,
    cursor_size: float,
    draw_width: float,
    draw_height: float,
    half_window_x: float,
    half_window_y: float,
) -> CursorMargins:
    """Glyph extents around the hotspot, in the same units as the camera center.

    ``draw_width``/``draw_height`` are the drawn video size in output pixels.
    """
    glyph = cursor_type if cursor_type in CURSOR_DIMENSIONS else resolve_cursor_glyph(cursor_type)
    base_w, base_h = CURSOR_DIMENSIONS[glyph]
    hot_x, hot_y = CURSOR_HOTSPOTS[glyph]
    width_px = base_w * cursor_size
    height_px = base_h * cursor_size
    if draw_width <= 0 or draw_height <= 0:
        return CursorMargins()

    window_w = half_window_x * 2
    window_h = half_window_y * 2
    return CursorMargins(
        left=hot_x * width_px / draw_width * window_w,
        right=(1 - hot_x) * width_px / draw_width * window_w,
        top=hot_y * height_px / draw_height * window_h,
        bottom=(1 - hot_y) * height_px / draw_height * window_h,
    )
