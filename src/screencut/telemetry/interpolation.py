"""Cursor position lookup between recorded samples."""

from __future__ import annotations

from collections.abc import Sequence

from screencut.models.camera import Point
from screencut.models.project import MouseEvent
from screencut.utils.geometry import last_index_at_or_before, lerp


def _timestamp(event: MouseEvent) -> float:
    return event.timestamp


def find_event_index(events: Sequence[MouseEvent], time_ms: float) -> int:
    """Index of the last event at or before ``time_ms`` (-1 when none)."""
    return last_index_at_or_before(events, time_ms, _timestamp)


def interpolate_mouse_position(events: Sequence[MouseEvent], time_ms: float) -> Point | None:
    """Cursor position (pixels) at ``time_ms``, linearly interpolated.

    Times before the first sample or after the last one hold the edge sample.
    """
    if not events:
        return None

    i = find_event_index(events, time_ms)
    if i < 0:
        first = events[0]
        return Point(first.x, first.y)
    if i >= len(events) - 1:
        last = events[-1]
        return Point(last.x, last.y)

    a = events[i]
    b = events[i + 1]
    span = b.timestamp - a.timestamp
    if span <= 0:
        return Point(b.x, b.y)
    t = (time_ms - a.timestamp) / span
    return Point(lerp(a.x, b.x, t), lerp(a.y, b.y, t))


def get_source_dimensions(
    events: Sequence[MouseEvent],
    time_ms: float,
    fallback_width: float,
    fallback_height: float,
) -> tuple[float, float]:
    """Capture dimensions in effect at ``time_ms`` (events may record display changes)."""
    if events:
        i = max(0, find_event_index(events, time_ms))
        event = events[i]
        if event.screen_width and event.screen_height:
            return event.screen_width, event.screen_height
    return fallback_width, fallback_height
