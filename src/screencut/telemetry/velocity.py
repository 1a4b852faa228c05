"""Cursor velocity and stop detection."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from screencut.models.project import MouseEvent
from screencut.telemetry.interpolation import find_event_index

DEFAULT_LOOKBACK_MS = 50.0
DEFAULT_JITTER_THRESHOLD_PX = 2.0


@dataclass(frozen=True)
class CursorVelocity:
    velocity: float  # normalized units per second
    stopped_since_ms: float | None = None  # set while the cursor is considered still


def calculate_cursor_velocity(
    events: Sequence[MouseEvent],
    time_ms: float,
    width: float,
    height: float,
    *,
    lookback_ms: float = DEFAULT_LOOKBACK_MS,
    jitter_threshold_px: float = DEFAULT_JITTER_THRESHOLD_PX,
) -> CursorVelocity:
    """Cursor speed over the ``lookback_ms`` window ending at ``time_ms``.

    Steps where both |dx| and |dy| stay within ``jitter_threshold_px`` are
    treated as trackpad noise. With fewer than two samples in the window, or
    only noise, the cursor counts as stopped.
    """
    last = find_event_index(events, time_ms)
    if last < 0:
        return CursorVelocity(0.0, time_ms)

    window_start = time_ms - lookback_ms
    first = last
    while first > 0 and events[first - 1].timestamp >= window_start:
        first -= 1

    if last - first < 1:
        return CursorVelocity(0.0, events[last].timestamp)

    safe_w = width if width > 0 else 1.0
    safe_h = height if height > 0 else 1.0

    distance = 0.0
    for i in range(first + 1, last + 1):
        dx = events[i].x - events[i - 1].x
        dy = events[i].y - events[i - 1].y
        if abs(dx) <= jitter_threshold_px and abs(dy) <= jitter_threshold_px:
            continue
        distance += math.hypot(dx / safe_w, dy / safe_h)

    if distance == 0.0:
        return CursorVelocity(0.0, events[first].timestamp)

    elapsed_s = (events[last].timestamp - events[first].timestamp) / 1000
    if elapsed_s <= 0:
        return CursorVelocity(0.0, events[first].timestamp)
    return CursorVelocity(distance / elapsed_s, None)
