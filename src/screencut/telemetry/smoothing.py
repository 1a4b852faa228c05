"""Order-independent cursor smoothing for export.

A running low-pass filter depends on the order frames are visited in. This
one is a pure function of (events, time): it samples the recent past and
weights each sample by exp(-age / tau).
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from screencut.models.camera import CENTER, Point
from screencut.models.project import MouseEvent
from screencut.telemetry.cache import TelemetryCache, events_key
from screencut.telemetry.interpolation import interpolate_mouse_position
from screencut.utils.geometry import clamp01

DEFAULT_STEPS = 12
DEFAULT_WINDOW_MS = 600.0
DEFAULT_TAU_MS = 180.0


def get_exponentially_smoothed_cursor_norm(
    events: Sequence[MouseEvent],
    time_ms: float,
    width: float,
    height: float,
    *,
    steps: int = DEFAULT_STEPS,
    window_ms: float = DEFAULT_WINDOW_MS,
    tau_ms: float = DEFAULT_TAU_MS,
    cache: TelemetryCache | None = None,
) -> Point:
    """Weighted-average normalized cursor position over the window ending at ``time_ms``.

    Returns the frame center when there is no telemetry.
    """
    if not events or width <= 0 or height <= 0:
        return CENTER

    key = None
    if cache is not None:
        key = ("exp", *events_key(events, width, height), time_ms, steps, window_ms, tau_ms)
        cached = cache.get(key)
        if cached is not None:
            return cached

    steps = max(1, steps)
    sum_x = 0.0
    sum_y = 0.0
    sum_w = 0.0
    for i in range(steps):
        age = window_ms * i / (steps - 1) if steps > 1 else 0.0
        pos = interpolate_mouse_position(events, time_ms - age)
        if pos is None:
            continue
        weight = math.exp(-age / tau_ms)
        sum_x += clamp01(pos.x / width) * weight
        sum_y += clamp01(pos.y / height) * weight
        sum_w += weight

    result = Point(sum_x / sum_w, sum_y / sum_w) if sum_w > 0 else CENTER
    if cache is not None:
        cache.set(key, result)
    return result
