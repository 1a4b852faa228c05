"""Clamp, interpolation, easing and frame-conversion primitives.

Everything here is pure and allocation-free so the per-frame code paths can
call it freely.
"""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def smoothstep(t: float) -> float:
    t = clamp01(t)
    return t * t * (3 - 2 * t)


def smootherstep(t: float) -> float:
    """Quintic ease with zero first and second derivatives at both ends."""
    t = clamp01(t)
    return t * t * t * (t * (t * 6 - 15) + 10)


def ease_in_out_cubic(t: float) -> float:
    t = clamp01(t)
    if t < 0.5:
        return 4 * t * t * t
    return 1 - math.pow(-2 * t + 2, 3) / 2


def js_round(value: float) -> int:
    """Round half up (``round`` in Python rounds half to even)."""
    return math.floor(value + 0.5)


def ms_to_frame(ms: float, fps: float) -> int:
    """Convert a timeline position in ms to a frame index: round(ms * fps / 1000)."""
    return js_round(ms * fps / 1000)


def frame_to_ms(frame: float, fps: float) -> float:
    return frame / fps * 1000


def last_index_at_or_before(items: Sequence[T], value: float, key: Callable[[T], float]) -> int:
    """Index of the last item whose key is <= value, or -1.

    Items must be sorted by ``key``.
    """
    return bisect_right(items, value, key=key) - 1


def first_index_after(items: Sequence[T], value: float, key: Callable[[T], float]) -> int:
    """Index of the first item whose key is > value (len(items) when none)."""
    return bisect_right(items, value, key=key)


def first_index_at_or_after(items: Sequence[T], value: float, key: Callable[[T], float]) -> int:
    return bisect_left(items, value, key=key)
