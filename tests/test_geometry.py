from __future__ import annotations

import pytest

from screencut.utils.geometry import (
    clamp,
    ease_in_out_cubic,
    first_index_after,
    frame_to_ms,
    js_round,
    last_index_at_or_before,
    lerp,
    ms_to_frame,
    smootherstep,
)


def test_js_round_rounds_half_up():
    assert js_round(2.5) == 3
    assert js_round(0.5) == 1
    assert js_round(-2.5) == -2
    assert js_round(1.49) == 1


def test_ms_frame_conversion():
    assert ms_to_frame(1000, 30) == 30
    assert ms_to_frame(50, 30) == 2  # 1.5 frames rounds up
    assert frame_to_ms(15, 30) == pytest.approx(500)


def test_clamp_and_lerp():
    assert clamp(5, 0, 1) == 1
    assert clamp(-5, 0, 1) == 0
    assert lerp(10, 20, 0.25) == 12.5


@pytest.mark.parametrize("ease", [smootherstep, ease_in_out_cubic])
def test_easing_endpoints_and_midpoint(ease):
    assert ease(0) == 0
    assert ease(1) == 1
    assert ease(0.5) == pytest.approx(0.5)
    assert ease(-1) == 0
    assert ease(2) == 1


def test_sorted_index_helpers():
    values = [1, 2, 2, 3]
    assert last_index_at_or_before(values, 2, key=lambda v: v) == 2
    assert last_index_at_or_before(values, 0, key=lambda v: v) == -1
    assert first_index_after(values, 2, key=lambda v: v) == 3
    assert first_index_after(values, 5, key=lambda v: v) == 4
