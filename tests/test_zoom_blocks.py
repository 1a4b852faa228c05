from __future__ import annotations

import math

import pytest

from screencut.camera.zoom_blocks import (
    calculate_zoom_scale,
    calculate_zoom_transform,
    get_zoom_block_at_time,
    normalize_ease_durations,
    parse_zoom_blocks,
    resolve_zoom_block,
)
from screencut.models.camera import Point, ZoomBlock
from tests.builders import zoom


def test_parse_skips_disabled_and_empty_zooms():
    effects = [
        zoom("late", 5000, 6000),
        zoom("off", 0, 1000, enabled=False),
        zoom("empty", 100, 100),
        zoom("early", 0, 1000, scale=3.0),
    ]
    blocks = parse_zoom_blocks(effects)
    assert [b.id for b in blocks] == ["early", "late"]
    assert blocks[0].scale == 3.0


def test_block_lookup_tolerates_frame_rounding():
    blocks = [ZoomBlock("a", 1000, 2000, 2.0)]
    assert get_zoom_block_at_time(blocks, 1500).id == "a"
    assert get_zoom_block_at_time(blocks, 2030).id == "a"
    assert get_zoom_block_at_time(blocks, 980).id == "a"
    assert get_zoom_block_at_time(blocks, 2050) is None
    assert get_zoom_block_at_time([], 0) is None


def test_resolve_uses_each_block_clock():
    effects = [zoom("global", 0, 1000), zoom("scoped", 5000, 6000, clip_id="a")]

    block, t = resolve_zoom_block(effects, timeline_ms=500, source_time_ms=5500)
    assert (block.id, t) == ("scoped", 5500)

    block, t = resolve_zoom_block(effects, timeline_ms=500, source_time_ms=100)
    assert (block.id, t) == ("global", 500)

    assert resolve_zoom_block(effects, timeline_ms=3000, source_time_ms=100) == (None, 3000)


def test_ease_durations_shrink_to_fit():
    assert normalize_ease_durations(1000, 800, 800) == (1000, 500, 500)
    assert normalize_ease_durations(5000, 800, 800) == (5000, 800, 800)
    assert normalize_ease_durations(0, 800, 800) == (0, 0, 0)


def test_zoom_scale_eases_in_holds_and_eases_out():
    assert calculate_zoom_scale(0, 4000, 2.0) == pytest.approx(1.0)
    assert calculate_zoom_scale(2000, 4000, 2.0) == 2.0
    assert calculate_zoom_scale(4000, 4000, 2.0) == pytest.approx(1.0)

    intro = [calculate_zoom_scale(t, 4000, 2.0) for t in range(0, 801, 100)]
    assert intro == sorted(intro)
    outro = [calculate_zoom_scale(t, 4000, 2.0) for t in range(3200, 4001, 100)]
    assert outro == sorted(outro, reverse=True)


def test_zoom_scale_degenerate_and_inherited_blocks():
    assert calculate_zoom_scale(100, 0, 2.0) == 1.0
    assert calculate_zoom_scale(math.inf, math.inf, 2.0) == 2.0


def test_transform_without_block_is_identity():
    assert calculate_zoom_transform(None, 0, 1000, 500, Point(0.2, 0.2)).scale == 1.0
    assert calculate_zoom_transform(None, 0, 1000, 500, Point(0.2, 0.2), 1.4).scale == 1.4


def test_transform_pans_toward_zoom_center_during_hold():
    block = ZoomBlock("a", 0, 4000, 2.0, intro_ms=800, outro_ms=800)
    held = calculate_zoom_transform(block, 2000, 1000, 500, Point(0.25, 0.5))

    assert held.scale == 2.0
    assert held.pan_x == pytest.approx(500)
    assert held.pan_y == pytest.approx(0)
    assert held.refocus_blur == 0

    centered = calculate_zoom_transform(block, 2000, 1000, 500, Point(0.5, 0.5))
    assert centered.pan_x == pytest.approx(0)


def test_transform_blur_peaks_mid_intro():
    block = ZoomBlock("a", 0, 4000, 2.0, intro_ms=800, outro_ms=800)
    mid = calculate_zoom_transform(block, 400, 1000, 500, Point(0.5, 0.5))
    assert mid.refocus_blur == pytest.approx(0.4)
    assert calculate_zoom_transform(block, 400, 1000, 500, Point(0.5, 0.5), refocus_blur=False).refocus_blur == 0


def test_transform_returns_to_center_by_block_end():
    block = ZoomBlock("a", 0, 4000, 2.0, intro_ms=800, outro_ms=800)
    end = calculate_zoom_transform(block, 4000, 1000, 500, Point(0.1, 0.1))
    assert end.scale == pytest.approx(1.0)
    assert end.pan_x == pytest.approx(0)
