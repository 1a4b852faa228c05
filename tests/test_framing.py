from __future__ import annotations

import pytest

from screencut.camera.dead_zone import calculate_follow_target, get_adaptive_dead_zone_ratio, get_half_windows
from screencut.camera.output import (
    Overscan,
    calculate_mockup_position,
    calculate_video_position,
    get_camera_output_context,
    get_camera_output_params,
)
from screencut.camera.visibility import (
    ContentBounds,
    CursorMargins,
    clamp_axis,
    clamp_center_to_content_bounds,
    cursor_type_at,
    get_cursor_margins,
    project_center_to_keep_cursor_visible,
    resolve_cursor_glyph,
)
from screencut.models.camera import Point
from screencut.models.project import DeviceMockupData, MouseEvent
from tests.builders import background, make_recording


# -- dead zone ---------------------------------------------------------------


def test_dead_zone_shrinks_with_zoom():
    assert get_adaptive_dead_zone_ratio(1.0) == 0.4
    assert get_adaptive_dead_zone_ratio(1.5) == 0.4
    assert get_adaptive_dead_zone_ratio(2.75) == pytest.approx(0.34)
    assert get_adaptive_dead_zone_ratio(4.0) == pytest.approx(0.28)
    assert get_adaptive_dead_zone_ratio(8.0) == pytest.approx(0.28)
    assert get_adaptive_dead_zone_ratio(4.0, override=0.5) == pytest.approx(0.425)


def test_half_windows():
    assert get_half_windows(1.0, 1920, 1080) == (0.5, 0.5)
    assert get_half_windows(2.0, 1920, 1080) == (0.25, 0.25)
    hx, hy = get_half_windows(2.0, 1920, 1080, 2560, 1080)
    assert hx == 0.25
    assert hy == pytest.approx(0.25 * (2560 / 1080) / (1920 / 1080))


def test_follow_target_ignores_cursor_inside_dead_zone():
    center = Point(0.5, 0.5)
    assert calculate_follow_target(Point(0.55, 0.52), center, 0.25, 0.25, 2.0) == center


def test_follow_target_keeps_far_cursor_on_dead_zone_edge():
    target = calculate_follow_target(Point(0.9, 0.1), Point(0.5, 0.5), 0.25, 0.25, 1.5)
    assert target.x == pytest.approx(0.8)
    assert target.y == pytest.approx(0.2)

    # deeper in, the dead zone has shrunk to 0.376 of the half window
    target = calculate_follow_target(Point(0.9, 0.1), Point(0.5, 0.5), 0.25, 0.25, 2.0)
    assert target.x == pytest.approx(0.9 - 0.25 * 0.376)
    assert target.y == pytest.approx(0.1 + 0.25 * 0.376)


def test_configured_base_ratio_sizes_the_dead_zone():
    assert get_adaptive_dead_zone_ratio(1.0, base_ratio=0.2) == 0.2
    assert get_adaptive_dead_zone_ratio(4.0, base_ratio=0.2) == pytest.approx(0.14)
    assert get_adaptive_dead_zone_ratio(1.0, override=0.5, base_ratio=0.2) == 0.5

    cursor = Point(0.65, 0.5)
    assert calculate_follow_target(cursor, Point(0.5, 0.5), 0.25, 0.25, 1.0, base_ratio=0.8).x == 0.5
    assert calculate_follow_target(cursor, Point(0.5, 0.5), 0.25, 0.25, 1.0, base_ratio=0.1).x == pytest.approx(0.625)


def test_follow_target_blends_in_soft_band():
    target = calculate_follow_target(Point(0.62, 0.5), Point(0.5, 0.5), 0.25, 0.25, 2.0)
    assert 0.5 < target.x < 0.52


# -- visibility ---------------------------------------------------------------


def test_clamp_axis_midpoint_when_infeasible():
    assert clamp_axis(0.9, 0.6, 0.4) == pytest.approx(0.5)


def test_center_clamped_to_content():
    assert clamp_center_to_content_bounds(Point(0.1, 0.9), 0.25, 0.25) == Point(0.25, 0.75)

    crop = ContentBounds(0.2, 0.8, 0.2, 0.8)
    assert clamp_center_to_content_bounds(Point(0.1, 0.5), 0.25, 0.25, bounds=crop).x == pytest.approx(0.45)

    overscan = Overscan(0.1, 0.1, 0.1, 0.1)
    assert clamp_center_to_content_bounds(Point(0.0, 0.5), 0.25, 0.25, overscan).x == pytest.approx(0.15)
    assert clamp_center_to_content_bounds(Point(0.0, 0.5), 0.25, 0.25, overscan, ignore_overscan=True).x == 0.25


def test_projection_moves_center_just_enough():
    moved = project_center_to_keep_cursor_visible(Point(0.5, 0.5), Point(0.9, 0.5), 0.25, 0.25)
    assert moved.x == pytest.approx(0.65)
    assert moved.y == 0.5

    with_glyph = project_center_to_keep_cursor_visible(
        Point(0.5, 0.5), Point(0.9, 0.5), 0.25, 0.25, margins=CursorMargins(right=0.05)
    )
    assert with_glyph.x == pytest.approx(0.7)


def test_projection_with_oversized_cursor_only_clamps():
    moved = project_center_to_keep_cursor_visible(
        Point(0.5, 0.5), Point(0.5, 0.5), 0.1, 0.1, margins=CursorMargins(left=0.3, right=0.3)
    )
    assert moved.x == 0.5


def test_cursor_glyphs():
    assert resolve_cursor_glyph("pointer") == "pointing_hand"
    assert resolve_cursor_glyph("text") == "ibeam"
    assert resolve_cursor_glyph("unknown") == "arrow"
    assert resolve_cursor_glyph(None) == "arrow"

    events = [MouseEvent(timestamp=0, x=0, y=0, cursor_type="text"), MouseEvent(timestamp=100, x=0, y=0)]
    assert cursor_type_at(events, 50) == "ibeam"
    assert cursor_type_at(events, 150) == "arrow"
    assert cursor_type_at([], 0) == "arrow"


def test_cursor_margins_scale_with_window():
    margins = get_cursor_margins("arrow", 1.0, 1920, 1080, 0.25, 0.25)
    assert margins.left == pytest.approx(0.15 * 24 / 1920 * 0.5)
    assert margins.bottom == pytest.approx(0.88 * 32 / 1080 * 0.5)
    assert get_cursor_margins("arrow", 1.0, 0, 0, 0.25, 0.25) == CursorMargins()


# -- output -------------------------------------------------------------------


def test_video_fits_inside_padding():
    area = calculate_video_position(1920, 1080, 1920, 1080, padding=60)
    assert area.draw_height == 960
    assert area.draw_width == pytest.approx(960 * 16 / 9)
    assert area.offset_y == 60
    assert area.offset_x == pytest.approx((1920 - 960 * 16 / 9) / 2)


def test_padding_becomes_overscan():
    area = calculate_video_position(1920, 1080, 1920, 1080, padding=60)
    params = get_camera_output_params(1920, 1080, area)
    assert params.overscan.top == pytest.approx(0.0625)
    assert params.overscan.left == pytest.approx(0.0625)
    assert params.overscan.any

    flush = calculate_video_position(1920, 1080, 1920, 1080, padding=0)
    assert not get_camera_output_params(1920, 1080, flush).overscan.any


def test_mockup_layout():
    assert calculate_mockup_position(1920, 1080, DeviceMockupData(enabled=True, device="nope"), 1080, 1920) is None

    pos = calculate_mockup_position(1920, 1080, DeviceMockupData(enabled=True), 1080, 1920, padding=60)
    assert pos.mockup_height == 960
    assert pos.video_width >= pos.screen_width
    assert pos.video_height >= pos.screen_height


def test_output_context_without_and_with_mockup():
    recording = make_recording("rec-1")
    plain = get_camera_output_context([], 0, 1920, 1080, recording)
    assert (plain.output_width, plain.output_height) == (1920, 1080)
    assert not plain.overscan.any
    assert not plain.force_follow_cursor

    phone = get_camera_output_context([background("bg", 0, 10_000, device="iphone-15-pro")], 0, 1920, 1080, recording)
    assert phone.force_follow_cursor
    assert phone.mockup_screen is not None
    assert phone.output_width < 1920
