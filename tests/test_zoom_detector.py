from __future__ import annotations

import pytest

from screencut.models.camera import ZoomBlock
from screencut.models.config import ZoomDetectionConfig, ZoomDetectionSettings, resolve_detection_config
from screencut.models.project import ClickEvent, KeyboardEvent, MouseEvent, ScrollEvent
from screencut.telemetry.zoom_detector import (
    ActionCluster,
    ActionPoint,
    ZoomDetector,
    _mouse_position_at,
    detect_zoom_blocks,
    detect_zoom_blocks_for_clip,
    zoom_blocks_to_effects,
)
from tests.builders import linear_mouse, make_clip, make_recording, still_mouse

W, H = 1920, 1080


def clicks_at(x: float, y: float, *times: float) -> list[ClickEvent]:
    return [ClickEvent(timestamp=t, x=x, y=y) for t in times]


def keys_from(start: float, count: int, step: float = 100) -> list[KeyboardEvent]:
    return [KeyboardEvent(timestamp=start + i * step, key="a") for i in range(count)]


def cluster_of(action: ActionPoint) -> ActionCluster:
    return ActionCluster(action, action.timestamp, action.timestamp, action.importance, [action])


@pytest.fixture
def detector() -> ZoomDetector:
    return ZoomDetector()


def test_typing_bursts(detector):
    keys = keys_from(0, 3) + keys_from(5000, 2) + keys_from(9000, 4)
    assert detector.detect_typing_bursts(keys) == [(0, 200), (9000, 9300)]
    assert detector.detect_typing_bursts(keys_from(0, 2)) == []


def test_scroll_stops(detector):
    scrolls = [ScrollEvent(timestamp=t, delta_y=100) for t in (0, 100, 200)] + [
        ScrollEvent(timestamp=1000, delta_y=10)
    ]
    assert detector.detect_scroll_stops(scrolls) == [(200, 210)]
    assert detector.detect_scroll_stops(scrolls[:1]) == []


def test_click_clustering(detector):
    clicks = clicks_at(100, 100, 0) + clicks_at(110, 100, 500) + clicks_at(1800, 1000, 1000)
    clusters = detector.cluster_clicks(clicks, [], W, H)

    assert [len(c.clicks) for c in clusters] == [2, 1]
    assert clusters[0].center_x == pytest.approx(105)
    assert not clusters[0].is_deliberate


def test_deliberate_click_needs_idle_hover(detector):
    click = ClickEvent(timestamp=1000, x=500, y=500)
    resting = still_mouse(500, 500, start=0, end=999)
    rushing = linear_mouse(0, 0, 500, 500, start=400, end=999)

    assert detector.is_deliberate_click(click, resting, W, H)
    assert not detector.is_deliberate_click(click, rushing, W, H)
    assert not detector.is_deliberate_click(click, [], W, H)


def test_action_clusters_aim_at_the_most_important_action(detector):
    a1 = ActionPoint(0, 100, 100, "click", 0.7)
    a2 = ActionPoint(1000, 120, 100, "click", 0.9)
    a3 = ActionPoint(20_000, 100, 100, "click", 0.7)
    clusters = detector.cluster_actions([a1, a2, a3], W, H)

    assert len(clusters) == 2
    assert clusters[0].primary is a2
    assert clusters[0].max_importance == 0.9
    assert clusters[1].primary is a3


def test_equal_importance_keeps_the_earliest_primary(detector):
    a1 = ActionPoint(0, 100, 100, "click", 0.8)
    a2 = ActionPoint(500, 120, 100, "click", 0.8)
    (cluster,) = detector.cluster_actions([a1, a2], W, H)
    assert cluster.primary is a1


def test_frequency_limit_keeps_most_important_in_time_order(detector):
    clusters = [cluster_of(ActionPoint(t, 0, 0, "click", imp)) for t, imp in [(0, 0.5), (1, 0.9), (2, 0.7)]]
    kept = detector.limit_frequency(clusters, 2)
    assert [c.start_time for c in kept] == [1, 2]


def test_block_shape_and_scale(detector):
    action = ActionPoint(5000, 960, 540, "click", 0.9, context="deliberate_click")
    block = detector.create_block(cluster_of(action), W, H, 60_000)

    assert block.id == "zoom-action-5000"
    assert block.start_time == 4700  # anticipation lands the focus inside the intro
    assert block.end_time == 4700 + 450 + 3000 + 800
    assert block.scale == pytest.approx(2.1)
    assert (block.target_x, block.target_y) == (0.5, 0.5)
    assert block.origin == "auto"
    assert block.reason == "deliberate_click"


def test_block_near_the_end_shifts_earlier(detector):
    action = ActionPoint(5000, 960, 540, "click", 0.9)
    block = detector.create_block(cluster_of(action), W, H, 6000)
    assert block.end_time == 5900
    assert block.start_time == 5900 - 4250


def test_minimum_gap_keeps_the_deeper_zoom(detector):
    blocks = [
        ZoomBlock("a", 0, 4000, 1.5),
        ZoomBlock("b", 6000, 9000, 2.0),
        ZoomBlock("c", 20_000, 24_000, 1.5),
        ZoomBlock("d", 25_000, 28_000, 1.2),
    ]
    assert [b.id for b in detector.enforce_minimum_gap(blocks)] == ["b", "c"]


def test_detects_a_click_cluster():
    blocks = detect_zoom_blocks([], clicks_at(400, 300, 10_000, 10_200, 10_400), [], [], W, H, 60_000)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.reason == "click_cluster"
    assert block.start_time == 9700
    assert block.end_time == 13_950
    assert block.scale == pytest.approx(1.9)
    assert block.target_x == pytest.approx(400 / W)
    assert block.target_y == pytest.approx(300 / H)


def test_typing_extends_the_hold():
    blocks = detect_zoom_blocks([], [], keys_from(30_000, 20), [], W, H, 60_000)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.reason == "typing"
    assert block.start_time == 29_700
    # hold = 3000 + (1900 typed + 1500 tail)
    assert block.end_time == 29_700 + 450 + 6400 + 800
    assert block.scale == pytest.approx(1.5)


def test_cursor_dwell_becomes_a_zoom():
    blocks = detect_zoom_blocks(still_mouse(500, 500, start=0, end=4000), [], [], [], W, H, 60_000)
    assert [b.reason for b in blocks] == ["dwell"]
    assert blocks[0].start_time == 0


def test_frequency_cap_from_ui_settings():
    clicks = clicks_at(400, 300, 10_000, 10_200)  # importance 0.7
    keys = keys_from(30_000, 20)  # first burst, importance 0.8
    assert len(detect_zoom_blocks([], clicks, keys, [], W, H, 60_000)) == 2

    capped = detect_zoom_blocks(
        [], clicks, keys, [], W, H, 60_000, settings=ZoomDetectionSettings(max_zooms_per_minute=1)
    )
    assert [b.reason for b in capped] == ["typing"]


def test_no_telemetry_or_empty_window():
    assert detect_zoom_blocks([], [], [], [], W, H, 60_000) == []
    assert ZoomDetector().detect([], clicks_at(1, 1, 0, 1), [], [], W, H, 0) == []


def test_ui_settings_override_generation_defaults():
    config = ZoomDetectionConfig(min_zoom_gap_ms=1000, intro_ms=300)
    merged = resolve_detection_config(config, ZoomDetectionSettings(min_zoom_gap_ms=9000))
    assert merged.min_zoom_gap_ms == 9000
    assert merged.intro_ms == 300
    assert resolve_detection_config(config, ZoomDetectionSettings()) is config


def test_clip_detection_only_sees_its_source_window():
    recording = make_recording(
        "rec-1",
        clicks=clicks_at(400, 300, 10_000, 10_200, 10_400) + clicks_at(800, 600, 50_000, 50_200),
        duration=60_000,
    )
    clip = make_clip("a", "rec-1", start=0, duration=20_000, source_in=40_000)

    blocks = detect_zoom_blocks_for_clip(clip, recording)
    assert len(blocks) == 1
    assert blocks[0].start_time == 49_700
    assert blocks[0].target_x == pytest.approx(800 / W)


def test_blocks_persist_as_auto_zoom_effects():
    block = ZoomBlock("zoom-action-1", 100, 5000, 1.8, target_x=0.2, target_y=0.3, origin="auto")
    (effect,) = zoom_blocks_to_effects([block], clip_id="a")

    assert effect.type == "zoom"
    assert effect.clip_id == "a"
    assert effect.data.origin == "auto"
    assert effect.data.scale == 1.8
    assert (effect.start_time, effect.end_time) == (100, 5000)


def test_action_position_takes_the_next_mouse_sample():
    events = [MouseEvent(timestamp=t, x=t, y=t / 2) for t in (0, 100, 200)]
    assert _mouse_position_at(events, 50, W, H) == (100, 50)
    assert _mouse_position_at(events, 100, W, H) == (100, 50)
    assert _mouse_position_at(events, 500, W, H) == (200, 100)
    assert _mouse_position_at([], 50, W, H) == (W / 2, H / 2)
