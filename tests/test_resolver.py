from __future__ import annotations

from screencut.timeline.resolver import (
    LayoutIndex,
    find_active_frame_layout_index,
    find_active_frame_layout_items,
    find_active_webcam_item,
    get_boundary_overlap_state,
    get_overlap_frames,
    get_visible_frame_layout,
)
from tests.builders import layout_of, make_clip


def gapped_layout():
    # frames 0-30 and 60-90
    return layout_of(
        make_clip("a", "rec-1", start=0, duration=1000),
        make_clip("b", "rec-2", start=2000, duration=1000),
    )


def test_active_index_inside_clips_and_at_cuts(two_clip_layout):
    assert find_active_frame_layout_index(two_clip_layout, 10) == 0
    assert find_active_frame_layout_index(two_clip_layout, 29) == 0
    assert find_active_frame_layout_index(two_clip_layout, 30) == 1  # the starting clip wins


def test_active_index_outside_and_between_clips():
    layout = gapped_layout()
    assert find_active_frame_layout_index(layout, -5) == 0
    assert find_active_frame_layout_index(layout, 45) == 0  # gap holds the clip that ended
    assert find_active_frame_layout_index(layout, 60) == 1
    assert find_active_frame_layout_index(layout, 500) == 1
    assert find_active_frame_layout_index([], 0) == -1


def test_active_items_include_overlapping_tracks():
    layout = layout_of(
        make_clip("long", "rec-1", start=0, duration=2000),
        make_clip("overlay", "rec-2", start=1000, duration=1000),
    )
    index = LayoutIndex.from_layout(layout)

    assert [i.clip.id for i in find_active_frame_layout_items(layout, 40, index)] == ["long", "overlay"]
    assert [i.clip.id for i in find_active_frame_layout_items(layout, 10, index)] == ["long"]
    assert [i.clip.id for i in find_active_frame_layout_items(layout, 100)] == ["overlay"]


def test_active_items_never_empty_for_a_layout():
    layout = gapped_layout()
    assert [i.clip.id for i in find_active_frame_layout_items(layout, 45)] == ["a"]
    assert [i.clip.id for i in find_active_frame_layout_items(layout, -3)] == ["a"]
    assert find_active_frame_layout_items([], 0) == []


def test_overlap_frames():
    assert get_overlap_frames(30, False, 1920, 1080) == 15
    assert get_overlap_frames(60, False, 3840, 2160) == 21
    assert get_overlap_frames(10, False, 1920, 1080) == 8
    assert get_overlap_frames(30, True, 1920, 1080) == 0


def test_boundary_state_near_a_cut(two_clip_layout):
    prev, active = two_clip_layout
    state = get_boundary_overlap_state(32, 30, False, active, prev, None)
    assert state.is_near_boundary_start
    assert state.should_hold_prev_frame
    assert not state.is_near_boundary_end

    near_end = get_boundary_overlap_state(20, 30, False, prev, None, active)
    assert near_end.is_near_boundary_end


def test_boundary_state_is_inert_while_rendering(two_clip_layout):
    prev, active = two_clip_layout
    state = get_boundary_overlap_state(32, 30, True, active, prev, None)
    assert not state.is_near_boundary_start
    assert not state.should_hold_prev_frame
    assert state.overlap_frames == 0


def test_boundary_state_in_a_gap_holds_the_closer_neighbour():
    prev, next_item = gapped_layout()
    early = get_boundary_overlap_state(40, 30, False, None, prev, next_item)
    assert early.should_hold_prev_frame and not early.should_hold_next_frame

    late = get_boundary_overlap_state(55, 30, False, None, prev, next_item)
    assert late.should_hold_next_frame and not late.should_hold_prev_frame


def test_scrubbing_uses_the_playback_window(two_clip_layout):
    prev, active = two_clip_layout
    playing = get_boundary_overlap_state(32, 30, False, active, prev, None)
    scrubbing = get_boundary_overlap_state(32, 30, False, active, prev, None, is_scrubbing=True)
    assert playing == scrubbing


def test_visible_layout_keeps_neighbours_in_preview_only(two_clip_layout):
    prev, active = two_clip_layout
    boundary = get_boundary_overlap_state(32, 30, False, active, prev, None)

    preview = get_visible_frame_layout(two_clip_layout, 32, 30, False, boundary, prev, None)
    assert {i.clip.id for i in preview} == {"a", "b"}

    render_boundary = get_boundary_overlap_state(32, 30, True, active, prev, None)
    render = get_visible_frame_layout(two_clip_layout, 32, 30, True, render_boundary, prev, None)
    assert [i.clip.id for i in render] == ["b"]


def test_webcam_item_prefers_the_clip_starting_now():
    layout = layout_of(
        make_clip("w1", "cam", start=0, duration=2000),
        make_clip("w2", "cam", start=1000, duration=2000),
    )
    assert find_active_webcam_item(layout, 30).clip.id == "w2"
    assert find_active_webcam_item(layout, 10).clip.id == "w1"
    assert find_active_webcam_item(layout, 500) is None
    assert find_active_webcam_item([], 0) is None


def test_webcam_lookup_with_a_prebuilt_index():
    layout = layout_of(
        make_clip("w1", "cam", start=0, duration=2000),
        make_clip("w2", "cam", start=1000, duration=2000),
        make_clip("w3", "cam", start=1000, duration=500),
    )
    index = LayoutIndex.from_layout(layout)
    assert find_active_webcam_item(layout, 30, index).clip.id == "w3"
    assert find_active_webcam_item(layout, 50, index).clip.id == "w2"
    assert find_active_webcam_item(layout, 20, index).clip.id == "w1"
