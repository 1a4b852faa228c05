from __future__ import annotations

import pytest

from screencut.camera.path import CameraPathArgs, calculate_full_camera_path, get_camera_path_frame, needs_camera_tracking
from screencut.models.camera import CENTER, CameraPath, CameraPathFrame
from screencut.telemetry.cache import TelemetryCaches
from tests.builders import background, layout_of, linear_mouse, lookup, make_clip, make_recording, still_mouse, zoom


@pytest.fixture
def recording():
    return make_recording("rec-1", mouse=still_mouse(1400, 700))


def args_for(layout, effects, *recordings, **kwargs) -> CameraPathArgs:
    return CameraPathArgs(
        layout=layout,
        fps=30,
        canvas_width=1920,
        canvas_height=1080,
        effects=effects,
        get_recording=lookup(*recordings),
        **kwargs,
    )


def test_empty_layout_has_no_path(recording):
    assert calculate_full_camera_path(args_for([], [], recording)) is None


def test_static_path_without_zoom_or_mockup(recording):
    layout = layout_of(make_clip("a", duration=1000))
    path = calculate_full_camera_path(args_for(layout, [], recording))

    assert path.fast_path
    assert len(path) == 30
    assert all(f.zoom_center == CENTER and f.zoom_scale == 1.0 for f in path.frames)


def test_tracking_is_needed_for_zooms_mockups_and_recording_zooms(recording):
    layout = layout_of(make_clip("a"))
    assert needs_camera_tracking(args_for(layout, [zoom("z", 0, 500)], recording))
    assert needs_camera_tracking(args_for(layout, [background("bg", 0, 500, device="iphone-15-pro")], recording))
    assert not needs_camera_tracking(args_for(layout, [background("bg", 0, 500)], recording))

    scoped = make_recording("rec-1", effects=[zoom("rz", 0, 500, clip_id="rec-1")])
    assert needs_camera_tracking(args_for(layout, [], scoped))


def test_zoomed_path_covers_every_frame(recording):
    layout = layout_of(make_clip("a", duration=3000))
    path = calculate_full_camera_path(args_for(layout, [zoom("z", 0, 3000, scale=2.0)], recording, deterministic=True))

    assert not path.fast_path
    assert [f.frame for f in path.frames] == list(range(90))
    assert set(path.blocks) == {"z"}
    assert path.frames[0].zoom_scale == pytest.approx(1.0)
    assert path.frames[45].zoom_scale == pytest.approx(2.0)
    assert path.frames[45].active_block_id == "z"
    assert path.frames[45].zoom_center.x > 0.5  # pulled toward the cursor on the right


def test_deterministic_path_is_reproducible(recording):
    layout = layout_of(make_clip("a", duration=2000))
    effects = [zoom("z", 200, 1800, scale=2.5)]
    first = calculate_full_camera_path(args_for(layout, effects, recording, deterministic=True))
    second = calculate_full_camera_path(
        args_for(layout, effects, recording, deterministic=True, caches=TelemetryCaches())
    )
    assert first.frames == second.frames


def test_preview_path_is_reproducible():
    recording = make_recording("rec-1", mouse=linear_mouse(100, 100, 1800, 1000, start=0, end=5000))
    layout = layout_of(
        make_clip("a", duration=2000),
        make_clip("b", start=2000, duration=2000, source_in=3000),  # cut jumps the source clock
    )
    effects = [zoom("z", 300, 3500, scale=2.5)]

    first = calculate_full_camera_path(args_for(layout, effects, recording))
    second = calculate_full_camera_path(args_for(layout, effects, recording, caches=TelemetryCaches()))

    assert not first.fast_path
    assert first.frames == second.frames
    assert first.blocks == second.blocks


def test_velocity_is_the_center_delta(recording):
    layout = layout_of(make_clip("a", duration=2000))
    path = calculate_full_camera_path(args_for(layout, [zoom("z", 0, 2000)], recording))
    for prev, cur in zip(path.frames, path.frames[1:]):
        assert cur.velocity.x == pytest.approx(cur.zoom_center.x - prev.zoom_center.x)


def test_missing_recording_frames_stay_neutral():
    layout = layout_of(make_clip("a", "gone", duration=500))
    path = calculate_full_camera_path(args_for(layout, [zoom("z", 0, 500)]))
    assert all(f.zoom_scale == 1.0 and f.zoom_center == CENTER for f in path.frames)


def test_path_lookup_is_clamped():
    path = CameraPath(frames=[CameraPathFrame(frame=i) for i in range(5)])
    assert get_camera_path_frame(path, -3).frame == 0
    assert get_camera_path_frame(path, 99).frame == 4
    assert get_camera_path_frame(path, 2).frame == 2
    assert get_camera_path_frame(None, 0) is None
    assert get_camera_path_frame(CameraPath(), 0) is None
