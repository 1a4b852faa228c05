"""Per-frame snapshot: everything a renderer or exporter needs for one frame."""

from __future__ import annotations

from dataclasses import dataclass

from screencut.camera.output import (
    MockupPosition,
    VideoArea,
    calculate_mockup_position,
    calculate_video_position,
)
from screencut.camera.path import get_camera_path_frame
from screencut.camera.zoom_blocks import calculate_zoom_transform, resolve_zoom_block
from screencut.effects.resolver import EffectiveClipData, GetRecording, resolve_effective_clip_data
from screencut.models.camera import CENTER, CameraPath, Point, ZoomTransform
from screencut.models.project import Effect
from screencut.timeline.layout import FrameLayoutItem
from screencut.timeline.resolver import (
    BoundaryOverlapState,
    LayoutIndex,
    find_active_frame_layout_index,
    find_active_frame_layout_items,
    get_boundary_overlap_state,
    get_visible_frame_layout,
)
from screencut.utils.geometry import frame_to_ms


@dataclass
class SnapshotContext:
    """Project-level inputs shared by every snapshot of one timeline."""

    layout: list[FrameLayoutItem]
    effects: list[Effect]
    get_recording: GetRecording
    fps: float
    canvas_width: float
    canvas_height: float
    index: LayoutIndex | None = None
    is_rendering: bool = False


@dataclass(frozen=True)
class FrameGeometry:
    """Where the video (and device frame, if any) sits on the canvas."""

    video: VideoArea
    padding: float
    corner_radius: float
    shadow_intensity: float
    source_width: float
    source_height: float
    mockup: MockupPosition | None = None


@dataclass(frozen=True)
class CameraSnapshot:
    center: Point = CENTER
    scale: float = 1.0
    velocity: Point = Point(0.0, 0.0)
    transform: ZoomTransform = ZoomTransform()
    active_block_id: str | None = None


@dataclass(frozen=True)
class FrameSnapshot:
    frame: int
    timeline_ms: float
    active_items: list[FrameLayoutItem]
    visible_items: list[FrameLayoutItem]
    clip_data: EffectiveClipData | None
    geometry: FrameGeometry | None
    camera: CameraSnapshot
    boundary: BoundaryOverlapState


def _neighbours(
    layout: list[FrameLayoutItem], frame: int, index: int
) -> tuple[FrameLayoutItem | None, FrameLayoutItem | None, FrameLayoutItem | None]:
    """(active, prev, next) around ``frame``; active is None in a gap."""
    if index < 0:
        return None, None, None
    item = layout[index]
    if item.contains(frame):
        prev = layout[index - 1] if index > 0 else None
        next_item = layout[index + 1] if index + 1 < len(layout) else None
        return item, prev, next_item
    if frame >= item.end_frame:
        return None, item, layout[index + 1] if index + 1 < len(layout) else None
    return None, layout[index - 1] if index > 0 else None, item


def _geometry(clip_data: EffectiveClipData, canvas_w: float, canvas_h: float) -> FrameGeometry:
    recording = clip_data.visual_source.recording if clip_data.visual_source is not None else clip_data.recording
    source_w = recording.width or canvas_w
    source_h = recording.height or canvas_h

    background = clip_data.active.background
    data = background.data if background is not None else None
    padding = data.padding if data is not None else 0.0

    mockup = None
    if data is not None and data.mockup is not None and data.mockup.enabled:
        mockup = calculate_mockup_position(canvas_w, canvas_h, data.mockup, source_w, source_h, padding)
    if mockup is not None:
        video = VideoArea(mockup.video_width, mockup.video_height, mockup.video_x, mockup.video_y)
    else:
        video = calculate_video_position(canvas_w, canvas_h, source_w, source_h, padding)

    return FrameGeometry(
        video=video,
        padding=padding,
        corner_radius=data.corner_radius if data is not None else 0.0,
        shadow_intensity=data.shadow_intensity if data is not None else 0.0,
        source_width=source_w,
        source_height=source_h,
        mockup=mockup,
    )


def _camera(
    frame: int,
    clip_data: EffectiveClipData | None,
    geometry: FrameGeometry | None,
    camera_path: CameraPath | None,
) -> CameraSnapshot:
    path_frame = get_camera_path_frame(camera_path, frame)
    if path_frame is None:
        return CameraSnapshot()

    transform = ZoomTransform(scale=path_frame.zoom_scale)
    block = camera_path.blocks.get(path_frame.active_block_id) if path_frame.active_block_id else None
    if block is not None and clip_data is not None and geometry is not None:
        resolved, block_time = resolve_zoom_block(clip_data.effects, clip_data.timeline_ms, clip_data.source_time_ms)
        if resolved is None or resolved.id != block.id:
            block_time = clip_data.timeline_ms
        transform = calculate_zoom_transform(
            block,
            block_time,
            geometry.video.draw_width,
            geometry.video.draw_height,
            path_frame.zoom_center,
            path_frame.zoom_scale,
        )

    return CameraSnapshot(
        center=path_frame.zoom_center,
        scale=path_frame.zoom_scale,
        velocity=path_frame.velocity,
        transform=transform,
        active_block_id=path_frame.active_block_id,
    )


def calculate_frame_snapshot(frame: int, context: SnapshotContext, camera_path: CameraPath | None) -> FrameSnapshot:
    """Assemble the snapshot for ``frame`` from the layout and a prebuilt camera path.

    Never simulates: the camera comes from ``camera_path`` by index.
    """
    layout = context.layout
    index = context.index or LayoutIndex.from_layout(layout)
    timeline_ms = frame_to_ms(frame, context.fps) if context.fps > 0 else 0.0

    active_items = find_active_frame_layout_items(layout, frame, index)
    owner = find_active_frame_layout_index(layout, frame)
    active, prev, next_item = _neighbours(layout, frame, owner)

    clip_data = resolve_effective_clip_data(frame, layout, context.effects, context.get_recording, context.fps)
    geometry = _geometry(clip_data, context.canvas_width, context.canvas_height) if clip_data is not None else None

    source_w = int(geometry.source_width) if geometry is not None else 1920
    source_h = int(geometry.source_height) if geometry is not None else 1080
    boundary = get_boundary_overlap_state(
        frame,
        context.fps,
        context.is_rendering,
        active,
        prev,
        next_item,
        source_width=source_w,
        source_height=source_h,
    )
    visible = (
        get_visible_frame_layout(layout, frame, context.fps, context.is_rendering, boundary, prev, next_item, index)
        if layout
        else []
    )

    return FrameSnapshot(
        frame=frame,
        timeline_ms=timeline_ms,
        active_items=active_items,
        visible_items=visible,
        clip_data=clip_data,
        geometry=geometry,
        camera=_camera(frame, clip_data, geometry, camera_path),
        boundary=boundary,
    )
