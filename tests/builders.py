"""Small constructors for clips, recordings, effects and telemetry."""

from __future__ import annotations

from screencut.models.project import (
    BackgroundEffect,
    BackgroundEffectData,
    Clip,
    ClickEvent,
    CropEffect,
    CropEffectData,
    DeviceMockupData,
    KeyboardEvent,
    MouseEvent,
    Recording,
    RecordingMetadata,
    ScrollEvent,
    ZoomEffect,
    ZoomEffectData,
)
from screencut.timeline.layout import build_frame_layout


def make_clip(
    clip_id: str,
    recording_id: str = "rec-1",
    start: float = 0.0,
    duration: float = 1000.0,
    source_in: float = 0.0,
    source_out: float | None = None,
    **kwargs,
) -> Clip:
    rate = kwargs.get("playback_rate", 1.0)
    if source_out is None:
        source_out = source_in + duration * rate
    return Clip(
        id=clip_id,
        recording_id=recording_id,
        start_time=start,
        duration=duration,
        source_in=source_in,
        source_out=source_out,
        **kwargs,
    )


def make_recording(
    recording_id: str = "rec-1",
    *,
    mouse: list[MouseEvent] | None = None,
    clicks: list[ClickEvent] | None = None,
    keys: list[KeyboardEvent] | None = None,
    scrolls: list[ScrollEvent] | None = None,
    source_type: str = "video",
    width: int = 1920,
    height: int = 1080,
    duration: float = 10_000.0,
    effects: list | None = None,
) -> Recording:
    has_telemetry = any(x is not None for x in (mouse, clicks, keys, scrolls))
    metadata = (
        RecordingMetadata(
            mouse_events=mouse or [],
            click_events=clicks or [],
            keyboard_events=keys or [],
            scroll_events=scrolls or [],
        )
        if has_telemetry
        else None
    )
    return Recording(
        id=recording_id,
        width=width,
        height=height,
        duration=duration,
        source_type=source_type,
        metadata=metadata,
        effects=effects or [],
    )


def lookup(*recordings: Recording):
    by_id = {r.id: r for r in recordings}
    return by_id.get


def still_mouse(x: float, y: float, start: float = 0.0, end: float = 10_000.0, step: float = 16.0) -> list[MouseEvent]:
    """A cursor resting at (x, y) px, sampled every ``step`` ms."""
    events = []
    t = start
    while t <= end:
        events.append(MouseEvent(timestamp=t, x=x, y=y))
        t += step
    return events


def linear_mouse(
    x0: float, y0: float, x1: float, y1: float, start: float, end: float, step: float = 16.0
) -> list[MouseEvent]:
    """A cursor moving at constant speed from (x0, y0) to (x1, y1)."""
    events = []
    t = start
    span = end - start
    while t <= end:
        f = (t - start) / span if span > 0 else 1.0
        events.append(MouseEvent(timestamp=t, x=x0 + (x1 - x0) * f, y=y0 + (y1 - y0) * f))
        t += step
    return events


def zoom(
    effect_id: str,
    start: float,
    end: float,
    *,
    clip_id: str | None = None,
    enabled: bool = True,
    **data,
) -> ZoomEffect:
    return ZoomEffect(
        id=effect_id,
        start_time=start,
        end_time=end,
        clip_id=clip_id,
        enabled=enabled,
        data=ZoomEffectData(**data),
    )


def crop(effect_id: str, start: float, end: float, *, clip_id: str | None = None, **data) -> CropEffect:
    return CropEffect(id=effect_id, start_time=start, end_time=end, clip_id=clip_id, data=CropEffectData(**data))


def background(
    effect_id: str,
    start: float,
    end: float,
    *,
    clip_id: str | None = None,
    padding: float = 60,
    device: str | None = None,
) -> BackgroundEffect:
    mockup = DeviceMockupData(enabled=True, device=device) if device else None
    return BackgroundEffect(
        id=effect_id,
        start_time=start,
        end_time=end,
        clip_id=clip_id,
        data=BackgroundEffectData(padding=padding, mockup=mockup),
    )


def layout_of(*clips: Clip, fps: float = 30.0):
    return build_frame_layout(list(clips), fps)
