"""Output framing: where the video lands on the canvas, and how far the camera may overscan.

Overscan is the padding (or mockup screen area) around the drawn video,
as a fraction of the video's drawn size on each side. The camera may pan
into it to reveal the background.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from screencut.effects.filters import get_active_background_effect
from screencut.models.project import DeviceMockupData, Effect, Recording
from screencut.utils.geometry import js_round

DEFAULT_PADDING = 60.0


@dataclass(frozen=True)
class Overscan:
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    @property
    def any(self) -> bool:
        return self.left > 0 or self.right > 0 or self.top > 0 or self.bottom > 0

    @property
    def denom_x(self) -> float:
        return 1 + self.left + self.right

    @property
    def denom_y(self) -> float:
        return 1 + self.top + self.bottom


NO_OVERSCAN = Overscan()


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class VideoArea:
    """Where the video is drawn on the output, in pixels."""

    draw_width: float
    draw_height: float
    offset_x: float
    offset_y: float


@dataclass(frozen=True)
class ScreenRegion:
    x: float
    y: float
    width: float
    height: float
    corner_radius: float = 0.0


@dataclass(frozen=True)
class DeviceMockup:
    width: float
    height: float
    screen: ScreenRegion


DEVICE_MOCKUPS: dict[str, DeviceMockup] = {
    "iphone-15-pro": DeviceMockup(430, 880, ScreenRegion(18, 18, 393, 852, 55)),
    "iphone-15-pro-max": DeviceMockup(468, 956, ScreenRegion(18, 18, 430, 932, 60)),
    "iphone-14-pro": DeviceMockup(430, 880, ScreenRegion(18, 18, 393, 852, 55)),
    "iphone-se": DeviceMockup(396, 776, ScreenRegion(20, 100, 375, 667, 0)),
    "ipad-pro-11": DeviceMockup(870, 1220, ScreenRegion(30, 30, 834, 1194, 18)),
    "ipad-pro-13": DeviceMockup(1066, 1412, ScreenRegion(30, 30, 1024, 1366, 20)),
    "ipad-air": DeviceMockup(870, 1220, ScreenRegion(30, 30, 820, 1180, 18)),
    "ipad-mini": DeviceMockup(540, 760, ScreenRegion(22, 22, 744, 1133, 16)),
    "macbook-pro-14": DeviceMockup(1512, 982, ScreenRegion(160, 24, 3024, 1964, 12)),
    "macbook-pro-16": DeviceMockup(1728, 1117, ScreenRegion(180, 28, 3456, 2234, 14)),
    "macbook-air-13": DeviceMockup(1470, 956, ScreenRegion(155, 22, 2560, 1664, 10)),
    "macbook-air-15": DeviceMockup(1680, 1080, ScreenRegion(175, 26, 2880, 1864, 12)),
}


@dataclass(frozen=True)
class MockupPosition:
    """A device frame laid out on the canvas (all values canvas pixels)."""

    mockup_x: float
    mockup_y: float
    mockup_width: float
    mockup_height: float
    screen_x: float
    screen_y: float
    screen_width: float
    screen_height: float
    screen_corner_radius: float
    video_x: float
    video_y: float
    video_width: float
    video_height: float
    mockup_scale: float


@dataclass(frozen=True)
class CameraOutputParams:
    output_width: float
    output_height: float
    overscan: Overscan = NO_OVERSCAN


@dataclass(frozen=True)
class CameraOutputContext:
    """Everything about the output the camera step needs for one clip."""

    output_width: float
    output_height: float
    overscan: Overscan = NO_OVERSCAN
    mockup_screen: Rect | None = None
    force_follow_cursor: bool = False
    source_width: float = 1920
    source_height: float = 1080


def calculate_video_position(
    canvas_width: float,
    canvas_height: float,
    video_width: float,
    video_height: float,
    padding: float = DEFAULT_PADDING,
) -> VideoArea:
    """Fit the video inside the padded canvas, centered."""
    available_w = canvas_width - padding * 2
    available_h = canvas_height - padding * 2
    if available_w <= 0 or available_h <= 0 or video_width <= 0 or video_height <= 0:
        return VideoArea(0.0, 0.0, canvas_width / 2, canvas_height / 2)

    video_aspect = video_width / video_height
    if video_aspect > available_w / available_h:
        draw_w = available_w
        draw_h = available_w / video_aspect
    else:
        draw_h = available_h
        draw_w = available_h * video_aspect
    return VideoArea(draw_w, draw_h, (canvas_width - draw_w) / 2, (canvas_height - draw_h) / 2)


def _cover_fit(screen_w: float, screen_h: float, video_w: float, video_h: float) -> Rect:
    """Fill the screen region, cropping the overflowing axis."""
    if screen_h <= 0 or video_h <= 0:
        return Rect(0.0, 0.0, screen_w, screen_h)
    video_aspect = video_w / video_h
    if video_aspect > screen_w / screen_h:
        height = screen_h
        width = screen_h * video_aspect
    else:
        width = screen_w
        height = screen_w / video_aspect
    return Rect((screen_w - width) / 2, (screen_h - height) / 2, width, height)


def calculate_mockup_position(
    canvas_width: float,
    canvas_height: float,
    mockup: DeviceMockupData,
    source_width: float,
    source_height: float,
    padding: float = DEFAULT_PADDING,
) -> MockupPosition | None:
    """Lay out a device frame on the canvas and the video inside its screen.

    Returns None for an unknown device or when nothing fits.
    """
    device = DEVICE_MOCKUPS.get(mockup.device)
    if device is None:
        return None

    available_w = canvas_width - padding * 2
    available_h = canvas_height - padding * 2
    if available_w <= 0 or available_h <= 0:
        return None

    if device.width / device.height > available_w / available_h:
        scale = available_w / device.width
    else:
        scale = available_h / device.height

    raw_w = device.width * scale
    raw_h = device.height * scale
    mockup_x = js_round((canvas_width - raw_w) / 2)
    mockup_y = js_round((canvas_height - raw_h) / 2)

    region = device.screen
    left = mockup_x + js_round(region.x * scale)
    top = mockup_y + js_round(region.y * scale)
    right = mockup_x + js_round((region.x + region.width) * scale)
    bottom = mockup_y + js_round((region.y + region.height) * scale)
    screen_w = max(0, right - left)
    screen_h = max(0, bottom - top)

    fit = _cover_fit(screen_w, screen_h, source_width, source_height)
    return MockupPosition(
        mockup_x=mockup_x,
        mockup_y=mockup_y,
        mockup_width=js_round(raw_w),
        mockup_height=js_round(raw_h),
        screen_x=left,
        screen_y=top,
        screen_width=screen_w,
        screen_height=screen_h,
        screen_corner_radius=js_round(region.corner_radius * scale),
        video_x=left + js_round(fit.x),
        video_y=top + js_round(fit.y),
        video_width=js_round(fit.width),
        video_height=js_round(fit.height),
        mockup_scale=scale,
    )


def get_mockup_screen_rect(position: MockupPosition) -> Rect:
    return Rect(position.screen_x, position.screen_y, position.screen_width, position.screen_height)


def get_camera_output_params(
    canvas_width: float,
    canvas_height: float,
    video_area: VideoArea,
    mockup: MockupPosition | None = None,
) -> CameraOutputParams:
    """Output size (the mockup screen, or the canvas) and the overscan around the video."""
    output_w = mockup.screen_width if mockup is not None else canvas_width
    output_h = mockup.screen_height if mockup is not None else canvas_height
    offset_x = mockup.screen_x if mockup is not None else 0.0
    offset_y = mockup.screen_y if mockup is not None else 0.0

    if output_w <= 0 or output_h <= 0 or video_area.draw_width <= 0 or video_area.draw_height <= 0:
        return CameraOutputParams(output_w, output_h)

    rel_x = video_area.offset_x - offset_x
    rel_y = video_area.offset_y - offset_y
    right_px = output_w - rel_x - video_area.draw_width
    bottom_px = output_h - rel_y - video_area.draw_height
    overscan = Overscan(
        left=max(0.0, rel_x / video_area.draw_width),
        right=max(0.0, right_px / video_area.draw_width),
        top=max(0.0, rel_y / video_area.draw_height),
        bottom=max(0.0, bottom_px / video_area.draw_height),
    )
    return CameraOutputParams(output_w, output_h, overscan)


def get_camera_output_context(
    effects: Iterable[Effect],
    timeline_ms: float,
    canvas_width: float,
    canvas_height: float,
    recording: Recording | None,
) -> CameraOutputContext:
    """Output framing for one clip: padding from its background, mockup layout when enabled."""
    background = get_active_background_effect(effects, timeline_ms)
    data = background.data if background is not None else None
    padding = data.padding if data is not None else 0.0

    source_w = recording.width if recording is not None and recording.width else canvas_width
    source_h = recording.height if recording is not None and recording.height else canvas_height

    mockup_data = data.mockup if data is not None else None
    mockup = None
    if mockup_data is not None and mockup_data.enabled:
        mockup = calculate_mockup_position(canvas_width, canvas_height, mockup_data, source_w, source_h, padding)

    if mockup is not None:
        area = VideoArea(mockup.video_width, mockup.video_height, mockup.video_x, mockup.video_y)
    else:
        area = calculate_video_position(canvas_width, canvas_height, source_w, source_h, padding)

    params = get_camera_output_params(canvas_width, canvas_height, area, mockup)
    screen = Rect(0.0, 0.0, params.output_width, params.output_height) if mockup is not None else None
    return CameraOutputContext(
        output_width=params.output_width,
        output_height=params.output_height,
        overscan=params.overscan,
        mockup_screen=screen,
        force_follow_cursor=mockup is not None,
        source_width=source_w,
        source_height=source_h,
    )
