"""Clip, recording, telemetry and effect models."""

from __future__ import annotations

from typing import Annotated, Literal, Union, assert_never

from pydantic import BaseModel, Field, model_validator

SourceType = Literal["video", "image", "generated"]
EffectKind = Literal["zoom", "screen", "crop", "background", "cursor", "annotation", "keystroke"]


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


class MouseEvent(BaseModel):
    """A cursor sample in recording pixels."""

    timestamp: float  # ms, recording-relative
    x: float
    y: float
    screen_width: float | None = None
    screen_height: float | None = None
    cursor_type: str = "arrow"


class ClickEvent(BaseModel):
    timestamp: float
    x: float
    y: float
    button: str = "left"  # left | right | middle


class KeyboardEvent(BaseModel):
    timestamp: float
    key: str = ""


class ScrollEvent(BaseModel):
    timestamp: float
    delta_x: float = 0.0
    delta_y: float = 0.0


class RecordingMetadata(BaseModel):
    """Interaction telemetry captured alongside a recording."""

    mouse_events: list[MouseEvent] = Field(default_factory=list)
    click_events: list[ClickEvent] = Field(default_factory=list)
    keyboard_events: list[KeyboardEvent] = Field(default_factory=list)
    scroll_events: list[ScrollEvent] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


class ZoomEffectData(BaseModel):
    origin: Literal["auto", "manual"] = "manual"
    scale: float = Field(default=2.0, gt=0)
    target_x: float | None = None  # normalized 0-1
    target_y: float | None = None
    intro_ms: float = Field(default=450, ge=0)
    outro_ms: float = Field(default=800, ge=0)
    smoothing: float = Field(default=0.0, ge=0)
    follow_strategy: Literal["mouse", "center", "manual"] = "mouse"
    auto_scale: Literal["fill"] | None = None
    mouse_idle_px: float | None = Field(default=None, ge=0)
    dead_zone_ratio: float | None = Field(default=None, ge=0.0, le=1.0)


class ScreenEffectData(BaseModel):
    """3D perspective preset applied to the screen plane."""

    tilt_x: float = 0.0
    tilt_y: float = 0.0
    perspective: float = 1000.0


class CropEffectData(BaseModel):
    x: float = Field(default=0.0, ge=0.0, le=1.0)
    y: float = Field(default=0.0, ge=0.0, le=1.0)
    width: float = Field(default=1.0, gt=0.0, le=1.0)
    height: float = Field(default=1.0, gt=0.0, le=1.0)


class DeviceMockupData(BaseModel):
    enabled: bool = False
    device: str = "iphone-15-pro"


class BackgroundEffectData(BaseModel):
    padding: float = Field(default=60, ge=0)
    corner_radius: float = Field(default=0, ge=0)
    shadow_intensity: float = Field(default=0, ge=0, le=100)
    color: str = "#000000"
    mockup: DeviceMockupData | None = None


class CursorEffectData(BaseModel):
    size: float = Field(default=1.0, gt=0)
    hide_when_idle: bool = False


class AnnotationEffectData(BaseModel):
    text: str = ""
    x: float = 0.5
    y: float = 0.5


class KeystrokeEffectData(BaseModel):
    position: str = "bottom-center"


class EffectBase(BaseModel):
    """Fields shared by every effect kind.

    Global effects (``clip_id`` unset) are placed in timeline ms. Clip-bound and
    recording-scoped effects are placed in the owning recording's source ms.
    """

    id: str
    start_time: float
    end_time: float
    clip_id: str | None = None
    enabled: bool = True

    @property
    def is_global(self) -> bool:
        return self.clip_id is None


class ZoomEffect(EffectBase):
    type: Literal["zoom"] = "zoom"
    data: ZoomEffectData = Field(default_factory=ZoomEffectData)


class ScreenEffect(EffectBase):
    type: Literal["screen"] = "screen"
    data: ScreenEffectData = Field(default_factory=ScreenEffectData)


class CropEffect(EffectBase):
    type: Literal["crop"] = "crop"
    data: CropEffectData = Field(default_factory=CropEffectData)


class BackgroundEffect(EffectBase):
    type: Literal["background"] = "background"
    data: BackgroundEffectData = Field(default_factory=BackgroundEffectData)


class CursorEffect(EffectBase):
    type: Literal["cursor"] = "cursor"
    data: CursorEffectData = Field(default_factory=CursorEffectData)


class AnnotationEffect(EffectBase):
    type: Literal["annotation"] = "annotation"
    data: AnnotationEffectData = Field(default_factory=AnnotationEffectData)


class KeystrokeEffect(EffectBase):
    type: Literal["keystroke"] = "keystroke"
    data: KeystrokeEffectData = Field(default_factory=KeystrokeEffectData)


Effect = Annotated[
    Union[
        ZoomEffect,
        ScreenEffect,
        CropEffect,
        BackgroundEffect,
        CursorEffect,
        AnnotationEffect,
        KeystrokeEffect,
    ],
    Field(discriminator="type"),
]


def is_exclusive_kind(kind: EffectKind) -> bool:
    """Exclusive kinds resolve to at most one active effect per frame."""
    match kind:
        case "zoom" | "screen" | "crop" | "background":
            return True
        case "cursor" | "annotation" | "keystroke":
            return False
        case _:
            assert_never(kind)


def is_inheritable_kind(kind: EffectKind) -> bool:
    """Structural kinds a generated clip takes over from its visual source."""
    match kind:
        case "zoom" | "screen" | "crop" | "background":
            return True
        case "cursor" | "annotation" | "keystroke":
            return False
        case _:
            assert_never(kind)


EXCLUSIVE_KINDS: tuple[EffectKind, ...] = ("zoom", "screen", "crop", "background")


# ---------------------------------------------------------------------------
# Clips and recordings
# ---------------------------------------------------------------------------


class Recording(BaseModel):
    """A media source. Clips reference it by id."""

    id: str
    width: int = Field(default=1920, gt=0)
    height: int = Field(default=1080, gt=0)
    duration: float = Field(default=0.0, ge=0)
    source_type: SourceType = "video"
    metadata: RecordingMetadata | None = None
    effects: list[Effect] = Field(default_factory=list)  # source-space

    @property
    def is_visual(self) -> bool:
        return self.source_type in ("video", "image")

    @property
    def mouse_events(self) -> list[MouseEvent]:
        return self.metadata.mouse_events if self.metadata else []


class Clip(BaseModel):
    """A placement of a recording range on the timeline."""

    id: str
    recording_id: str
    start_time: float  # timeline ms
    duration: float = Field(ge=0)
    source_in: float = 0.0  # source ms
    source_out: float = 0.0
    playback_rate: float = Field(default=1.0, gt=0)
    transition_in: str | None = None  # fade | dissolve | ...
    transition_out: str | None = None

    @model_validator(mode="after")
    def _check_source_range(self) -> Clip:
        if self.source_out < self.source_in:
            raise ValueError(
                f"Clip {self.id}: source_out ({self.source_out}) < source_in ({self.source_in})"
            )
        return self

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration
