"""Derived camera records: zoom blocks, physics state, path frames."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Point:
    """A normalized (0-1) position; values may leave 0-1 when overscan allows it."""

    x: float
    y: float


CENTER = Point(0.5, 0.5)


@dataclass
class ZoomBlock:
    """A time range during which the camera zooms in.

    Detected blocks are in source ms; blocks parsed from zoom effects carry the
    effect's own time space.
    """

    id: str
    start_time: float
    end_time: float
    scale: float
    target_x: float | None = None  # normalized 0-1
    target_y: float | None = None
    intro_ms: float = 450
    outro_ms: float = 800
    origin: str = "manual"  # auto | manual
    smoothing: float = 0.0
    follow_strategy: str = "mouse"  # mouse | center | manual
    auto_scale: str | None = None  # fill
    mouse_idle_px: float | None = None
    dead_zone_ratio: float | None = None
    importance: float = 0.0
    reason: str = ""

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class CameraPhysicsState:
    """Spring simulation state carried from one frame to the next."""

    x: float = 0.5
    y: float = 0.5
    vx: float = 0.0
    vy: float = 0.0
    scale: float = 1.0
    v_scale: float = 0.0
    last_time_ms: float | None = None
    last_source_time_ms: float | None = None
    cursor_stopped_at_ms: float | None = None
    frozen_target_x: float | None = None
    frozen_target_y: float | None = None

    @property
    def center(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class ZoomTransform:
    """Pixel-space transform handed to the renderer."""

    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    refocus_blur: float = 0.0


@dataclass(frozen=True)
class CameraPathFrame:
    """One precomputed entry of a camera path."""

    frame: int
    zoom_center: Point = CENTER
    zoom_scale: float = 1.0
    velocity: Point = Point(0.0, 0.0)
    active_block_id: str | None = None


@dataclass
class CameraPath:
    """A forward-swept camera path, indexed by frame."""

    frames: list[CameraPathFrame] = field(default_factory=list)
    blocks: dict[str, ZoomBlock] = field(default_factory=dict)
    fast_path: bool = False

    def __len__(self) -> int:
        return len(self.frames)
