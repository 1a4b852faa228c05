"""Configuration models for each engine component."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from screencut.utils.geometry import clamp01, lerp
from screencut.utils.io import read_document


class CameraDynamics(BaseModel):
    """Spring-damper parameters for camera pan and scale."""

    stiffness: float = Field(default=60.0, gt=0)
    damping: float = Field(default=15.0, ge=0)
    mass: float = Field(default=1.0, gt=0)
    spring_scale: bool = True  # False: scale follows the eased zoom curve exactly

    @classmethod
    def from_smoothness(cls, smoothness: float) -> CameraDynamics:
        """Map the legacy 0-100 "cameraman smoothness" slider onto spring values."""
        t = clamp01(smoothness / 100)
        return cls(stiffness=lerp(300, 40, t), damping=lerp(20, 35, t))


class CursorStopConfig(BaseModel):
    """When the cursor rests while zoomed, the camera target freezes."""

    velocity_threshold: float = Field(default=0.002, ge=0)  # normalized units / second
    dwell_ms: float = Field(default=80, ge=0)
    min_zoom: float = Field(default=1.05, ge=1.0)
    frozen_stiffness: float = Field(default=600.0, gt=0)
    frozen_damping: float = Field(default=80.0, ge=0)


class CameraConfig(BaseModel):
    """Configuration for the camera physics engine."""

    dead_zone_ratio: float = Field(default=0.4, ge=0.0, le=1.0)
    seek_threshold_ms: float = Field(default=100, gt=0)
    max_step_s: float = Field(default=0.016, gt=0)
    max_dt_s: float = Field(default=0.5, gt=0)
    velocity_snap: float = Field(default=1e-4, ge=0)
    distance_snap: float = Field(default=1e-4, ge=0)
    cluster_radius_ratio: float = Field(default=0.05, gt=0, le=1.0)
    min_cluster_duration_ms: float = Field(default=450, ge=0)
    cluster_hold_buffer_ms: float = Field(default=300, ge=0)
    cinematic_samples: int = Field(default=8, ge=1)
    cursor_stop: CursorStopConfig = Field(default_factory=CursorStopConfig)
    dynamics: CameraDynamics = Field(default_factory=CameraDynamics)
    smoothness: float | None = Field(default=None, ge=0, le=100)  # legacy slider

    @property
    def has_explicit_dynamics(self) -> bool:
        return "dynamics" in self.model_fields_set

    def effective_dynamics(self) -> CameraDynamics:
        """Explicit dynamics win; otherwise the legacy slider maps onto a spring."""
        if "dynamics" not in self.model_fields_set and self.smoothness is not None:
            return CameraDynamics.from_smoothness(self.smoothness)
        return self.dynamics


class SmoothingConfig(BaseModel):
    """Cursor telemetry analysis parameters."""

    steps: int = Field(default=12, ge=1)
    window_ms: float = Field(default=600, gt=0)
    tau_ms: float = Field(default=180, gt=0)
    velocity_lookback_ms: float = Field(default=50, gt=0)
    jitter_threshold_px: float = Field(default=2.0, ge=0)


class ZoomScaleRange(BaseModel):
    min: float = Field(gt=1.0)
    max: float = Field(gt=1.0)


def _default_scale_ranges() -> dict[str, ZoomScaleRange]:
    return {
        "typing": ZoomScaleRange(min=1.4, max=1.6),
        "deliberate_click": ZoomScaleRange(min=1.8, max=2.2),
        "click_cluster": ZoomScaleRange(min=1.6, max=2.0),
        "scroll_stop": ZoomScaleRange(min=1.4, max=1.6),
        "dwell": ZoomScaleRange(min=1.5, max=1.8),
        "default": ZoomScaleRange(min=1.5, max=2.0),
    }


class ZoomDetectionConfig(BaseModel):
    """Generation defaults for action-based zoom detection."""

    # Click detection
    min_clicks_to_trigger: int = Field(default=2, ge=1)
    click_cluster_window_ms: float = Field(default=3000, gt=0)
    cluster_spatial_threshold: float = Field(default=0.15, gt=0)  # normalized distance
    deliberate_pause_ms: float = Field(default=500, ge=0)
    deliberate_activity_threshold: float = Field(default=0.3, ge=0)
    hover_before_click_ms: float = Field(default=500, ge=0)
    hover_radius: float = Field(default=0.05, gt=0)
    hover_ratio: float = Field(default=0.7, ge=0, le=1)

    # Typing detection
    typing_burst_window_ms: float = Field(default=800, gt=0)
    min_keys_in_burst: int = Field(default=3, ge=1)

    # Scroll detection
    scroll_stop_gap_ms: float = Field(default=500, gt=0)
    scroll_min_distance: float = Field(default=100, ge=0)

    # Dwell detection
    dwell_min_ms: float = Field(default=1200, gt=0)
    dwell_radius_ratio: float = Field(default=0.03, gt=0)

    # Importance scoring
    click_importance_base: float = 0.7
    click_after_pause_bonus: float = 0.2
    typing_importance_base: float = 0.6
    typing_first_burst_bonus: float = 0.2
    scroll_stop_importance_base: float = 0.4
    scroll_distance_bonus: float = 0.2
    dwell_importance_base: float = 0.2
    dwell_duration_bonus: float = 0.25

    # Clustering and caps
    action_cluster_window_ms: float = Field(default=4000, gt=0)
    action_cluster_distance: float = Field(default=0.25, gt=0)
    min_importance_threshold: float = Field(default=0.4, ge=0, le=1)
    max_zooms_per_minute: float = Field(default=5, gt=0)
    min_zoom_gap_ms: float = Field(default=5000, ge=0)

    # Block shaping
    intro_ms: float = Field(default=450, ge=0)
    outro_ms: float = Field(default=800, ge=0)
    anticipation_ms: float = Field(default=300, ge=0)
    min_hold_ms: float = Field(default=3000, gt=0)
    activity_extension_ms: float = Field(default=1500, ge=0)
    end_guard_ms: float = Field(default=100, ge=0)
    zoom_scale_by_context: dict[str, ZoomScaleRange] = Field(default_factory=_default_scale_ranges)


class ZoomDetectionSettings(BaseModel):
    """UI-level detection overrides. Any value set here beats the generation default."""

    max_zooms_per_minute: float | None = Field(default=None, gt=0)
    min_zoom_gap_ms: float | None = Field(default=None, ge=0)
    min_importance_threshold: float | None = Field(default=None, ge=0, le=1)
    intro_ms: float | None = Field(default=None, ge=0)
    outro_ms: float | None = Field(default=None, ge=0)
    min_hold_ms: float | None = Field(default=None, gt=0)


class CacheConfig(BaseModel):
    max_entries: int = Field(default=64, ge=1)


class EngineSettings(BaseModel):
    """All engine tunables, as loaded from a settings file."""

    camera: CameraConfig = Field(default_factory=CameraConfig)
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    zoom_detection: ZoomDetectionConfig = Field(default_factory=ZoomDetectionConfig)
    zoom_detection_overrides: ZoomDetectionSettings = Field(default_factory=ZoomDetectionSettings)
    cache: CacheConfig = Field(default_factory=CacheConfig)


def resolve_detection_config(
    config: ZoomDetectionConfig | None = None,
    settings: ZoomDetectionSettings | None = None,
) -> ZoomDetectionConfig:
    """Merge UI settings over generation defaults (UI values win when set)."""
    base = config or ZoomDetectionConfig()
    if settings is None:
        return base
    overrides = settings.model_dump(exclude_none=True)
    if not overrides:
        return base
    return base.model_copy(update=overrides)


def load_settings(path: Path | str | None) -> EngineSettings:
    """Load engine settings from a YAML or JSON file (defaults when path is None)."""
    if path is None:
        return EngineSettings()
    return EngineSettings(**read_document(path))
