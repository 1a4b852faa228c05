"""Pydantic input models and derived dataclasses for screencut."""

from screencut.models.camera import CameraPathFrame, CameraPhysicsState, Point, ZoomBlock
from screencut.models.config import (
    CameraConfig,
    CameraDynamics,
    EngineSettings,
    SmoothingConfig,
    ZoomDetectionConfig,
    ZoomDetectionSettings,
)
from screencut.models.project import Clip, Effect, MouseEvent, Recording, RecordingMetadata

__all__ = [
    "CameraConfig",
    "CameraDynamics",
    "CameraPathFrame",
    "CameraPhysicsState",
    "Clip",
    "Effect",
    "EngineSettings",
    "MouseEvent",
    "Point",
    "Recording",
    "RecordingMetadata",
    "SmoothingConfig",
    "ZoomBlock",
    "ZoomDetectionConfig",
    "ZoomDetectionSettings",
]
