from __future__ import annotations

import pytest

from screencut.models.config import CameraConfig, CameraDynamics, EngineSettings
from tests.builders import layout_of, make_clip, make_recording, still_mouse


@pytest.fixture
def fps() -> float:
    return 30.0


@pytest.fixture
def recording():
    """A 1920x1080 recording with the cursor resting at the screen center."""
    return make_recording("rec-1", mouse=still_mouse(960, 540))


@pytest.fixture
def two_clip_layout():
    return layout_of(
        make_clip("a", "rec-1", start=0, duration=1000),
        make_clip("b", "rec-2", start=1000, duration=1000),
    )


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture
def explicit_settings() -> EngineSettings:
    """Settings with explicit dynamics, which turns off implicit pan smoothing."""
    return EngineSettings(camera=CameraConfig(dynamics=CameraDynamics()))
