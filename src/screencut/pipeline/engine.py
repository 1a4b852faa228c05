"""Timeline engine — composition root tying layout, effects and camera together.

The engine reads the project through a ``ProjectAccessor``, builds the frame
layout and camera path lazily, and serves per-frame snapshots by index.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field
from ruamel.yaml.error import YAMLError

from screencut.camera.path import CameraPathArgs, calculate_full_camera_path
from screencut.models.camera import CameraPath, ZoomBlock
from screencut.models.config import EngineSettings
from screencut.models.project import Clip, Effect, Recording
from screencut.pipeline.snapshot import FrameSnapshot, SnapshotContext, calculate_frame_snapshot
from screencut.telemetry.cache import TelemetryCaches
from screencut.telemetry.zoom_detector import detect_zoom_blocks_for_clip
from screencut.timeline.layout import FrameLayoutItem, build_frame_layout, get_timeline_duration_in_frames
from screencut.timeline.resolver import LayoutIndex
from screencut.utils.io import ProjectLoadError, read_document
from screencut.utils.progress import log_step, log_warning


class ProjectAccessor(Protocol):
    """Read-only view of a project the engine resolves against."""

    fps: float
    canvas_width: float
    canvas_height: float

    def clips(self) -> list[Clip]: ...

    def effects(self) -> list[Effect]: ...

    def get_recording(self, recording_id: str) -> Recording | None: ...


class ProjectDocument(BaseModel):
    """A host project as stored on disk."""

    fps: float = 30.0
    width: int = Field(default=1920, gt=0)
    height: int = Field(default=1080, gt=0)
    clips: list[Clip] = Field(default_factory=list)
    recordings: list[Recording] = Field(default_factory=list)
    effects: list[Effect] = Field(default_factory=list)  # timeline-space
    settings: EngineSettings | None = None


class InMemoryProject:
    """``ProjectAccessor`` over a loaded ``ProjectDocument``."""

    def __init__(self, document: ProjectDocument):
        self.document = document
        self.fps = document.fps
        self.canvas_width = float(document.width)
        self.canvas_height = float(document.height)
        self._recordings = {r.id: r for r in document.recordings}

    def clips(self) -> list[Clip]:
        return self.document.clips

    def effects(self) -> list[Effect]:
        return self.document.effects

    def get_recording(self, recording_id: str) -> Recording | None:
        return self._recordings.get(recording_id)


def load_project(path: Path | str) -> ProjectDocument:
    """Read a project document from YAML or JSON.

    Raises ProjectLoadError when the file is missing or unreadable; schema
    problems surface as pydantic's ValidationError.
    """
    path = Path(path)
    try:
        data = read_document(path)
    except (OSError, ValueError, YAMLError) as e:
        raise ProjectLoadError(f"Could not read project {path}: {e}", path) from e
    return ProjectDocument(**data)


class TimelineEngine:
    """Lazily builds the layout and camera path for one project."""

    def __init__(self, accessor: ProjectAccessor, settings: EngineSettings | None = None):
        self.accessor = accessor
        self.settings = settings or EngineSettings()
        self.caches = TelemetryCaches(self.settings.cache.max_entries)
        self._layout: list[FrameLayoutItem] | None = None
        self._index: LayoutIndex | None = None
        self._camera_paths: dict[bool, CameraPath | None] = {}  # keyed by deterministic

    @classmethod
    def from_document(cls, document: ProjectDocument, settings: EngineSettings | None = None) -> TimelineEngine:
        """Explicit settings win over the ones stored in the document."""
        return cls(InMemoryProject(document), settings or document.settings)

    @property
    def layout(self) -> list[FrameLayoutItem]:
        if self._layout is None:
            self._layout = build_frame_layout(self.accessor.clips(), self.accessor.fps, sort_clips=True)
            self._index = LayoutIndex.from_layout(self._layout)
        return self._layout

    @property
    def index(self) -> LayoutIndex:
        if self._index is None:
            _ = self.layout
        return self._index

    @property
    def total_frames(self) -> int:
        return get_timeline_duration_in_frames(self.layout)

    def build_camera_path(self, *, deterministic: bool = False) -> CameraPath | None:
        """Sweep the camera once over the whole timeline; later calls reuse the result.

        Preview (stateful spring) and export (deterministic) paths are cached
        separately.
        """
        if deterministic in self._camera_paths:
            return self._camera_paths[deterministic]

        start = time.monotonic()
        camera_path = calculate_full_camera_path(
            CameraPathArgs(
                layout=self.layout,
                fps=self.accessor.fps,
                canvas_width=self.accessor.canvas_width,
                canvas_height=self.accessor.canvas_height,
                effects=self.accessor.effects(),
                get_recording=self.accessor.get_recording,
                settings=self.settings,
                caches=self.caches,
                deterministic=deterministic,
            )
        )
        self._camera_paths[deterministic] = camera_path
        mode = "export" if deterministic else "preview"
        log_step("Camera", f"{mode.capitalize()} path ready in {time.monotonic() - start:.2f}s")
        return camera_path

    def snapshot(self, frame: int, *, is_rendering: bool = False) -> FrameSnapshot:
        """Snapshot of one frame. Rendering reads the deterministic export path."""
        camera_path = self.build_camera_path(deterministic=is_rendering)
        context = SnapshotContext(
            layout=self.layout,
            effects=self.accessor.effects(),
            get_recording=self.accessor.get_recording,
            fps=self.accessor.fps,
            canvas_width=self.accessor.canvas_width,
            canvas_height=self.accessor.canvas_height,
            index=self.index,
            is_rendering=is_rendering,
        )
        return calculate_frame_snapshot(frame, context, camera_path)

    def detect_zooms(self, recording_id: str | None = None) -> list[tuple[Clip, list[ZoomBlock]]]:
        """Run zoom detection on every clip (optionally of one recording) that has telemetry."""
        results: list[tuple[Clip, list[ZoomBlock]]] = []
        for clip in self.accessor.clips():
            if recording_id is not None and clip.recording_id != recording_id:
                continue
            recording = self.accessor.get_recording(clip.recording_id)
            if recording is None:
                log_warning(f"Clip {clip.id}: recording '{clip.recording_id}' not found")
                continue
            if recording.metadata is None:
                continue
            blocks = detect_zoom_blocks_for_clip(
                clip,
                recording,
                self.settings.zoom_detection,
                self.settings.zoom_detection_overrides,
            )
            results.append((clip, blocks))
        return results

    def invalidate(self) -> None:
        """Drop the layout, camera path and telemetry caches after a project edit."""
        self._layout = None
        self._index = None
        self._camera_paths.clear()
        self.caches.invalidate_all()
