"""Resolve the effects that apply to a clip at a frame, including inheritance.

Generated clips (title cards, overlays) have no visual telemetry of their own.
They take over crop, background, zoom and screen from the nearest preceding
video or image clip, frozen at that clip's last frame before the generated
clip began. Each kind the generated clip resolves on its own wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Callable, assert_never

from screencut.effects.filters import get_active_effect_by_type, get_effects_for_clip, is_effect_active_at
from screencut.models.project import (
    EXCLUSIVE_KINDS,
    BackgroundEffect,
    Clip,
    CropEffect,
    Effect,
    EffectKind,
    Recording,
    ScreenEffect,
    ZoomEffect,
    is_exclusive_kind,
    is_inheritable_kind,
)
from screencut.timeline.layout import FrameLayoutItem
from screencut.timeline.resolver import find_active_frame_layout_index
from screencut.utils.geometry import clamp, frame_to_ms

GetRecording = Callable[[str], Recording | None]


@dataclass(frozen=True)
class ActiveEffects:
    """At most one effect per exclusive kind, plus every active overlay."""

    zoom: ZoomEffect | None = None
    screen: ScreenEffect | None = None
    crop: CropEffect | None = None
    background: BackgroundEffect | None = None
    overlays: tuple[Effect, ...] = ()

    def get(self, kind: EffectKind) -> Effect | None:
        match kind:
            case "zoom":
                return self.zoom
            case "screen":
                return self.screen
            case "crop":
                return self.crop
            case "background":
                return self.background
            case "cursor" | "annotation" | "keystroke":
                return next((e for e in self.overlays if e.type == kind), None)
            case _:
                assert_never(kind)

    def with_effect(self, kind: EffectKind, effect: Effect) -> ActiveEffects:
        if not is_exclusive_kind(kind):
            return replace(self, overlays=(*self.overlays, effect))
        return replace(self, **{kind: effect})

    def all(self) -> list[Effect]:
        exclusive = [e for e in (self.zoom, self.screen, self.crop, self.background) if e is not None]
        return exclusive + list(self.overlays)


@dataclass(frozen=True)
class VisualSourceState:
    """The video/image clip a generated clip borrows its framing from."""

    item: FrameLayoutItem
    recording: Recording
    anchor_frame: int
    base_source_time_ms: float
    is_frozen: bool  # the source ended before the generated clip started


@dataclass(frozen=True)
class EffectiveClipData:
    clip_item: FrameLayoutItem
    recording: Recording
    source_time_ms: float
    timeline_ms: float
    effects: list[Effect]
    active: ActiveEffects
    inherited_types: tuple[EffectKind, ...] = ()
    visual_source: VisualSourceState | None = None

    @property
    def clip(self) -> Clip:
        return self.clip_item.clip


@dataclass
class ClipEffectSet:
    """Candidate effects for one clip split by the clock they are placed on."""

    timeline: list[Effect] = field(default_factory=list)  # global, timeline ms
    source: list[Effect] = field(default_factory=list)  # clip-bound or recording-scoped, source ms


def compute_source_time_ms(item: FrameLayoutItem, frame: int, fps: float) -> float:
    """Source position of ``item``'s clip on ``frame``.

    The last frame maps to one frame before the clip's true end so frame
    rounding never falls short of (or past) the media.
    """
    clip = item.clip
    elapsed_raw = frame - item.start_frame
    is_last = elapsed_raw >= item.duration_frames - 1
    elapsed_frames = clamp(elapsed_raw, 0, item.duration_frames - 1)
    if is_last:
        elapsed_ms = max(0.0, clip.duration - 1000 / fps)
    else:
        elapsed_ms = elapsed_frames / fps * 1000
    return clip.source_in + elapsed_ms * clip.playback_rate


def _collect_effects(effects: list[Effect], item: FrameLayoutItem, recording: Recording) -> ClipEffectSet:
    result = ClipEffectSet()
    for effect in get_effects_for_clip(effects, item.clip):
        if effect.clip_id is None:
            result.timeline.append(effect)
        else:
            result.source.append(effect)
    result.source.extend(recording.effects)
    return result


def resolve_active_effects(candidates: ClipEffectSet, timeline_ms: float, source_time_ms: float) -> ActiveEffects:
    """Pick the active effect per exclusive kind and collect active overlays.

    Clip-bound and recording-scoped effects beat global ones of the same
    kind; within a scope the earliest start wins.
    """
    scoped = sorted(candidates.source, key=lambda e: e.start_time)
    global_ = sorted(candidates.timeline, key=lambda e: e.start_time)

    active = ActiveEffects()
    for kind in EXCLUSIVE_KINDS:
        effect = get_active_effect_by_type(scoped, kind, source_time_ms) or get_active_effect_by_type(
            global_, kind, timeline_ms
        )
        if effect is not None:
            active = active.with_effect(kind, effect)

    overlays = [e for e in scoped if not is_exclusive_kind(e.type) and is_effect_active_at(e, source_time_ms)]
    overlays += [e for e in global_ if not is_exclusive_kind(e.type) and is_effect_active_at(e, timeline_ms)]
    overlays.sort(key=lambda e: e.start_time)
    return replace(active, overlays=tuple(overlays))


def _merge_effects(*groups: list[Effect]) -> list[Effect]:
    """Flatten, de-duplicate by id (later groups win) and sort by start."""
    unique: dict[str, Effect] = {}
    for group in groups:
        for effect in group:
            unique[effect.id] = effect
    return sorted(unique.values(), key=lambda e: e.start_time)


def _resolve_own(
    item: FrameLayoutItem,
    frame: int,
    fps: float,
    effects: list[Effect],
    recording: Recording,
) -> tuple[float, float, ClipEffectSet, ActiveEffects]:
    source_time_ms = compute_source_time_ms(item, frame, fps)
    timeline_ms = frame_to_ms(frame, fps)
    candidates = _collect_effects(effects, item, recording)
    active = resolve_active_effects(candidates, timeline_ms, source_time_ms)
    return source_time_ms, timeline_ms, candidates, active


def find_visual_source(
    layout: list[FrameLayoutItem],
    item_index: int,
    get_recording: GetRecording,
    fps: float,
) -> VisualSourceState | None:
    """Nearest preceding video/image item for the generated item at ``item_index``."""
    item = layout[item_index]
    for i in range(item_index - 1, -1, -1):
        candidate = layout[i]
        if candidate.start_frame > item.start_frame:
            continue
        recording = get_recording(candidate.clip.recording_id)
        if recording is None or not recording.is_visual:
            continue

        anchor = max(candidate.start_frame, min(candidate.end_frame, item.start_frame) - 1)
        clip = candidate.clip
        is_frozen = item.start_frame >= candidate.end_frame
        if is_frozen:
            played_ms = candidate.duration_frames / fps * 1000 * clip.playback_rate
            base = max(clip.source_in, min(clip.source_out, clip.source_in + played_ms) - 1)
        else:
            base = compute_source_time_ms(candidate, anchor, fps)
        return VisualSourceState(
            item=candidate,
            recording=recording,
            anchor_frame=anchor,
            base_source_time_ms=base,
            is_frozen=is_frozen,
        )
    return None


def _stretch(effect: Effect) -> Effect:
    return effect.model_copy(update={"start_time": -math.inf, "end_time": math.inf})


def resolve_clip_data_for_layout_item(
    frame: int,
    item_index: int,
    layout: list[FrameLayoutItem],
    effects: list[Effect],
    get_recording: GetRecording,
    fps: float,
) -> EffectiveClipData | None:
    """Clip data for a specific layout item (e.g. a background track under an overlay)."""
    if fps <= 0 or not 0 <= item_index < len(layout):
        return None

    item = layout[item_index]
    recording = get_recording(item.clip.recording_id)
    if recording is None:
        return None

    source_time_ms, timeline_ms, candidates, active = _resolve_own(item, frame, fps, effects, recording)
    own_scoped = [e for e in candidates.source if e.enabled and e.start_time <= source_time_ms <= e.end_time]
    merged = _merge_effects(candidates.timeline, own_scoped)

    if recording.source_type != "generated":
        return EffectiveClipData(item, recording, source_time_ms, timeline_ms, merged, active)

    visual = find_visual_source(layout, item_index, get_recording, fps)
    if visual is None:
        return EffectiveClipData(item, recording, source_time_ms, timeline_ms, merged, active)

    _, _, _, source_active = _resolve_own(visual.item, visual.anchor_frame, fps, effects, visual.recording)

    inherited: list[Effect] = []
    inherited_types: list[EffectKind] = []
    for kind in EXCLUSIVE_KINDS:
        if not is_inheritable_kind(kind) or active.get(kind) is not None:
            continue
        borrowed = source_active.get(kind)
        if borrowed is None:
            continue
        stretched = _stretch(borrowed)
        active = active.with_effect(kind, stretched)
        inherited.append(stretched)
        inherited_types.append(kind)

    return EffectiveClipData(
        clip_item=item,
        recording=recording,
        source_time_ms=source_time_ms,
        timeline_ms=timeline_ms,
        effects=_merge_effects(merged, inherited),
        active=active,
        inherited_types=tuple(inherited_types),
        visual_source=visual,
    )


def resolve_effective_clip_data(
    frame: int,
    layout: list[FrameLayoutItem],
    effects: list[Effect],
    get_recording: GetRecording,
    fps: float,
) -> EffectiveClipData | None:
    """Clip, recording, source time and effective effects for the item owning ``frame``.

    Returns None for an empty layout or when the clip's recording is missing.
    """
    index = find_active_frame_layout_index(layout, frame)
    if index < 0:
        return None
    return resolve_clip_data_for_layout_item(frame, index, layout, effects, get_recording, fps)
