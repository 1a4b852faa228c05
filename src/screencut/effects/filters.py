"""Effect query helpers (by kind, by clip, by time)."""

from __future__ import annotations

from typing import Iterable, TypeVar

from screencut.models.project import (
    BackgroundEffect,
    Clip,
    ClickEvent,
    CropEffect,
    Effect,
    EffectKind,
    KeyboardEvent,
    MouseEvent,
    ScrollEvent,
)

TimedEvent = TypeVar("TimedEvent", MouseEvent, ClickEvent, KeyboardEvent, ScrollEvent)


def is_effect_active_at(effect: Effect, time_ms: float) -> bool:
    """Half-open range test: start <= t < end, enabled effects only."""
    return effect.enabled and effect.start_time <= time_ms < effect.end_time


def get_effects_by_type(effects: Iterable[Effect], kind: EffectKind, enabled_only: bool = True) -> list[Effect]:
    return [e for e in effects if e.type == kind and (e.enabled or not enabled_only)]


def get_active_effects_by_type(effects: Iterable[Effect], kind: EffectKind, time_ms: float) -> list[Effect]:
    return [e for e in effects if e.type == kind and is_effect_active_at(e, time_ms)]


def get_active_effect_by_type(effects: Iterable[Effect], kind: EffectKind, time_ms: float) -> Effect | None:
    return next((e for e in effects if e.type == kind and is_effect_active_at(e, time_ms)), None)


def has_enabled_effect_of_type(effects: Iterable[Effect], kind: EffectKind) -> bool:
    return any(e.type == kind and e.enabled for e in effects)


def get_active_background_effect(effects: Iterable[Effect], time_ms: float) -> BackgroundEffect | None:
    """The background active at ``time_ms``, else any enabled background."""
    effects = list(effects)
    active = get_active_effect_by_type(effects, "background", time_ms)
    if active is None:
        active = next((e for e in effects if e.type == "background" and e.enabled), None)
    return active


def get_active_crop_effect(effects: Iterable[Effect], time_ms: float) -> CropEffect | None:
    return get_active_effect_by_type(effects, "crop", time_ms)


def has_enabled_mockup(effects: Iterable[Effect]) -> bool:
    return any(
        e.type == "background" and e.enabled and e.data.mockup is not None and e.data.mockup.enabled
        for e in effects
    )


def get_effects_for_clip(effects: Iterable[Effect], clip: Clip) -> list[Effect]:
    """Effects bound to ``clip`` plus global effects overlapping its timeline range."""
    clip_start = clip.start_time
    clip_end = clip.end_time
    result = []
    for effect in effects:
        if effect.clip_id is not None:
            if effect.clip_id == clip.id:
                result.append(effect)
        elif effect.start_time < clip_end and effect.end_time > clip_start:
            result.append(effect)
    return result


def filter_events_for_source_range(
    events: Iterable[TimedEvent], source_in: float, source_out: float
) -> list[TimedEvent]:
    """Events whose timestamp falls inside [source_in, source_out]."""
    return [e for e in events if source_in <= e.timestamp <= source_out]
