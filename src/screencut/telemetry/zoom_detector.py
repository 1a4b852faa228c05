"""Action-based zoom detection.

Clicks, typing bursts, scroll stops and cursor dwells are scored as action
points. Nearby actions merge into clusters, the most important clusters
survive the per-minute cap, and each becomes a zoom block aimed at its
primary action.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from screencut.effects.filters import filter_events_for_source_range
from screencut.models.camera import ZoomBlock
from screencut.models.config import ZoomDetectionConfig, ZoomDetectionSettings, resolve_detection_config
from screencut.models.project import (
    Clip,
    ClickEvent,
    KeyboardEvent,
    MouseEvent,
    Recording,
    ScrollEvent,
    ZoomEffect,
    ZoomEffectData,
)
from screencut.telemetry.clusters import analyze_motion_clusters
from screencut.utils.geometry import first_index_at_or_after
from screencut.utils.progress import log_step, log_warning

# Look-ahead for activity that keeps a zoom on screen
ACTIVITY_LOOKAHEAD_MS = 10_000
MAX_TYPING_EXTENSION_MS = 8000
MAX_MOUSE_EXTENSION_MS = 6000
MOUSE_EXTENSION_PAD_MS = 1000
MOUSE_AREA_RADIUS = 0.15
MIN_MOUSE_SAMPLES_IN_AREA = 20
LONG_TYPING_MS = 2000
BIG_SCROLL_DISTANCE = 500
DWELL_FULL_BONUS_MS = 3000


@dataclass
class ActionPoint:
    timestamp: float
    x: float  # pixels
    y: float
    kind: str  # click | typing | scroll_stop | dwell
    importance: float
    context: str = "default"  # key into zoom_scale_by_context
    duration: float = 0.0


@dataclass
class ClickCluster:
    clicks: list[ClickEvent]
    start_time: float
    end_time: float
    center_x: float
    center_y: float
    is_deliberate: bool


@dataclass
class ActionCluster:
    primary: ActionPoint
    start_time: float
    end_time: float
    max_importance: float
    actions: list[ActionPoint] = field(default_factory=list)


def _distance(x1: float, y1: float, x2: float, y2: float, width: float, height: float) -> float:
    """Distance in screen-normalized units."""
    return math.hypot((x1 - x2) / width, (y1 - y2) / height)


def _mouse_position_at(events: Sequence[MouseEvent], timestamp: float, width: float, height: float) -> tuple[float, float]:
    """First sample at or after ``timestamp`` (last sample past the end)."""
    if not events:
        return width / 2, height / 2
    i = min(first_index_at_or_after(events, timestamp, key=lambda e: e.timestamp), len(events) - 1)
    return events[i].x, events[i].y


class ZoomDetector:
    """Turns interaction telemetry into candidate zoom blocks."""

    def __init__(self, config: ZoomDetectionConfig | None = None):
        self.config = config or ZoomDetectionConfig()

    def detect(
        self,
        mouse_events: Sequence[MouseEvent],
        click_events: Sequence[ClickEvent],
        keyboard_events: Sequence[KeyboardEvent],
        scroll_events: Sequence[ScrollEvent],
        width: float,
        height: float,
        duration: float,
        *,
        window_start: float = 0.0,
    ) -> list[ZoomBlock]:
        """Detect zoom blocks inside [window_start, duration] (source ms)."""
        if duration <= window_start:
            return []

        first = mouse_events[0] if mouse_events else None
        screen_w = (first.screen_width if first is not None else None) or width
        screen_h = (first.screen_height if first is not None else None) or height
        if screen_w <= 0 or screen_h <= 0:
            log_warning(f"Zoom detection skipped: invalid screen size {screen_w}x{screen_h}")
            return []

        actions = self.extract_action_points(
            mouse_events, click_events, keyboard_events, scroll_events, screen_w, screen_h
        )
        if not actions:
            log_step("Zoom", "no action points found")
            return []

        significant = [a for a in actions if a.importance >= self.config.min_importance_threshold]
        if not significant:
            log_step("Zoom", f"{len(actions)} action points, none above threshold")
            return []

        clusters = self.cluster_actions(significant, screen_w, screen_h)
        max_zooms = math.ceil((duration - window_start) / 60000 * self.config.max_zooms_per_minute)
        limited = self.limit_frequency(clusters, max_zooms)

        blocks = [
            self.create_block(cluster, screen_w, screen_h, duration, keyboard_events, mouse_events, window_start)
            for cluster in limited
        ]
        blocks = self.enforce_minimum_gap(blocks)

        log_step(
            "Zoom",
            f"{len(actions)} actions → {len(clusters)} clusters → {len(blocks)} blocks",
        )
        return blocks

    # ------------------------------------------------------------------
    # Action points
    # ------------------------------------------------------------------

    def extract_action_points(
        self,
        mouse_events: Sequence[MouseEvent],
        click_events: Sequence[ClickEvent],
        keyboard_events: Sequence[KeyboardEvent],
        scroll_events: Sequence[ScrollEvent],
        width: float,
        height: float,
    ) -> list[ActionPoint]:
        cfg = self.config
        actions: list[ActionPoint] = []

        for cluster in self.cluster_clicks(click_events, mouse_events, width, height):
            count = len(cluster.clicks)
            if count < cfg.min_clicks_to_trigger and not cluster.is_deliberate:
                continue
            importance = cfg.click_importance_base
            if cluster.is_deliberate:
                importance += cfg.click_after_pause_bonus
            if count >= 3:
                importance += 0.1
            context = "deliberate_click" if cluster.is_deliberate and count == 1 else "click_cluster"
            actions.append(
                ActionPoint(
                    timestamp=cluster.start_time,
                    x=cluster.center_x,
                    y=cluster.center_y,
                    kind="click",
                    importance=min(1.0, importance),
                    context=context,
                )
            )

        for i, (start, end) in enumerate(self.detect_typing_bursts(keyboard_events)):
            importance = cfg.typing_importance_base
            if i == 0:
                importance += cfg.typing_first_burst_bonus
            if end - start > LONG_TYPING_MS:
                importance += 0.1
            x, y = _mouse_position_at(mouse_events, start, width, height)
            actions.append(
                ActionPoint(start, x, y, "typing", min(1.0, importance), context="typing", duration=end - start)
            )

        for timestamp, distance in self.detect_scroll_stops(scroll_events):
            importance = cfg.scroll_stop_importance_base
            if distance > BIG_SCROLL_DISTANCE:
                importance += cfg.scroll_distance_bonus
            x, y = _mouse_position_at(mouse_events, timestamp, width, height)
            actions.append(ActionPoint(timestamp, x, y, "scroll_stop", min(1.0, importance), context="scroll_stop"))

        for dwell in analyze_motion_clusters(
            mouse_events,
            width,
            height,
            radius_ratio=cfg.dwell_radius_ratio,
            min_duration_ms=cfg.dwell_min_ms,
        ):
            importance = cfg.dwell_importance_base + cfg.dwell_duration_bonus * min(
                1.0, dwell.duration / DWELL_FULL_BONUS_MS
            )
            actions.append(
                ActionPoint(
                    dwell.start_time,
                    dwell.centroid_x,
                    dwell.centroid_y,
                    "dwell",
                    min(1.0, importance),
                    context="dwell",
                    duration=dwell.duration,
                )
            )

        actions.sort(key=lambda a: a.timestamp)
        return actions

    def cluster_clicks(
        self,
        click_events: Sequence[ClickEvent],
        mouse_events: Sequence[MouseEvent],
        width: float,
        height: float,
    ) -> list[ClickCluster]:
        """Group clicks that are close in both time and space."""
        clusters: list[ClickCluster] = []
        current: ClickCluster | None = None

        for click in click_events:
            deliberate = self.is_deliberate_click(click, mouse_events, width, height)
            if current is not None:
                in_time = click.timestamp - current.end_time <= self.config.click_cluster_window_ms
                in_space = (
                    _distance(click.x, click.y, current.center_x, current.center_y, width, height)
                    <= self.config.cluster_spatial_threshold
                )
                if in_time and in_space:
                    current.clicks.append(click)
                    current.end_time = click.timestamp
                    current.center_x = sum(c.x for c in current.clicks) / len(current.clicks)
                    current.center_y = sum(c.y for c in current.clicks) / len(current.clicks)
                    current.is_deliberate = current.is_deliberate or deliberate
                    continue
                clusters.append(current)
            current = ClickCluster([click], click.timestamp, click.timestamp, click.x, click.y, deliberate)

        if current is not None:
            clusters.append(current)
        return clusters

    def is_deliberate_click(
        self,
        click: ClickEvent,
        mouse_events: Sequence[MouseEvent],
        width: float,
        height: float,
    ) -> bool:
        """Idle just before the click, and hovering over the click point."""
        cfg = self.config
        idle = self._mouse_activity_before(mouse_events, click.timestamp) < cfg.deliberate_activity_threshold
        return idle and self._hovered_before(click, mouse_events, width, height)

    def _mouse_activity_before(self, mouse_events: Sequence[MouseEvent], timestamp: float) -> float:
        """Path length over the pause window, 0-1 (100px counts as fully active)."""
        window_start = timestamp - self.config.deliberate_pause_ms
        window = [e for e in mouse_events if window_start <= e.timestamp < timestamp]
        if len(window) < 2:
            return 0.0
        travelled = sum(math.hypot(b.x - a.x, b.y - a.y) for a, b in zip(window, window[1:]))
        return min(1.0, travelled / 100)

    def _hovered_before(
        self,
        click: ClickEvent,
        mouse_events: Sequence[MouseEvent],
        width: float,
        height: float,
    ) -> bool:
        cfg = self.config
        window_start = click.timestamp - cfg.hover_before_click_ms
        window = [e for e in mouse_events if window_start <= e.timestamp < click.timestamp]
        if len(window) < 3:
            return False
        near = sum(1 for e in window if _distance(e.x, e.y, click.x, click.y, width, height) < cfg.hover_radius)
        return near / len(window) >= cfg.hover_ratio

    def detect_typing_bursts(self, keyboard_events: Sequence[KeyboardEvent]) -> list[tuple[float, float]]:
        """(start, end) of each run of keys with gaps <= the burst window."""
        cfg = self.config
        bursts: list[tuple[float, float]] = []
        if len(keyboard_events) < cfg.min_keys_in_burst:
            return bursts

        start = end = keyboard_events[0].timestamp
        count = 1
        for event in keyboard_events[1:]:
            if event.timestamp - end <= cfg.typing_burst_window_ms:
                end = event.timestamp
                count += 1
                continue
            if count >= cfg.min_keys_in_burst:
                bursts.append((start, end))
            start = end = event.timestamp
            count = 1

        if count >= cfg.min_keys_in_burst:
            bursts.append((start, end))
        return bursts

    def detect_scroll_stops(self, scroll_events: Sequence[ScrollEvent]) -> list[tuple[float, float]]:
        """(timestamp, distance) where scrolling paused after a real scroll."""
        cfg = self.config
        stops: list[tuple[float, float]] = []
        if len(scroll_events) < 2:
            return stops

        total = 0.0
        last_time = scroll_events[0].timestamp
        for event in scroll_events[1:]:
            total += abs(event.delta_y) + abs(event.delta_x)
            if event.timestamp - last_time > cfg.scroll_stop_gap_ms:
                if total > cfg.scroll_min_distance:
                    stops.append((last_time, total))
                total = 0.0
            last_time = event.timestamp
        return stops

    # ------------------------------------------------------------------
    # Clustering and limits
    # ------------------------------------------------------------------

    def cluster_actions(self, actions: Sequence[ActionPoint], width: float, height: float) -> list[ActionCluster]:
        """Merge actions near an existing cluster's primary in time and space.

        The cluster aims at its most important action (earliest on ties)
        rather than an average of distinct targets.
        """
        cfg = self.config
        clusters: list[ActionCluster] = []

        for action in actions:
            for cluster in clusters:
                last = cluster.actions[-1]
                near_in_time = action.timestamp - last.timestamp <= cfg.action_cluster_window_ms
                near_in_space = (
                    _distance(action.x, action.y, cluster.primary.x, cluster.primary.y, width, height)
                    < cfg.action_cluster_distance
                )
                if not (near_in_time and near_in_space):
                    continue
                cluster.actions.append(action)
                cluster.end_time = max(cluster.end_time, action.timestamp + action.duration)
                cluster.max_importance = max(cluster.max_importance, action.importance)
                primary = cluster.primary
                if action.importance > primary.importance or (
                    action.importance == primary.importance and action.timestamp < primary.timestamp
                ):
                    cluster.primary = action
                break
            else:
                clusters.append(
                    ActionCluster(
                        primary=action,
                        start_time=action.timestamp,
                        end_time=action.timestamp + action.duration,
                        max_importance=action.importance,
                        actions=[action],
                    )
                )
        return clusters

    def limit_frequency(self, clusters: list[ActionCluster], max_zooms: int) -> list[ActionCluster]:
        """Keep the ``max_zooms`` most important clusters, in time order."""
        if len(clusters) <= max_zooms:
            return clusters
        top = sorted(clusters, key=lambda c: c.max_importance, reverse=True)[:max_zooms]
        return sorted(top, key=lambda c: c.start_time)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _scale_for(self, cluster: ActionCluster) -> float:
        cfg = self.config
        ranges = cfg.zoom_scale_by_context
        scale_range = ranges.get(cluster.primary.context) or ranges.get("default")
        if scale_range is None:
            return 2.0
        threshold = cfg.min_importance_threshold
        normalized = (cluster.max_importance - threshold) / (1 - threshold) if threshold < 1 else 1.0
        scale = scale_range.min + (scale_range.max - scale_range.min) * min(1.0, max(0.0, normalized))
        return round(scale * 10) / 10

    def _activity_extension(
        self,
        cluster: ActionCluster,
        width: float,
        height: float,
        keyboard_events: Sequence[KeyboardEvent],
        mouse_events: Sequence[MouseEvent],
    ) -> float:
        """Extra hold that covers typing or sustained mousing right after the cluster."""
        start = cluster.start_time
        horizon = start + ACTIVITY_LOOKAHEAD_MS

        keys = [k for k in keyboard_events if start <= k.timestamp <= horizon]
        extension = 0.0
        if len(keys) > 3:
            extension = min(MAX_TYPING_EXTENSION_MS, keys[-1].timestamp - start + self.config.activity_extension_ms)

        target = cluster.primary
        nearby = [
            m
            for m in mouse_events
            if start <= m.timestamp <= horizon
            and _distance(m.x, m.y, target.x, target.y, width, height) < MOUSE_AREA_RADIUS
        ]
        if len(nearby) > MIN_MOUSE_SAMPLES_IN_AREA and len(nearby) > len(keys) * 2:
            extension = max(
                extension,
                min(MAX_MOUSE_EXTENSION_MS, nearby[-1].timestamp - start + MOUSE_EXTENSION_PAD_MS),
            )
        return extension

    def create_block(
        self,
        cluster: ActionCluster,
        width: float,
        height: float,
        duration: float,
        keyboard_events: Sequence[KeyboardEvent] = (),
        mouse_events: Sequence[MouseEvent] = (),
        window_start: float = 0.0,
    ) -> ZoomBlock:
        cfg = self.config
        intro = cfg.intro_ms
        outro = cfg.outro_ms
        anticipation = min(cfg.anticipation_ms, intro)

        hold = cfg.min_hold_ms + max(0.0, self._activity_extension(cluster, width, height, keyboard_events, mouse_events))
        total = intro + hold + outro
        max_end = max(window_start + 1, duration - cfg.end_guard_ms)

        # Land the focus inside the intro; shift earlier rather than truncate near the end.
        start = max(window_start, cluster.primary.timestamp - anticipation)
        end = start + total
        if end > max_end:
            end = max_end
            start = max(window_start, end - total)
        if end <= start:
            start, end = window_start, max_end

        primary = cluster.primary
        return ZoomBlock(
            id=f"zoom-action-{int(cluster.start_time)}",
            start_time=start,
            end_time=end,
            scale=self._scale_for(cluster),
            target_x=min(1.0, max(0.0, primary.x / width)),
            target_y=min(1.0, max(0.0, primary.y / height)),
            intro_ms=intro,
            outro_ms=outro,
            origin="auto",
            importance=cluster.max_importance,
            reason=primary.context,
        )

    def enforce_minimum_gap(self, blocks: list[ZoomBlock]) -> list[ZoomBlock]:
        """Drop blocks too close to the previous one, unless they zoom deeper."""
        if len(blocks) < 2:
            return blocks
        result = [blocks[0]]
        for block in blocks[1:]:
            prev = result[-1]
            if block.start_time - prev.end_time >= self.config.min_zoom_gap_ms:
                result.append(block)
            elif block.scale > prev.scale:
                result[-1] = block
        return result


def detect_zoom_blocks(
    mouse_events: Sequence[MouseEvent],
    click_events: Sequence[ClickEvent],
    keyboard_events: Sequence[KeyboardEvent],
    scroll_events: Sequence[ScrollEvent],
    width: float,
    height: float,
    duration: float,
    config: ZoomDetectionConfig | None = None,
    settings: ZoomDetectionSettings | None = None,
) -> list[ZoomBlock]:
    """Detect zoom blocks over a whole recording.

    ``settings`` are UI-level overrides and beat ``config`` field by field.
    """
    detector = ZoomDetector(resolve_detection_config(config, settings))
    return detector.detect(mouse_events, click_events, keyboard_events, scroll_events, width, height, duration)


def detect_zoom_blocks_for_clip(
    clip: Clip,
    recording: Recording,
    config: ZoomDetectionConfig | None = None,
    settings: ZoomDetectionSettings | None = None,
) -> list[ZoomBlock]:
    """Detect zoom blocks from the telemetry inside ``clip``'s source window."""
    meta = recording.metadata
    lo, hi = clip.source_in, clip.source_out
    detector = ZoomDetector(resolve_detection_config(config, settings))
    return detector.detect(
        filter_events_for_source_range(meta.mouse_events, lo, hi),
        filter_events_for_source_range(meta.click_events, lo, hi),
        filter_events_for_source_range(meta.keyboard_events, lo, hi),
        filter_events_for_source_range(meta.scroll_events, lo, hi),
        recording.width,
        recording.height,
        hi,
        window_start=lo,
    )


def zoom_blocks_to_effects(blocks: Sequence[ZoomBlock], clip_id: str | None = None) -> list[ZoomEffect]:
    """The persisted form of accepted blocks."""
    return [
        ZoomEffect(
            id=block.id,
            start_time=block.start_time,
            end_time=block.end_time,
            clip_id=clip_id,
            data=ZoomEffectData(
                origin="auto",
                scale=block.scale,
                target_x=block.target_x,
                target_y=block.target_y,
                intro_ms=block.intro_ms,
                outro_ms=block.outro_ms,
            ),
        )
        for block in blocks
    ]
