"""Motion clusters: places where the cursor lingers long enough to be a focus point."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from screencut.models.camera import Point
from screencut.models.config import CameraConfig
from screencut.models.project import MouseEvent
from screencut.telemetry.cache import TelemetryCache, events_key
from screencut.telemetry.interpolation import interpolate_mouse_position
from screencut.utils.geometry import clamp


@dataclass(frozen=True)
class MotionCluster:
    start_time: float
    end_time: float
    centroid_x: float  # pixels
    centroid_y: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def analyze_motion_clusters(
    events: Sequence[MouseEvent],
    width: float,
    height: float,
    *,
    radius_ratio: float = 0.05,
    min_duration_ms: float = 450,
) -> list[MotionCluster]:
    """Group consecutive samples that stay within a radius of their running centroid.

    The radius is ``radius_ratio`` of the screen diagonal; groups shorter than
    ``min_duration_ms`` are dropped.
    """
    clusters: list[MotionCluster] = []
    if not events:
        return clusters

    max_radius = math.hypot(width, height) * radius_ratio

    def close(group: list[MouseEvent], sum_x: float, sum_y: float) -> None:
        start = group[0].timestamp
        end = group[-1].timestamp
        if end - start >= min_duration_ms:
            clusters.append(MotionCluster(start, end, sum_x / len(group), sum_y / len(group)))

    group = [events[0]]
    sum_x = events[0].x
    sum_y = events[0].y
    for event in events[1:]:
        cx = sum_x / len(group)
        cy = sum_y / len(group)
        if math.hypot(event.x - cx, event.y - cy) <= max_radius:
            group.append(event)
            sum_x += event.x
            sum_y += event.y
            continue
        close(group, sum_x, sum_y)
        group = [event]
        sum_x = event.x
        sum_y = event.y

    close(group, sum_x, sum_y)
    return clusters


def get_motion_clusters(
    events: Sequence[MouseEvent],
    width: float,
    height: float,
    config: CameraConfig | None = None,
    cache: TelemetryCache | None = None,
) -> list[MotionCluster]:
    """Cached ``analyze_motion_clusters``, keyed by event stream and dimensions."""
    if not events:
        return []
    config = config or CameraConfig()

    key = ("clusters", *events_key(events, width, height), config.cluster_radius_ratio, config.min_cluster_duration_ms)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    clusters = analyze_motion_clusters(
        events,
        width,
        height,
        radius_ratio=config.cluster_radius_ratio,
        min_duration_ms=config.min_cluster_duration_ms,
    )
    if cache is not None:
        cache.set(key, clusters)
    return clusters


def find_active_cluster(clusters: Sequence[MotionCluster], time_ms: float, hold_buffer_ms: float) -> MotionCluster | None:
    """The first cluster whose [start, end + hold] range contains ``time_ms``."""
    if not clusters:
        return None

    # First cluster whose extended end reaches time_ms.
    lo, hi = 0, len(clusters) - 1
    candidate = -1
    while lo <= hi:
        mid = (lo + hi) // 2
        if clusters[mid].end_time + hold_buffer_ms >= time_ms:
            candidate = mid
            hi = mid - 1
        else:
            lo = mid + 1

    if candidate < 0:
        return None
    cluster = clusters[candidate]
    if cluster.start_time <= time_ms <= cluster.end_time + hold_buffer_ms:
        return cluster
    return None


def get_cinematic_mouse_position(
    events: Sequence[MouseEvent],
    time_ms: float,
    window_ms: float,
    samples: int = 8,
) -> Point | None:
    """Plain average of ``samples`` positions spread over the trailing window."""
    sum_x = 0.0
    sum_y = 0.0
    valid = 0
    for i in range(samples):
        pos = interpolate_mouse_position(events, time_ms - i * (window_ms / samples))
        if pos is not None:
            sum_x += pos.x
            sum_y += pos.y
            valid += 1
    if valid == 0:
        return None
    return Point(sum_x / valid, sum_y / valid)


def normalize_smoothing_amount(value: float | None) -> float:
    """Map a smoothing value to 0-100 (legacy 0-1 values are scaled up)."""
    if value is None or not math.isfinite(value):
        return 0.0
    normalized = value * 100 if 0 < value <= 1 else value
    return clamp(normalized, 0.0, 100.0)


def calculate_attractor(
    events: Sequence[MouseEvent],
    time_ms: float,
    width: float,
    height: float,
    smoothing_amount: float,
    config: CameraConfig | None = None,
    cache: TelemetryCache | None = None,
) -> Point | None:
    """Where the camera should be pulled toward (pixels).

    Order of preference: the centroid of a lingering cluster, a windowed
    average when smoothing is on (0-100 maps to 0-1000ms), the raw position.
    """
    if not events:
        return None
    config = config or CameraConfig()

    clusters = get_motion_clusters(events, width, height, config, cache)
    active = find_active_cluster(clusters, time_ms, config.cluster_hold_buffer_ms)
    if active is not None:
        return Point(active.centroid_x, active.centroid_y)

    if smoothing_amount > 0:
        return get_cinematic_mouse_position(events, time_ms, smoothing_amount * 10, config.cinematic_samples)

    return interpolate_mouse_position(events, time_ms)
