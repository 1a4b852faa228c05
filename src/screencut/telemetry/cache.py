"""Bounded LRU caches for telemetry analysis results.

Caches are plain objects handed to the analyzers; nothing here is global.
Writes only happen on a miss and store a value equal to any concurrent
writer's, so a single lock around the dict is enough.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Hashable, Sequence
from typing import Any

from screencut.models.project import MouseEvent


class TelemetryCache:
    """Fixed-capacity LRU map guarded by a lock."""

    def __init__(self, max_entries: int = 64):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[Hashable, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            if key not in self._entries:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one key, or everything when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries


class TelemetryCaches:
    """The cache handles the analyzers share for one project session."""

    def __init__(self, max_entries: int = 64):
        self.motion_clusters = TelemetryCache(max_entries)
        self.smoothing = TelemetryCache(max_entries)

    def invalidate_all(self) -> None:
        """Call on project or recording switch."""
        self.motion_clusters.invalidate()
        self.smoothing.invalidate()


def events_key(events: Sequence[MouseEvent], width: float, height: float) -> tuple:
    """Composite key identifying an event stream at given source dimensions."""
    if not events:
        return (0, None, None, width, height)
    return (len(events), events[0].timestamp, events[-1].timestamp, width, height)
