"""Frame lookups over a layout: active items, webcam items, boundary windows."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field

from screencut.timeline.layout import FrameLayoutItem
from screencut.utils.geometry import js_round

HIGH_RES_WIDTH = 1920
HIGH_RES_HEIGHT = 1080
HIGH_RES_OVERLAP_SECONDS = 0.35
DEFAULT_OVERLAP_SECONDS = 0.5
MIN_OVERLAP_FRAMES = 8
BOUNDARY_HOLD_SECONDS = 0.12


@dataclass
class LayoutIndex:
    """Lookup tables for one layout. Build it once per layout and pass it along."""

    start_frames: list[int]
    max_end_prefix: list[int]  # running max of end_frame
    indices_by_start: dict[int, list[int]] = field(default_factory=dict)
    items_by_end: dict[int, list[FrameLayoutItem]] = field(default_factory=dict)

    @classmethod
    def from_layout(cls, layout: list[FrameLayoutItem]) -> LayoutIndex:
        start_frames: list[int] = []
        max_end_prefix: list[int] = []
        indices_by_start: dict[int, list[int]] = {}
        items_by_end: dict[int, list[FrameLayoutItem]] = {}

        running_max = -1
        for i, item in enumerate(layout):
            start_frames.append(item.start_frame)
            running_max = max(running_max, item.end_frame)
            max_end_prefix.append(running_max)
            indices_by_start.setdefault(item.start_frame, []).append(i)
            items_by_end.setdefault(item.end_frame, []).append(item)

        return cls(start_frames, max_end_prefix, indices_by_start, items_by_end)


def find_active_frame_layout_index(layout: list[FrameLayoutItem], frame: int) -> int:
    """Index of the item that owns ``frame``; -1 only for an empty layout.

    An item starting exactly on ``frame`` wins over the one ending there.
    Frames outside every item resolve to the nearest item, so playback
    always has something to show.
    """
    if not layout:
        return -1
    if frame <= layout[0].start_frame:
        return 0
    last = len(layout) - 1
    if frame >= layout[last].end_frame:
        return last

    candidate = bisect_right(layout, frame, key=lambda item: item.start_frame) - 1
    candidate = max(0, min(last, candidate))
    item = layout[candidate]

    if item.start_frame == frame:
        return candidate
    if candidate + 1 <= last and layout[candidate + 1].start_frame == frame:
        return candidate + 1

    if item.contains(frame):
        return candidate

    # Between two items: hold the one that just ended.
    if frame >= item.end_frame and candidate + 1 <= last and frame < layout[candidate + 1].start_frame:
        return candidate

    if frame < item.start_frame:
        return max(0, candidate - 1)
    return min(last, candidate + 1)


def find_active_frame_layout_items(
    layout: list[FrameLayoutItem],
    frame: int,
    index: LayoutIndex | None = None,
) -> list[FrameLayoutItem]:
    """All items whose range contains ``frame`` (overlapping tracks included).

    Never empty for a non-empty layout: before the first item the first item
    is returned, past the end the last one, and in a gap the item that just
    ended.
    """
    if not layout:
        return []

    last_item = layout[-1]
    if frame >= last_item.end_frame:
        return [last_item]

    index = index or LayoutIndex.from_layout(layout)

    limit = bisect_right(index.start_frames, frame) - 1
    if limit < 0:
        return [layout[0]]

    # Skip the prefix where everything has already ended.
    start = bisect_right(index.max_end_prefix, frame)
    if start > limit:
        return [layout[limit]]

    result = [item for item in layout[start : limit + 1] if frame < item.end_frame]
    return result or [layout[limit]]


def find_active_webcam_item(
    layout: list[FrameLayoutItem],
    frame: int,
    index: LayoutIndex | None = None,
) -> FrameLayoutItem | None:
    """The webcam item to show at ``frame``: a clip starting now, else the latest-starting active one."""
    if not layout:
        return None

    index = index or LayoutIndex.from_layout(layout)
    starting = index.indices_by_start.get(frame)
    if starting:
        return layout[starting[-1]]

    limit = bisect_right(index.start_frames, frame) - 1
    candidate: FrameLayoutItem | None = None
    for i in range(limit, -1, -1):
        item = layout[i]
        if candidate and item.start_frame < candidate.start_frame:
            break
        if item.contains(frame):
            candidate = item
    return candidate


@dataclass(frozen=True)
class BoundaryOverlapState:
    is_near_boundary_start: bool = False
    is_near_boundary_end: bool = False
    should_hold_prev_frame: bool = False
    should_hold_next_frame: bool = False
    overlap_frames: int = 0


def get_overlap_frames(fps: float, is_rendering: bool, source_width: int, source_height: int) -> int:
    """Decoder pre-warm window in frames (0 while rendering)."""
    if is_rendering:
        return 0
    is_high_res = source_width > HIGH_RES_WIDTH or source_height > HIGH_RES_HEIGHT
    seconds = HIGH_RES_OVERLAP_SECONDS if is_high_res else DEFAULT_OVERLAP_SECONDS
    return max(MIN_OVERLAP_FRAMES, js_round(fps * seconds))


def get_boundary_overlap_state(
    current_frame: int,
    fps: float,
    is_rendering: bool,
    active: FrameLayoutItem | None,
    prev: FrameLayoutItem | None,
    next_item: FrameLayoutItem | None,
    *,
    source_width: int = 1920,
    source_height: int = 1080,
    is_scrubbing: bool = False,
) -> BoundaryOverlapState:
    """Decide which neighbouring clips to keep mounted around a cut.

    ``is_scrubbing`` is accepted for API symmetry; scrubbing and playback use
    the same window.
    """
    overlap = get_overlap_frames(fps, is_rendering, source_width, source_height)

    near_start = (
        not is_rendering
        and prev is not None
        and active is not None
        and active.start_frame <= current_frame < active.start_frame + overlap
    )
    near_end = (
        not is_rendering
        and active is not None
        and next_item is not None
        and current_frame >= active.start_frame + active.duration_frames - overlap
    )

    hold_prev = near_start
    hold_next = False

    in_gap = not is_rendering and active is None and (prev is not None or next_item is not None)
    if in_gap:
        prev_end = prev.start_frame + prev.duration_frames if prev else float("-inf")
        next_start = next_item.start_frame if next_item else float("inf")
        if prev is not None and (next_item is None or current_frame - prev_end <= next_start - current_frame):
            hold_prev = True
        elif next_item is not None:
            hold_next = True

    return BoundaryOverlapState(
        is_near_boundary_start=near_start,
        is_near_boundary_end=near_end,
        should_hold_prev_frame=hold_prev,
        should_hold_next_frame=hold_next,
        overlap_frames=overlap,
    )


def get_neighbours(
    layout: list[FrameLayoutItem], active_index: int
) -> tuple[FrameLayoutItem | None, FrameLayoutItem | None]:
    if active_index < 0:
        return None, None
    prev = layout[active_index - 1] if active_index > 0 else None
    next_item = layout[active_index + 1] if active_index + 1 < len(layout) else None
    return prev, next_item


def get_visible_frame_layout(
    layout: list[FrameLayoutItem],
    current_frame: int,
    fps: float,
    is_rendering: bool,
    boundary: BoundaryOverlapState,
    prev: FrameLayoutItem | None,
    next_item: FrameLayoutItem | None,
    index: LayoutIndex | None = None,
) -> list[FrameLayoutItem]:
    """Items the preview should keep mounted at ``current_frame``.

    Export gets exactly the active items. Preview also keeps boundary
    neighbours and anything that starts or ends within a short hold window.
    """
    index = index or LayoutIndex.from_layout(layout)
    active = find_active_frame_layout_items(layout, current_frame, index)
    if is_rendering:
        return list(active)

    items = list(active)
    if boundary.should_hold_prev_frame and prev is not None:
        items.append(prev)
    if (boundary.is_near_boundary_end or boundary.should_hold_next_frame) and next_item is not None:
        items.append(next_item)

    items.extend(index.items_by_end.get(current_frame, []))
    for i in index.indices_by_start.get(current_frame, []):
        if i > 0:
            items.append(layout[i - 1])

    hold = max(2, js_round(fps * BOUNDARY_HOLD_SECONDS))
    for f in range(current_frame - hold, current_frame + 1):
        items.extend(index.items_by_end.get(f, []))
    for f in range(current_frame, current_frame + hold + 1):
        items.extend(layout[i] for i in index.indices_by_start.get(f, []))

    # Keep first occurrence order, drop duplicates.
    seen: set[int] = set()
    unique: list[FrameLayoutItem] = []
    for item in items:
        if id(item) not in seen:
            seen.add(id(item))
            unique.append(item)
    return unique
