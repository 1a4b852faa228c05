"""Build a frame-indexed layout from a timeline-ordered clip list."""

from __future__ import annotations

from dataclasses import dataclass

from screencut.models.project import Clip
from screencut.utils.geometry import ms_to_frame
from screencut.utils.progress import log_step, log_warning

MAX_TIMELINE_GAP_FRAMES = 1
MAX_SOURCE_GAP_MS = 50.0
PLAYBACK_RATE_EPSILON = 1e-6


@dataclass
class FrameLayoutItem:
    """A clip materialized onto integer frames.

    Items sharing a ``group_id`` play from one decoder without a seek.
    """

    clip: Clip
    start_frame: int
    duration_frames: int
    end_frame: int  # exclusive
    group_id: str
    group_start_frame: int
    group_start_source_in: float
    group_duration: int = 0

    @property
    def recording_id(self) -> str:
        return self.clip.recording_id

    def contains(self, frame: int) -> bool:
        return self.start_frame <= frame < self.end_frame


def _continues_group(prev: FrameLayoutItem, clip: Clip, start_frame: int) -> bool:
    """Whether ``clip`` can keep playing through ``prev``'s decoder."""
    prev_clip = prev.clip
    if prev_clip.recording_id != clip.recording_id:
        return False
    if abs(start_frame - prev.end_frame) > MAX_TIMELINE_GAP_FRAMES:
        return False
    if abs(prev_clip.source_out - clip.source_in) > MAX_SOURCE_GAP_MS:
        return False
    if prev_clip.transition_out or clip.transition_in:
        return False
    # Rate changes force a seek on the decoder.
    return abs(prev_clip.playback_rate - clip.playback_rate) <= PLAYBACK_RATE_EPSILON


def _close_group(items: list[FrameLayoutItem]) -> None:
    if not items:
        return
    duration = items[-1].end_frame - items[0].group_start_frame
    for item in items:
        item.group_duration = duration


def build_frame_layout(
    clips: list[Clip],
    fps: float,
    *,
    group_prefix: str = "group",
    sort_clips: bool = False,
) -> list[FrameLayoutItem]:
    """Convert clips into frame-indexed layout items with contiguous groups.

    Args:
        clips: Clips in timeline order (set ``sort_clips`` when they are not)
        fps: Composition frame rate; values <= 0 yield an empty layout
        group_prefix: Prefix for synthetic group ids

    Rules:
        - start = round(start_time * fps / 1000), end >= start + 1
        - same recording, <= 1 frame timeline gap, <= 50ms source gap,
          no transition at the boundary and the same playback rate keep a group
        - group_duration is filled in once the group is closed
    """
    if fps <= 0:
        log_warning(f"Frame layout skipped: invalid fps {fps}")
        return []
    if not clips:
        return []

    ordered = sorted(clips, key=lambda c: c.start_time) if sort_clips else clips

    layout: list[FrameLayoutItem] = []
    group: list[FrameLayoutItem] = []
    skipped = 0

    for clip in ordered:
        if clip.duration <= 0:
            skipped += 1
            continue

        start_frame = ms_to_frame(clip.start_time, fps)
        end_frame = max(start_frame + 1, ms_to_frame(clip.end_time, fps))

        if group and _continues_group(group[-1], clip, start_frame):
            head = group[0]
            item = FrameLayoutItem(
                clip=clip,
                start_frame=start_frame,
                duration_frames=end_frame - start_frame,
                end_frame=end_frame,
                group_id=head.group_id,
                group_start_frame=head.group_start_frame,
                group_start_source_in=head.group_start_source_in,
            )
        else:
            _close_group(group)
            group = []
            item = FrameLayoutItem(
                clip=clip,
                start_frame=start_frame,
                duration_frames=end_frame - start_frame,
                end_frame=end_frame,
                group_id=f"{group_prefix}-{clip.recording_id}-{start_frame}",
                group_start_frame=start_frame,
                group_start_source_in=clip.source_in,
            )

        group.append(item)
        layout.append(item)

    _close_group(group)

    if skipped:
        log_warning(f"Frame layout: skipped {skipped} zero-duration clip(s)")

    groups = len({item.group_id for item in layout})
    log_step("Layout", f"Built layout: {len(layout)} items in {groups} group(s) @ {fps:g}fps")
    return layout


def build_webcam_frame_layout(clips: list[Clip], fps: float) -> list[FrameLayoutItem]:
    """Layout for the webcam track. Webcam clips may arrive unsorted."""
    return build_frame_layout(clips, fps, group_prefix="webcam-group", sort_clips=True)


def get_timeline_duration_in_frames(layout: list[FrameLayoutItem]) -> int:
    """Total frames covered by the layout (max end frame, 0 when empty)."""
    if not layout:
        return 0
    return max(item.end_frame for item in layout)


def get_group_source_time_ms(item: FrameLayoutItem, frame: int, fps: float) -> float:
    """Source position (ms) the group's shared decoder should be at on ``frame``."""
    safe_fps = fps if fps > 0 else 30
    local_frame = max(0, frame - item.group_start_frame)
    return item.group_start_source_in + local_frame / safe_fps * 1000 * item.clip.playback_rate
