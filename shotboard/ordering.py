"""
Sort & Partition Engine
v1.0.0

Frames have two independent order keys and the client shows them two ways:

- story mode: frames grouped per creative (creatives by their order
  index), each group sorted by (frame_order, frame_shoot_order)
- shoot mode: hidden frames dropped; with an active schedule, frames that
  have no resolvable start time dropped too; everything left in one flat
  list sorted by (frame_shoot_order, frame_order)

Each mode sorts by its own key first and uses the other only to break
ties. Missing keys sort last. The frame id breaks any remaining tie so
the result never depends on input order.

Filters: creative ids and tag ids. Within a dimension any member matches;
both dimensions must match.
"""
import sys
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .schema import BlockType, Creative, Frame, FrameStatus, Schedule, parse_clock_time

MISSING_ORDER = sys.maxsize


class SortMode(str, Enum):
  STORY = "story"
  SHOOT = "shoot"

  @classmethod
  def from_string(cls, value: Optional[str]) -> "SortMode":
    if value and value.strip().lower() == "shoot":
      return cls.SHOOT
    return cls.STORY


@dataclass(frozen=True)
class FrameFilter:
  creative_ids: FrozenSet[str] = frozenset()
  tag_ids: FrozenSet[str] = frozenset()

  @classmethod
  def of(cls, creative_ids: Optional[Iterable[str]] = None, tag_ids: Optional[Iterable[str]] = None) -> "FrameFilter":
    return cls(
      creative_ids=frozenset(creative_ids or []),
      tag_ids=frozenset(tag_ids or []),
    )

  @property
  def is_active(self) -> bool:
    return bool(self.creative_ids or self.tag_ids)

  def matches(self, frame: Frame) -> bool:
    if self.creative_ids and frame.creative_id not in self.creative_ids:
      return False
    if self.tag_ids and not any(tag.identity in self.tag_ids for tag in frame.tags):
      return False
    return True

  def apply(self, frames: Iterable[Frame]) -> List[Frame]:
    return [frame for frame in frames if self.matches(frame)]


NO_FILTER = FrameFilter()


# ============================================
# Sort keys
# ============================================

def _key(value: Optional[int]) -> int:
  return MISSING_ORDER if value is None else value


def story_sort_key(frame: Frame) -> Tuple[int, int, str]:
  return (_key(frame.story_order), _key(frame.shoot_order), frame.id)


def shoot_sort_key(frame: Frame) -> Tuple[int, int, str]:
  return (_key(frame.shoot_order), _key(frame.story_order), frame.id)


def sort_frames(frames: Iterable[Frame], mode: SortMode) -> List[Frame]:
  key = shoot_sort_key if mode == SortMode.SHOOT else story_sort_key
  return sorted(frames, key=key)


# ============================================
# Schedule awareness
# ============================================

def schedule_start_times(schedule: Optional[Schedule]) -> Dict[str, time]:
  """Frame id -> calculated start of the first shot block listing it"""
  result = {}
  if schedule is None:
    return result
  for block in schedule.all_blocks():
    if block.type != BlockType.SHOT:
      continue
    start = parse_clock_time(block.calculated_start)
    if start is None:
      continue
    for frame_id in block.frame_ids:
      result.setdefault(frame_id, start)
  return result


def scheduled_start_time(
  frame: Frame,
  schedule: Optional[Schedule],
  start_times: Optional[Dict[str, time]] = None,
) -> Optional[time]:
  """The frame's own start time, else the start of a shot block that lists it"""
  own = frame.start_time
  if own is not None:
    return own
  if start_times is None:
    start_times = schedule_start_times(schedule)
  return start_times.get(frame.id)


# ============================================
# Partitioning
# ============================================

@dataclass
class CreativeSection:
  creative_id: Optional[str]
  creative: Optional[Creative] = None
  frames: List[Frame] = field(default_factory=list)

  @property
  def title(self) -> str:
    if self.creative is not None:
      return self.creative.title
    if self.frames:
      return self.frames[0].creative_title or ""
    return ""


@dataclass
class FramePartition:
  mode: SortMode
  sections: List[CreativeSection] = field(default_factory=list)
  frames: List[Frame] = field(default_factory=list)

  def __len__(self) -> int:
    return len(self.frames)


def _creative_sort_key(creative: Creative) -> Tuple[int, str]:
  return (creative.order, creative.id)


def partition(
  frames: Iterable[Frame],
  creatives: Iterable[Creative],
  mode: SortMode,
  frame_filter: Optional[FrameFilter] = None,
  schedule: Optional[Schedule] = None,
) -> FramePartition:
  """
  Frames to display for a mode.

  `schedule` is the project's active schedule, or None when it has none.
  In story mode it is ignored.
  """
  frame_filter = frame_filter or NO_FILTER
  selected = frame_filter.apply(frames)

  if mode == SortMode.SHOOT:
    visible = [frame for frame in selected if not frame.is_hidden]
    if schedule is not None:
      start_times = schedule_start_times(schedule)
      visible = [
        frame for frame in visible
        if scheduled_start_time(frame, schedule, start_times) is not None
      ]
    ordered = sort_frames(visible, SortMode.SHOOT)
    return FramePartition(mode=mode, sections=[CreativeSection(None, None, ordered)], frames=ordered)

  by_creative: Dict[Optional[str], List[Frame]] = {}
  for frame in selected:
    by_creative.setdefault(frame.creative_id, []).append(frame)

  sections = []
  for creative in sorted(creatives, key=_creative_sort_key):
    group = by_creative.pop(creative.id, None)
    if group:
      sections.append(CreativeSection(creative.id, creative, sort_frames(group, SortMode.STORY)))

  # Frames whose creative isn't loaded go last
  for creative_id in sorted(by_creative, key=lambda value: (value is None, value or "")):
    sections.append(CreativeSection(creative_id, None, sort_frames(by_creative[creative_id], SortMode.STORY)))

  flat = [frame for section in sections for frame in section.frames]
  return FramePartition(mode=mode, sections=sections, frames=flat)


# ============================================
# Progress
# ============================================

@dataclass(frozen=True)
class Progress:
  completed: int
  total: int

  @property
  def remaining(self) -> int:
    return max(self.total - self.completed, 0)

  @property
  def percentage(self) -> float:
    if self.total <= 0:
      return 0.0
    return self.completed / self.total * 100.0


def creative_progress(creative: Creative) -> Progress:
  """Server aggregates for one creative"""
  return Progress(completed=creative.completed_frames, total=creative.total_frames)


def filtered_progress(
  frames: Iterable[Frame],
  creatives: Iterable[Creative],
  frame_filter: Optional[FrameFilter] = None,
) -> Progress:
  """
  Progress for a filtered view.

  A filter selecting exactly one creative (and no tags) reports that
  creative's aggregates. Otherwise done frames are counted from the loaded
  frames that pass the filter, over the summed totals of the creatives in
  view, which may include frames that aren't loaded.
  """
  frame_filter = frame_filter or NO_FILTER
  creatives = list(creatives)

  if len(frame_filter.creative_ids) == 1 and not frame_filter.tag_ids:
    (creative_id,) = frame_filter.creative_ids
    for creative in creatives:
      if creative.id == creative_id:
        return creative_progress(creative)

  in_view = [
    creative for creative in creatives
    if not frame_filter.creative_ids or creative.id in frame_filter.creative_ids
  ]
  done = sum(1 for frame in frame_filter.apply(frames) if frame.status_enum == FrameStatus.DONE)
  return Progress(completed=done, total=sum(creative.total_frames for creative in in_view))


def in_progress_frame(frames: Iterable[Frame], mode: SortMode = SortMode.SHOOT) -> Optional[Frame]:
  """The first frame marked `here` in the mode's order"""
  for frame in sort_frames(frames, mode):
    if frame.status_enum == FrameStatus.HERE:
      return frame
  return None
