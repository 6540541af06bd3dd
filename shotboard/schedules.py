"""
Schedule Reconciler
v1.0.0

The schedule endpoint has emitted several payload shapes over time. Each
known shape has one normalizer; they are tried in a fixed order and the
first that yields schedule items wins:

  1. schedules  {"schedules": [item, ...]}
  2. encoded    {"schedule": "<json>"}   (JSON string, possibly encoded twice)
     nested     {"schedule": {...}}      (embedded object)
     ...the unwrapped value is then tried as {schedules: [...]},
     {days: [...]} and {schedule: {days: [...]}} in that order
  3. days       {"days": [day, ...]}     (on the payload itself)
  4. empty      nothing matched -> Schedule.schedules is None

A payload that matches nothing is not an error: it is a schedule with no
blocks. When only one item was decoded and the schedule itself has no
groups, that item's groups are hoisted to the schedule (single-day
shortcut).

Usage:
  from shotboard.schedules import decode_schedule, shared_schedule_cache

  schedule = decode_schedule(payload)
  shared_schedule_cache().store(schedule)
"""
import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .config import SCHEDULE_UNWRAP_LIMIT
from .dal import LocalStore
from .schema import Frame, FrameStatus, Schedule, ScheduleBlock, ScheduleGroup, ScheduleItem
from .schema.coerce import decode_json_string, decode_records

logger = logging.getLogger(__name__)

# Keys that carry structure rather than header fields
STRUCTURE_KEYS = {"schedule", "schedules", "days", "groups"}


class ScheduleShape(str, Enum):
  SCHEDULES = "schedules"
  ENCODED = "encoded"
  NESTED = "nested"
  DAYS = "days"
  EMPTY = "empty"


# ============================================
# Shape normalizers
# ============================================

def _unwrap(value: Any) -> Any:
  """Decode a JSON string value, at most SCHEDULE_UNWRAP_LIMIT passes"""
  if isinstance(value, str):
    return decode_json_string(value, SCHEDULE_UNWRAP_LIMIT)
  return value


def _items_from_schedules(container: Dict) -> Optional[List[ScheduleItem]]:
  items = container.get("schedules")
  if isinstance(items, list):
    return decode_records(items, ScheduleItem.from_dict, "schedule item")
  return None


def _items_from_days(container: Dict) -> Optional[List[ScheduleItem]]:
  days = container.get("days")
  if isinstance(days, list):
    return decode_records(days, ScheduleItem.from_dict, "schedule day")
  return None


def _items_from_nested(container: Dict) -> Optional[List[ScheduleItem]]:
  inner = _unwrap(container.get("schedule"))
  if isinstance(inner, dict):
    return _items_from_days(inner)
  return None


CONTAINER_NORMALIZERS: List[Callable[[Dict], Optional[List[ScheduleItem]]]] = [
  _items_from_schedules,
  _items_from_days,
  _items_from_nested,
]


def normalize_payload(raw: Dict) -> Tuple[ScheduleShape, Optional[List[ScheduleItem]], Dict]:
  """
  Find schedule items in a raw schedule payload.

  Returns (shape, items, container) where container is the dict the items
  were found in; it may hold header fields the outer payload lacks.
  """
  items = _items_from_schedules(raw)
  if items is not None:
    return ScheduleShape.SCHEDULES, items, raw

  embedded = raw.get("schedule")
  unwrapped = _unwrap(embedded)
  if isinstance(unwrapped, list):
    unwrapped = {"schedules": unwrapped}
  if isinstance(unwrapped, dict):
    shape = ScheduleShape.ENCODED if isinstance(embedded, str) else ScheduleShape.NESTED
    for normalizer in CONTAINER_NORMALIZERS:
      items = normalizer(unwrapped)
      if items is not None:
        return shape, items, unwrapped

  items = _items_from_days(raw)
  if items is not None:
    return ScheduleShape.DAYS, items, raw

  return ScheduleShape.EMPTY, None, raw


def _header(raw: Dict, container: Dict) -> Schedule:
  """Header fields from the payload, filled in from the unwrapped container"""
  merged = {}
  if container is not raw:
    merged.update({k: v for k, v in container.items() if k not in STRUCTURE_KEYS})
  merged.update({k: v for k, v in raw.items() if k not in STRUCTURE_KEYS and v is not None})
  if not merged:
    return Schedule(id="")
  return Schedule.from_dict(merged)


def _groups(raw: Dict, container: Dict) -> Optional[List[ScheduleGroup]]:
  for source in (raw, container):
    groups = _unwrap(source.get("groups"))
    if isinstance(groups, list):
      return decode_records(groups, ScheduleGroup.from_dict, "schedule group")
  return None


def decode_schedule(raw: Any) -> Schedule:
  """
  Decode any known schedule payload shape into a Schedule.
  Never raises for shape problems; unrecognised input gives schedules=None.
  """
  raw = _unwrap(raw)
  if isinstance(raw, list):
    raw = {"schedules": raw}
  if not isinstance(raw, dict):
    logger.debug("Schedule payload is not an object (%s); treating as empty", type(raw).__name__)
    return Schedule(id="")

  shape, items, container = normalize_payload(raw)
  schedule = replace(_header(raw, container), schedules=items, groups=_groups(raw, container))

  # Single-day shortcut: hoist the only day's groups
  if not schedule.groups and items is not None and len(items) == 1 and items[0].groups:
    schedule = replace(schedule, groups=list(items[0].groups))

  logger.debug(
    "Decoded schedule %r as shape %s (%d items)",
    schedule.id, shape.value, len(items) if items is not None else 0
  )
  return schedule


def schedules_from_response(payload: Dict) -> List[Schedule]:
  """
  Schedules from a schedule fetch response.

  The response carries a list under either "schedule" or "schedules"; each
  entry may itself be in any shape decode_schedule understands. A response
  whose "schedule" value is a string or object is one schedule.
  """
  if not isinstance(payload, dict):
    return []
  for key in ("schedule", "schedules"):
    value = payload.get(key)
    if isinstance(value, list):
      entries = [entry for entry in value if isinstance(entry, (dict, str))]
      if entries:
        return [decode_schedule(entry) for entry in entries]
  if isinstance(payload.get("schedule"), (str, dict)):
    return [decode_schedule(payload)]
  return []


def select_schedule(schedules: List[Schedule], schedule_id: Optional[str] = None) -> Optional[Schedule]:
  """The schedule with the wanted id, else the first one"""
  if schedule_id:
    for schedule in schedules:
      if schedule.id == schedule_id:
        return schedule
  return schedules[0] if schedules else None


# ============================================
# Cache
# ============================================

class ScheduleCache:
  """
  Map of schedule id -> fully resolved Schedule.

  Thread-safe. With a LocalStore attached, stores write through and
  memory misses fall back to the store.
  """

  def __init__(self, store: Optional[LocalStore] = None):
    self._lock = threading.Lock()
    self._entries: Dict[str, Schedule] = {}
    self._store = store

  def get(self, schedule_id: str) -> Optional[Schedule]:
    with self._lock:
      cached = self._entries.get(schedule_id)
      if cached is not None or self._store is None:
        return cached
      cached = self._store.load_schedule(schedule_id)
      if cached is not None:
        self._entries[schedule_id] = cached
      return cached

  def store(self, schedule: Schedule):
    if not schedule.id:
      logger.warning("Not caching a schedule without an id")
      return
    with self._lock:
      self._entries[schedule.id] = schedule
      if self._store is not None:
        self._store.store_schedule(schedule)

  def clear_cached_schedules(self, keeping: Optional[str] = None):
    """Drop every cached schedule except the one with id `keeping`"""
    with self._lock:
      for schedule_id in list(self._entries):
        if schedule_id != keeping:
          del self._entries[schedule_id]
      if self._store is not None:
        self._store.delete_schedules(keeping=keeping)

  def clear(self):
    self.clear_cached_schedules(keeping=None)

  def ids(self) -> List[str]:
    with self._lock:
      return sorted(self._entries)

  def __contains__(self, schedule_id: str) -> bool:
    with self._lock:
      return schedule_id in self._entries

  def __len__(self) -> int:
    with self._lock:
      return len(self._entries)


_shared_cache: Optional[ScheduleCache] = None
_shared_lock = threading.Lock()


def shared_schedule_cache(store: Optional[LocalStore] = None) -> ScheduleCache:
  """Process-wide cache. The store is only used when the cache is first created."""
  global _shared_cache
  with _shared_lock:
    if _shared_cache is None:
      _shared_cache = ScheduleCache(store)
    return _shared_cache


# ============================================
# Block / item completion
# ============================================

def _index(frames: Iterable[Frame]) -> Dict[str, Frame]:
  return {frame.id: frame for frame in frames}


def block_frames(block: ScheduleBlock, frames: Iterable[Frame]) -> List[Frame]:
  """Frames a block references, in storyboard order; unknown ids are skipped"""
  by_id = _index(frames)
  return [by_id[frame_id] for frame_id in block.frame_ids if frame_id in by_id]


def is_block_complete(block: ScheduleBlock, frames: Iterable[Frame]) -> bool:
  """A block is complete when it resolves to frames and all of them are done"""
  resolved = block_frames(block, frames)
  if not resolved:
    return False
  return all(frame.status_enum == FrameStatus.DONE for frame in resolved)


def item_frame_ids(item: ScheduleItem, schedule: Optional[Schedule] = None) -> List[str]:
  """Every frame id referenced by a day, using the schedule's groups when the day has none"""
  groups = item.groups
  if groups is None and schedule is not None:
    groups = schedule.groups
  seen = []
  for group in groups or []:
    for block in group.blocks:
      for frame_id in block.frame_ids:
        if frame_id not in seen:
          seen.append(frame_id)
  return seen


def is_item_complete(item: ScheduleItem, schedule: Optional[Schedule], frames: Iterable[Frame]) -> bool:
  """
  A day is complete when it references at least one frame, every reference
  resolves, and every resolved frame is done or omitted.
  """
  frame_ids = item_frame_ids(item, schedule)
  if not frame_ids:
    return False
  by_id = _index(frames)
  if any(frame_id not in by_id for frame_id in frame_ids):
    return False
  return all(by_id[frame_id].status_enum.is_resolved for frame_id in frame_ids)
