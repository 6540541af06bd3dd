"""
Schedule Schema
v1.0.0

A schedule is a day-structured shooting plan:

  Schedule -> ScheduleItem ("days") -> ScheduleGroup -> ScheduleBlock

Blocks are a tagged union: a `title` block is a section header, a `shot`
block references frames by id through `storyboards`, anything else is kept
opaquely as `unknown`. Storyboard ids are loose references, resolved
against the loaded frames at read time and never enforced.

These records decode the canonical shape only. The many historical payload
shapes the server emits are normalised in shotboard.schedules.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .coerce import (
  decode_records,
  drop_none,
  pick,
  to_bool,
  to_optional_float,
  to_optional_int,
  to_optional_str,
  to_str,
  to_str_list,
)

DEFAULT_DAY_ID = "Schedule Day"


class BlockType(str, Enum):
  TITLE = "title"
  SHOT = "shot"
  UNKNOWN = "unknown"

  @classmethod
  def from_string(cls, value: Optional[str]) -> "BlockType":
    if not value:
      return cls.UNKNOWN
    value_lower = value.strip().lower()
    if value_lower == "title":
      return cls.TITLE
    elif value_lower in ["shot", "storyboard", "storyboards"]:
      return cls.SHOT
    return cls.UNKNOWN


@dataclass
class ScheduleBlock:
  id: str = ""
  type: BlockType = BlockType.UNKNOWN
  raw_type: Optional[str] = None           # unknown blocks only
  title: Optional[str] = None
  description: Optional[str] = None
  color: Optional[str] = None
  duration: Optional[int] = None          # minutes
  calculated_start: Optional[str] = None  # "HH:mm"
  locked_start: bool = False
  storyboards: Optional[List[str]] = None  # frame ids
  raw: Optional[Dict[str, Any]] = None     # unknown blocks only

  @property
  def frame_ids(self) -> List[str]:
    return list(self.storyboards or [])

  def to_dict(self) -> Dict:
    if self.type == BlockType.UNKNOWN and self.raw is not None:
      return dict(self.raw)
    return drop_none({
      'id': self.id,
      'type': self.type.value,
      'title': self.title,
      'description': self.description,
      'color': self.color,
      'duration': self.duration,
      'calculated_start': self.calculated_start,
      'locked_start': self.locked_start or None,
      'storyboards': self.storyboards,
    })

  @classmethod
  def from_dict(cls, data: Dict) -> "ScheduleBlock":
    raw_type = to_optional_str(pick(data, 'type', 'block_type', 'blockType'))
    block_type = BlockType.from_string(raw_type)
    return cls(
      id=to_str(pick(data, 'id', 'block_id')),
      type=block_type,
      raw_type=raw_type if block_type == BlockType.UNKNOWN else None,
      title=to_optional_str(data.get('title')),
      description=to_optional_str(data.get('description')),
      color=to_optional_str(data.get('color')),
      duration=to_optional_int(pick(data, 'duration', 'duration_minutes', 'durationMinutes')),
      calculated_start=to_optional_str(
        pick(data, 'calculated_start', 'calculatedStart', 'start_time', 'startTime')
      ),
      locked_start=to_bool(pick(data, 'locked_start', 'lockedStart', 'is_locked')),
      storyboards=to_str_list(pick(data, 'storyboards', 'frame_ids', 'frameIds')),
      raw=dict(data) if block_type == BlockType.UNKNOWN else None,
    )


@dataclass
class ScheduleGroup:
  id: str = ""
  title: Optional[str] = None
  blocks: List[ScheduleBlock] = field(default_factory=list)

  def to_dict(self) -> Dict:
    return drop_none({
      'id': self.id,
      'title': self.title,
      'blocks': [block.to_dict() for block in self.blocks],
    })

  @classmethod
  def from_dict(cls, data: Dict) -> "ScheduleGroup":
    title = to_optional_str(pick(data, 'title', 'name'))
    return cls(
      id=to_str(pick(data, 'id', 'group_id')) or (title or ""),
      title=title,
      blocks=decode_records(pick(data, 'blocks', 'items'), ScheduleBlock.from_dict, "schedule block"),
    )


@dataclass
class ScheduleItem:
  """One day of a schedule"""
  id: str
  title: str = ""
  date: Optional[str] = None         # "YYYY-MM-DD"
  start_time: Optional[str] = None   # "HH:mm"
  duration: Optional[int] = None
  duration_minutes: Optional[int] = None
  groups: Optional[List[ScheduleGroup]] = None

  @property
  def list_identifier(self) -> str:
    return f"{self.id}|{self.date or ''}"

  @property
  def effective_duration(self) -> Optional[int]:
    return self.duration_minutes if self.duration_minutes is not None else self.duration

  def to_dict(self) -> Dict:
    result = drop_none({
      'id': self.id,
      'title': self.title,
      'date': self.date,
      'start_time': self.start_time,
      'duration': self.duration,
      'duration_minutes': self.duration_minutes,
    })
    if self.groups is not None:
      result['groups'] = [group.to_dict() for group in self.groups]
    return result

  @classmethod
  def from_dict(cls, data: Dict) -> "ScheduleItem":
    """
    Decode a schedule item or a "day" entry.
    Days often arrive without an id: fall back to the date, then the title.
    """
    title = to_str(pick(data, 'title', 'name'))
    date = to_optional_str(pick(data, 'date', 'day'))
    item_id = to_optional_str(data.get('id')) or date or title or DEFAULT_DAY_ID

    groups_raw = pick(data, 'groups', 'scheduleGroups', 'schedule_groups')
    groups = None
    if isinstance(groups_raw, list):
      groups = decode_records(groups_raw, ScheduleGroup.from_dict, "schedule group")

    return cls(
      id=item_id,
      title=title,
      date=date,
      start_time=to_optional_str(pick(data, 'start_time', 'startTime')),
      duration=to_optional_int(data.get('duration')),
      duration_minutes=to_optional_int(pick(data, 'duration_minutes', 'durationMinutes')),
      groups=groups,
    )


@dataclass
class ScheduleRef:
  """Lightweight pointer to a schedule, as carried by a project"""
  id: str
  name: Optional[str] = None

  def to_dict(self) -> Dict:
    return drop_none({'id': self.id, 'name': self.name})

  @classmethod
  def from_value(cls, value: Any) -> Optional["ScheduleRef"]:
    if isinstance(value, dict):
      schedule_id = to_optional_str(pick(value, 'id', 'schedule_id', 'scheduleId'))
      if not schedule_id:
        return None
      return cls(id=schedule_id, name=to_optional_str(pick(value, 'name', 'title')))
    schedule_id = to_optional_str(value)
    if schedule_id:
      return cls(id=schedule_id)
    return None


@dataclass
class Schedule:
  """
  A project schedule (ProjectSchedule).

  `schedules` is None when no payload shape could be decoded; callers must
  treat None and [] alike ("no schedule blocks available").
  """
  id: str
  name: str = ""
  title: Optional[str] = None
  date: Optional[str] = None
  start_time: Optional[str] = None
  duration_minutes: Optional[int] = None
  location: Optional[str] = None
  lat: Optional[float] = None
  lng: Optional[float] = None
  schedules: Optional[List[ScheduleItem]] = None
  groups: Optional[List[ScheduleGroup]] = None

  @property
  def display_title(self) -> str:
    return self.title or self.name

  def all_groups(self) -> List[ScheduleGroup]:
    """Schedule-level groups if present, else every day's groups in order"""
    if self.groups:
      return list(self.groups)
    result = []
    for item in self.schedules or []:
      result.extend(item.groups or [])
    return result

  def all_blocks(self) -> List[ScheduleBlock]:
    blocks = []
    for group in self.all_groups():
      blocks.extend(group.blocks)
    return blocks

  def to_dict(self) -> Dict:
    result = drop_none({
      'id': self.id,
      'name': self.name,
      'title': self.title,
      'date': self.date,
      'start_time': self.start_time,
      'duration_minutes': self.duration_minutes,
      'location': self.location,
      'lat': self.lat,
      'lng': self.lng,
    })
    if self.schedules is not None:
      result['schedules'] = [item.to_dict() for item in self.schedules]
    if self.groups is not None:
      result['groups'] = [group.to_dict() for group in self.groups]
    return result

  @classmethod
  def from_dict(cls, data: Dict) -> "Schedule":
    """Decode the canonical shape: header fields plus a direct `schedules` array"""
    if not data:
      raise ValueError("Cannot create Schedule from empty data")

    schedules = None
    if isinstance(data.get('schedules'), list):
      schedules = decode_records(data['schedules'], ScheduleItem.from_dict, "schedule item")

    groups = None
    if isinstance(data.get('groups'), list):
      groups = decode_records(data['groups'], ScheduleGroup.from_dict, "schedule group")

    name = to_str(pick(data, 'name', 'title'))
    return cls(
      id=to_str(pick(data, 'id', 'schedule_id', 'scheduleId')),
      name=name,
      title=to_optional_str(data.get('title')),
      date=to_optional_str(data.get('date')),
      start_time=to_optional_str(pick(data, 'start_time', 'startTime')),
      duration_minutes=to_optional_int(pick(data, 'duration_minutes', 'durationMinutes', 'duration')),
      location=to_optional_str(data.get('location')),
      lat=to_optional_float(pick(data, 'lat', 'latitude')),
      lng=to_optional_float(pick(data, 'lng', 'lon', 'longitude')),
      schedules=schedules,
      groups=groups,
    )
