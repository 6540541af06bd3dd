"""
Schema Package
v1.0.0

Contains all data models for the shotboard client.

Modules:
- coerce: tolerant per-field decoding shared by every record
- frame_schema: Project, Creative, Frame and their parts
- schedule_schema: Schedule graph (days, groups, blocks)
- events: change notifications handed to service listeners
"""

from .schedule_schema import (
  BlockType,
  Schedule,
  ScheduleBlock,
  ScheduleGroup,
  ScheduleItem,
  ScheduleRef,
)

from .frame_schema import (
  Clip,
  Comment,
  Creative,
  Frame,
  FrameBoard,
  FrameStatus,
  Project,
  Tag,
  TagGroup,
  normalize_aspect_ratio,
  parse_clock_time,
)

from .events import (
  ChangeOrigin,
  ChangeType,
  FrameChange,
  StatusChange,
  create_frame_change,
  create_status_change,
)

__all__ = [
  # Schedules
  'BlockType',
  'Schedule',
  'ScheduleBlock',
  'ScheduleGroup',
  'ScheduleItem',
  'ScheduleRef',

  # Frames
  'Clip',
  'Comment',
  'Creative',
  'Frame',
  'FrameBoard',
  'FrameStatus',
  'Project',
  'Tag',
  'TagGroup',
  'normalize_aspect_ratio',
  'parse_clock_time',

  # Events
  'ChangeOrigin',
  'ChangeType',
  'FrameChange',
  'StatusChange',
  'create_frame_change',
  'create_status_change',
]
