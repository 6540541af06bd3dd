"""
Frame Change Notifications
v1.0.0

Records describing "what changed" on a frame, handed to service listeners
after a mutation has been applied.

Every change is tagged with where it came from:
- local: the user of this client asked for it
- remote: the realtime stream reported someone else's change

Consumers that react to changes (e.g. scrolling to the shot currently being
filmed) should only follow remote changes, never the user's own.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .frame_schema import Frame, FrameStatus


class ChangeOrigin(str, Enum):
  LOCAL = "local"
  REMOTE = "remote"


class ChangeType(str, Enum):
  """Kinds of frame change other than status"""
  BOARDS = "boards"
  DESCRIPTION = "description"
  CAPTION = "caption"
  ASPECT_RATIO = "aspect_ratio"


@dataclass(frozen=True)
class StatusChange:
  """A frame's status moved from old_status to new_status"""
  frame_id: str
  old_status: FrameStatus
  new_status: FrameStatus
  origin: ChangeOrigin
  timestamp: str
  creative_id: Optional[str] = None

  @property
  def is_remote(self) -> bool:
    return self.origin == ChangeOrigin.REMOTE

  @property
  def summary(self) -> str:
    if self.old_status == self.new_status:
      return f"Status unchanged: {self.new_status.value}"
    return f"Status: {self.old_status.value} -> {self.new_status.value}"

  def to_dict(self) -> Dict:
    return {
      'frame_id': self.frame_id,
      'old_status': self.old_status.value,
      'new_status': self.new_status.value,
      'origin': self.origin.value,
      'timestamp': self.timestamp,
      'creative_id': self.creative_id,
    }


@dataclass(frozen=True)
class FrameChange:
  """Any other replacement of a frame (boards, text, creative fields)"""
  frame_id: str
  change_type: ChangeType
  origin: ChangeOrigin
  timestamp: str
  details: Optional[Dict[str, Any]] = None

  @property
  def is_remote(self) -> bool:
    return self.origin == ChangeOrigin.REMOTE

  def to_dict(self) -> Dict:
    result = {
      'frame_id': self.frame_id,
      'change_type': self.change_type.value,
      'origin': self.origin.value,
      'timestamp': self.timestamp,
    }
    if self.details:
      result['details'] = self.details
    return result


def get_timestamp() -> str:
  """Get current timestamp in ISO format"""
  return datetime.now().isoformat()


# ============================================
# Factory Functions
# ============================================

def create_status_change(before: Optional[Frame], after: Frame, origin: ChangeOrigin) -> StatusChange:
  """Status change record for a frame replacement"""
  old_status = before.status_enum if before is not None else FrameStatus.NONE
  return StatusChange(
    frame_id=after.id,
    old_status=old_status,
    new_status=after.status_enum,
    origin=origin,
    timestamp=get_timestamp(),
    creative_id=after.creative_id,
  )


def create_frame_change(
  frame_id: str,
  change_type: ChangeType,
  origin: ChangeOrigin,
  **details
) -> FrameChange:
  return FrameChange(
    frame_id=frame_id,
    change_type=change_type,
    origin=origin,
    timestamp=get_timestamp(),
    details=details or None,
  )
