"""
Frame Schema
v1.0.0

Canonical records for projects, creatives and frames.

A Creative is a scene; it owns frames through Frame.creative_id. Frames
carry two independent order keys: frame_order (story / script sequence)
and frame_shoot_order (physical shoot sequence). Either may be missing.

Design Principles:
- from_dict() runs every field through shotboard.schema.coerce, so a
  payload that sends "3", 3 or 3.0 for the same field decodes the same way
- to_dict() emits the canonical cache format (snake_case, no None values)
- Records are never mutated in place; the with_*() methods return a new
  Frame and callers swap it into their collection
"""
from dataclasses import dataclass, field, replace
from datetime import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from enum import Enum
import re

from bs4 import BeautifulSoup

from ..config import IMAGE_EXTENSIONS, STREAMING_HINT, VIDEO_EXTENSIONS
from .coerce import (
  decode_json_string,
  decode_records,
  drop_none,
  pick,
  to_bool,
  to_int,
  to_optional_int,
  to_optional_str,
  to_str,
  to_tag_list,
)
from .schedule_schema import ScheduleRef

CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


class FrameStatus(str, Enum):
  """Production status of a frame"""
  DONE = "done"
  HERE = "here"    # being shot right now
  NEXT = "next"    # up next
  OMIT = "omit"    # skipped
  NONE = "none"    # unset

  @classmethod
  def from_string(cls, value: Any) -> "FrameStatus":
    """Convert a raw status to FrameStatus, handling legacy spellings"""
    text = to_optional_str(value)
    if text is None:
      return cls.NONE

    value_lower = text.lower().strip()

    if value_lower == "done":
      return cls.DONE
    elif value_lower in ["here", "in-progress", "inprogress", "in_progress"]:
      return cls.HERE
    elif value_lower in ["next", "up-next", "upnext", "up_next"]:
      return cls.NEXT
    elif value_lower in ["omit", "skip", "omitted", "skipped"]:
      return cls.OMIT
    else:
      # "", "0", "null", "none" and anything unrecognised
      return cls.NONE

  @property
  def api_value(self) -> Optional[str]:
    """Value sent to / stored for the server; NONE clears the field"""
    if self is FrameStatus.NONE:
      return None
    return self.value

  @property
  def is_resolved(self) -> bool:
    return self in (FrameStatus.DONE, FrameStatus.OMIT)


# ============================================
# Helpers
# ============================================

def normalize_aspect_ratio(value: Any) -> Optional[str]:
  """Trim an aspect ratio string; a bare "1" means square"""
  text = to_optional_str(value)
  if text is None:
    return None
  text = text.strip()
  if not text:
    return None
  if text == "1":
    return "1 / 1"
  return text


def parse_clock_time(value: Any) -> Optional[time]:
  """Parse "HH:mm" or "HH:mm:ss"; anything else gives None"""
  text = to_optional_str(value)
  if not text:
    return None
  match = CLOCK_PATTERN.match(text)
  if not match:
    return None
  hour, minute = int(match.group(1)), int(match.group(2))
  second = int(match.group(3) or 0)
  if hour > 23 or minute > 59 or second > 59:
    return None
  return time(hour, minute, second)


def format_clock_time(value: Optional[time]) -> Optional[str]:
  """time(14, 5) -> "2:05 PM" """
  if value is None:
    return None
  suffix = "AM" if value.hour < 12 else "PM"
  hour = value.hour % 12 or 12
  return f"{hour}:{value.minute:02d} {suffix}"


def html_to_text(html: Optional[str]) -> str:
  """Strip the markup from description/caption fields"""
  if not html:
    return ""
  soup = BeautifulSoup(html, "html.parser")
  return soup.get_text("\n", strip=True)


def _extension(url: Optional[str]) -> str:
  if not url:
    return ""
  path = urlparse(url).path.lower()
  filename = path.rsplit("/", 1)[-1]
  if "." not in filename:
    return ""
  return filename.rsplit(".", 1)[-1]


def looks_like_video(file_type: Optional[str], *urls: Optional[str]) -> bool:
  """
  Video detection from a MIME-ish file type or from URL extensions.
  HLS playlists (.m3u8) count as video.
  """
  if file_type:
    lowered = file_type.lower().strip()
    if lowered.startswith("video") or lowered.rsplit("/", 1)[-1] in VIDEO_EXTENSIONS:
      return True
  for url in urls:
    if not url:
      continue
    if STREAMING_HINT in url.lower():
      return True
    if _extension(url) in VIDEO_EXTENSIONS:
      return True
  return False


def looks_like_image(file_type: Optional[str], *urls: Optional[str]) -> bool:
  if file_type:
    lowered = file_type.lower().strip()
    if lowered.startswith("image") or lowered.rsplit("/", 1)[-1] in IMAGE_EXTENSIONS:
      return True
  return any(_extension(url) in IMAGE_EXTENSIONS for url in urls if url)


def _order_value(value: Any) -> Optional[str]:
  """Order keys are string-encoded integers; blank means absent"""
  text = to_optional_str(value)
  if text is None:
    return None
  text = text.strip()
  return text or None


def _json_list(value: Any) -> Any:
  if isinstance(value, str):
    return decode_json_string(value)
  return value


# ============================================
# Tags
# ============================================

@dataclass(eq=False)
class Tag:
  """
  A frame tag. Identity is the id when present, else the lowercased name;
  equality and hashing both use that identity.
  """
  name: str = ""
  id: Optional[str] = None
  group: Optional[str] = None
  color: Optional[str] = None

  @property
  def identity(self) -> str:
    if self.id:
      return self.id
    return self.name.lower()

  def __eq__(self, other) -> bool:
    if not isinstance(other, Tag):
      return NotImplemented
    return self.identity == other.identity

  def __hash__(self) -> int:
    return hash(self.identity)

  def to_dict(self) -> Dict:
    return drop_none({
      'id': self.id,
      'name': self.name,
      'group': self.group,
      'color': self.color,
    })

  @classmethod
  def from_dict(cls, data: Dict) -> Optional["Tag"]:
    tag_id = to_optional_str(pick(data, 'id', 'tag_id', 'tagId'))
    name = to_str(pick(data, 'name', 'title', 'label'))
    if not tag_id and not name:
      return None
    return cls(
      name=name,
      id=tag_id or None,
      group=to_optional_str(pick(data, 'group', 'group_name', 'groupName')),
      color=to_optional_str(data.get('color')),
    )


@dataclass
class TagGroup:
  """Tag group definition sent alongside the frame list"""
  id: str
  name: str = ""
  color: Optional[str] = None
  tags: List[Tag] = field(default_factory=list)

  def to_dict(self) -> Dict:
    return drop_none({
      'id': self.id,
      'name': self.name,
      'color': self.color,
      'tags': [tag.to_dict() for tag in self.tags],
    })

  @classmethod
  def from_dict(cls, data: Dict) -> "TagGroup":
    group_id = to_optional_str(pick(data, 'id', 'group_id', 'groupId'))
    name = to_str(pick(data, 'name', 'title'))
    if not group_id and not name:
      raise ValueError("Tag group has neither id nor name")
    tags = to_tag_list(_json_list(data.get('tags'))) or []
    # Tags listed under a group belong to it even when they don't say so
    tags = [tag if tag.group else replace(tag, group=name or None) for tag in tags]
    return cls(
      id=group_id or name,
      name=name,
      color=to_optional_str(data.get('color')),
      tags=tags,
    )


# ============================================
# Boards
# ============================================

@dataclass
class FrameBoard:
  """One entry of a frame's board list"""
  id: str
  label: Optional[str] = None      # free text, e.g. "photoboard"
  order: int = 0
  is_pinned: bool = False
  file_url: Optional[str] = None
  file_thumb: Optional[str] = None
  file_name: Optional[str] = None
  file_type: Optional[str] = None
  file_size: Optional[int] = None
  file_crop: Optional[str] = None
  metadata: Optional[Any] = None   # opaque JSON blob

  @property
  def is_video(self) -> bool:
    return looks_like_video(self.file_type, self.file_url)

  def to_dict(self) -> Dict:
    result = drop_none({
      'id': self.id,
      'label': self.label,
      'order': self.order,
      'is_pinned': self.is_pinned,
      'file_url': self.file_url,
      'file_thumb': self.file_thumb,
      'file_name': self.file_name,
      'file_type': self.file_type,
      'file_size': self.file_size,
      'file_crop': self.file_crop,
      'metadata': self.metadata,
    })
    return result

  @classmethod
  def from_dict(cls, data: Dict) -> "FrameBoard":
    board_id = to_optional_str(pick(data, 'id', 'board_id', 'boardId'))
    if not board_id:
      raise ValueError("Board is missing an id")

    metadata = pick(data, 'metadata', 'meta')
    if isinstance(metadata, str):
      decoded = decode_json_string(metadata)
      metadata = decoded if decoded is not None else metadata

    return cls(
      id=board_id,
      label=to_optional_str(pick(data, 'label', 'name', 'board_type', 'boardType')),
      order=to_int(pick(data, 'order', 'board_order', 'boardOrder', 'sort_order')),
      is_pinned=to_bool(pick(data, 'is_pinned', 'isPinned', 'pinned')),
      file_url=to_optional_str(pick(data, 'file_url', 'fileUrl', 'url', 'file')),
      file_thumb=to_optional_str(pick(data, 'file_thumb', 'fileThumb', 'thumb', 'thumbnail')),
      file_name=to_optional_str(pick(data, 'file_name', 'fileName')),
      file_type=to_optional_str(pick(data, 'file_type', 'fileType')),
      file_size=to_optional_int(pick(data, 'file_size', 'fileSize')),
      file_crop=to_optional_str(pick(data, 'file_crop', 'fileCrop', 'crop')),
      metadata=metadata,
    )


def sorted_boards(boards: Optional[List[FrameBoard]]) -> List[FrameBoard]:
  """Pinned boards first, then by order index"""
  return sorted(boards or [], key=lambda board: (not board.is_pinned, board.order))


def select_primary_board(boards: Optional[List[FrameBoard]], label: Optional[str] = None) -> Optional[FrameBoard]:
  """
  Pick the board to show for a frame.

  When a label is given and some boards carry it (case-insensitive), only
  those compete. Among the candidates a pinned board wins, else the lowest
  order index.
  """
  candidates = list(boards or [])
  if label:
    wanted = label.strip().lower()
    labelled = [board for board in candidates if (board.label or "").strip().lower() == wanted]
    if labelled:
      candidates = labelled
  ordered = sorted_boards(candidates)
  return ordered[0] if ordered else None


# ============================================
# Frames
# ============================================

@dataclass
class Frame:
  """A single shot / storyboard panel"""
  id: str
  creative_id: Optional[str] = None

  # Denormalized from the owning creative
  creative_title: Optional[str] = None
  creative_color: Optional[str] = None
  creative_aspect_ratio: Optional[str] = None

  # Legacy single-valued assets
  board: Optional[str] = None
  board_thumb: Optional[str] = None
  photoboard: Optional[str] = None
  photoboard_thumb: Optional[str] = None
  photoboard_crop: Optional[str] = None
  preview: Optional[str] = None
  preview_thumb: Optional[str] = None
  preview_crop: Optional[str] = None
  preview_type: Optional[str] = None
  capture_clip: Optional[str] = None
  capture_clip_thumbnail: Optional[str] = None
  crop: Optional[str] = None

  # Board list
  boards: List[FrameBoard] = field(default_factory=list)
  main_board_type: Optional[str] = None

  # Text (HTML-ish)
  description: Optional[str] = None
  caption: Optional[str] = None
  notes: Optional[str] = None

  status: Optional[str] = None            # FrameStatus.api_value
  frame_order: Optional[str] = None       # story order
  frame_shoot_order: Optional[str] = None  # shoot order
  frame_number: Optional[str] = None
  is_hidden: bool = False
  schedule_start_time: Optional[str] = None  # "HH:mm"
  tags: List[Tag] = field(default_factory=list)

  # ============================================
  # Derived values
  # ============================================

  @property
  def status_enum(self) -> FrameStatus:
    return FrameStatus.from_string(self.status)

  @property
  def story_order(self) -> Optional[int]:
    return to_optional_int(self.frame_order)

  @property
  def shoot_order(self) -> Optional[int]:
    return to_optional_int(self.frame_shoot_order)

  @property
  def display_order(self) -> str:
    return self.frame_number or self.frame_order or ""

  @property
  def start_time(self) -> Optional[time]:
    return parse_clock_time(self.schedule_start_time)

  @property
  def formatted_start_time(self) -> Optional[str]:
    return format_clock_time(self.start_time)

  @property
  def description_text(self) -> str:
    return html_to_text(self.description)

  @property
  def caption_text(self) -> str:
    return html_to_text(self.caption)

  @property
  def tag_ids(self) -> List[str]:
    return [tag.identity for tag in self.tags]

  # ============================================
  # With-field updates
  # ============================================

  def with_status(self, status: FrameStatus) -> "Frame":
    return replace(self, status=status.api_value)

  def with_boards(self, boards: List[FrameBoard], main_board_type: Optional[str] = None) -> "Frame":
    """
    New board list. The legacy board fields are refreshed from the primary
    board in the same replacement so the two never disagree.
    """
    boards = list(boards or [])
    board_type = main_board_type if main_board_type is not None else self.main_board_type
    primary = select_primary_board(boards, board_type)
    return replace(
      self,
      boards=boards,
      main_board_type=board_type,
      board=primary.file_url if primary else None,
      board_thumb=(primary.file_thumb or primary.file_url) if primary else None,
    )

  def with_description(self, description: Optional[str]) -> "Frame":
    return replace(self, description=description)

  def with_caption(self, caption: Optional[str]) -> "Frame":
    return replace(self, caption=caption)

  def with_creative_fields(
    self,
    title: Optional[str] = None,
    color: Optional[str] = None,
    aspect_ratio: Optional[str] = None,
  ) -> "Frame":
    """Refresh denormalized creative fields; None leaves a field as-is"""
    return replace(
      self,
      creative_title=title if title is not None else self.creative_title,
      creative_color=color if color is not None else self.creative_color,
      creative_aspect_ratio=(
        normalize_aspect_ratio(aspect_ratio) if aspect_ratio is not None else self.creative_aspect_ratio
      ),
    )

  # ============================================
  # Serialization
  # ============================================

  def to_dict(self) -> Dict:
    result = drop_none({
      'id': self.id,
      'creative_id': self.creative_id,
      'creative_title': self.creative_title,
      'creative_color': self.creative_color,
      'creative_aspect_ratio': self.creative_aspect_ratio,
      'board': self.board,
      'board_thumb': self.board_thumb,
      'photoboard': self.photoboard,
      'photoboard_thumb': self.photoboard_thumb,
      'photoboard_crop': self.photoboard_crop,
      'preview': self.preview,
      'preview_thumb': self.preview_thumb,
      'preview_crop': self.preview_crop,
      'preview_type': self.preview_type,
      'capture_clip': self.capture_clip,
      'capture_clip_thumbnail': self.capture_clip_thumbnail,
      'crop': self.crop,
      'main_board_type': self.main_board_type,
      'description': self.description,
      'caption': self.caption,
      'notes': self.notes,
      'status': self.status,
      'frame_order': self.frame_order,
      'frame_shoot_order': self.frame_shoot_order,
      'frame_number': self.frame_number,
      'schedule_start_time': self.schedule_start_time,
    })
    result['is_hidden'] = self.is_hidden
    result['boards'] = [board.to_dict() for board in self.boards]
    result['tags'] = [tag.to_dict() for tag in self.tags]
    return result

  @classmethod
  def from_dict(cls, data: Dict) -> "Frame":
    """Create a Frame from a server payload or a cached dict"""
    frame_id = to_optional_str(pick(data, 'id', 'frame_id', 'frameId', 'frameID'))
    if not frame_id:
      raise ValueError("Frame is missing an id")

    def text(*keys):
      return to_optional_str(pick(data, *keys))

    return cls(
      id=frame_id,
      creative_id=text('creative_id', 'creativeId'),
      creative_title=text('creative_title', 'creativeTitle'),
      creative_color=text('creative_color', 'creativeColor'),
      creative_aspect_ratio=normalize_aspect_ratio(
        pick(data, 'creative_aspect_ratio', 'creativeAspectRatio', 'aspect_ratio')
      ),
      board=text('board', 'frame_board'),
      board_thumb=text('board_thumb', 'boardThumb'),
      photoboard=text('photoboard'),
      photoboard_thumb=text('photoboard_thumb', 'photoboardThumb'),
      photoboard_crop=text('photoboard_crop', 'photoboardCrop'),
      preview=text('preview'),
      preview_thumb=text('preview_thumb', 'previewThumb'),
      preview_crop=text('preview_crop', 'previewCrop'),
      preview_type=text('preview_type', 'previewType'),
      capture_clip=text('capture_clip', 'captureClip'),
      capture_clip_thumbnail=text('capture_clip_thumbnail', 'captureClipThumbnail'),
      crop=text('crop'),
      boards=decode_records(_json_list(pick(data, 'boards', 'frame_boards')), FrameBoard.from_dict, "board"),
      main_board_type=text('main_board_type', 'mainBoardType'),
      description=text('description'),
      caption=text('caption'),
      notes=text('notes'),
      status=FrameStatus.from_string(pick(data, 'status', 'frame_status')).api_value,
      frame_order=_order_value(pick(data, 'frame_order', 'frameOrder')),
      frame_shoot_order=_order_value(pick(data, 'frame_shoot_order', 'frameShootOrder')),
      frame_number=_order_value(pick(data, 'frame_number', 'frameNumber')),
      is_hidden=to_bool(pick(data, 'frame_hide', 'is_hidden', 'isHidden', 'hide')),
      schedule_start_time=text('schedule_start_time', 'scheduleStartTime', 'start_time'),
      tags=to_tag_list(_json_list(data.get('tags'))) or [],
    )


# ============================================
# Creatives & projects
# ============================================

@dataclass
class Creative:
  """
  A scene. The frame counts are server aggregates and are never recomputed
  from the loaded frames (they may include archived frames).
  """
  id: str
  title: str = ""
  order: int = 0
  shoot_id: Optional[str] = None
  is_archived: bool = False
  is_live: bool = False
  total_frames: int = 0
  completed_frames: int = 0
  remaining_frames: int = 0
  primary_frame_id: Optional[str] = None
  frame_file_name: Optional[str] = None
  frame_image: Optional[str] = None
  frame_board_type: Optional[str] = None
  frame_status: Optional[str] = None
  frame_number: Optional[str] = None
  image: Optional[str] = None
  color: Optional[str] = None
  aspect_ratio: Optional[str] = None

  @property
  def progress_percentage(self) -> float:
    if self.total_frames <= 0:
      return 0.0
    return self.completed_frames / self.total_frames * 100.0

  def to_dict(self) -> Dict:
    return drop_none({
      'id': self.id,
      'title': self.title,
      'order': self.order,
      'shoot_id': self.shoot_id,
      'is_archived': self.is_archived,
      'is_live': self.is_live,
      'total_frames': self.total_frames,
      'completed_frames': self.completed_frames,
      'remaining_frames': self.remaining_frames,
      'primary_frame_id': self.primary_frame_id,
      'frame_file_name': self.frame_file_name,
      'frame_image': self.frame_image,
      'frame_board_type': self.frame_board_type,
      'frame_status': self.frame_status,
      'frame_number': self.frame_number,
      'image': self.image,
      'color': self.color,
      'aspect_ratio': self.aspect_ratio,
    })

  @classmethod
  def from_dict(cls, data: Dict) -> "Creative":
    creative_id = to_optional_str(pick(data, 'id', 'creative_id', 'creativeId'))
    if not creative_id:
      raise ValueError("Creative is missing an id")

    def text(*keys):
      return to_optional_str(pick(data, *keys))

    return cls(
      id=creative_id,
      title=to_str(pick(data, 'title', 'name')),
      order=to_int(pick(data, 'order', 'creative_order')),
      shoot_id=text('shoot_id', 'shootId'),
      is_archived=to_bool(pick(data, 'is_archived', 'isArchived')),
      is_live=to_bool(pick(data, 'is_live', 'isLive')),
      total_frames=to_int(pick(data, 'total_frames', 'totalFrames')),
      completed_frames=to_int(pick(data, 'completed_frames', 'completedFrames')),
      remaining_frames=to_int(pick(data, 'remaining_frames', 'remainingFrames')),
      primary_frame_id=text('primary_frame_id', 'primaryFrameId'),
      frame_file_name=text('frame_file_name', 'frameFileName'),
      frame_image=text('frame_image', 'frameImage'),
      frame_board_type=text('frame_board_type', 'frameBoardType'),
      frame_status=FrameStatus.from_string(pick(data, 'frame_status', 'frameStatus')).api_value,
      frame_number=_order_value(pick(data, 'frame_number', 'frameNumber')),
      image=text('image'),
      color=text('color', 'creative_color'),
      aspect_ratio=normalize_aspect_ratio(pick(data, 'aspect_ratio', 'aspectRatio')),
    )


@dataclass
class Project:
  """Project details (one per session)"""
  id: str
  name: str = ""
  shoot_id: Optional[str] = None
  allow_edit: bool = False
  active_schedule: Optional[ScheduleRef] = None

  @property
  def active_schedule_id(self) -> Optional[str]:
    return self.active_schedule.id if self.active_schedule else None

  def to_dict(self) -> Dict:
    return drop_none({
      'id': self.id,
      'name': self.name,
      'shoot_id': self.shoot_id,
      'allow_edit': self.allow_edit,
      'active_schedule': self.active_schedule.to_dict() if self.active_schedule else None,
    })

  @classmethod
  def from_dict(cls, data: Dict) -> "Project":
    project_id = to_optional_str(pick(data, 'id', 'project_id', 'projectId'))
    if not project_id:
      raise ValueError("Project is missing an id")
    active = ScheduleRef.from_value(pick(data, 'active_schedule', 'activeSchedule'))
    if active is None:
      active = ScheduleRef.from_value(pick(data, 'active_schedule_id', 'activeScheduleId'))
    return cls(
      id=project_id,
      name=to_str(pick(data, 'name', 'title', 'project_name')),
      shoot_id=to_optional_str(pick(data, 'shoot_id', 'shootId')),
      allow_edit=to_bool(pick(data, 'allow_edit', 'allowEdit')),
      active_schedule=active,
    )


# ============================================
# Comments & clips
# ============================================

@dataclass
class Comment:
  id: str
  user_id: Optional[str] = None
  name: Optional[str] = None
  guest_name: Optional[str] = None
  comment: str = ""
  last_updated: Optional[str] = None
  status: Optional[str] = None
  frame_order: Optional[str] = None
  frame_thumb: Optional[str] = None
  replies: List["Comment"] = field(default_factory=list)

  @property
  def display_name(self) -> str:
    return self.name or self.guest_name or "Guest"

  @property
  def text(self) -> str:
    return html_to_text(self.comment)

  def to_dict(self) -> Dict:
    result = drop_none({
      'id': self.id,
      'user_id': self.user_id,
      'name': self.name,
      'guest_name': self.guest_name,
      'comment': self.comment,
      'last_updated': self.last_updated,
      'status': self.status,
      'frame_order': self.frame_order,
      'frame_thumb': self.frame_thumb,
    })
    result['replies'] = [reply.to_dict() for reply in self.replies]
    return result

  @classmethod
  def from_dict(cls, data: Dict) -> "Comment":
    comment_id = to_optional_str(pick(data, 'id', 'comment_id'))
    if not comment_id:
      raise ValueError("Comment is missing an id")
    return cls(
      id=comment_id,
      user_id=to_optional_str(pick(data, 'user_id', 'userId')),
      name=to_optional_str(data.get('name')),
      guest_name=to_optional_str(pick(data, 'guest_name', 'guestName')),
      comment=to_str(pick(data, 'comment', 'text')),
      last_updated=to_optional_str(pick(data, 'last_updated', 'lastUpdated')),
      status=to_optional_str(data.get('status')),
      frame_order=_order_value(pick(data, 'frame_order', 'frameOrder')),
      frame_thumb=to_optional_str(pick(data, 'frame_thumb', 'frameThumb')),
      replies=decode_records(data.get('replies'), Comment.from_dict, "reply"),
    )


@dataclass
class Clip:
  """A captured media file attached to a project"""
  id: str
  file_url: Optional[str] = None
  thumbnail_url: Optional[str] = None
  file_name: Optional[str] = None
  file_type: Optional[str] = None
  file_size: Optional[int] = None  # bytes

  @property
  def is_video(self) -> bool:
    return looks_like_video(self.file_type, self.file_url)

  @property
  def is_image(self) -> bool:
    return not self.is_video and looks_like_image(self.file_type, self.file_url)

  @property
  def formatted_file_size(self) -> str:
    if self.file_size is None or self.file_size < 0:
      return ""
    size = float(self.file_size)
    if size < 1024:
      return f"{self.file_size} B"
    for unit in ["KB", "MB", "GB"]:
      size /= 1024.0
      if size < 1024 or unit == "GB":
        return f"{size:.1f} {unit}"
    return ""

  @property
  def display_name(self) -> str:
    if self.file_name:
      return self.file_name
    if self.file_url:
      name = urlparse(self.file_url).path.rsplit("/", 1)[-1]
      if name:
        return name
    return "Clip"

  def to_dict(self) -> Dict:
    return drop_none({
      'id': self.id,
      'file_url': self.file_url,
      'thumbnail_url': self.thumbnail_url,
      'file_name': self.file_name,
      'file_type': self.file_type,
      'file_size': self.file_size,
    })

  @classmethod
  def from_dict(cls, data: Dict) -> "Clip":
    clip_id = to_optional_str(pick(data, 'id', 'clip_id', 'clipId'))
    if not clip_id:
      raise ValueError("Clip is missing an id")
    return cls(
      id=clip_id,
      file_url=to_optional_str(pick(data, 'file_url', 'fileURL', 'fileUrl', 'url')),
      thumbnail_url=to_optional_str(pick(data, 'thumbnail_url', 'thumbnailURL', 'thumbnailUrl', 'thumb')),
      file_name=to_optional_str(pick(data, 'file_name', 'fileName')),
      file_type=to_optional_str(pick(data, 'file_type', 'fileType')),
      file_size=to_optional_int(pick(data, 'file_size', 'fileSize')),
    )
