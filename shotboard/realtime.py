"""
Realtime event handling

The project stream is server-sent events: blocks separated by a blank
line, each with an `event:` line and one or more `data:` lines holding
JSON. Only the parsing and routing live here; opening and holding the
connection is up to the caller.

Routing:
- connected                            -> stream marked live
- frame-status/description/board/caption updates
                                       -> applied to the one frame, tagged
                                          remote (frames refetched if the
                                          payload is unusable)
- comment-added                        -> listeners only
- other frame events                   -> frames refetched
- creative events                      -> creatives refetched
- schedule events                      -> project details and frames
                                          refetched, active schedule
                                          re-resolved
- creative-aspect-ratio-updated        -> frames' aspect ratios refreshed
"""
import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .config import ASPECT_RATIO_EVENT, CREATIVE_EVENTS, FRAME_EVENTS, SCHEDULE_EVENTS
from .errors import ShotboardError
from .schema import FrameBoard, normalize_aspect_ratio
from .schema.coerce import decode_json_string, decode_records, pick, to_optional_str
from .service import ProjectService

logger = logging.getLogger(__name__)

CONNECTED_EVENT = "connected"
FRAME_ID_KEYS = ('id', 'frameId', 'frameID', 'frame_id')


@dataclass(frozen=True)
class ServerEvent:
  name: str
  data: str = ""

  def payload(self) -> Optional[Dict]:
    return parse_payload(self.data)


def parse_payload(data: str) -> Optional[Dict]:
  """The event data as a JSON object, or None"""
  if not data:
    return None
  try:
    value = json.loads(data)
  except ValueError:
    return None
  if isinstance(value, str):
    value = decode_json_string(value)
  return value if isinstance(value, dict) else None


def frame_id_from_payload(data: str) -> Optional[str]:
  payload = parse_payload(data)
  if payload is None:
    return None
  return to_optional_str(pick(payload, *FRAME_ID_KEYS))


class EventStreamParser:
  """Incremental parser: feed raw chunks, get complete events back"""

  def __init__(self):
    self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    self._buffer = ""

  def feed(self, chunk: Union[bytes, str]) -> List[ServerEvent]:
    if isinstance(chunk, bytes):
      chunk = self._decoder.decode(chunk)
    self._buffer += chunk.replace("\r\n", "\n").replace("\r", "\n")

    events = []
    while "\n\n" in self._buffer:
      block, self._buffer = self._buffer.split("\n\n", 1)
      event = self._parse_block(block)
      if event is not None:
        events.append(event)
    return events

  @staticmethod
  def _parse_block(block: str) -> Optional[ServerEvent]:
    name = None
    data_lines = []
    for line in block.split("\n"):
      if not line or line.startswith(":"):
        continue
      field, _, value = line.partition(":")
      if value.startswith(" "):
        value = value[1:]
      if field == "event":
        name = value.strip()
      elif field == "data":
        data_lines.append(value)
    if name is None and not data_lines:
      return None
    return ServerEvent(name=name or "message", data="\n".join(data_lines))


class RealtimeDispatcher:
  """Routes stream events into a ProjectService"""

  def __init__(
    self,
    service: ProjectService,
    on_frame_update: Optional[Callable[[str, str], Any]] = None,
    on_schedule_update: Optional[Callable[[str], Any]] = None,
  ):
    self.service = service
    self.on_frame_update = on_frame_update
    self.on_schedule_update = on_schedule_update
    self.connected = False
    self._parser = EventStreamParser()

  def feed(self, chunk: Union[bytes, str]) -> List[ServerEvent]:
    """Parse a raw chunk and handle every complete event in it"""
    events = self._parser.feed(chunk)
    for event in events:
      self.handle(event.name, event.data)
    return events

  def handle(self, name: str, data: str = ""):
    if name == CONNECTED_EVENT:
      self.connected = True
      logger.info("Realtime stream connected")
      return

    if name == ASPECT_RATIO_EVENT:
      self._guard(name, self._handle_aspect_ratio, data)
      return

    if name in FRAME_EVENTS:
      self._guard(name, self._handle_frame_event, name, data)
    if name in CREATIVE_EVENTS:
      self._guard(name, self.service.fetch_creatives)
    if name in SCHEDULE_EVENTS:
      self._guard(name, self._handle_schedule_event, name)

  def _guard(self, name: str, fn: Callable, *args):
    try:
      fn(*args)
    except ShotboardError as e:
      logger.warning("Handling realtime event %s failed: %s", name, e)

  # ============================================
  # Frame events
  # ============================================

  def _handle_frame_event(self, name: str, data: str):
    payload = parse_payload(data) or {}
    frame_id = to_optional_str(pick(payload, *FRAME_ID_KEYS))

    applied = False
    if name == "frame-status-updated":
      if frame_id:
        self.service.apply_remote_status(frame_id, payload.get('status'))
        applied = True
    elif name == "frame-description-updated":
      if frame_id and 'description' in payload:
        self.service.apply_remote_description(frame_id, to_optional_str(payload['description']))
        applied = True
    elif name == "frame-caption-updated":
      if frame_id and 'caption' in payload:
        self.service.apply_remote_caption(frame_id, to_optional_str(payload['caption']))
        applied = True
    elif name == "frame-board-updated":
      boards_raw = payload.get('boards')
      if isinstance(boards_raw, str):
        boards_raw = decode_json_string(boards_raw)
      if frame_id and isinstance(boards_raw, list):
        boards = decode_records(boards_raw, FrameBoard.from_dict, "board")
        main_board_type = to_optional_str(pick(payload, 'main_board_type', 'mainBoardType'))
        self.service.apply_remote_boards(frame_id, boards, main_board_type)
        applied = True
    elif name == "comment-added":
      applied = True

    if not applied:
      self.service.fetch_frames()

    if frame_id and self.on_frame_update is not None:
      self.on_frame_update(frame_id, name)

  # ============================================
  # Schedule & creative events
  # ============================================

  def _handle_schedule_event(self, name: str):
    self.service.fetch_project_details()
    self.service.fetch_frames()
    self.service.resolve_active_schedule(force=True)
    if self.on_schedule_update is not None:
      self.on_schedule_update(name)

  def _handle_aspect_ratio(self, data: str):
    payload = parse_payload(data)
    if payload is None:
      return
    creative_id = to_optional_str(pick(payload, 'creativeId', 'creativeID', 'creative_id'))
    aspect_ratio = normalize_aspect_ratio(pick(payload, 'aspectRatio', 'aspect_ratio'))
    if not creative_id or not aspect_ratio:
      return
    count = self.service.update_frames_aspect_ratio(creative_id, aspect_ratio)
    logger.info("Updated aspect ratio of %d frame(s) in creative %s", count, creative_id)
