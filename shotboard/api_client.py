"""
Remote API client

Thin wrapper over the project scripts: every call is a JSON POST with a
bearer token, and every response is a JSON object with a `success` flag.

Failures map onto shotboard.errors:
- transport failure        -> RequestFailedError (status_code=None)
- 401 / 403                -> UnauthorizedError
- 404                      -> NotFoundError
- other non-2xx            -> RequestFailedError(status_code)
- body not a JSON object   -> DecodeFailureError
- success: false           -> ServerRejectedError(message)

Lists in responses are decoded one record at a time; a malformed record is
skipped with a warning rather than failing the whole response.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from .config import ENDPOINTS, REQUEST_TIMEOUT, USER_AGENT, scripts_url
from .errors import (
  DecodeFailureError,
  InvalidInputError,
  NotFoundError,
  RequestFailedError,
  ServerRejectedError,
  UnauthenticatedError,
  UnauthorizedError,
)
from .schedules import schedules_from_response
from .schema import Clip, Comment, Creative, Frame, FrameBoard, FrameStatus, Project, Schedule, TagGroup
from .schema.coerce import decode_json_string, decode_records, drop_none, pick, to_bool, to_optional_str

logger = logging.getLogger(__name__)


class BoardAction(str, Enum):
  RENAME = "rename"
  DELETE = "delete"
  REORDER = "reorder"
  PIN = "pin"


@dataclass
class CreativesResult:
  creatives: List[Creative]
  project_id: Optional[str] = None


@dataclass
class FramesResult:
  frames: List[Frame]
  tag_groups: Optional[List[TagGroup]] = None


@dataclass
class BoardUpdateResult:
  frame_id: str
  boards: Optional[List[FrameBoard]] = None  # None: server didn't echo the list
  main_board_type: Optional[str] = None


@dataclass
class StatusUpdateResult:
  frame: Optional[Frame] = None  # the server may or may not echo the frame


def _list_value(value: Any) -> Any:
  if isinstance(value, str):
    return decode_json_string(value)
  return value


class ShotboardAPI:
  """Client for the remote project API"""

  def __init__(
    self,
    token: Optional[str] = None,
    base_url: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: int = REQUEST_TIMEOUT,
  ):
    self.token = token
    self.base_url = base_url or scripts_url()
    self.timeout = timeout
    self.session = session or requests.Session()
    self.session.headers.update({"User-Agent": USER_AGENT})

  # ============================================
  # Transport
  # ============================================

  def _url(self, endpoint: str) -> str:
    return self.base_url + ENDPOINTS[endpoint]

  @staticmethod
  def _body(response) -> Any:
    try:
      return response.json()
    except ValueError:
      return None

  @staticmethod
  def _server_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
      return to_optional_str(pick(payload, 'error', 'message'))
    return None

  def _post(self, endpoint: str, body: Dict, authenticated: bool = True) -> Dict:
    """POST a JSON body and return the decoded response object"""
    headers = {"Content-Type": "application/json"}
    if authenticated:
      if not self.token:
        raise UnauthenticatedError()
      headers["Authorization"] = f"Bearer {self.token}"

    url = self._url(endpoint)
    logger.debug("POST %s", url)
    try:
      response = self.session.post(url, json=body, headers=headers, timeout=self.timeout)
    except requests.RequestException as e:
      logger.warning("Request to %s failed: %s", url, e)
      raise RequestFailedError(None, f"Request failed: {e}") from e

    payload = self._body(response)
    status_code = response.status_code
    message = self._server_message(payload)

    if status_code in (401, 403):
      raise UnauthorizedError(message)
    if status_code == 404:
      raise NotFoundError(message)
    if not 200 <= status_code < 300:
      raise RequestFailedError(status_code, message)
    if not isinstance(payload, dict):
      raise DecodeFailureError()
    if 'success' in payload and not to_bool(payload['success']):
      raise ServerRejectedError(message)
    return payload

  # ============================================
  # Operations
  # ============================================

  def authenticate(self, project_id: str, access_code: str) -> str:
    """Exchange a project id + access code for a token; the token is kept on the client"""
    payload = self._post(
      "auth",
      {"projectId": project_id, "accessCode": access_code},
      authenticated=False,
    )
    token = to_optional_str(pick(payload, 'tokenHash', 'token_hash', 'token'))
    if not token:
      raise DecodeFailureError("Authentication response carried no token")
    self.token = token
    logger.info("Authenticated for project %s", project_id)
    return token

  def fetch_project(self, project_id: str) -> Project:
    payload = self._post("project", {"projectId": project_id})
    data = payload.get('project')
    if not isinstance(data, dict):
      data = payload
    try:
      return Project.from_dict({**data, 'project_id': data.get('project_id') or project_id})
    except ValueError as e:
      raise DecodeFailureError(f"Invalid project details: {e}") from e

  def fetch_creatives(self, project_id: str, pull_all: bool = False) -> CreativesResult:
    payload = self._post("creatives", {"projectId": project_id, "pullAll": pull_all})
    creatives = decode_records(_list_value(payload.get('creatives')), Creative.from_dict, "creative")
    logger.info("Fetched %d creatives", len(creatives))
    return CreativesResult(
      creatives=creatives,
      project_id=to_optional_str(pick(payload, 'projectId', 'project_id')) or project_id,
    )

  def fetch_frames(self, project_id: str) -> FramesResult:
    payload = self._post("frames", {"projectId": project_id})
    frames = decode_records(_list_value(payload.get('frames')), Frame.from_dict, "frame")

    tag_groups = None
    groups_raw = _list_value(pick(payload, 'tagGroups', 'tag_groups'))
    if isinstance(groups_raw, list):
      tag_groups = decode_records(groups_raw, TagGroup.from_dict, "tag group")

    logger.info("Fetched %d frames", len(frames))
    return FramesResult(frames=frames, tag_groups=tag_groups)

  def update_frame_status(self, project_id: str, frame_id: str, status: FrameStatus) -> StatusUpdateResult:
    """Set a frame's status. NONE is sent as null, clearing the field."""
    payload = self._post(
      "frame_status",
      {"projectId": project_id, "frameId": frame_id, "status": status.api_value},
    )
    frame = None
    frame_data = payload.get('frame')
    if isinstance(frame_data, dict):
      try:
        frame = Frame.from_dict(frame_data)
      except ValueError as e:
        logger.warning("Ignoring unusable frame echo for %s: %s", frame_id, e)
    return StatusUpdateResult(frame=frame)

  def update_board(
    self,
    project_id: str,
    frame_id: str,
    action: BoardAction,
    board_id: Optional[str] = None,
    label: Optional[str] = None,
    board_ids: Optional[List[str]] = None,
    pinned: Optional[bool] = None,
  ) -> BoardUpdateResult:
    """Rename, delete, reorder or pin one of a frame's boards"""
    if action in (BoardAction.RENAME, BoardAction.DELETE, BoardAction.PIN) and not board_id:
      raise InvalidInputError(f"A board id is required to {action.value} a board")
    if action == BoardAction.RENAME and not (label or "").strip():
      raise InvalidInputError("A board name is required")
    if action == BoardAction.REORDER and not board_ids:
      raise InvalidInputError("A board order is required")
    if action == BoardAction.PIN and pinned is None:
      raise InvalidInputError("Pin state is required")

    body = drop_none({
      "projectId": project_id,
      "frameId": frame_id,
      "action": action.value,
      "boardId": board_id,
      "label": label.strip() if label else None,
      "boardOrder": list(board_ids) if board_ids else None,
      "pinned": pinned,
    })
    payload = self._post("frame_board", body)

    boards = None
    boards_raw = _list_value(payload.get('boards'))
    if isinstance(boards_raw, list):
      boards = decode_records(boards_raw, FrameBoard.from_dict, "board")

    return BoardUpdateResult(
      frame_id=to_optional_str(pick(payload, 'frameId', 'frame_id', 'id')) or frame_id,
      boards=boards,
      main_board_type=to_optional_str(pick(payload, 'main_board_type', 'mainBoardType')),
    )

  def fetch_schedule(self, project_id: str, schedule_id: str) -> List[Schedule]:
    payload = self._post("schedule", {"projectId": project_id, "scheduleId": schedule_id})
    schedules = schedules_from_response(payload)
    logger.info("Fetched %d schedule(s) for %s", len(schedules), schedule_id)
    return schedules

  def fetch_clips(self, project_id: str, frame_id: Optional[str] = None) -> List[Clip]:
    payload = self._post("clips", drop_none({"projectId": project_id, "frameId": frame_id}))
    return decode_records(_list_value(pick(payload, 'clips', 'files')), Clip.from_dict, "clip")

  def fetch_comments(self, project_id: str, frame_id: str) -> List[Comment]:
    payload = self._post("comments", {"projectId": project_id, "frameId": frame_id})
    return decode_records(_list_value(payload.get('comments')), Comment.from_dict, "comment")
