"""
Project Service
v1.0.0

The single owner of the client's in-memory state: project details,
creatives, frames, tag groups and the active schedule.

Design Principles:
- One writer: every mutation of the collections happens under one lock,
  and a frame is swapped for its replacement in a single step, so readers
  never see a half-updated frame. Readers get list snapshots.
- Remote first: status and board changes go to the server before anything
  changes locally. A failed request leaves local state untouched.
- Coalesced fetches: concurrent fetches of the same resource share one
  network call.
- Logout wins: logout clears memory, cache and credentials at once and
  bumps the session generation; a response that arrives afterwards (or for
  a different project) is discarded instead of applied.
- Changes are announced to listeners tagged local or remote.

Usage:
  from shotboard.service import ProjectService

  service = ProjectService()
  service.authenticate("https://trymartini.com/p/AB12-CD34-EF56-GH78-JK90")
  service.fetch_frames()
  service.update_frame_status(frame_id, FrameStatus.DONE)
"""
import logging
import re
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple, Union

from .api_client import BoardAction, ShotboardAPI
from .coalesce import InflightRequests
from .config import ACCESS_CODE_GROUP
from .dal import Credentials, LocalStore, get_store
from .errors import InvalidInputError, UnauthenticatedError, UnauthorizedError
from .ordering import FrameFilter, FramePartition, Progress, SortMode, filtered_progress, partition
from .schedules import ScheduleCache, select_schedule, shared_schedule_cache
from .schema import (
  ChangeOrigin,
  ChangeType,
  Clip,
  Comment,
  Creative,
  Frame,
  FrameBoard,
  FrameStatus,
  Project,
  Schedule,
  TagGroup,
  create_frame_change,
  create_status_change,
  normalize_aspect_ratio,
)
from .status import merge_status_result, replace_frame, transition

logger = logging.getLogger(__name__)

FIVE_GROUP_CODE = re.compile("-".join([f"({ACCESS_CODE_GROUP})"] * 5))
FOUR_GROUP_CODE = re.compile("-".join([f"({ACCESS_CODE_GROUP})"] * 4))


def parse_access_code(code: str) -> Tuple[Optional[str], str]:
  """
  Split a QR code URL or typed code into (access_code, project_id).

  XXXX-XXXX-XXXX-XXXX-XXXX: the first four groups are the project id and
  the fifth is the access code. XXXX-XXXX-XXXX-XXXX: project id only, the
  access code must be entered separately.
  """
  text = (code or "").strip()
  match = FIVE_GROUP_CODE.search(text)
  if match:
    groups = match.groups()
    return groups[4], "-".join(groups[:4])
  match = FOUR_GROUP_CODE.search(text)
  if match:
    return None, "-".join(match.groups())
  raise InvalidInputError("Invalid QR code or project code")


class ProjectService:
  """Owns project state and mediates every read and write of it"""

  def __init__(
    self,
    api: Optional[ShotboardAPI] = None,
    store: Optional[LocalStore] = None,
    schedule_cache: Optional[ScheduleCache] = None,
  ):
    self.api = api if api is not None else ShotboardAPI()
    self.store = store if store is not None else get_store()
    self.schedule_cache = schedule_cache if schedule_cache is not None else shared_schedule_cache(self.store)

    self._lock = threading.RLock()
    self._inflight = InflightRequests()
    self._listeners: List[Callable] = []
    self._generation = 0

    self._project_id: Optional[str] = None
    self._access_code: Optional[str] = None
    self._project: Optional[Project] = None
    self._creatives: List[Creative] = []
    self._frames: List[Frame] = []
    self._tag_groups: List[TagGroup] = []
    self._active_schedule: Optional[Schedule] = None
    self._active_schedule_id: Optional[str] = None

  parse_access_code = staticmethod(parse_access_code)

  # ============================================
  # Session
  # ============================================

  def authenticate(self, qr_code: str, manual_access_code: Optional[str] = None) -> str:
    """Log in with a QR code / project code; returns the project id"""
    access_code, project_id = parse_access_code(qr_code)
    access_code = access_code or (manual_access_code or "").strip() or None
    if not access_code:
      raise InvalidInputError("An access code is required for this project")

    token = self.api.authenticate(project_id, access_code)

    with self._lock:
      self._generation += 1
      self._reset_memory()
      self._project_id = project_id
      self._access_code = access_code
      self.api.token = token
      self.store.store_credentials(Credentials(project_id=project_id, token=token, access_code=access_code))
      self._load_cached(project_id)

    logger.info("Logged in to project %s", project_id)
    self.fetch_creatives()
    return project_id

  def restore_session(self) -> bool:
    """Resume the stored login with whatever was cached; False when there is none"""
    credentials = self.store.load_credentials()
    if credentials is None:
      return False
    with self._lock:
      self._generation += 1
      self._reset_memory()
      self._project_id = credentials.project_id
      self._access_code = credentials.access_code
      self.api.token = credentials.token
      self._load_cached(credentials.project_id)
    logger.info("Restored session for project %s", credentials.project_id)
    return True

  def logout(self):
    """Clear memory, cache and credentials. Late responses are discarded."""
    with self._lock:
      project_id = self._project_id
      self._generation += 1
      self._reset_memory()
      self.api.token = None
      if project_id:
        self.store.clear(project_id)
      self.store.clear_credentials()
      self.schedule_cache.clear()
    logger.info("Logged out")

  @property
  def is_authenticated(self) -> bool:
    with self._lock:
      return self._project_id is not None and bool(self.api.token)

  @property
  def project_id(self) -> Optional[str]:
    with self._lock:
      return self._project_id

  def _reset_memory(self):
    self._project_id = None
    self._access_code = None
    self._project = None
    self._creatives = []
    self._frames = []
    self._tag_groups = []
    self._active_schedule = None
    self._active_schedule_id = None

  def _load_cached(self, project_id: str):
    cached = self.store.load(project_id)
    self._project = cached.project
    self._creatives = list(cached.creatives or [])
    self._frames = list(cached.frames or [])
    self._tag_groups = list(cached.tag_groups)

  def _session(self) -> Tuple[str, int]:
    """(project id, generation) of the current session"""
    with self._lock:
      if not self._project_id:
        raise UnauthenticatedError()
      return self._project_id, self._generation

  def _is_current(self, project_id: str, generation: int, what: str) -> bool:
    """Must be called with the lock held"""
    if generation == self._generation and project_id == self._project_id:
      return True
    logger.warning("Discarding stale %s response for project %s", what, project_id)
    return False

  def _call(self, fn, project_id: str, generation: int):
    """
    Run a remote call; a rejected credential forces a logout before re-raising.
    A rejection for a session that has since ended leaves the current one alone.
    """
    try:
      return fn()
    except UnauthorizedError:
      with self._lock:
        if self._is_current(project_id, generation, "unauthorized"):
          logger.warning("Credential rejected by the server; logging out")
          self.logout()
      raise

  # ============================================
  # Listeners
  # ============================================

  def add_listener(self, callback: Callable):
    with self._lock:
      self._listeners.append(callback)

  def remove_listener(self, callback: Callable):
    with self._lock:
      if callback in self._listeners:
        self._listeners.remove(callback)

  def _notify(self, change):
    with self._lock:
      listeners = list(self._listeners)
    for callback in listeners:
      try:
        callback(change)
      except Exception:
        logger.exception("Listener %r failed on %r", callback, change)

  # ============================================
  # Fetches
  # ============================================

  def fetch_project_details(self) -> Project:
    project_id, generation = self._session()

    def fetch():
      project = self._call(lambda: self.api.fetch_project(project_id), project_id, generation)
      with self._lock:
        if self._is_current(project_id, generation, "project"):
          self._project = project
          self.store.store(project_id, project=project)
      return project

    return self._inflight.run(("project", project_id, generation), fetch)

  def fetch_creatives(self, pull_all: bool = False) -> List[Creative]:
    project_id, generation = self._session()

    def fetch():
      result = self._call(lambda: self.api.fetch_creatives(project_id, pull_all), project_id, generation)
      with self._lock:
        if self._is_current(project_id, generation, "creatives"):
          self._creatives = list(result.creatives)
          self.store.store(project_id, creatives=self._creatives)
      return list(result.creatives)

    return list(self._inflight.run(("creatives", project_id, generation, pull_all), fetch))

  def fetch_frames(self) -> List[Frame]:
    project_id, generation = self._session()

    def fetch():
      result = self._call(lambda: self.api.fetch_frames(project_id), project_id, generation)
      with self._lock:
        if self._is_current(project_id, generation, "frames"):
          self._frames = list(result.frames)
          if result.tag_groups is not None:
            self._tag_groups = list(result.tag_groups)
          self.store.store(
            project_id,
            frames=self._frames,
            tag_groups=result.tag_groups,
          )
      return list(result.frames)

    return list(self._inflight.run(("frames", project_id, generation), fetch))

  def fetch_schedule(self, schedule_id: str, force: bool = False) -> Optional[Schedule]:
    """A schedule from the cache, or fetched (and cached) when missing or forced"""
    if not force:
      cached = self.schedule_cache.get(schedule_id)
      if cached is not None:
        return cached

    project_id, generation = self._session()

    def fetch():
      schedules = self._call(lambda: self.api.fetch_schedule(project_id, schedule_id), project_id, generation)
      schedule = select_schedule(schedules, schedule_id)
      if schedule is None:
        return None
      if not schedule.id:
        schedule = replace(schedule, id=schedule_id)
      with self._lock:
        if self._is_current(project_id, generation, "schedule"):
          self.schedule_cache.store(schedule)
      return schedule

    return self._inflight.run(("schedule", project_id, generation, schedule_id), fetch)

  def resolve_active_schedule(self, force: bool = False) -> Optional[Schedule]:
    """
    Resolve the project's active schedule reference to a full schedule.
    When the active schedule changes, every other cached schedule is evicted.
    """
    project_id, generation = self._session()
    with self._lock:
      ref = self._project.active_schedule if self._project else None
      new_id = ref.id if ref else None
      if new_id != self._active_schedule_id:
        self.schedule_cache.clear_cached_schedules(keeping=new_id)
        self._active_schedule_id = new_id
        self._active_schedule = None
    if ref is None:
      return None

    schedule = self.fetch_schedule(ref.id, force=force)
    with self._lock:
      if self._is_current(project_id, generation, "active schedule") and self._active_schedule_id == ref.id:
        self._active_schedule = schedule
    return schedule

  def fetch_clips(self, frame_id: Optional[str] = None) -> List[Clip]:
    project_id, generation = self._session()
    return self._call(lambda: self.api.fetch_clips(project_id, frame_id), project_id, generation)

  def fetch_comments(self, frame_id: str) -> List[Comment]:
    project_id, generation = self._session()
    return self._call(lambda: self.api.fetch_comments(project_id, frame_id), project_id, generation)

  # ============================================
  # Frame replacement
  # ============================================

  def _replace_frame(
    self,
    frame_id: str,
    build: Callable[[Frame], Frame],
    project_id: str,
    generation: int,
    what: str,
  ) -> Optional[Tuple[Frame, Frame]]:
    """
    Swap one frame for build(current frame) and persist the frame list.
    Returns (previous, updated), or None if stale or the frame is gone.
    """
    with self._lock:
      if not self._is_current(project_id, generation, what):
        return None
      current = next((frame for frame in self._frames if frame.id == frame_id), None)
      if current is not None:
        updated = build(current)
        self._frames, previous = replace_frame(self._frames, updated)
        self.store.store(project_id, frames=self._frames)
        return previous, updated
    logger.info("Frame %s is not loaded; %s not applied", frame_id, what)
    return None

  def _remote_session(self) -> Optional[Tuple[str, int]]:
    with self._lock:
      if not self._project_id:
        return None
      return self._project_id, self._generation

  def _require_frame(self, frame_id: str) -> Frame:
    frame = self.frame(frame_id)
    if frame is None:
      raise InvalidInputError(f"Unknown frame: {frame_id}")
    return frame

  # ============================================
  # Status
  # ============================================

  def update_frame_status(self, frame_id: str, status: Union[FrameStatus, str]) -> Frame:
    """
    Ask the server to change a frame's status, then apply the result.
    Nothing changes locally if the request fails.
    """
    if not isinstance(status, FrameStatus):
      status = FrameStatus.from_string(status)
    project_id, generation = self._session()
    existing = self._require_frame(frame_id)

    result = self._call(lambda: self.api.update_frame_status(project_id, frame_id, status), project_id, generation)

    replaced = self._replace_frame(
      frame_id,
      lambda current: merge_status_result(current, status, result.frame),
      project_id, generation, "status update",
    )
    if replaced is None:
      return merge_status_result(existing, status, result.frame)
    previous, updated = replaced
    self._notify(create_status_change(previous, updated, ChangeOrigin.LOCAL))
    return updated

  def apply_remote_status(self, frame_id: str, status: Union[FrameStatus, str, None]):
    """A status change reported by the realtime stream"""
    if not isinstance(status, FrameStatus):
      status = FrameStatus.from_string(status)
    session = self._remote_session()
    if session is None:
      return None
    replaced = self._replace_frame(
      frame_id, lambda current: transition(current, status), *session, "remote status",
    )
    if replaced is None:
      return None
    previous, updated = replaced
    change = create_status_change(previous, updated, ChangeOrigin.REMOTE)
    logger.info("Applied remote status %s to frame %s", status.value, frame_id)
    self._notify(change)
    return change

  # ============================================
  # Boards
  # ============================================

  def update_board(self, frame_id: str, action: BoardAction, **kwargs) -> Optional[Frame]:
    """
    Apply a board action on the server, then swap in the returned board list.
    When the server doesn't echo the list, the frames are refetched instead.
    """
    project_id, generation = self._session()
    self._require_frame(frame_id)

    result = self._call(lambda: self.api.update_board(project_id, frame_id, action, **kwargs), project_id, generation)

    if result.boards is None:
      self.fetch_frames()
      return self.frame(frame_id)

    replaced = self._replace_frame(
      frame_id,
      lambda current: current.with_boards(result.boards, result.main_board_type),
      project_id, generation, "board update",
    )
    if replaced is None:
      return self.frame(frame_id)
    _, updated = replaced
    self._notify(create_frame_change(frame_id, ChangeType.BOARDS, ChangeOrigin.LOCAL, action=action.value))
    return updated

  def rename_board(self, frame_id: str, board_id: str, label: str) -> Optional[Frame]:
    return self.update_board(frame_id, BoardAction.RENAME, board_id=board_id, label=label)

  def delete_board(self, frame_id: str, board_id: str) -> Optional[Frame]:
    return self.update_board(frame_id, BoardAction.DELETE, board_id=board_id)

  def reorder_boards(self, frame_id: str, board_ids: List[str]) -> Optional[Frame]:
    return self.update_board(frame_id, BoardAction.REORDER, board_ids=board_ids)

  def pin_board(self, frame_id: str, board_id: str, pinned: bool = True) -> Optional[Frame]:
    return self.update_board(frame_id, BoardAction.PIN, board_id=board_id, pinned=pinned)

  # ============================================
  # Remote partial updates
  # ============================================

  def _apply_remote(self, frame_id: str, build: Callable[[Frame], Frame], change_type: ChangeType) -> Optional[Frame]:
    session = self._remote_session()
    if session is None:
      return None
    replaced = self._replace_frame(frame_id, build, *session, f"remote {change_type.value}")
    if replaced is None:
      return None
    _, updated = replaced
    logger.info("Applied remote %s to frame %s", change_type.value, frame_id)
    self._notify(create_frame_change(frame_id, change_type, ChangeOrigin.REMOTE))
    return updated

  def apply_remote_boards(
    self,
    frame_id: str,
    boards: List[FrameBoard],
    main_board_type: Optional[str] = None,
  ) -> Optional[Frame]:
    return self._apply_remote(
      frame_id, lambda current: current.with_boards(boards, main_board_type), ChangeType.BOARDS
    )

  def apply_remote_description(self, frame_id: str, description: Optional[str]) -> Optional[Frame]:
    return self._apply_remote(
      frame_id, lambda current: current.with_description(description), ChangeType.DESCRIPTION
    )

  def apply_remote_caption(self, frame_id: str, caption: Optional[str]) -> Optional[Frame]:
    return self._apply_remote(
      frame_id, lambda current: current.with_caption(caption), ChangeType.CAPTION
    )

  def update_frames_aspect_ratio(self, creative_id: str, aspect_ratio: str) -> int:
    """Refresh the denormalized aspect ratio of a creative's frames; returns how many changed"""
    aspect_ratio = normalize_aspect_ratio(aspect_ratio)
    if not aspect_ratio:
      return 0
    session = self._remote_session()
    if session is None:
      return 0
    project_id, _ = session

    changed = []
    with self._lock:
      frames = []
      for frame in self._frames:
        if frame.creative_id == creative_id and frame.creative_aspect_ratio != aspect_ratio:
          frame = frame.with_creative_fields(aspect_ratio=aspect_ratio)
          changed.append(frame.id)
        frames.append(frame)
      creatives = [
        creative if creative.id != creative_id else _with_aspect_ratio(creative, aspect_ratio)
        for creative in self._creatives
      ]
      self._frames = frames
      self._creatives = creatives
      self.store.store(project_id, creatives=creatives, frames=frames)

    for frame_id in changed:
      self._notify(create_frame_change(
        frame_id, ChangeType.ASPECT_RATIO, ChangeOrigin.REMOTE, aspect_ratio=aspect_ratio
      ))
    return len(changed)

  # ============================================
  # Reads
  # ============================================

  @property
  def project(self) -> Optional[Project]:
    with self._lock:
      return self._project

  @property
  def creatives(self) -> List[Creative]:
    with self._lock:
      return list(self._creatives)

  @property
  def frames(self) -> List[Frame]:
    with self._lock:
      return list(self._frames)

  @property
  def tag_groups(self) -> List[TagGroup]:
    with self._lock:
      return list(self._tag_groups)

  @property
  def active_schedule(self) -> Optional[Schedule]:
    with self._lock:
      return self._active_schedule

  def frame(self, frame_id: str) -> Optional[Frame]:
    with self._lock:
      for frame in self._frames:
        if frame.id == frame_id:
          return frame
    return None

  def _view_schedule(self) -> Optional[Schedule]:
    """The active schedule for sorting; an unresolved reference still counts as active"""
    if self._active_schedule is not None:
      return self._active_schedule
    if self._project is not None and self._project.active_schedule is not None:
      return Schedule(id=self._project.active_schedule.id)
    return None

  def partition(self, mode: SortMode = SortMode.STORY, frame_filter: Optional[FrameFilter] = None) -> FramePartition:
    with self._lock:
      frames = list(self._frames)
      creatives = list(self._creatives)
      schedule = self._view_schedule()
    return partition(frames, creatives, mode, frame_filter, schedule)

  def progress(self, frame_filter: Optional[FrameFilter] = None) -> Progress:
    with self._lock:
      frames = list(self._frames)
      creatives = list(self._creatives)
    return filtered_progress(frames, creatives, frame_filter)


def _with_aspect_ratio(creative: Creative, aspect_ratio: str) -> Creative:
  return replace(creative, aspect_ratio=aspect_ratio)
