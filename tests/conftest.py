"""
Shared fixtures: a scripted stand-in for the remote API, a throwaway
LocalStore and a ProjectService wired to both.
"""
import threading

import pytest

from shotboard.api_client import BoardUpdateResult, CreativesResult, FramesResult, StatusUpdateResult
from shotboard.dal import LocalStore
from shotboard.schedules import ScheduleCache
from shotboard.schema import Project
from shotboard.service import ProjectService

PROJECT_CODE = "AB12-CD34-EF56-GH78-JK90"
PROJECT_ID = "AB12-CD34-EF56-GH78"


class FakeAPI:
  """
  Records every call. Set `errors[name]` to make a call raise, or
  `gates[name]` to a threading.Event to hold a call until it is set.
  """

  def __init__(self):
    self.token = None
    self.calls = []
    self.errors = {}
    self.gates = {}
    self.entered = {}

    self.project = None
    self.creatives = []
    self.frames = []
    self.tag_groups = None
    self.schedules = {}
    self.status_echo = None
    self.board_result = None
    self.clips = []
    self.comments = []

  def _record(self, name, *args):
    self.calls.append((name,) + args)
    if name in self.entered:
      self.entered[name].set()
    gate = self.gates.get(name)
    if gate is not None:
      gate.wait(5)
    error = self.errors.get(name)
    if error is not None:
      raise error

  def hold(self, name):
    """Block calls to `name` until the returned event is set"""
    self.gates[name] = threading.Event()
    self.entered[name] = threading.Event()
    return self.gates[name]

  def count(self, name):
    return sum(1 for call in self.calls if call[0] == name)

  def authenticate(self, project_id, access_code):
    self._record("authenticate", project_id, access_code)
    self.token = "token-123"
    return self.token

  def fetch_project(self, project_id):
    self._record("fetch_project", project_id)
    return self.project or Project(id=project_id, name="Test Project")

  def fetch_creatives(self, project_id, pull_all=False):
    self._record("fetch_creatives", project_id, pull_all)
    return CreativesResult(creatives=list(self.creatives), project_id=project_id)

  def fetch_frames(self, project_id):
    self._record("fetch_frames", project_id)
    return FramesResult(frames=list(self.frames), tag_groups=self.tag_groups)

  def update_frame_status(self, project_id, frame_id, status):
    self._record("update_frame_status", project_id, frame_id, status)
    return StatusUpdateResult(frame=self.status_echo)

  def update_board(self, project_id, frame_id, action, **kwargs):
    self._record("update_board", project_id, frame_id, action, kwargs)
    return self.board_result or BoardUpdateResult(frame_id=frame_id)

  def fetch_schedule(self, project_id, schedule_id):
    self._record("fetch_schedule", project_id, schedule_id)
    return list(self.schedules.get(schedule_id, []))

  def fetch_clips(self, project_id, frame_id=None):
    self._record("fetch_clips", project_id, frame_id)
    return list(self.clips)

  def fetch_comments(self, project_id, frame_id):
    self._record("fetch_comments", project_id, frame_id)
    return list(self.comments)


@pytest.fixture
def store(tmp_path):
  return LocalStore(str(tmp_path / "shotboard-test.db"))


@pytest.fixture
def fake_api():
  return FakeAPI()


@pytest.fixture
def service(fake_api, store):
  return ProjectService(api=fake_api, store=store, schedule_cache=ScheduleCache(store))


@pytest.fixture
def logged_in(service, fake_api):
  """A service logged in to PROJECT_ID with the fake's call log cleared"""
  service.authenticate(PROJECT_CODE)
  fake_api.calls.clear()
  return service
