import pytest

from conftest import PROJECT_CODE, PROJECT_ID
from shotboard import tracker
from shotboard.errors import RequestFailedError
from shotboard.schema import Creative, Frame, Project, Schedule, ScheduleRef


@pytest.fixture
def run(service, monkeypatch):
  monkeypatch.setattr(tracker, "ProjectService", lambda: service)

  def run(*argv):
    return tracker.main(list(argv))

  return run


def test_not_logged_in(run, capsys):
  assert run("--report") == 1
  assert "Not logged in" in capsys.readouterr().out


def test_login_and_report(run, fake_api, capsys):
  fake_api.creatives = [Creative(id="c1", title="Opening", total_frames=4, completed_frames=1, is_live=True)]
  assert run("--login", PROJECT_CODE, "--report") == 0
  out = capsys.readouterr().out
  assert f"Logged in to project {PROJECT_ID}" in out
  assert "Opening [LIVE]" in out
  assert "1/4 frames (25%)" in out


def test_frames_in_shoot_order(run, logged_in, fake_api, capsys):
  fake_api.frames = [
    Frame(id="f1", frame_shoot_order="2", frame_number="1A", description="<p>Wide</p>"),
    Frame(id="f2", frame_shoot_order="1", status="here", schedule_start_time="14:05"),
  ]
  assert run("--frames", "--mode", "shoot") == 0
  out = capsys.readouterr().out
  assert out.index("f2") < out.index("f1")
  assert "2:05 PM" in out
  assert "Wide" in out


def test_schedule(run, logged_in, fake_api, capsys):
  fake_api.project = Project(id=PROJECT_ID, active_schedule=ScheduleRef(id="s1"))
  fake_api.frames = [Frame(id="f1", status="done")]
  fake_api.schedules = {"s1": [Schedule.from_dict({
    "id": "s1",
    "name": "Main Unit",
    "groups": [{"id": "g1", "title": "Morning", "blocks": [
      {"type": "title", "title": "Call", "calculated_start": "07:00"},
      {"type": "shot", "title": "Opening", "storyboards": ["f1"], "calculated_start": "08:00", "duration": 15},
    ]}],
  })]}
  assert run("--schedule") == 0
  out = capsys.readouterr().out
  assert "Main Unit" in out
  assert "== Call ==" in out
  assert "Opening (15 min)" in out
  assert "frames: f1" in out


def test_set_status(run, logged_in, fake_api, capsys):
  fake_api.frames = [Frame(id="f1")]
  assert run("--set-status", "f1", "done") == 0
  assert "Frame f1 is now done" in capsys.readouterr().out


def test_errors_are_reported(run, logged_in, fake_api, capsys):
  fake_api.errors["fetch_creatives"] = RequestFailedError(500)
  assert run("--report") == 1
  assert "Request failed with status code: 500" in capsys.readouterr().out


def test_logout(run, logged_in, store, capsys):
  assert run("--logout") == 0
  assert "Logged out" in capsys.readouterr().out
  assert store.load_credentials() is None
