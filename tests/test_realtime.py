import json
import logging

import pytest

from conftest import PROJECT_ID
from shotboard.errors import RequestFailedError
from shotboard.realtime import EventStreamParser, RealtimeDispatcher, frame_id_from_payload, parse_payload
from shotboard.schema import ChangeOrigin, Creative, Frame, Project, Schedule, ScheduleRef


@pytest.fixture
def loaded(logged_in, fake_api):
  fake_api.creatives = [Creative(id="c1")]
  fake_api.frames = [Frame(id="f1", creative_id="c1", status="next"), Frame(id="f2", creative_id="c1")]
  logged_in.fetch_frames()
  fake_api.calls.clear()
  return logged_in


@pytest.fixture
def dispatcher(loaded):
  updates = []
  schedule_updates = []
  dispatcher = RealtimeDispatcher(
    loaded,
    on_frame_update=lambda frame_id, name: updates.append((frame_id, name)),
    on_schedule_update=schedule_updates.append,
  )
  dispatcher.frame_updates = updates
  dispatcher.schedule_updates = schedule_updates
  return dispatcher


# ============================================
# Parsing
# ============================================

def test_parser_handles_split_chunks():
  parser = EventStreamParser()
  assert parser.feed(b"event: frame-status-upd") == []
  assert parser.feed(b"ated\ndata: {\"id\": \"f1\"}\n") == []
  events = parser.feed(b"\nevent: connected\n\n")
  assert [(event.name, event.data) for event in events] == [
    ("frame-status-updated", "{\"id\": \"f1\"}"),
    ("connected", ""),
  ]


def test_parser_handles_split_multibyte_characters():
  parser = EventStreamParser()
  encoded = "event: frame-caption-updated\ndata: {\"caption\": \"café\"}\n\n".encode("utf-8")
  split = encoded.index(b"\xc3") + 1
  assert parser.feed(encoded[:split]) == []
  events = parser.feed(encoded[split:])
  assert json.loads(events[0].data)["caption"] == "café"


def test_parser_joins_data_lines_and_skips_comments():
  parser = EventStreamParser()
  events = parser.feed(": keepalive\r\n\r\nevent: reload\r\ndata: line one\r\ndata:line two\r\n\r\ndata: bare\n\n")
  assert [(event.name, event.data) for event in events] == [
    ("reload", "line one\nline two"),
    ("message", "bare"),
  ]


def test_payload_helpers():
  assert parse_payload("{\"id\": 5}") == {"id": 5}
  assert parse_payload(json.dumps(json.dumps({"id": 5}))) == {"id": 5}
  assert parse_payload("[1, 2]") is None
  assert parse_payload("oops") is None
  assert parse_payload("") is None
  assert frame_id_from_payload("{\"frameID\": 12}") == "12"
  assert frame_id_from_payload("{}") is None


# ============================================
# Dispatching
# ============================================

def test_connected_event(dispatcher):
  assert not dispatcher.connected
  dispatcher.feed("event: connected\ndata: {}\n\n")
  assert dispatcher.connected


def test_status_event_is_applied_as_remote(dispatcher, loaded, fake_api):
  changes = []
  loaded.add_listener(changes.append)
  dispatcher.handle("frame-status-updated", json.dumps({"frameId": "f1", "status": "here"}))
  assert loaded.frame("f1").status == "here"
  assert changes[0].origin == ChangeOrigin.REMOTE
  assert dispatcher.frame_updates == [("f1", "frame-status-updated")]
  assert fake_api.calls == []


def test_status_event_clearing_status(dispatcher, loaded):
  dispatcher.handle("frame-status-updated", json.dumps({"id": "f1", "status": None}))
  assert loaded.frame("f1").status is None


def test_text_and_board_events(dispatcher, loaded, fake_api):
  dispatcher.handle("frame-description-updated", json.dumps({"id": "f1", "description": "<p>New</p>"}))
  dispatcher.handle("frame-caption-updated", json.dumps({"id": "f1", "caption": "Cap"}))
  dispatcher.handle("frame-board-updated", json.dumps({
    "id": "f2",
    "boards": json.dumps([{"id": "b1", "fileUrl": "https://x/b1.jpg"}]),
  }))
  assert loaded.frame("f1").description == "<p>New</p>"
  assert loaded.frame("f1").caption == "Cap"
  assert loaded.frame("f2").board == "https://x/b1.jpg"
  assert fake_api.calls == []


def test_unusable_frame_payload_refetches(dispatcher, fake_api):
  dispatcher.handle("frame-description-updated", json.dumps({"id": "f1"}))
  dispatcher.handle("frame-board-updated", "not json")
  assert fake_api.count("fetch_frames") == 2
  assert dispatcher.frame_updates == [("f1", "frame-description-updated")]


def test_comment_event_only_notifies(dispatcher, fake_api):
  dispatcher.handle("comment-added", json.dumps({"frameId": "f2"}))
  assert fake_api.calls == []
  assert dispatcher.frame_updates == [("f2", "comment-added")]


def test_other_frame_events_refetch(dispatcher, fake_api):
  dispatcher.handle("frame-order-updated", "{}")
  assert fake_api.count("fetch_frames") == 1


def test_creative_events_refetch_creatives(dispatcher, fake_api):
  dispatcher.handle("creative-title-updated", "{}")
  assert fake_api.count("fetch_creatives") == 1

  fake_api.calls.clear()
  dispatcher.handle("reload", "")
  assert fake_api.count("fetch_creatives") == 1
  assert fake_api.count("fetch_frames") == 1


def test_schedule_event(dispatcher, loaded, fake_api):
  fake_api.project = Project(id=PROJECT_ID, active_schedule=ScheduleRef(id="s1"))
  fake_api.schedules = {"s1": [Schedule(id="s1", name="Main")]}
  dispatcher.handle("activate-schedule", "{}")
  assert [call[0] for call in fake_api.calls] == ["fetch_project", "fetch_frames", "fetch_schedule"]
  assert loaded.active_schedule.name == "Main"
  assert dispatcher.schedule_updates == ["activate-schedule"]


def test_aspect_ratio_event(dispatcher, loaded):
  dispatcher.handle("creative-aspect-ratio-updated", json.dumps({"creativeId": "c1", "aspectRatio": "4 / 3"}))
  assert [frame.creative_aspect_ratio for frame in loaded.frames] == ["4 / 3", "4 / 3"]

  dispatcher.handle("creative-aspect-ratio-updated", json.dumps({"creativeId": "c1"}))
  assert loaded.frame("f1").creative_aspect_ratio == "4 / 3"


def test_unknown_events_are_ignored(dispatcher, fake_api):
  dispatcher.handle("something-new", "{}")
  assert fake_api.calls == []


def test_errors_are_logged_not_raised(dispatcher, fake_api, caplog):
  fake_api.errors["fetch_frames"] = RequestFailedError(503)
  with caplog.at_level(logging.WARNING):
    dispatcher.handle("frame-image-updated", "{}")
  assert "frame-image-updated" in caplog.text
