import pytest

from shotboard.schema import Frame, FrameBoard, FrameStatus, Tag
from shotboard.status import merge_status_result, replace_frame, transition


@pytest.mark.parametrize("start", list(FrameStatus))
@pytest.mark.parametrize("target", list(FrameStatus))
def test_any_status_may_move_to_any_other(start, target):
  frame = Frame(id="f1", status=start.api_value)
  updated = transition(frame, target)
  assert updated.status_enum == target
  assert updated.status == target.api_value
  assert frame.status == start.api_value


def test_clearing_status_stores_null():
  updated = transition(Frame(id="f1", status="here"), FrameStatus.NONE)
  assert updated.status is None
  assert updated.to_dict().get("status") is None


def test_merge_without_echo_applies_requested_status():
  existing = Frame(id="f1", status="next", creative_id="c1")
  merged = merge_status_result(existing, FrameStatus.DONE)
  assert merged.status == "done"
  assert merged.creative_id == "c1"


def test_merge_prefers_server_echo_but_keeps_cached_extras():
  existing = Frame(
    id="f1",
    status="next",
    creative_id="c1",
    creative_title="Opening",
    creative_aspect_ratio="16 / 9",
    boards=[FrameBoard(id="b1")],
    tags=[Tag(name="Night")],
  )
  echo = Frame(id="f1", status="done", frame_order="4")
  merged = merge_status_result(existing, FrameStatus.HERE, echo)
  assert merged.status == "done"
  assert merged.frame_order == "4"
  assert merged.creative_id == "c1"
  assert merged.creative_title == "Opening"
  assert merged.creative_aspect_ratio == "16 / 9"
  assert [board.id for board in merged.boards] == ["b1"]
  assert merged.tags == [Tag(name="night")]


def test_merge_ignores_echo_for_another_frame():
  existing = Frame(id="f1", status="next")
  merged = merge_status_result(existing, FrameStatus.OMIT, Frame(id="f2", status="done"))
  assert merged.id == "f1"
  assert merged.status == "omit"


def test_replace_frame():
  frames = [Frame(id="f1"), Frame(id="f2"), Frame(id="f3")]
  updated = Frame(id="f2", status="done")
  result, previous = replace_frame(frames, updated)
  assert [frame.id for frame in result] == ["f1", "f2", "f3"]
  assert result[1] is updated
  assert previous is frames[1]
  assert frames[1].status is None

  result, previous = replace_frame(frames, Frame(id="f9"))
  assert previous is None
  assert [frame.id for frame in result] == ["f1", "f2", "f3"]
