import json

import pytest

from shotboard.schema import (
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
)


def cache_round_trip(record):
  """Encode and decode through the JSON cache format"""
  return type(record).from_dict(json.loads(json.dumps(record.to_dict())))


@pytest.mark.parametrize("raw, expected", [
  ("done", FrameStatus.DONE),
  ("DONE", FrameStatus.DONE),
  ("here", FrameStatus.HERE),
  ("in-progress", FrameStatus.HERE),
  ("next", FrameStatus.NEXT),
  ("up-next", FrameStatus.NEXT),
  ("omit", FrameStatus.OMIT),
  ("skip", FrameStatus.OMIT),
  ("", FrameStatus.NONE),
  ("0", FrameStatus.NONE),
  ("null", FrameStatus.NONE),
  ("none", FrameStatus.NONE),
  (None, FrameStatus.NONE),
  ("whatever", FrameStatus.NONE),
])
def test_status_from_string(raw, expected):
  assert FrameStatus.from_string(raw) == expected


def test_none_status_has_no_api_value():
  assert FrameStatus.NONE.api_value is None
  assert FrameStatus.DONE.api_value == "done"


def test_frame_decodes_loose_payload():
  frame = Frame.from_dict({
    "frameId": 12,
    "creativeId": 3,
    "frameOrder": 5,
    "frameShootOrder": "",
    "frame_hide": "1",
    "status": "in-progress",
    "tags": ["Night"],
    "creativeAspectRatio": "1",
  })
  assert frame.id == "12"
  assert frame.creative_id == "3"
  assert frame.frame_order == "5"
  assert frame.story_order == 5
  assert frame.frame_shoot_order is None
  assert frame.shoot_order is None
  assert frame.is_hidden is True
  assert frame.status == "here"
  assert frame.status_enum == FrameStatus.HERE
  assert frame.tags == [Tag(name="night")]
  assert frame.creative_aspect_ratio == "1 / 1"


def test_frame_requires_an_id():
  with pytest.raises(ValueError):
    Frame.from_dict({"creative_id": "1"})


def test_frame_boards_may_arrive_as_json_string():
  boards = [{"id": "b1", "label": "photoboard", "order": "2", "isPinned": "true", "fileUrl": "https://x/b1.jpg"}]
  frame = Frame.from_dict({"id": "f1", "boards": json.dumps(boards)})
  assert len(frame.boards) == 1
  board = frame.boards[0]
  assert board.order == 2
  assert board.is_pinned is True
  assert board.file_url == "https://x/b1.jpg"


def test_frame_round_trip():
  frame = Frame(
    id="f1",
    creative_id="c1",
    creative_title="Opening",
    creative_aspect_ratio="16 / 9",
    board="https://x/board.jpg",
    boards=[
      FrameBoard(id="b1", label="Main", order=1, file_url="https://x/1.jpg", file_size=2048,
                 metadata={"lens": "35mm"}),
      FrameBoard(id="b2", label="photoboard", order=0, is_pinned=True, file_thumb="https://x/2t.jpg"),
    ],
    description="<p>Wide shot</p>",
    status="done",
    frame_order="3",
    frame_shoot_order="10",
    is_hidden=True,
    schedule_start_time="09:30",
    tags=[Tag(name="Night", id="t1", group="Time")],
  )
  assert cache_round_trip(frame) == frame


def test_cleared_status_is_absent_from_cache_format():
  frame = Frame(id="f1", status="done").with_status(FrameStatus.NONE)
  assert frame.status is None
  assert "status" not in frame.to_dict()
  assert cache_round_trip(frame).status is None


def test_with_boards_refreshes_legacy_fields():
  frame = Frame(id="f1", board="https://x/old.jpg", board_thumb="https://x/old_t.jpg")
  boards = [
    FrameBoard(id="b1", order=2, file_url="https://x/b1.jpg"),
    FrameBoard(id="b2", order=1, file_url="https://x/b2.jpg", file_thumb="https://x/b2t.jpg"),
  ]
  updated = frame.with_boards(boards)
  assert updated.board == "https://x/b2.jpg"
  assert updated.board_thumb == "https://x/b2t.jpg"
  # the original is untouched
  assert frame.board == "https://x/old.jpg"
  assert frame.boards == []

  pinned = frame.with_boards([FrameBoard(id="b3", order=9, is_pinned=True, file_url="https://x/b3.jpg")] + boards)
  assert pinned.board == "https://x/b3.jpg"


def test_with_boards_prefers_main_board_type_label():
  boards = [
    FrameBoard(id="b1", label="Sketch", order=0, file_url="https://x/sketch.jpg"),
    FrameBoard(id="b2", label="Photoboard", order=5, file_url="https://x/photo.jpg"),
  ]
  updated = Frame(id="f1").with_boards(boards, main_board_type="photoboard")
  assert updated.board == "https://x/photo.jpg"
  assert updated.main_board_type == "photoboard"


def test_with_creative_fields_only_overrides_given_values():
  frame = Frame(id="f1", creative_title="Old", creative_color="red")
  updated = frame.with_creative_fields(aspect_ratio=" 1 ")
  assert updated.creative_title == "Old"
  assert updated.creative_color == "red"
  assert updated.creative_aspect_ratio == "1 / 1"


def test_aspect_ratio_normalization():
  assert normalize_aspect_ratio("1") == "1 / 1"
  assert normalize_aspect_ratio(1) == "1 / 1"
  assert normalize_aspect_ratio(" 16 / 9 ") == "16 / 9"
  assert normalize_aspect_ratio("  ") is None
  assert normalize_aspect_ratio(None) is None


@pytest.mark.parametrize("raw, expected", [
  ("14:05", "2:05 PM"),
  ("00:30", "12:30 AM"),
  ("12:00:00", "12:00 PM"),
  ("9:15", "9:15 AM"),
  ("25:00", None),
  ("soon", None),
  (None, None),
])
def test_formatted_start_time(raw, expected):
  assert Frame(id="f1", schedule_start_time=raw).formatted_start_time == expected


def test_description_text_strips_markup():
  frame = Frame(id="f1", description="<p>Hello <b>world</b></p><p>Two</p>", caption=None)
  text = frame.description_text
  assert "Hello" in text
  assert "world" in text
  assert "Two" in text
  assert "<" not in text
  assert frame.caption_text == ""


def test_tag_identity_falls_back_to_lowercased_name():
  assert Tag(name="Night") == Tag(name="night")
  assert Tag(name="Night", id="1") != Tag(name="Night", id="2")
  assert Tag(name="Night", id="1") != Tag(name="Night")
  assert len({Tag(name="Day"), Tag(name="DAY"), Tag(name="Day", id="7")}) == 2


def test_tag_group_assigns_group_to_its_tags():
  group = TagGroup.from_dict({"id": 4, "name": "Location", "tags": [{"id": "t1", "name": "Beach"}, "Studio"]})
  assert group.id == "4"
  assert [tag.group for tag in group.tags] == ["Location", "Location"]


def test_creative_decode_and_progress():
  creative = Creative.from_dict({
    "id": 7,
    "title": "Opening",
    "order": "2",
    "is_archived": 0,
    "is_live": "yes",
    "total_frames": "4",
    "completed_frames": 3,
    "remaining_frames": "1",
    "frame_status": "skip",
  })
  assert creative.id == "7"
  assert creative.order == 2
  assert creative.is_live is True
  assert creative.is_archived is False
  assert creative.progress_percentage == 75.0
  assert creative.frame_status == "omit"
  assert cache_round_trip(creative) == creative


def test_creative_progress_with_no_frames():
  assert Creative(id="c1").progress_percentage == 0.0


def test_creative_aggregates_are_not_corrected():
  creative = Creative.from_dict({"id": "c1", "total_frames": 2, "completed_frames": 5})
  assert creative.completed_frames == 5
  assert creative.total_frames == 2


def test_project_active_schedule_reference():
  project = Project.from_dict({"id": "p1", "name": "Shoot", "active_schedule": {"id": 9, "name": "Day 1"}})
  assert project.active_schedule_id == "9"
  assert project.active_schedule.name == "Day 1"
  assert cache_round_trip(project) == project

  bare = Project.from_dict({"projectId": "p2", "activeScheduleId": 11})
  assert bare.id == "p2"
  assert bare.active_schedule_id == "11"

  none = Project.from_dict({"id": "p3"})
  assert none.active_schedule is None


def test_comment_with_replies():
  comment = Comment.from_dict({
    "id": 1,
    "guestName": "Sam",
    "comment": "<b>Love</b> it",
    "replies": [{"id": 2, "name": "Director", "comment": "Thanks"}, "junk"],
  })
  assert comment.display_name == "Sam"
  assert comment.text == "Love it" or comment.text == "Love\nit"
  assert [reply.id for reply in comment.replies] == ["2"]
  assert comment.replies[0].display_name == "Director"
  assert Comment(id="3").display_name == "Guest"


def test_clip_media_helpers():
  video = Clip(id="1", file_url="https://x/files/take.MOV?sig=abc")
  assert video.is_video is True
  assert video.is_image is False
  assert video.display_name == "take.MOV"

  stream = Clip(id="2", file_url="https://x/stream/index.m3u8")
  assert stream.is_video is True

  image = Clip(id="3", file_url="https://x/a.png", file_name="Still", file_size=1536)
  assert image.is_image is True
  assert image.display_name == "Still"
  assert image.formatted_file_size == "1.5 KB"


@pytest.mark.parametrize("size, expected", [
  (None, ""),
  (512, "512 B"),
  (5 * 1024 * 1024, "5.0 MB"),
  (3 * 1024 ** 3, "3.0 GB"),
])
def test_clip_file_size(size, expected):
  assert Clip(id="1", file_size=size).formatted_file_size == expected


def test_clip_decodes_camel_case():
  clip = Clip.from_dict({"id": 5, "fileURL": "https://x/c.mp4", "thumbnailURL": "https://x/c.jpg", "fileSize": "100"})
  assert clip.file_url == "https://x/c.mp4"
  assert clip.thumbnail_url == "https://x/c.jpg"
  assert clip.file_size == 100
