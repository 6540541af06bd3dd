from shotboard.assets import (
  BOARD_MAIN_ID,
  CAPTURE_CLIP_ID,
  PHOTOBOARD_ID,
  PREVIEW_ID,
  AssetPriority,
  FrameAssetKind,
  available_assets,
  ordered_assets,
  primary_asset,
)
from shotboard.schema import Frame, FrameBoard


def test_boards_come_first_pinned_then_by_order():
  frame = Frame(
    id="f1",
    boards=[
      FrameBoard(id="b1", label="Sketch", order=0, file_url="https://x/1.jpg"),
      FrameBoard(id="b2", order=3, is_pinned=True, file_url="https://x/2.jpg"),
      FrameBoard(id="b3", order=1, file_url="https://x/3.jpg"),
    ],
    board="https://x/legacy.jpg",
  )
  assets = available_assets(frame)
  assert [item.id for item in assets] == ["b2", "b1", "b3"]
  assert assets[0].label == "Board"
  assert assets[1].label == "Sketch"
  # the legacy board isn't offered alongside a board list
  assert BOARD_MAIN_ID not in [item.id for item in assets]


def test_legacy_board_when_no_board_list():
  frame = Frame(id="f1", board="https://x/b.jpg", board_thumb="https://x/bt.jpg", main_board_type="sketch")
  assets = available_assets(frame)
  assert [item.id for item in assets] == [BOARD_MAIN_ID]
  assert assets[0].label == "sketch"
  assert assets[0].url == "https://x/b.jpg"


def test_photoboard_deduplicated_against_board_list():
  boards = [FrameBoard(id="b1", label="photoboard", file_url="https://x/photo.jpg")]
  migrated = Frame(id="f1", boards=boards, photoboard="https://x/photo.jpg")
  assert [item.id for item in available_assets(migrated)] == ["b1"]

  by_thumb = Frame(id="f2", boards=[FrameBoard(id="b1", file_thumb="https://x/pt.jpg")],
                   photoboard="https://x/other.jpg", photoboard_thumb="https://x/pt.jpg")
  assert [item.id for item in available_assets(by_thumb)] == ["b1"]

  distinct = Frame(id="f3", boards=boards, photoboard="https://x/new.jpg")
  assets = available_assets(distinct)
  assert [item.id for item in assets] == ["b1", PHOTOBOARD_ID]
  assert assets[1].kind == FrameAssetKind.BOARD


def test_preview_and_capture_clip():
  frame = Frame(id="f1", preview="https://x/p.mp4", preview_type="video/mp4", capture_clip="https://x/c.mov")
  assets = available_assets(frame)
  assert [item.id for item in assets] == [PREVIEW_ID]
  assert assets[0].kind == FrameAssetKind.PREVIEW
  assert assets[0].is_video is True

  clip_only = Frame(id="f2", capture_clip="https://x/c.mov", capture_clip_thumbnail="https://x/c.jpg")
  assets = available_assets(clip_only)
  assert [item.id for item in assets] == [CAPTURE_CLIP_ID]
  assert assets[0].is_video is True
  assert assets[0].fallback == "https://x/c.jpg"


def test_empty_frame_gets_placeholder():
  frame = Frame(id="f1")
  assert available_assets(frame) == []
  assert primary_asset(frame) is None
  ordered = ordered_assets(frame)
  assert len(ordered) == 1
  assert ordered[0].is_placeholder


def test_primary_asset_follows_hint_order():
  frame = Frame(id="f1", board="https://x/b.jpg", preview="https://x/p.jpg")
  assert primary_asset(frame).id == BOARD_MAIN_ID
  assert primary_asset(frame, [FrameAssetKind.PREVIEW]).id == PREVIEW_ID
  # a hinted kind with nothing available falls through
  board_only = Frame(id="f2", board="https://x/b.jpg")
  assert primary_asset(board_only, [FrameAssetKind.PREVIEW]).id == BOARD_MAIN_ID


def test_ordered_assets_keeps_every_item_once():
  frame = Frame(
    id="f1",
    boards=[FrameBoard(id="b1", file_url="https://x/1.jpg"), FrameBoard(id="b2", order=1, file_url="https://x/2.jpg")],
    preview="https://x/p.jpg",
  )
  ordered = ordered_assets(frame, [FrameAssetKind.PREVIEW, FrameAssetKind.BOARD])
  assert [item.id for item in ordered] == [PREVIEW_ID, "b1", "b2"]
  assert len(ordered) == len(available_assets(frame))


def test_asset_priority_promote_and_reset():
  frame = Frame(id="f1", board="https://x/b.jpg", preview="https://x/p.jpg")
  priority = AssetPriority()
  assert priority.order_for(frame) == [FrameAssetKind.BOARD, FrameAssetKind.PREVIEW]
  assert priority.primary(frame).id == BOARD_MAIN_ID

  assert priority.promote(frame, FrameAssetKind.PREVIEW) == [FrameAssetKind.PREVIEW, FrameAssetKind.BOARD]
  assert priority.primary(frame).id == PREVIEW_ID
  assert [item.id for item in priority.ordered(frame)] == [PREVIEW_ID, BOARD_MAIN_ID]

  # hints are per frame
  other = Frame(id="f2", board="https://x/b.jpg", preview="https://x/p.jpg")
  assert priority.primary(other).id == BOARD_MAIN_ID

  priority.reset("f1")
  assert priority.primary(frame).id == BOARD_MAIN_ID
