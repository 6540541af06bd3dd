"""
Frame Asset Resolver
v1.0.0

Works out which visual assets a frame can show, in what order.

Frames carry assets in two generations of fields: the board list
(FrameBoard entries) and the legacy single-valued board / photoboard /
preview / capture clip fields. Newer payloads migrate photoboards into the
board list, so the legacy photoboard is only offered when no board already
exposes the same file.

Asset kinds are `board` and `preview`; a photoboard is a `board` item.
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .schema import Frame
from .schema.frame_schema import looks_like_video, select_primary_board, sorted_boards

BOARD_MAIN_ID = "board-main"
PHOTOBOARD_ID = "photoboard"
PREVIEW_ID = "preview"
CAPTURE_CLIP_ID = "capture-clip"
PLACEHOLDER_ID = "placeholder-board"

__all__ = [
  'FrameAssetKind',
  'FrameAssetItem',
  'AssetPriority',
  'available_assets',
  'primary_asset',
  'ordered_assets',
  'sorted_boards',
  'select_primary_board',
]


class FrameAssetKind(str, Enum):
  BOARD = "board"
  PREVIEW = "preview"


@dataclass(frozen=True)
class FrameAssetItem:
  """A presentation-ready asset. Derived, never persisted."""
  id: str
  kind: FrameAssetKind
  label: str
  primary: Optional[str] = None    # full-size URL
  fallback: Optional[str] = None   # thumbnail URL
  file_type: Optional[str] = None
  crop: Optional[str] = None

  @property
  def url(self) -> Optional[str]:
    return self.primary or self.fallback

  @property
  def is_video(self) -> bool:
    return looks_like_video(self.file_type, self.primary)

  @property
  def is_placeholder(self) -> bool:
    return self.id == PLACEHOLDER_ID


def available_assets(frame: Frame) -> List[FrameAssetItem]:
  """Every asset the frame can show, boards first then the preview"""
  items = []
  boards = sorted_boards(frame.boards)

  if boards:
    for board in boards:
      items.append(FrameAssetItem(
        id=board.id,
        kind=FrameAssetKind.BOARD,
        label=board.label or "Board",
        primary=board.file_url,
        fallback=board.file_thumb,
        file_type=board.file_type,
        crop=board.file_crop,
      ))
  elif frame.board or frame.board_thumb:
    items.append(FrameAssetItem(
      id=BOARD_MAIN_ID,
      kind=FrameAssetKind.BOARD,
      label=frame.main_board_type or "Board",
      primary=frame.board,
      fallback=frame.board_thumb,
      crop=frame.crop,
    ))

  photoboard_urls = {url for url in (frame.photoboard, frame.photoboard_thumb) if url}
  if photoboard_urls:
    board_urls = set()
    for board in boards:
      board_urls.update(url for url in (board.file_url, board.file_thumb) if url)
    if not photoboard_urls & board_urls:
      items.append(FrameAssetItem(
        id=PHOTOBOARD_ID,
        kind=FrameAssetKind.BOARD,
        label="Photoboard",
        primary=frame.photoboard,
        fallback=frame.photoboard_thumb,
        crop=frame.photoboard_crop,
      ))

  if frame.preview or frame.preview_thumb:
    items.append(FrameAssetItem(
      id=PREVIEW_ID,
      kind=FrameAssetKind.PREVIEW,
      label="Preview",
      primary=frame.preview,
      fallback=frame.preview_thumb,
      file_type=frame.preview_type,
      crop=frame.preview_crop,
    ))
  elif frame.capture_clip or frame.capture_clip_thumbnail:
    items.append(FrameAssetItem(
      id=CAPTURE_CLIP_ID,
      kind=FrameAssetKind.PREVIEW,
      label="Preview",
      primary=frame.capture_clip,
      fallback=frame.capture_clip_thumbnail,
      file_type="video" if frame.capture_clip else None,
    ))

  return items


def primary_asset(frame: Frame, order: Optional[List[FrameAssetKind]] = None) -> Optional[FrameAssetItem]:
  """First available asset of each hinted kind in turn, else the first asset"""
  assets = available_assets(frame)
  for kind in order or []:
    for item in assets:
      if item.kind == kind:
        return item
  return assets[0] if assets else None


def placeholder_asset() -> FrameAssetItem:
  return FrameAssetItem(id=PLACEHOLDER_ID, kind=FrameAssetKind.BOARD, label="Board")


def ordered_assets(frame: Frame, order: Optional[List[FrameAssetKind]] = None) -> List[FrameAssetItem]:
  """
  The full asset stack: items of each hinted kind in hint order, then the
  rest. A frame with nothing to show gets a single placeholder board.
  """
  assets = available_assets(frame)
  if not assets:
    return [placeholder_asset()]

  result = []
  for kind in order or []:
    result.extend(item for item in assets if item.kind == kind and item not in result)
  result.extend(item for item in assets if item not in result)
  return result


class AssetPriority:
  """
  Per-frame asset kind hints.

  A frame without a stored hint list uses the kinds of its available
  assets, in order. Promoting a kind moves it to the front.
  """

  def __init__(self):
    self._lock = threading.Lock()
    self._orders: Dict[str, List[FrameAssetKind]] = {}

  def order_for(self, frame: Frame) -> List[FrameAssetKind]:
    with self._lock:
      stored = self._orders.get(frame.id)
    if stored is not None:
      return list(stored)
    kinds = []
    for item in available_assets(frame):
      if item.kind not in kinds:
        kinds.append(item.kind)
    return kinds

  def promote(self, frame: Frame, kind: FrameAssetKind) -> List[FrameAssetKind]:
    current = self.order_for(frame)
    updated = [kind] + [k for k in current if k != kind]
    with self._lock:
      self._orders[frame.id] = updated
    return list(updated)

  def primary(self, frame: Frame) -> Optional[FrameAssetItem]:
    return primary_asset(frame, self.order_for(frame))

  def ordered(self, frame: Frame) -> List[FrameAssetItem]:
    return ordered_assets(frame, self.order_for(frame))

  def reset(self, frame_id: Optional[str] = None):
    with self._lock:
      if frame_id is None:
        self._orders.clear()
      else:
        self._orders.pop(frame_id, None)
