"""
Frame Status Transitions

Any status may move to any other, itself included. Moving to NONE clears
the status field (it is stored and sent as null, never as "none").

Updates are not optimistic: the service asks the server first and only
then builds the replacement frame with merge_status_result().
"""
from dataclasses import replace
from typing import List, Optional, Tuple

from .schema import ChangeOrigin, Frame, FrameStatus, StatusChange

__all__ = [
  'ChangeOrigin',
  'StatusChange',
  'transition',
  'merge_status_result',
  'replace_frame',
]


def transition(frame: Frame, status: FrameStatus) -> Frame:
  """The frame with its status set; NONE clears it"""
  return frame.with_status(status)


def merge_status_result(existing: Frame, requested: FrameStatus, server_frame: Optional[Frame] = None) -> Frame:
  """
  Frame to keep after a successful status update.

  The server's echo wins when there is one, since it may carry other
  recomputed fields. Denormalized creative fields, boards and tags it
  leaves out are kept from the cached frame. Without an echo the
  requested status is applied to the cached frame.
  """
  if server_frame is None or server_frame.id != existing.id:
    return transition(existing, requested)

  return replace(
    server_frame,
    creative_id=server_frame.creative_id or existing.creative_id,
    creative_title=server_frame.creative_title or existing.creative_title,
    creative_color=server_frame.creative_color or existing.creative_color,
    creative_aspect_ratio=server_frame.creative_aspect_ratio or existing.creative_aspect_ratio,
    boards=server_frame.boards or existing.boards,
    tags=server_frame.tags or existing.tags,
  )


def replace_frame(frames: List[Frame], updated: Frame) -> Tuple[List[Frame], Optional[Frame]]:
  """
  New list with the frame of the same id swapped for `updated`.
  Returns (frames, previous); previous is None when the id wasn't found.
  """
  result = []
  previous = None
  for frame in frames:
    if frame.id == updated.id:
      previous = frame
      result.append(updated)
    else:
      result.append(frame)
  return result, previous

