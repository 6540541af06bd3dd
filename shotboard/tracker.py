"""
Shotboard Tracker
v1.0.0

Command-line runner over ProjectService.

Usage:
  shotboard --login https://trymartini.com/p/AB12-CD34-EF56-GH78 --access-code JK90
  shotboard --report
  shotboard --frames --mode shoot --creative 12
  shotboard --schedule
  shotboard --set-status 345 done
  shotboard --logout
"""
import argparse
import logging
import sys
from typing import List, Optional

from .errors import ShotboardError
from .ordering import FrameFilter, SortMode, creative_progress
from .schedules import is_block_complete
from .schema import BlockType, Frame, FrameStatus
from .service import ProjectService

STATUS_ICONS = {
  FrameStatus.DONE: "✅",
  FrameStatus.HERE: "🎬",
  FrameStatus.NEXT: "⏭️",
  FrameStatus.OMIT: "🚫",
  FrameStatus.NONE: "⬜",
}


def _frame_line(frame: Frame) -> str:
  icon = STATUS_ICONS[frame.status_enum]
  start = frame.formatted_start_time
  parts = [f"{icon} #{frame.display_order or '?'}", frame.id]
  if frame.creative_title:
    parts.append(frame.creative_title)
  if start:
    parts.append(start)
  line = " | ".join(parts)
  description = frame.description_text
  if description:
    first_line = description.splitlines()[0]
    line += f"\n      {first_line[:70]}"
  return line


def show_report(service: ProjectService):
  """Creatives with their progress"""
  creatives = service.fetch_creatives()

  print("\n" + "=" * 60)
  print("🎬 SHOTBOARD - Current Status")
  print("=" * 60)

  if not creatives:
    print("  No creatives found")
    return

  for creative in sorted(creatives, key=lambda c: c.order):
    progress = creative_progress(creative)
    flags = []
    if creative.is_live:
      flags.append("LIVE")
    if creative.is_archived:
      flags.append("archived")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    print(f"  {creative.title or creative.id}{suffix}")
    print(f"    {progress.completed}/{progress.total} frames ({progress.percentage:.0f}%)")

  overall = service.progress()
  print(f"\n📊 Overall: {overall.completed}/{overall.total} frames done")


def show_frames(service: ProjectService, mode: SortMode, creative_ids: List[str], tag_ids: List[str]):
  """Frames in story or shoot order"""
  service.fetch_frames()
  if mode == SortMode.SHOOT:
    service.fetch_project_details()
    service.resolve_active_schedule()

  frame_filter = FrameFilter.of(creative_ids, tag_ids)
  result = service.partition(mode, frame_filter)

  print("\n" + "=" * 60)
  print(f"🎞️ FRAMES - {mode.value} order ({len(result)} frames)")
  print("=" * 60)

  if mode == SortMode.STORY:
    for section in result.sections:
      print(f"\n  {section.title or section.creative_id or 'Unassigned'} ({len(section.frames)} frames)")
      print("  " + "-" * 40)
      for frame in section.frames:
        print(f"    {_frame_line(frame)}")
  else:
    for frame in result.frames:
      print(f"  {_frame_line(frame)}")

  progress = service.progress(frame_filter)
  print(f"\n📊 {progress.completed}/{progress.total} done ({progress.percentage:.0f}%)")


def show_schedule(service: ProjectService):
  service.fetch_project_details()
  schedule = service.resolve_active_schedule()

  print("\n" + "=" * 60)
  print("🗓️ SCHEDULE")
  print("=" * 60)

  if schedule is None:
    print("  No active schedule")
    return

  print(f"  {schedule.display_title or schedule.id}")
  if schedule.date:
    print(f"  Date: {schedule.date}")
  if schedule.location:
    print(f"  Location: {schedule.location}")

  frames = service.fetch_frames()
  groups = schedule.all_groups()
  if not groups:
    print("  No schedule blocks available")
    return

  for group in groups:
    print(f"\n  {group.title or group.id}")
    print("  " + "-" * 40)
    for block in group.blocks:
      start = block.calculated_start or "--:--"
      if block.type == BlockType.TITLE:
        print(f"    {start}  == {block.title or ''} ==")
      elif block.type == BlockType.SHOT:
        done = "✅" if is_block_complete(block, frames) else "  "
        duration = f" ({block.duration} min)" if block.duration else ""
        print(f"    {start} {done} {block.title or block.description or 'Shot'}{duration}")
        if block.frame_ids:
          print(f"          frames: {', '.join(block.frame_ids)}")
      else:
        print(f"    {start}  ({block.raw_type or 'unknown'} block)")


def set_status(service: ProjectService, frame_id: str, status_text: str):
  if not service.frames:
    service.fetch_frames()
  status = FrameStatus.from_string(status_text)
  frame = service.update_frame_status(frame_id, status)
  print(f"✅ Frame {frame.id} is now {frame.status_enum.value}")


def main(argv: Optional[List[str]] = None) -> int:
  parser = argparse.ArgumentParser(description="Shotboard Tracker v1.0")
  parser.add_argument("--login", type=str, metavar="CODE", help="Log in with a QR code URL or project code")
  parser.add_argument("--access-code", type=str, help="Access code, when the project code doesn't include one")
  parser.add_argument("--report", action="store_true", help="Show creatives with progress")
  parser.add_argument("--frames", action="store_true", help="List frames")
  parser.add_argument("--mode", choices=["story", "shoot"], default="story", help="Frame order")
  parser.add_argument("--creative", action="append", default=[], help="Only frames of this creative (repeatable)")
  parser.add_argument("--tag", action="append", default=[], help="Only frames with this tag (repeatable)")
  parser.add_argument("--schedule", action="store_true", help="Show the active schedule")
  parser.add_argument("--set-status", nargs=2, metavar=("FRAME_ID", "STATUS"), help="Set a frame's status")
  parser.add_argument("--logout", action="store_true", help="Forget the stored login and cache")
  parser.add_argument("--verbose", action="store_true", help="Debug logging")

  args = parser.parse_args(argv)

  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )

  service = ProjectService()

  try:
    if args.logout:
      # restore first so the project's cache is cleared too
      service.restore_session()
      service.logout()
      print("👋 Logged out")
      return 0

    if args.login:
      project_id = service.authenticate(args.login, args.access_code)
      print(f"✅ Logged in to project {project_id}")
    elif not service.restore_session():
      print("❌ Not logged in. Use --login CODE first.")
      return 1

    if args.set_status:
      set_status(service, *args.set_status)
    if args.report:
      show_report(service)
    if args.frames:
      show_frames(service, SortMode.from_string(args.mode), args.creative, args.tag)
    if args.schedule:
      show_schedule(service)
  except ShotboardError as e:
    print(f"❌ {e}")
    return 1

  return 0


if __name__ == "__main__":
  sys.exit(main())
