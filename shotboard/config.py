"""
Configuration for the shotboard client
"""
import os

# Remote API
BASE_SCRIPTS_URL = "https://trymartini.com/scripts/"
DEV_SCRIPTS_URL = "https://dev.staging.trymartini.com/scripts/"

# Set SHOTBOARD_DEV_MODE=1 to talk to the staging backend
DEV_MODE = os.environ.get("SHOTBOARD_DEV_MODE", "").lower() in ("1", "true", "yes")

ENDPOINTS = {
  "auth": "auth/live.php",
  "project": "projects/get.php",
  "creatives": "creatives/get_creatives.php",
  "frames": "frames/get.php",
  "frame_status": "frames/update_status.php",
  "frame_board": "frames/update_board.php",
  "schedule": "schedules/get.php",
  "clips": "clips/get.php",
  "comments": "comments/get.php",
  "realtime": "sub/project.php",
}

REQUEST_TIMEOUT = 30  # seconds

USER_AGENT = "shotboard/1.0 (+https://trymartini.com)"

# Local key-value cache (creatives, frames, schedules, credentials)
DB_PATH = os.environ.get("SHOTBOARD_DB_PATH", "shotboard.db")

# Access codes look like XXXX-XXXX-XXXX-XXXX (project only)
# or XXXX-XXXX-XXXX-XXXX-XXXX (project + access code)
ACCESS_CODE_GROUP = r"[0-9a-zA-Z]{4}"

# Realtime event names
FRAME_EVENTS = {
  "comment-added",
  "frame-status-updated",
  "frame-order-updated",
  "frame-image-updated",
  "frame-image-inserted",
  "frame-crop-updated",
  "frame-description-updated",
  "frame-board-updated",
  "frame-caption-updated",
  "update-clips",
  "reload",
}

CREATIVE_EVENTS = {
  "creative-live-updated",
  "creative-deleted",
  "creative-title-updated",
  "creative-order-updated",
  "project-files-updated",
  "reload",
}

SCHEDULE_EVENTS = {
  "activate-schedule",
  "update-schedule",
}

ASPECT_RATIO_EVENT = "creative-aspect-ratio-updated"

# Assets
VIDEO_EXTENSIONS = {"mp4", "mov", "m4v", "webm", "mkv"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "heic", "webp"}
STREAMING_HINT = ".m3u8"

# Schedule payloads are sometimes JSON inside JSON inside JSON
SCHEDULE_UNWRAP_LIMIT = 2


def scripts_url() -> str:
  """Base URL for all script endpoints"""
  return DEV_SCRIPTS_URL if DEV_MODE else BASE_SCRIPTS_URL
