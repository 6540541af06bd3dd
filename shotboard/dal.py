"""
Local Store (DAL)
v1.0.0

Offline cache for the shotboard client. Everything the client persists
goes through this layer:

- per-project creative list, frame list and project details
- fetched schedules, keyed by schedule id
- the stored login credential

Storage is a single key-value table in SQLite; values are the canonical
to_dict() JSON of the schema records. A value that no longer decodes is
logged and treated as a cache miss, never as an error.

Usage:
  from shotboard.dal import get_store

  store = get_store()
  store.store(project_id, creatives=creatives, frames=frames)
  cached = store.load(project_id)
"""
import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import DB_PATH
from .schema import Creative, Frame, Project, Schedule, TagGroup
from .schema.coerce import decode_records

logger = logging.getLogger(__name__)

CREDENTIALS_KEY = "credentials"


@dataclass
class Credentials:
  """Stored login"""
  project_id: str
  token: str
  access_code: Optional[str] = None

  def to_dict(self) -> Dict:
    return asdict(self)

  @classmethod
  def from_dict(cls, data: Dict) -> "Credentials":
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class CachedProject:
  """Whatever was cached for one project; None means nothing cached"""
  project: Optional[Project] = None
  creatives: Optional[List[Creative]] = None
  frames: Optional[List[Frame]] = None
  tag_groups: List[TagGroup] = field(default_factory=list)

  @property
  def is_empty(self) -> bool:
    return self.project is None and self.creatives is None and self.frames is None


def _project_key(kind: str, project_id: str) -> str:
  return f"{kind}:{project_id}"


def _schedule_key(schedule_id: str) -> str:
  return f"schedule:{schedule_id}"


class LocalStore:
  """
  Key-value cache over SQLite.

  One connection per operation, so a store may be shared between threads.
  """

  def __init__(self, db_path: str = DB_PATH):
    self.db_path = db_path
    self._init_lock = threading.Lock()
    self._initialized = False

  # ============================================
  # Database Connection Management
  # ============================================

  @contextmanager
  def _get_connection(self):
    """Get database connection with automatic cleanup"""
    self._ensure_initialized()
    conn = sqlite3.connect(self.db_path)
    conn.row_factory = sqlite3.Row
    try:
      yield conn
      conn.commit()
    except Exception:
      conn.rollback()
      raise
    finally:
      conn.close()

  def _ensure_initialized(self):
    with self._init_lock:
      if not self._initialized:
        self.init_database()
        self._initialized = True

  def init_database(self):
    """Initialize database schema"""
    conn = sqlite3.connect(self.db_path)
    try:
      conn.execute("""
        CREATE TABLE IF NOT EXISTS cache_entries (
          key TEXT PRIMARY KEY,
          value TEXT NOT NULL,
          updated_at TEXT NOT NULL
        )
      """)
      conn.commit()
    finally:
      conn.close()
    logger.debug("Local store ready at %s", self.db_path)

  # ============================================
  # Raw key-value access
  # ============================================

  def get_json(self, key: str) -> Any:
    """Decoded value for a key; None when missing or corrupt"""
    with self._get_connection() as conn:
      row = conn.execute("SELECT value FROM cache_entries WHERE key = ?", (key,)).fetchone()
    if not row:
      return None
    try:
      return json.loads(row["value"])
    except ValueError as e:
      logger.warning("Ignoring corrupt cache entry %r: %s", key, e)
      return None

  def set_json(self, key: str, value: Any):
    payload = json.dumps(value)
    with self._get_connection() as conn:
      conn.execute(
        """
        INSERT INTO cache_entries (key, value, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """,
        (key, payload, datetime.now().isoformat())
      )

  def delete(self, key: str):
    with self._get_connection() as conn:
      conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))

  def delete_prefix(self, prefix: str, keeping: Optional[str] = None) -> int:
    """Delete every key starting with prefix, except `keeping`"""
    with self._get_connection() as conn:
      cursor = conn.execute(
        "DELETE FROM cache_entries WHERE substr(key, 1, ?) = ? AND key != ?",
        (len(prefix), prefix, keeping or "")
      )
      return cursor.rowcount

  def keys(self) -> List[str]:
    with self._get_connection() as conn:
      rows = conn.execute("SELECT key FROM cache_entries ORDER BY key").fetchall()
    return [row["key"] for row in rows]

  # ============================================
  # Project data
  # ============================================

  def _load_list(self, key: str, factory, label: str) -> Optional[List[Any]]:
    value = self.get_json(key)
    if value is None:
      return None
    if not isinstance(value, list):
      logger.warning("Ignoring cache entry %r: expected a list", key)
      return None
    return decode_records(value, factory, label)

  def load(self, project_id: str) -> CachedProject:
    """Everything cached for a project"""
    project = None
    project_data = self.get_json(_project_key("project", project_id))
    if isinstance(project_data, dict):
      try:
        project = Project.from_dict(project_data)
      except ValueError as e:
        logger.warning("Ignoring cached project %s: %s", project_id, e)

    return CachedProject(
      project=project,
      creatives=self._load_list(_project_key("creatives", project_id), Creative.from_dict, "cached creative"),
      frames=self._load_list(_project_key("frames", project_id), Frame.from_dict, "cached frame"),
      tag_groups=self._load_list(_project_key("tag_groups", project_id), TagGroup.from_dict, "cached tag group") or [],
    )

  def store(
    self,
    project_id: str,
    creatives: Optional[List[Creative]] = None,
    frames: Optional[List[Frame]] = None,
    project: Optional[Project] = None,
    tag_groups: Optional[List[TagGroup]] = None,
  ):
    """Persist the given parts; parts left as None are not touched"""
    if project is not None:
      self.set_json(_project_key("project", project_id), project.to_dict())
    if creatives is not None:
      self.set_json(_project_key("creatives", project_id), [c.to_dict() for c in creatives])
    if frames is not None:
      self.set_json(_project_key("frames", project_id), [f.to_dict() for f in frames])
    if tag_groups is not None:
      self.set_json(_project_key("tag_groups", project_id), [g.to_dict() for g in tag_groups])

  def clear(self, project_id: str):
    for kind in ("project", "creatives", "frames", "tag_groups"):
      self.delete(_project_key(kind, project_id))

  # ============================================
  # Schedules
  # ============================================

  def load_schedule(self, schedule_id: str) -> Optional[Schedule]:
    data = self.get_json(_schedule_key(schedule_id))
    if not isinstance(data, dict):
      return None
    try:
      return Schedule.from_dict(data)
    except ValueError as e:
      logger.warning("Ignoring cached schedule %s: %s", schedule_id, e)
      return None

  def store_schedule(self, schedule: Schedule):
    self.set_json(_schedule_key(schedule.id), schedule.to_dict())

  def delete_schedules(self, keeping: Optional[str] = None) -> int:
    keep_key = _schedule_key(keeping) if keeping else None
    return self.delete_prefix(_schedule_key(""), keeping=keep_key)

  # ============================================
  # Credentials
  # ============================================

  def load_credentials(self) -> Optional[Credentials]:
    data = self.get_json(CREDENTIALS_KEY)
    if not isinstance(data, dict) or not data.get("project_id") or not data.get("token"):
      return None
    return Credentials.from_dict(data)

  def store_credentials(self, credentials: Credentials):
    self.set_json(CREDENTIALS_KEY, credentials.to_dict())

  def clear_credentials(self):
    self.delete(CREDENTIALS_KEY)


# Convenience singleton
_default_store: Optional[LocalStore] = None


def get_store() -> LocalStore:
  """Get the default LocalStore instance"""
  global _default_store
  if _default_store is None:
    _default_store = LocalStore()
  return _default_store
