"""
Tolerant Field Coercion
v1.0.0

The server is inconsistent about field types: the same field may arrive as
a string, a number or a boolean, sometimes within one array. Every decoder
in the schema package goes through these functions, one field at a time,
so the coercion rules live in exactly one place.

None of these functions raise. A value that can't be coerced becomes the
type's default (0, False, "") or None for the optional variants.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "1", "yes"}
FALSE_STRINGS = {"false", "0", "no"}


def to_optional_int(value: Any) -> Optional[int]:
  """Integer from a number or numeric string, else None"""
  if isinstance(value, bool):
    return None
  if isinstance(value, int):
    return value
  if isinstance(value, float):
    if value.is_integer():
      return int(value)
    return None
  if isinstance(value, str):
    try:
      return int(value.strip())
    except ValueError:
      return None
  return None


def to_int(value: Any, default: int = 0) -> int:
  result = to_optional_int(value)
  return default if result is None else result


def to_optional_float(value: Any) -> Optional[float]:
  """Float from a number or numeric string, else None"""
  if isinstance(value, bool):
    return None
  if isinstance(value, (int, float)):
    return float(value)
  if isinstance(value, str):
    try:
      return float(value.strip())
    except ValueError:
      return None
  return None


def to_optional_bool(value: Any) -> Optional[bool]:
  """
  Boolean from a bool, an integer (nonzero = True) or one of the
  recognised strings (case-insensitive), else None.
  """
  if isinstance(value, bool):
    return value
  if isinstance(value, int):
    return value != 0
  if isinstance(value, float) and value.is_integer():
    return value != 0
  if isinstance(value, str):
    lowered = value.strip().lower()
    if lowered in TRUE_STRINGS:
      return True
    if lowered in FALSE_STRINGS:
      return False
  return None


def to_bool(value: Any, default: bool = False) -> bool:
  result = to_optional_bool(value)
  return default if result is None else result


def to_optional_str(value: Any) -> Optional[str]:
  """String from a string, number or bool, else None"""
  if isinstance(value, str):
    return value
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, (int, float)):
    return str(value)
  return None


def to_str(value: Any, default: str = "") -> str:
  result = to_optional_str(value)
  return default if result is None else result


def to_str_list(value: Any) -> Optional[List[str]]:
  """
  List of id strings. Accepts a list of strings/numbers, or a JSON string
  holding such a list. Entries that can't be stringified are dropped.
  """
  if isinstance(value, str):
    value = decode_json_string(value)
  if not isinstance(value, list):
    return None
  result = []
  for item in value:
    text = to_optional_str(item)
    if text is not None:
      result.append(text)
  return result


def to_tag_list(value: Any):
  """
  List of Tag objects.

  Accepts a list of tag dicts, or a list of bare strings (each wrapped as a
  Tag with only a name). Anything else gives None.
  """
  from .frame_schema import Tag

  if not isinstance(value, list):
    return None
  tags = []
  for item in value:
    if isinstance(item, dict):
      tag = Tag.from_dict(item)
      if tag is not None:
        tags.append(tag)
    elif isinstance(item, str):
      tags.append(Tag(name=item))
  return tags


def decode_json_string(value: Any, limit: int = 2) -> Any:
  """
  Decode a value that may be JSON encoded as a string, possibly twice.

  At most `limit` decode passes are made. Returns the first non-string
  result, or None if a pass fails or the limit is reached while the value
  is still a string.
  """
  current = value
  passes = 0
  while isinstance(current, str):
    if passes >= limit:
      return None
    try:
      current = json.loads(current)
    except ValueError:
      return None
    passes += 1
  return current


def pick(data: Dict, *keys: str) -> Any:
  """First value present (and not None) under any of the given keys"""
  if not isinstance(data, dict):
    return None
  for key in keys:
    value = data.get(key)
    if value is not None:
      return value
  return None


def drop_none(data: Dict) -> Dict:
  """Remove None values for cleaner storage"""
  return {k: v for k, v in data.items() if v is not None}


def decode_records(items: Any, factory: Callable[[Dict], Any], label: str = "record") -> List[Any]:
  """
  Decode a list of dicts one record at a time.

  A record that is not a dict, or that the factory refuses (ValueError /
  TypeError), is skipped with a warning instead of failing the whole list.
  """
  if not isinstance(items, list):
    return []
  records = []
  for index, item in enumerate(items):
    if not isinstance(item, dict):
      logger.warning("Skipping %s #%d: expected an object, got %s", label, index, type(item).__name__)
      continue
    try:
      record = factory(item)
    except (ValueError, TypeError) as e:
      logger.warning("Skipping %s #%d: %s", label, index, e)
      continue
    if record is not None:
      records.append(record)
  return records
