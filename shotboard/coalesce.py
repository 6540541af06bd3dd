"""
In-flight request coalescing

Two callers asking for the same resource while a fetch is already running
must not start a second fetch: they wait for the first one and get its
result (or its exception).
"""
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable

logger = logging.getLogger(__name__)


class InflightRequests:
  """One running call per key; later callers for the key join it"""

  def __init__(self):
    self._lock = threading.Lock()
    self._futures: Dict[Hashable, Future] = {}
    self._waiting: Dict[Hashable, int] = {}

  def run(self, key: Hashable, fn: Callable[[], Any]) -> Any:
    with self._lock:
      future = self._futures.get(key)
      owner = future is None
      if owner:
        future = Future()
        self._futures[key] = future
      else:
        self._waiting[key] = self._waiting.get(key, 0) + 1
        logger.debug("Joining in-flight request %r", key)

    if not owner:
      try:
        return future.result()
      finally:
        with self._lock:
          remaining = self._waiting.get(key, 1) - 1
          if remaining > 0:
            self._waiting[key] = remaining
          else:
            self._waiting.pop(key, None)

    try:
      result = fn()
    except Exception as e:
      future.set_exception(e)
      raise
    except BaseException:
      future.cancel()
      raise
    else:
      future.set_result(result)
      return result
    finally:
      with self._lock:
        if self._futures.get(key) is future:
          del self._futures[key]

  def waiting(self, key: Hashable) -> int:
    """Number of callers currently blocked on the in-flight call for key"""
    with self._lock:
      return self._waiting.get(key, 0)

  def in_flight(self, key: Hashable) -> bool:
    with self._lock:
      return key in self._futures
