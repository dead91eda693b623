import threading
import time
from typing import Dict

from agridoctor.core import config


class VisitCounter:
    """Process-local visit statistics guarded by a lock.

    ``online`` is the number of distinct clients seen inside the last
    ``window_seconds``. Nothing survives a restart and each worker process
    keeps its own numbers.
    """

    def __init__(self, window_seconds: int = None):
        self.window_seconds = window_seconds or config.ONLINE_WINDOW_SECONDS
        self._lock = threading.Lock()
        self._total = 0
        self._last_seen: Dict[str, float] = {}

    def record_visit(self, client_id: str, now: float = None):
        now = time.monotonic() if now is None else now
        with self._lock:
            self._total += 1
            self._last_seen[client_id] = now
            self._prune(now)

    def _prune(self, now: float):
        cutoff = now - self.window_seconds
        for client_id in [c for c, seen in self._last_seen.items() if seen < cutoff]:
            del self._last_seen[client_id]

    def snapshot(self, now: float = None) -> dict:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._prune(now)
            return {"online": len(self._last_seen), "total": self._total}

    def reset(self):
        with self._lock:
            self._total = 0
            self._last_seen.clear()


visit_counter = VisitCounter()
