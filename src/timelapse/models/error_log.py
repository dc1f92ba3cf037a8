import threading
from collections import deque
from datetime import datetime, timezone
from typing import List, Optional

from timelapse.constants import constants
from timelapse.models.frame import ErrorLogEntry


class ErrorLog:
    """
    Bounded, thread-safe record of recent capture failures.

    Entries are kept in arrival order. Once ``max_length`` is reached every
    append drops the oldest entry.
    """

    def __init__(self, max_length: Optional[int] = None):
        self.max_length = max_length if max_length is not None else constants.ERROR_LOG_CAPACITY
        self._entries: deque[ErrorLogEntry] = deque(maxlen=self.max_length)
        self._lock = threading.Lock()

    def append(self, message: str, timestamp: Optional[datetime] = None) -> ErrorLogEntry:
        entry = ErrorLogEntry(
            timestamp=timestamp or datetime.now(timezone.utc),
            error_message=message,
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def snapshot(self) -> List[ErrorLogEntry]:
        """Copy of the current entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
