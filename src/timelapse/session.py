import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from timelapse.constants import cache_dir, resolve_root
from timelapse.errors import SessionStateError
from timelapse.handlers.capture import CaptureSession
from timelapse.models.frame import ErrorLogEntry
from timelapse.storage import cache

log = logging.getLogger(__name__)


class TimelapseEngine:
    """
    Host-side owner of the capture session.

    A session exists only while recording; starting creates a fresh one (with
    an empty error log) and stopping drops it. A new session is refused until
    the previous loop thread has exited, so at most one loop writes frames.
    """

    def __init__(
        self,
        root: Optional[str | Path] = None,
        session_factory: Optional[Callable[[Path], CaptureSession]] = None,
    ):
        self.root = resolve_root(root)
        self._session_factory = session_factory or CaptureSession
        self._session: Optional[CaptureSession] = None
        self._stopping: Optional[CaptureSession] = None
        self._lock = threading.Lock()

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    def start(self) -> str:
        with self._lock:
            if self._session is not None:
                raise SessionStateError("Timelapse is already running")
            if self._stopping is not None:
                if self._stopping.is_alive():
                    raise SessionStateError("Previous capture loop is still stopping")
                self._stopping = None
            session = self._session_factory(self.root)
            session.start()
            self._session = session
        log.info(f"Timelapse started, writing to {self.root}")
        return "Timelapse started successfully"

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> str:
        with self._lock:
            session = self._session
            if session is None:
                raise SessionStateError("Timelapse is not running")
            self._session = None
            self._stopping = session
        session.stop(wait=wait, timeout=timeout)
        log.info("Timelapse stopped")
        return "Timelapse stopped successfully"

    def is_running(self) -> bool:
        with self._lock:
            return self._session is not None

    def error_logs(self) -> List[ErrorLogEntry]:
        with self._lock:
            if self._session is None:
                return []
            return self._session.error_log.snapshot()

    def clear_error_logs(self) -> str:
        with self._lock:
            if self._session is None:
                raise SessionStateError("Timelapse is not running")
            self._session.error_log.clear()
        return "Error logs cleared successfully"

    def evict_old_cache(self) -> Optional[int]:
        """Remove stale derived-cache directories; None if there is no cache yet."""
        return cache.evict_old_cache(cache_dir(self.root))

    def transcode_video(self, video_filename: str) -> bytes:
        return cache.transcode_video(self.root, video_filename)

    def extract_frames(self, video_filename: str) -> str:
        return cache.extract_frames(self.root, video_filename)
