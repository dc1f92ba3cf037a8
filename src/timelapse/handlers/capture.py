import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from timelapse.constants import constants, database_path, day_dir
from timelapse.errors import FilesystemError, SessionStateError, TimelapseError
from timelapse.models.error_log import ErrorLog
from timelapse.models.frame import Frame, TickOutcome
from timelapse.storage.database import MetadataStore
from timelapse.workers.blank import is_blank
from timelapse.workers.naming import next_frame
from timelapse.workers.normalize import normalize_frame
from timelapse.workers.screenshot import (
    CaptureSource,
    CursorWindowLocator,
    MssCaptureSource,
    WindowLocator,
    select_display,
)

log = logging.getLogger(__name__)


def sleep_for(outcome: TickOutcome) -> float:
    """Seconds to wait after a tick with the given outcome."""
    if outcome is TickOutcome.CAPTURED:
        return constants.CAPTURED_SLEEP
    if outcome is TickOutcome.BLANK:
        return constants.BLANK_SLEEP
    return constants.ERROR_SLEEP


class CaptureSession:
    """
    One running timelapse: a background thread that captures, normalizes and
    records a frame per tick.

    Stopping is cooperative. ``stop()`` clears the running flag and the loop
    exits at the start of its next tick, so it may take up to one full tick
    plus its sleep (60 seconds after a failure) before the thread ends.
    """

    def __init__(
        self,
        root: Path,
        capture_source: Optional[CaptureSource] = None,
        window_locator: Optional[WindowLocator] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            root: Base storage directory holding day directories and the database
            capture_source: Display enumeration and grabbing (mss by default)
            window_locator: Focus signal for display selection (cursor by default)
            sleep: Called with the backoff duration after every tick
            clock: Returns the current UTC instant
        """
        self.root = Path(root)
        self.capture_source = capture_source or MssCaptureSource()
        self.window_locator = window_locator or CursorWindowLocator()
        self.error_log = ErrorLog()
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._store: Optional[MetadataStore] = None
        self._store_lock = threading.Lock()
        self.frames_captured = 0

    @property
    def store(self) -> MetadataStore:
        with self._store_lock:
            if self._store is None:
                self._store = MetadataStore(database_path(self.root))
            return self._store

    def is_running(self) -> bool:
        return self._running.is_set()

    def is_alive(self) -> bool:
        """True while the loop thread exists, including after stop() until it drains."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._running.is_set():
            raise SessionStateError("Timelapse is already running")
        if self.is_alive():
            raise SessionStateError("Previous capture loop is still stopping")

        self._running.set()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Ask the loop to exit; with ``wait`` block until the thread has ended."""
        if not self._running.is_set():
            raise SessionStateError("Timelapse is not running")

        self._running.clear()
        if wait and self._thread:
            self._thread.join(timeout=timeout)

    def _capture_loop(self) -> None:
        log.info("Starting timelapse background task...")
        try:
            while self._running.is_set():
                outcome = self.tick()
                self._sleep(sleep_for(outcome))
        finally:
            with self._store_lock:
                if self._store is not None:
                    self._store.close()
                    self._store = None
            log.info("Timelapse background task stopped.")

    def tick(self) -> TickOutcome:
        """Run one capture attempt; failures are recorded, never raised."""
        try:
            frame = self.capture_frame()
        except TimelapseError as e:
            log.warning(f"Screenshot error: {e}")
            self.error_log.append(str(e))
            return TickOutcome.FAILED
        except Exception as e:
            log.exception("Unexpected screenshot error")
            self.error_log.append(f"Unexpected error: {e}")
            return TickOutcome.FAILED

        if frame is None:
            return TickOutcome.BLANK
        self.frames_captured += 1
        return TickOutcome.CAPTURED

    def capture_frame(self) -> Optional[Frame]:
        """
        Capture one frame into today's directory.

        Returns:
            The recorded Frame, or None if the frame was blank and discarded
        """
        created_at = self._clock()
        local_time = created_at.astimezone()

        directory = day_dir(self.root, local_time)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            frame_number, filename = next_frame(directory)
        except OSError as e:
            raise FilesystemError(str(directory), str(e)) from e
        path = directory / filename

        window = self.window_locator.focused_window()
        display = select_display(window, self.capture_source.displays())
        raw = self.capture_source.capture(display)

        try:
            canvas = normalize_frame(raw, path)
            blank = is_blank(canvas)
            if not blank:
                self.store.insert(frame_number, created_at, local_time)
        except Exception:
            # Files without a metadata row are not kept
            self._discard_orphan(path)
            raise

        if blank:
            log.debug(f"Screenshot is all black, deleting: {path}")
            self._delete_frame(path)
            return None

        log.debug(f"Screenshot saved to {path}")
        return Frame(
            frame_number=frame_number,
            path=path,
            created_at=created_at,
            local_time=local_time,
        )

    @staticmethod
    def _delete_frame(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise FilesystemError(str(path), f"unable to delete frame: {e}") from e

    def _discard_orphan(self, path: Path) -> None:
        try:
            self._delete_frame(path)
        except FilesystemError as e:
            log.error(f"Orphaned frame left on disk: {e}")
            self.error_log.append(str(e))
