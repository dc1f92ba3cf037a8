import threading

import pytest
from PIL import Image

from timelapse.constants import constants, day_dir
from timelapse.errors import CaptureError, SessionStateError, StorageError
from timelapse.handlers.capture import CaptureSession, sleep_for
from timelapse.models.display import WindowRect
from timelapse.models.frame import TickOutcome

from helpers import PRIMARY, SECONDARY, FakeCaptureSource, FakeWindowLocator


class FailingStore:
    def insert(self, frame_number, created_at, local_time):
        raise StorageError("database is locked")

    def close(self):
        pass


def _session(root, results, clock, window=None, sleep=None):
    return CaptureSession(
        root,
        capture_source=FakeCaptureSource(results),
        window_locator=FakeWindowLocator(window),
        sleep=sleep or (lambda seconds: None),
        clock=clock,
    )


def _today(root, clock):
    return day_dir(root, clock().astimezone())


def test_sleep_tiers():
    assert sleep_for(TickOutcome.CAPTURED) == 1
    assert sleep_for(TickOutcome.BLANK) == 10
    assert sleep_for(TickOutcome.FAILED) == 60


def test_accepted_frame_is_written_and_recorded(tmp_path, frame_png, fixed_clock):
    session = _session(tmp_path, [frame_png], fixed_clock)

    assert session.tick() is TickOutcome.CAPTURED
    assert session.tick() is TickOutcome.CAPTURED

    directory = _today(tmp_path, fixed_clock)
    assert sorted(p.name for p in directory.iterdir()) == ["00001.png", "00002.png"]
    with Image.open(directory / "00001.png") as frame:
        assert frame.size == constants.target_size
    created_at, local_time = session.store.get_by_frame(2)
    assert created_at == fixed_clock().isoformat()
    assert local_time == fixed_clock().astimezone().isoformat()
    assert session.frames_captured == 2
    assert session.error_log.snapshot() == []


def test_capture_frame_returns_frame(tmp_path, frame_png, fixed_clock):
    session = _session(tmp_path, [frame_png], fixed_clock)

    frame = session.capture_frame()

    assert frame.frame_number == 1
    assert frame.path == _today(tmp_path, fixed_clock) / "00001.png"
    assert frame.created_at == fixed_clock()


def test_numbering_continues_after_existing_frames(tmp_path, frame_png, fixed_clock):
    directory = _today(tmp_path, fixed_clock)
    directory.mkdir(parents=True)
    (directory / "00007.jpg").write_bytes(b"")

    frame = _session(tmp_path, [frame_png], fixed_clock).capture_frame()

    assert frame.frame_number == 8


def test_captures_display_under_focused_window(tmp_path, frame_png, fixed_clock):
    window = WindowRect(x=2000, y=100, width=400, height=300)
    session = _session(tmp_path, [frame_png], fixed_clock, window=window)

    session.tick()

    assert session.capture_source.captured_from == [SECONDARY]


def test_falls_back_to_primary_display(tmp_path, frame_png, fixed_clock):
    session = _session(tmp_path, [frame_png], fixed_clock, window=None)

    session.tick()

    assert session.capture_source.captured_from == [PRIMARY]


def test_blank_frame_is_deleted_and_not_recorded(tmp_path, black_png, fixed_clock):
    session = _session(tmp_path, [black_png], fixed_clock)

    assert session.tick() is TickOutcome.BLANK

    assert list(_today(tmp_path, fixed_clock).iterdir()) == []
    assert session.store.count() == 0
    assert session.error_log.snapshot() == []


def test_capture_failure_is_logged(tmp_path, fixed_clock):
    session = _session(tmp_path, [CaptureError("display went away")], fixed_clock)

    assert session.tick() is TickOutcome.FAILED

    [entry] = session.error_log.snapshot()
    assert "display went away" in entry.error_message


def test_processing_failure_leaves_no_file(tmp_path, fixed_clock):
    session = _session(tmp_path, [b"garbage"], fixed_clock)

    assert session.tick() is TickOutcome.FAILED

    [entry] = session.error_log.snapshot()
    assert "Failed to read image" in entry.error_message
    assert "00001.png" in entry.error_message
    assert list(_today(tmp_path, fixed_clock).iterdir()) == []


def test_storage_failure_discards_orphaned_frame(tmp_path, frame_png, fixed_clock):
    session = _session(tmp_path, [frame_png], fixed_clock)
    session._store = FailingStore()

    assert session.tick() is TickOutcome.FAILED

    [entry] = session.error_log.snapshot()
    assert "database is locked" in entry.error_message
    assert list(_today(tmp_path, fixed_clock).iterdir()) == []


def test_unexpected_exception_does_not_escape(tmp_path, fixed_clock):
    session = _session(tmp_path, [RuntimeError("driver crashed")], fixed_clock)

    assert session.tick() is TickOutcome.FAILED

    [entry] = session.error_log.snapshot()
    assert entry.error_message == "Unexpected error: driver crashed"


def test_unwritable_root_is_a_filesystem_failure(tmp_path, frame_png, fixed_clock):
    root = tmp_path / "root"
    root.write_bytes(b"not a directory")
    session = _session(root, [frame_png], fixed_clock)

    assert session.tick() is TickOutcome.FAILED

    [entry] = session.error_log.snapshot()
    assert entry.error_message.startswith("Filesystem error")


def test_loop_sleeps_according_to_outcome(tmp_path, frame_png, black_png, fixed_clock):
    durations = []
    holder = {}

    def sleep(seconds):
        durations.append(seconds)
        if len(durations) == 3:
            holder["session"].stop()

    session = _session(
        tmp_path, [frame_png, black_png, CaptureError("gone")], fixed_clock, sleep=sleep
    )
    holder["session"] = session

    session.start()
    session._thread.join(timeout=10)

    assert not session._thread.is_alive()
    assert durations == [1, 10, 60]
    assert not session.is_running()


def test_start_twice_is_rejected(tmp_path, frame_png, fixed_clock):
    release = threading.Event()
    session = _session(tmp_path, [frame_png], fixed_clock, sleep=lambda s: release.wait(5))

    session.start()
    with pytest.raises(SessionStateError):
        session.start()

    session.stop()
    release.set()
    session._thread.join(timeout=10)


def test_stop_when_not_running_is_rejected(tmp_path, frame_png, fixed_clock):
    session = _session(tmp_path, [frame_png], fixed_clock)

    with pytest.raises(SessionStateError):
        session.stop()


def test_stop_waits_for_current_tick(tmp_path, frame_png, fixed_clock):
    sleeping = threading.Event()
    release = threading.Event()

    def sleep(seconds):
        sleeping.set()
        release.wait(5)

    session = _session(tmp_path, [frame_png], fixed_clock, sleep=sleep)
    session.start()
    assert sleeping.wait(5)

    session.stop()
    # Flag is down but the loop is still finishing its sleep
    assert not session.is_running()
    assert session._thread.is_alive()
    with pytest.raises(SessionStateError):
        session.start()

    release.set()
    session._thread.join(timeout=10)
    assert not session._thread.is_alive()
