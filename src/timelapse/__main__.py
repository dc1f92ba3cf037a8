import argparse
import logging
import signal
import sys
import time
from pathlib import Path

from timelapse.constants import constants, day_dir
from timelapse.errors import TimelapseError
from timelapse.session import TimelapseEngine
from timelapse.workers.naming import next_filename


class TimelapseRecorder:

    def __init__(self, engine: TimelapseEngine):
        self.engine = engine
        self.running = False

    def start(self):
        """Start recording."""
        if self.running:
            print("Recorder already running")
            return

        self.engine.start()
        self.running = True
        print(f"Timelapse root: {self.engine.root}")
        print(f"Canvas: {constants.TARGET_WIDTH}x{constants.TARGET_HEIGHT}, "
              f"one frame every {constants.CAPTURED_SLEEP:g}s")
        print("-------------------------------------------------------------------")
        print("Recorder started. Press Ctrl+C to stop.")
        print("-------------------------------------------------------------------")

    def stop(self):
        """Stop recording and report what went wrong while it ran."""
        if not self.running:
            return

        self.running = False
        session = self.engine.session
        errors = self.engine.error_logs()
        self.engine.stop()

        print("-------------------------------------------------------------------")
        print(">>>>                    Stopping Recorder                      <<<<")
        print("-------------------------------------------------------------------")
        if session is not None:
            print(f"Frames captured: {session.frames_captured}")
        print(f"Errors logged: {len(errors)}")
        for entry in errors[-10:]:
            print(f"  {entry.timestamp.isoformat()}  {entry.error_message}")

    def run(self):
        """Run the recorder until interrupted."""
        def signal_handler(sig, frame):
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        self.start()

        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()


def _record(engine: TimelapseEngine, args) -> int:
    removed = engine.evict_old_cache()
    if removed:
        print(f"Removed {removed} stale cache entries")
    TimelapseRecorder(engine).run()
    return 0


def _evict_cache(engine: TimelapseEngine, args) -> int:
    removed = engine.evict_old_cache()
    if removed is None:
        print("Cache directory does not exist")
    else:
        print(f"Removed {removed} cache entries older than {constants.CACHE_RETENTION_DAYS} days")
    return 0


def _transcode(engine: TimelapseEngine, args) -> int:
    data = engine.transcode_video(args.name)
    output = Path(args.output)
    output.write_bytes(data)
    print(f"Wrote {len(data)} bytes to {output}")
    return 0


def _extract(engine: TimelapseEngine, args) -> int:
    print(engine.extract_frames(args.name))
    return 0


def _next_frame(engine: TimelapseEngine, args) -> int:
    directory = Path(args.day_dir) if args.day_dir else day_dir(engine.root)
    if not directory.is_dir():
        print(f"{directory} does not exist")
        return 1
    print(next_filename(directory))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Capture a fixed-cadence screen timelapse"
    )
    parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Timelapse storage directory (default: $TIMELAPSE_ROOT or ~/Timelapse)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    record = subparsers.add_parser("record", help="Capture frames until interrupted (default)")
    record.set_defaults(func=_record)

    evict = subparsers.add_parser("evict-cache", help="Remove stale derived-cache entries")
    evict.set_defaults(func=_evict_cache)

    transcode = subparsers.add_parser("transcode", help="Transcode a recorded video to H.264 MP4")
    transcode.add_argument("name", help="Video filename relative to the storage root")
    transcode.add_argument("-o", "--output", required=True, help="Where to write the MP4")
    transcode.set_defaults(func=_transcode)

    extract = subparsers.add_parser("extract", help="Extract a video into a JPEG sequence")
    extract.add_argument("name", help="Video filename relative to the storage root")
    extract.set_defaults(func=_extract)

    next_frame = subparsers.add_parser("next-frame", help="Print the next frame filename for a day directory")
    next_frame.add_argument("day_dir", nargs="?", default=None, help="Day directory (default: today)")
    next_frame.set_defaults(func=_next_frame)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    func = getattr(args, "func", _record)
    try:
        engine = TimelapseEngine(args.root)
        return func(engine, args)
    except TimelapseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
