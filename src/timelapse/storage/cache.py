"""
Derived cache under ``<root>/.cache``: ffmpeg transcodes and frame
extractions, one subdirectory per source video, aged out by modification time.
"""
import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from timelapse.constants import cache_dir, constants
from timelapse.errors import EncoderError

log = logging.getLogger(__name__)


def evict_old_cache(cache_root: Path, now: Optional[float] = None,
                    max_age_seconds: Optional[float] = None) -> Optional[int]:
    """
    Remove cache subdirectories whose modification time is older than the
    retention window. An entry that cannot be removed is logged and skipped.

    Returns:
        Number of directories removed, or None if the cache root does not exist
    """
    cache_root = Path(cache_root)
    if not cache_root.is_dir():
        return None

    now = time.time() if now is None else now
    max_age = constants.cache_retention_seconds if max_age_seconds is None else max_age_seconds

    removed = 0
    for entry in cache_root.iterdir():
        if entry.is_symlink() or not entry.is_dir():
            continue
        try:
            age = now - entry.stat().st_mtime
            if age <= max_age:
                continue
            shutil.rmtree(entry)
        except OSError as e:
            log.warning(f"Failed to evict cache entry {entry.name}: {e}")
            continue
        removed += 1
        log.info(f"Evicted cache entry {entry.name} ({age / 86400:.1f} days old)")

    return removed


def _source_path(root: Path, video_filename: str) -> Path:
    root = Path(root).resolve()
    source = (root / video_filename).resolve()
    if root not in source.parents:
        raise EncoderError(video_filename, "video must live inside the timelapse root")
    if not source.is_file():
        raise EncoderError(str(source), "source video does not exist")
    return source


def entry_dir(root: Path, video_filename: str) -> Path:
    """Cache subdirectory holding every derived artifact of one video."""
    return cache_dir(root) / Path(video_filename).stem


def _run_ffmpeg(args: List[str], target: Path) -> None:
    cmd = ['ffmpeg', '-y', *args]
    try:
        r = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise EncoderError(
            str(target), f"Failed to execute ffmpeg: {e}. Make sure ffmpeg is installed and in PATH."
        ) from e
    if r.returncode != 0:
        raise EncoderError(str(target), f"ffmpeg failed: {r.stderr.strip()}")


def transcode_video(root: Path, video_filename: str) -> bytes:
    """H.264/AAC MP4 rendition of a recorded video, served from cache when present."""
    source = _source_path(root, video_filename)
    out_dir = entry_dir(root, video_filename)
    out_path = out_dir / "video.mp4"

    if out_path.exists():
        log.debug(f"Using cached transcoded video: {out_path}")
        return out_path.read_bytes()

    out_dir.mkdir(parents=True, exist_ok=True)
    partial = out_dir / "video.partial.mp4"
    log.info(f"Transcoding video: {source} -> {out_path}")
    try:
        _run_ffmpeg([
            '-i', str(source),
            '-c:v', 'libx264', '-preset', 'medium', '-crf', '23',
            '-c:a', 'aac', '-b:a', '128k',
            '-movflags', '+faststart',
            str(partial)
        ], out_path)
    except EncoderError:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(out_path)
    log.info(f"Transcoding complete: {out_path}")

    return out_path.read_bytes()


def extract_frames(root: Path, video_filename: str) -> str:
    """
    Extract a video into a numbered JPEG sequence.

    Returns:
        Folder identifier relative to the cache root, e.g. ``"<stem>/frames"``
    """
    source = _source_path(root, video_filename)
    frames_dir = entry_dir(root, video_filename) / "frames"
    identifier = f"{frames_dir.parent.name}/{frames_dir.name}"

    if frames_dir.is_dir() and any(frames_dir.iterdir()):
        log.debug(f"Using cached frames: {frames_dir}")
        return identifier

    frames_dir.mkdir(parents=True, exist_ok=True)
    log.info(f"Extracting frames: {source} -> {frames_dir}")
    try:
        _run_ffmpeg([
            '-i', str(source),
            '-q:v', '2',
            str(frames_dir / "%05d.jpg")
        ], frames_dir)
    except EncoderError:
        shutil.rmtree(frames_dir, ignore_errors=True)
        raise

    return identifier
