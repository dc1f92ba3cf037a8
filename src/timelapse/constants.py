from dataclasses import dataclass
from datetime import datetime
import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from timelapse.errors import ConfigurationError


@dataclass(frozen=True)
class ConstantsSpec:
    TARGET_WIDTH: int
    TARGET_HEIGHT: int
    CAPTURED_SLEEP: float
    BLANK_SLEEP: float
    ERROR_SLEEP: float
    BLANK_THRESHOLD: float
    SAMPLE_STRIDE: int
    ERROR_LOG_CAPACITY: int
    CACHE_RETENTION_DAYS: int
    FRAME_EXTENSION: str
    IMAGE_EXTENSIONS: Tuple[str, ...]
    FRAME_NUMBER_DIGITS: int
    DATABASE_NAME: str
    CACHE_DIR_NAME: str
    ROOT_DIR_NAME: str

    @property
    def target_size(self) -> Tuple[int, int]:
        """Canvas size every frame is letterboxed onto."""
        return self.TARGET_WIDTH, self.TARGET_HEIGHT

    @property
    def cache_retention_seconds(self) -> float:
        return self.CACHE_RETENTION_DAYS * 86400.0


constants = ConstantsSpec(
    TARGET_WIDTH=1800,
    TARGET_HEIGHT=1124,
    CAPTURED_SLEEP=1.0,
    BLANK_SLEEP=10.0,
    ERROR_SLEEP=60.0,
    BLANK_THRESHOLD=0.01,
    SAMPLE_STRIDE=10,
    ERROR_LOG_CAPACITY=10_000,
    CACHE_RETENTION_DAYS=15,
    FRAME_EXTENSION=".png",
    IMAGE_EXTENSIONS=(".png", ".jpg", ".jpeg"),
    FRAME_NUMBER_DIGITS=5,
    DATABASE_NAME="screenshots.db",
    CACHE_DIR_NAME=".cache",
    ROOT_DIR_NAME="Timelapse",
)


def resolve_root(root: Optional[str | Path] = None) -> Path:
    """
    Resolve the base storage directory.

    An explicit ``root`` wins, then ``TIMELAPSE_ROOT`` (a ``.env`` file is
    loaded first), then ``~/Timelapse``.
    """
    if root is not None:
        return Path(root).expanduser()

    load_dotenv()
    env_root = os.getenv("TIMELAPSE_ROOT")
    if env_root:
        return Path(env_root).expanduser()

    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigurationError(f"Unable to find home dir: {e}") from e
    return home / constants.ROOT_DIR_NAME


def day_dir(root: Path, when: Optional[datetime] = None) -> Path:
    """Per-day frame directory, named after the local calendar date."""
    when = when or datetime.now().astimezone()
    return Path(root) / when.strftime("%Y-%m-%d")


def database_path(root: Path) -> Path:
    return Path(root) / constants.DATABASE_NAME


def cache_dir(root: Path) -> Path:
    return Path(root) / constants.CACHE_DIR_NAME
