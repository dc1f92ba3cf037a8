from pathlib import Path
from typing import Optional, Tuple

from timelapse.constants import constants


def parse_frame_number(filename: str) -> Optional[int]:
    """Frame number encoded in a filename, or None for foreign names."""
    stem = filename
    stripped = True
    while stripped:
        stripped = False
        for ext in constants.IMAGE_EXTENSIONS:
            if stem.lower().endswith(ext):
                stem = stem[:-len(ext)]
                stripped = True
    if not (stem.isascii() and stem.isdigit()):
        return None
    return int(stem)


def format_filename(frame_number: int) -> str:
    return f"{frame_number:0{constants.FRAME_NUMBER_DIGITS}d}{constants.FRAME_EXTENSION}"


def next_frame(day_dir: Path) -> Tuple[int, str]:
    """
    Next (frame_number, filename) in a day directory.

    Numbering continues after the highest parseable frame of any recognized
    extension. Gaps are kept, subdirectories and foreign files are ignored.
    """
    numbers = (
        parse_frame_number(entry.name)
        for entry in Path(day_dir).iterdir()
        if entry.is_file()
    )
    highest = max((n for n in numbers if n is not None), default=0)
    frame_number = highest + 1
    return frame_number, format_filename(frame_number)


def next_filename(day_dir: Path) -> str:
    return next_frame(day_dir)[1]
