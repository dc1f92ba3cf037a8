"""
Frame normalization: every capture is scaled to fit a fixed canvas and
letterboxed with black so downstream video assembly sees one frame size.
"""
import io
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from timelapse.constants import constants
from timelapse.errors import ProcessingError


def fit_size(orig_w: int, orig_h: int, target_w: int, target_h: int) -> Tuple[int, int, float]:
    """Largest (w, h) with the source aspect ratio that fits the target box."""
    scale = min(target_w / orig_w, target_h / orig_h)
    new_w = max(1, int(orig_w * scale))
    new_h = max(1, int(orig_h * scale))
    return new_w, new_h, scale


def letterbox(img: Image.Image, target_w: int, target_h: int, path: str | Path) -> Image.Image:
    """
    Scale ``img`` to fit ``target_w`` x ``target_h`` and center it on a black
    canvas of exactly that size. ``path`` only names the frame in errors.
    """
    path_str = str(path)
    orig_w, orig_h = img.size
    new_w, new_h, _ = fit_size(orig_w, orig_h, target_w, target_h)

    try:
        scaled = img.resize((new_w, new_h), Image.Resampling.LANCZOS)
    except Exception as e:
        raise ProcessingError(path_str, "resize", f"Failed to resize image: {e}") from e

    try:
        canvas = Image.new('RGB', (target_w, target_h), (0, 0, 0))
    except Exception as e:
        raise ProcessingError(path_str, "create canvas for", f"Failed to create canvas: {e}") from e

    try:
        x_offset = (target_w - new_w) // 2
        y_offset = (target_h - new_h) // 2
        canvas.paste(scaled, (x_offset, y_offset))
    except Exception as e:
        raise ProcessingError(path_str, "composite", f"Failed to composite image: {e}") from e

    return canvas


def normalize_frame(
    raw: bytes,
    path: Path,
    target_size: Optional[Tuple[int, int]] = None,
) -> Image.Image:
    """
    Decode a raw capture, letterbox it onto the canonical canvas and write it
    to ``path``.

    Each stage raises a ProcessingError naming the stage, the destination path
    and the underlying reason.

    Returns:
        The composited canvas, still in memory
    """
    target_w, target_h = target_size or constants.target_size
    path_str = str(path)

    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
        if img.mode != 'RGB':
            img = img.convert('RGB')
        orig_w, orig_h = img.size
        if orig_w <= 0 or orig_h <= 0:
            raise ValueError(f"empty image {orig_w}x{orig_h}")
    except Exception as e:
        raise ProcessingError(path_str, "read", f"Failed to read image: {e}") from e

    canvas = letterbox(img, target_w, target_h, path)

    try:
        canvas.save(path_str, format=_format_for(path))
    except Exception as e:
        raise ProcessingError(path_str, "write", f"Failed to write image: {e}") from e

    return canvas


def _format_for(path: Path) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in ('.jpg', '.jpeg'):
        return 'JPEG'
    return 'PNG'
