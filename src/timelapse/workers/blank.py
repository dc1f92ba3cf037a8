from typing import Optional

import numpy as np
from PIL import Image

from timelapse.constants import constants
from timelapse.errors import ClassificationError

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def mean_luminance(img: Image.Image, stride: Optional[int] = None) -> float:
    """
    Mean luminance in [0, 1] over a grid sampling every ``stride``-th pixel
    in each axis.
    """
    stride = stride or constants.SAMPLE_STRIDE
    w, h = img.size
    if w <= 0 or h <= 0:
        raise ClassificationError("No pixels could be sampled")

    rgb = img if img.mode == 'RGB' else img.convert('RGB')
    samples = np.asarray(rgb, dtype=np.float64)[::stride, ::stride, :3] / 255.0
    if samples.size == 0:
        raise ClassificationError("No pixels could be sampled")

    luminance = samples @ LUMA_WEIGHTS
    return float(luminance.mean())


def is_blank_luminance(mean: float, threshold: Optional[float] = None) -> bool:
    threshold = constants.BLANK_THRESHOLD if threshold is None else threshold
    return mean < threshold


def is_blank(img: Image.Image) -> bool:
    """True for frames captured while the display is asleep or locked."""
    return is_blank_luminance(mean_luminance(img))

