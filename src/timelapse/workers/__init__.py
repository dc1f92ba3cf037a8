from timelapse.workers.screenshot import (
    CaptureSource,
    CursorWindowLocator,
    MssCaptureSource,
    WindowLocator,
    select_display,
)
from timelapse.workers.naming import next_filename, next_frame
from timelapse.workers.normalize import letterbox, normalize_frame
from timelapse.workers.blank import is_blank, mean_luminance

__all__ = [
    'CaptureSource',
    'CursorWindowLocator',
    'MssCaptureSource',
    'WindowLocator',
    'select_display',
    'next_filename',
    'next_frame',
    'letterbox',
    'normalize_frame',
    'is_blank',
    'mean_luminance',
]
