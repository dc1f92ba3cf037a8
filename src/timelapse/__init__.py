from timelapse.errors import (
    TimelapseError,
    ConfigurationError,
    SessionStateError,
    CaptureError,
    ProcessingError,
    ClassificationError,
    StorageError,
    FilesystemError,
    EncoderError,
)
from timelapse.handlers.capture import CaptureSession
from timelapse.session import TimelapseEngine

__version__ = "0.1.0"

__all__ = [
    'TimelapseError',
    'ConfigurationError',
    'SessionStateError',
    'CaptureError',
    'ProcessingError',
    'ClassificationError',
    'StorageError',
    'FilesystemError',
    'EncoderError',
    'CaptureSession',
    'TimelapseEngine',
]
