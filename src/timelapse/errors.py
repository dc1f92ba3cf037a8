from typing import Optional


class TimelapseError(Exception):
    """Base class for every failure the capture engine reports."""


class ConfigurationError(TimelapseError):
    """The storage root could not be resolved."""


class SessionStateError(TimelapseError):
    """Start on a running session or stop on a stopped one."""


class CaptureError(TimelapseError):
    """Display enumeration, selection or raw buffer acquisition failed."""

    def __init__(self, reason: str):
        super().__init__(f"Unable to create screenshot: {reason}")
        self.reason = reason


class ProcessingError(TimelapseError):
    """Decoding, resizing, compositing or writing a frame failed."""

    def __init__(self, path: str, stage: str, reason: str):
        super().__init__(f"Unable to {stage} screenshot {path} because: {reason}")
        self.path = path
        self.stage = stage
        self.reason = reason


class ClassificationError(TimelapseError):
    """The blank detector could not sample the frame."""

    def __init__(self, reason: str, path: Optional[str] = None):
        super().__init__(f"Unable to check if image is black: {reason}")
        self.reason = reason
        self.path = path


class StorageError(TimelapseError):
    """The metadata store rejected a write or could not be opened."""

    def __init__(self, reason: str):
        super().__init__(f"Unable to store screenshot metadata: {reason}")
        self.reason = reason


class FilesystemError(TimelapseError):
    """Creating a day directory or deleting a frame failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Filesystem error at {path}: {reason}")
        self.path = path
        self.reason = reason


class EncoderError(TimelapseError):
    """The external ffmpeg encoder failed or could not be run."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Encoder failed for {path}: {reason}")
        self.path = path
        self.reason = reason
