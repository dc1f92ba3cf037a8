from timelapse.handlers.capture import CaptureSession, sleep_for

__all__ = [
    'CaptureSession',
    'sleep_for',
]
