from timelapse.models.display import Display, WindowRect
from timelapse.models.frame import Frame, ErrorLogEntry, TickOutcome
from timelapse.models.error_log import ErrorLog

__all__ = [
    'Display',
    'WindowRect',
    'Frame',
    'ErrorLogEntry',
    'TickOutcome',
    'ErrorLog',
]
