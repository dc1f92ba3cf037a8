from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path


class TickOutcome(StrEnum):
    CAPTURED = "captured"
    BLANK = "blank"
    FAILED = "failed"


@dataclass
class Frame:
    frame_number: int
    path: Path
    created_at: datetime
    local_time: datetime


@dataclass(frozen=True)
class ErrorLogEntry:
    timestamp: datetime
    error_message: str
