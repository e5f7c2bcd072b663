"""Session-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class CaptureState(Enum):
    """Lifecycle of a capture session."""
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SessionInfo:
    """Information about a finished recording session."""
    session_id: str
    start_time: datetime
    duration_seconds: float
    audio_file: str
    file_size_bytes: int
    sample_rate: int
    channels: int
    gain: float
    amplitude_points: int
