"""Event models published by the capture and recording pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any, Dict, List


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 48000
    channels: int = 2
    chunk_duration_ms: Optional[int] = None  # Duration of this chunk in milliseconds

    def __post_init__(self):
        """Calculate chunk duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data:
            # 16-bit audio (2 bytes per sample)
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.audio_data) / bytes_per_second
            self.chunk_duration_ms = int(duration_seconds * 1000)


@dataclass
class RecordingEvent:
    """A finished recording, published once per successful session."""
    session_id: str
    locator: str  # Where the normalized WAV can be read back from
    amplitude: List[float]
    gain: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    event_id: str
    event_type: str  # "started", "stopped", "failed"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
