"""Services layer for NoteCapture application logic."""

from .recording_service import RecordingService
from .waveform_service import WaveformService

__all__ = [
    "RecordingService",
    "WaveformService"
]
