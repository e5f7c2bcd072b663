"""Data models for the NoteCapture application."""

from .audio import (
    AudioBuffer,
    AudioStats,
    DeviceRequest,
    NormalizationResult,
    RawFormat,
    WAV_MIME_TYPE,
)
from .events import AudioEvent, RecordingEvent, SessionEvent
from .playback import PlaybackState
from .session import CaptureState, SessionInfo

__all__ = [
    "AudioBuffer",
    "AudioStats",
    "DeviceRequest",
    "NormalizationResult",
    "RawFormat",
    "WAV_MIME_TYPE",
    "AudioEvent",
    "RecordingEvent",
    "SessionEvent",
    "PlaybackState",
    "CaptureState",
    "SessionInfo",
]
