"""Playback clock values read by the waveform view."""

from dataclasses import dataclass


@dataclass
class PlaybackState:
    """Current position and total length of the media being played, in seconds."""
    current_time: float = 0.0
    duration: float = 0.0

    def __post_init__(self):
        if self.current_time < 0 or self.duration < 0:
            raise ValueError("Playback times must be non-negative")
        if self.duration > 0 and self.current_time > self.duration:
            self.current_time = self.duration
