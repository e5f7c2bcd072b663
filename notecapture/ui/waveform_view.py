"""Waveform geometry, playback marker and click-to-seek mapping."""

import math
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional, Sequence

from ..models.playback import PlaybackState


class Bar(NamedTuple):
    """One bottom-anchored waveform bar."""
    x: float
    y: float
    width: float
    height: float


@dataclass
class WaveformFrame:
    """Everything needed to draw the waveform once."""
    bars: List[Bar]
    marker_x: Optional[float]
    width: float
    height: float


def layout(series: Sequence[float], width: float, height: float) -> List[Bar]:
    """Lay out one bar per amplitude value across ``width``.

    Values are drawn as-is (no extra normalization); an empty series draws
    nothing.
    """
    if not series:
        return []

    bar_width = width / len(series)
    bars = []
    for i, value in enumerate(series):
        bar_height = value * height
        bars.append(Bar(x=i * bar_width, y=height - bar_height, width=bar_width, height=bar_height))
    return bars


def playback_marker(current_time: float, duration: float, width: float) -> Optional[float]:
    """X position of the playback line, or None until the duration is known."""
    if not duration or math.isnan(duration) or duration <= 0:
        return None
    return (current_time / duration) * width


def seek_fraction(pointer_x: float, display_width: float) -> float:
    """Map a pointer position to a fraction of the duration in [0, 1]."""
    if display_width <= 0:
        return 0.0
    return min(max(pointer_x / display_width, 0.0), 1.0)


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS, treating 0 and NaN as 00:00."""
    if not seconds or math.isnan(seconds):
        return "00:00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


class WaveformView:
    """Amplitude series drawn against a playback clock.

    The view never owns the media; it reads a PlaybackState per render and
    reports seeks through ``on_seek`` with a target time in seconds.
    """

    def __init__(self, series: Sequence[float], width: float = 600, height: float = 150,
                 on_seek: Optional[Callable[[float], None]] = None):
        self.series = list(series)
        self.width = width
        self.height = height
        self.on_seek = on_seek

    def render(self, playback: Optional[PlaybackState] = None) -> WaveformFrame:
        playback = playback or PlaybackState()
        return WaveformFrame(
            bars=layout(self.series, self.width, self.height),
            marker_x=playback_marker(playback.current_time, playback.duration, self.width),
            width=self.width,
            height=self.height,
        )

    def click(self, pointer_x: float, duration: float) -> float:
        """Translate a click into a seek time and notify the playback controller."""
        target = seek_fraction(pointer_x, self.width) * duration
        if self.on_seek:
            self.on_seek(target)
        return target
