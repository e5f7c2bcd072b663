"""Waveform display."""

from .waveform_screen import WaveformScreen
from .waveform_view import Bar, WaveformFrame, WaveformView, format_time, layout, playback_marker, seek_fraction

__all__ = [
    "WaveformScreen",
    "Bar",
    "WaveformFrame",
    "WaveformView",
    "format_time",
    "layout",
    "playback_marker",
    "seek_fraction",
]
