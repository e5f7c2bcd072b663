"""Unit tests for waveform geometry, the playback marker and seeking."""

import math
import pytest
from unittest.mock import Mock
from rich.console import Console

from notecapture.models.playback import PlaybackState
from notecapture.ui.waveform_screen import WaveformScreen
from notecapture.ui.waveform_view import (
    Bar, WaveformView, format_time, layout, playback_marker, seek_fraction
)


@pytest.mark.unit
class TestLayout:
    """Test cases for bar layout."""

    def test_empty_series(self):
        """Test an empty series draws nothing."""
        assert layout([], 600, 150) == []

    def test_bars_span_width_bottom_anchored(self):
        """Test one bar per value, full width, anchored at the bottom."""
        bars = layout([0.5, 1.0, 0.0], 600, 150)

        assert bars == [
            Bar(x=0, y=75, width=200, height=75),
            Bar(x=200, y=0, width=200, height=150),
            Bar(x=400, y=150, width=200, height=0),
        ]

    def test_values_drawn_unscaled(self):
        """Test a quiet series is not stretched to full height."""
        bars = layout([0.1, 0.2], 100, 100)

        assert [bar.height for bar in bars] == pytest.approx([10, 20])


@pytest.mark.unit
class TestPlaybackMarker:
    """Test cases for marker placement and seeking."""

    def test_marker_position(self):
        """Test the marker sits at the playback fraction of the width."""
        assert playback_marker(30, 60, 600) == 300
        assert playback_marker(0, 60, 600) == 0
        assert playback_marker(60, 60, 600) == 600

    def test_marker_hidden_without_duration(self):
        """Test no marker is drawn until the duration is known."""
        assert playback_marker(5, 0, 600) is None
        assert playback_marker(0.0, math.nan, 600) is None

    def test_seek_fraction_clamped(self):
        """Test pointer positions outside the display clamp to the ends."""
        assert seek_fraction(300, 600) == 0.5
        assert seek_fraction(-10, 600) == 0.0
        assert seek_fraction(700, 600) == 1.0
        assert seek_fraction(10, 0) == 0.0

    def test_click_notifies_seek(self):
        """Test a click reports the target time to the playback controller."""
        on_seek = Mock()
        view = WaveformView([0.2, 0.4], width=600, on_seek=on_seek)

        target = view.click(150, duration=60)

        assert target == 15
        on_seek.assert_called_once_with(15)

    def test_render_frame(self):
        """Test a rendered frame combines bars and marker."""
        view = WaveformView([0.5, 1.0], width=600, height=150)

        frame = view.render(PlaybackState(current_time=10, duration=40))

        assert len(frame.bars) == 2
        assert frame.marker_x == 150
        assert view.render().marker_x is None

    def test_playback_state_clamps(self):
        """Test the playback position never passes the duration."""
        assert PlaybackState(current_time=90, duration=60).current_time == 60
        with pytest.raises(ValueError):
            PlaybackState(current_time=-1, duration=10)

    def test_format_time(self):
        """Test MM:SS formatting."""
        assert format_time(0) == "00:00"
        assert format_time(75.4) == "01:15"
        assert format_time(math.nan) == "00:00"


@pytest.mark.unit
class TestWaveformScreen:
    """Test cases for terminal rendering."""

    def render_text(self, screen, *args, **kwargs):
        console = Console(record=True, width=120, color_system=None)
        console.print(screen.build(*args, **kwargs))
        return console.export_text()

    def test_full_scale_column(self):
        """Test a full-scale series fills every row."""
        screen = WaveformScreen(columns=20, rows=2)

        text = self.render_text(screen, [1.0] * 20, title="Full")

        assert text.count("█") == 40
        assert "Full" in text
        assert "20 points" in text

    def test_empty_series(self):
        """Test an empty series renders a blank panel."""
        screen = WaveformScreen(columns=20, rows=2)

        text = self.render_text(screen, [])

        assert "█" not in text
        assert "0 points" in text

    def test_marker_and_times(self):
        """Test a known duration adds the marker and clock."""
        screen = WaveformScreen(columns=30, rows=2)

        text = self.render_text(screen, [0.0] * 30, PlaybackState(current_time=30, duration=60))

        # Both panel borders plus the marker column on each row
        assert sum(1 for line in text.splitlines() if line.count("│") == 3) == 2
        assert "00:30 / 01:00" in text
