"""Terminal rendering of waveform frames with rich."""

import logging
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..models.playback import PlaybackState
from .waveform_view import WaveformFrame, WaveformView, format_time

logger = logging.getLogger(__name__)

BLOCKS = " ▁▂▃▄▅▆▇█"
STEPS_PER_ROW = len(BLOCKS) - 1


class WaveformScreen:
    """Draws an amplitude series as columns of Unicode blocks."""

    def __init__(self, console: Optional[Console] = None, columns: int = 60, rows: int = 6):
        self.console = console or Console()
        self.columns = columns
        self.rows = rows

    def build(self, series: Sequence[float], playback: Optional[PlaybackState] = None,
              title: str = "Waveform") -> Panel:
        """Build a panel for the series, with a marker column when playback has a duration."""
        view = WaveformView(series, width=self.columns, height=self.rows * STEPS_PER_ROW)
        frame = view.render(playback)
        heights = self._column_heights(frame)

        marker_col = None
        if frame.marker_x is not None:
            marker_col = min(int(frame.marker_x), self.columns - 1)

        text = Text()
        for row in range(self.rows):
            floor = (self.rows - 1 - row) * STEPS_PER_ROW
            for col, height in enumerate(heights):
                fill = min(max(height - floor, 0), STEPS_PER_ROW)
                if col == marker_col:
                    text.append(BLOCKS[fill] if fill else "│", style="bold red")
                else:
                    text.append(BLOCKS[fill], style="cyan")
            if row < self.rows - 1:
                text.append("\n")

        subtitle = f"{len(series)} points"
        if playback is not None:
            subtitle = f"{format_time(playback.current_time)} / {format_time(playback.duration)}"
        return Panel(text, title=title, subtitle=subtitle, border_style="blue", expand=False)

    def _column_heights(self, frame: WaveformFrame) -> List[int]:
        """Sample the bar under each column's centre, in block steps."""
        if not frame.bars:
            return [0] * self.columns
        bar_width = frame.bars[0].width
        heights = []
        for col in range(self.columns):
            index = min(int((col + 0.5) / bar_width), len(frame.bars) - 1)
            heights.append(int(round(frame.bars[index].height)))
        return heights

    def show(self, series: Sequence[float], playback: Optional[PlaybackState] = None,
             title: str = "Waveform") -> None:
        self.console.print(self.build(series, playback, title))
