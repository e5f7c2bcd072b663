"""Main application entry point for NoteCapture."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.live import Live

from .audio.errors import AudioError
from .config import NoteCaptureConfig
from .models.playback import PlaybackState
from .services.recording_service import RecordingService
from .services.waveform_service import WaveformService
from .storage.file_manager import FileManager
from .ui.waveform_screen import WaveformScreen
from .ui.waveform_view import format_time

logger = logging.getLogger(__name__)

LIVE_REFRESH_SECONDS = 0.1


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = NoteCaptureConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)

        self.console = Console()
        self.file_manager = FileManager(self.config.get_data_directory())
        self.screen = WaveformScreen(
            console=self.console,
            columns=int(self.config.get('waveform.columns', 60)),
            rows=int(self.config.get('waveform.rows', 6)),
        )

    async def record(self, duration: float) -> int:
        """Record for ``duration`` seconds while drawing the live waveform."""
        service = RecordingService(self.config, file_manager=self.file_manager)
        started = await service.start_recording()
        if not started["success"]:
            self.console.print(f"Could not start recording: {started['error']}", style="bold red")
            return 1

        try:
            with Live(self.screen.build([], title="Recording"), console=self.console,
                      refresh_per_second=int(1 / LIVE_REFRESH_SECONDS)) as live:
                loop = asyncio.get_running_loop()
                deadline = loop.time() + duration
                while loop.time() < deadline and service.is_recording:
                    stats = service.get_live_stats()
                    title = f"Recording {format_time(stats.duration_seconds)} ({stats.total_chunks} chunks)"
                    live.update(self.screen.build(service.get_live_amplitude(), title=title))
                    await asyncio.sleep(LIVE_REFRESH_SECONDS)
            stopped = await service.stop_recording()
        finally:
            await service.cleanup()

        if not stopped["success"]:
            self.console.print(f"Recording failed: {stopped['error']}", style="bold red")
            return 1

        playback = PlaybackState(current_time=0.0, duration=stopped["duration_seconds"])
        self.screen.show(stopped["amplitude"], playback, title=f"Session {stopped['session_id']}")
        self.console.print(f"Saved {stopped['locator']} (gain {stopped['gain']:.2f})", style="green")
        return 0

    async def show(self, target: str) -> int:
        """Draw the waveform of a stored session, or of any audio file."""
        info = None
        if not Path(target).is_file():
            info = self.file_manager.load_session_info(target)

        if info is not None:
            # Saved sessions keep the series sampled while recording
            amplitude = self.file_manager.load_amplitude(target)
            playback = PlaybackState(current_time=0.0, duration=info.duration_seconds)
            self.screen.show(amplitude, playback, title=f"Session {target}")
            return 0

        service = WaveformService(self.config)
        try:
            amplitude = await service.amplitude_for_file(target)
        except FileNotFoundError:
            self.console.print(f"No session or file named {target}", style="bold red")
            return 1
        except AudioError as e:
            self.console.print(f"Could not read {target}: {e}", style="bold red")
            return 1
        self.screen.show(amplitude, title=Path(target).name)
        return 0

    def list_sessions(self) -> int:
        for session_id in self.file_manager.list_sessions():
            info = self.file_manager.load_session_info(session_id)
            if info is None:
                continue
            self.console.print(f"{session_id}  {info.duration_seconds:6.1f}s  "
                               f"{info.channels}ch {info.sample_rate}Hz  gain {info.gain:.2f}")
        return 0

    def show_stats(self) -> int:
        stats = self.file_manager.get_storage_stats()
        self.console.print(f"Data directory: {stats['data_directory']}")
        self.console.print(f"Sessions: {stats['session_count']}  Recordings: {stats['audio_files']}  "
                           f"Size: {stats['total_size_mb']} MB")
        return 0

    def cleanup(self, max_age_days: int) -> int:
        removed = self.file_manager.cleanup_old_sessions(max_age_days)
        self.console.print(f"Removed {removed} sessions older than {max_age_days} days")
        return 0


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/notecapture.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("NoteCapture starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="NoteCapture - record normalized audio notes and view their waveforms"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for notecapture.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="NoteCapture v0.1.0"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    record = commands.add_parser("record", help="Record from the microphone")
    record.add_argument(
        "--duration",
        type=float,
        default=10,
        help="Recording duration in seconds (default: 10)"
    )

    show = commands.add_parser("show", help="Draw the waveform of a stored session or audio file")
    show.add_argument("target", type=str, help="Session id or audio file to read")

    commands.add_parser("list", help="List stored recordings")
    commands.add_parser("stats", help="Show storage usage")

    cleanup = commands.add_parser("cleanup", help="Delete old sessions")
    cleanup.add_argument(
        "--days",
        type=int,
        default=30,
        help="Delete sessions older than this many days (default: 30)"
    )
    return parser


def main() -> None:
    """Main entry point for NoteCapture."""
    args = build_parser().parse_args()

    try:
        server = Server(args.config, args.log_level)
        if args.command == "record":
            exit_code = asyncio.run(server.record(args.duration))
        elif args.command == "show":
            exit_code = asyncio.run(server.show(args.target))
        elif args.command == "stats":
            exit_code = server.show_stats()
        elif args.command == "cleanup":
            exit_code = server.cleanup(args.days)
        else:
            exit_code = server.list_sessions()
    except KeyboardInterrupt:
        print("\nGoodbye!")
        exit_code = 130
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
