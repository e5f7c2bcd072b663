"""File management for recordings, amplitude series and session metadata."""

import json
import logging
import shutil
import random
import string
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional, List
from dataclasses import asdict

from ..models.session import SessionInfo


logger = logging.getLogger(__name__)

RECORDING_FILENAME = "recording.wav"
AMPLITUDE_FILENAME = "amplitude.json"
SESSION_INFO_FILENAME = "session_info.json"


class FileManager:
    """Manages file storage and organization for recordings and metadata."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.sessions_dir = self.data_dir / "sessions"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.sessions_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def create_session_directory(self) -> str:
        """Create new session directory with timestamp and random suffix.

        Returns:
            Session ID (timestamp-based with random suffix)
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        session_id = f"{timestamp}_{random_suffix}"
        session_path = self.sessions_dir / session_id
        session_path.mkdir(exist_ok=True)

        logger.info(f"Created session directory: {session_path}")
        return session_id

    def get_session_path(self, session_id: str) -> Path:
        """Get full path to session directory."""
        return self.sessions_dir / session_id

    def save_recording(self, session_id: str, wav_data: bytes) -> str:
        """Save normalized WAV bytes and return the path they can be read back from.

        Args:
            session_id: Session identifier
            wav_data: Encoded WAV bytes

        Returns:
            Full path to the saved recording
        """
        session_path = self.get_session_path(session_id)
        session_path.mkdir(parents=True, exist_ok=True)
        audio_file_path = session_path / RECORDING_FILENAME

        audio_file_path.write_bytes(wav_data)
        logger.info(f"Recording saved: {audio_file_path} ({len(wav_data)} bytes)")
        return str(audio_file_path)

    def save_amplitude(self, session_id: str, amplitude: List[float]) -> str:
        """Save an amplitude series next to its recording."""
        session_path = self.get_session_path(session_id)
        session_path.mkdir(parents=True, exist_ok=True)
        amplitude_file = session_path / AMPLITUDE_FILENAME

        with open(amplitude_file, 'w') as f:
            json.dump([float(value) for value in amplitude], f)

        logger.debug(f"Amplitude series saved: {amplitude_file} ({len(amplitude)} points)")
        return str(amplitude_file)

    def load_amplitude(self, session_id: str) -> List[float]:
        """Load a stored amplitude series; an unknown session yields an empty series."""
        amplitude_file = self.get_session_path(session_id) / AMPLITUDE_FILENAME
        if not amplitude_file.exists():
            logger.warning(f"Amplitude file not found: {amplitude_file}")
            return []

        with open(amplitude_file, 'r') as f:
            return [float(value) for value in json.load(f)]

    def save_session_info(self, session_info: SessionInfo) -> str:
        """Save session information to JSON file.

        Args:
            session_info: Session information to save

        Returns:
            Path to saved session info file
        """
        session_path = self.get_session_path(session_info.session_id)
        session_path.mkdir(parents=True, exist_ok=True)

        info_file = session_path / SESSION_INFO_FILENAME

        # Convert datetime to string for JSON serialization
        info_dict = asdict(session_info)
        info_dict['start_time'] = session_info.start_time.isoformat()

        with open(info_file, 'w') as f:
            json.dump(info_dict, f, indent=2)

        logger.info(f"Session info saved: {info_file}")
        return str(info_file)

    def load_session_info(self, session_id: str) -> Optional[SessionInfo]:
        """Load session information from JSON file.

        Args:
            session_id: Session identifier

        Returns:
            SessionInfo object or None if not found
        """
        info_file = self.get_session_path(session_id) / SESSION_INFO_FILENAME

        if not info_file.exists():
            logger.warning(f"Session info file not found: {info_file}")
            return None

        try:
            with open(info_file, 'r') as f:
                data = json.load(f)

            # Convert ISO string back to datetime
            data['start_time'] = datetime.fromisoformat(data['start_time'])

            return SessionInfo(**data)

        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading session info {info_file}: {e}")
            return None

    def list_sessions(self) -> List[str]:
        """List all available session IDs.

        Returns:
            List of session IDs sorted by creation time
        """
        sessions = []
        for path in self.sessions_dir.iterdir():
            if path.is_dir() and (path / SESSION_INFO_FILENAME).exists():
                sessions.append(path.name)

        sessions.sort()  # Session IDs start with a timestamp
        logger.debug(f"Found {len(sessions)} sessions")
        return sessions

    def cleanup_old_sessions(self, max_age_days: int = 30) -> int:
        """Clean up old session files.

        Args:
            max_age_days: Maximum age in days before cleanup

        Returns:
            Number of sessions cleaned up
        """
        cutoff_time = datetime.now().timestamp() - (max_age_days * 24 * 60 * 60)
        cleaned_count = 0

        for session_path in self.sessions_dir.iterdir():
            if session_path.is_dir() and session_path.stat().st_mtime < cutoff_time:
                shutil.rmtree(session_path)
                cleaned_count += 1
                logger.info(f"Cleaned up old session: {session_path}")

        logger.info(f"Cleaned up {cleaned_count} old sessions")
        return cleaned_count

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        total_size = 0
        session_count = 0
        audio_files = 0

        for session_path in self.sessions_dir.iterdir():
            if session_path.is_dir():
                session_count += 1
                for file_path in session_path.rglob("*"):
                    if file_path.is_file():
                        total_size += file_path.stat().st_size
                        if file_path.suffix == '.wav':
                            audio_files += 1

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "session_count": session_count,
            "audio_files": audio_files,
            "data_directory": str(self.data_dir)
        }
