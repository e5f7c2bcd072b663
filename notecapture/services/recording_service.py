"""Recording service: runs capture sessions and stores what they produce."""

import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from ..audio.errors import AudioError, DecodeError
from ..audio.recording_pub import RecordingPublisher
from ..audio.session import CaptureSession
from ..audio.wav_encoder import parse_wav_header
from ..config import NoteCaptureConfig
from ..models.audio import AudioStats, NormalizationResult
from ..models.events import RecordingEvent, SessionEvent
from ..models.session import CaptureState, SessionInfo
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)


class RecordingService:
    """Owns the single capture session of one recording surface."""

    def __init__(self,
                 config: NoteCaptureConfig,
                 file_manager: Optional[FileManager] = None,
                 publisher: Optional[RecordingPublisher] = None,
                 device_factory=None,
                 on_recorded: Optional[Callable[[str, List[float]], None]] = None,
                 on_record_failed: Optional[Callable[[], None]] = None):
        """Initialize recording service.

        Args:
            config: Application configuration
            file_manager: Storage for finished recordings
            publisher: Pub/sub publisher for recording outcomes
            device_factory: Capture device factory handed to each session
            on_recorded: Called with (locator, amplitude) once per finished recording
            on_record_failed: Called once when a recording could not start
        """
        self.config = config
        self.file_manager = file_manager or FileManager(config.get_data_directory())
        self.publisher = publisher or RecordingPublisher()
        self.device_factory = device_factory
        self.on_recorded = on_recorded
        self.on_record_failed = on_record_failed

        self.session: Optional[CaptureSession] = None
        self.last_locator: Optional[str] = None
        logger.info("RecordingService ready")

    @property
    def is_recording(self) -> bool:
        return self.session is not None and self.session.is_recording

    def _session_active(self) -> bool:
        return self.session is not None and self.session.state in (
            CaptureState.RECORDING, CaptureState.FINALIZING)

    async def start_recording(self) -> Dict[str, Any]:
        """Start a new capture session.

        Returns:
            Result dictionary with success status and details

        Raises:
            RuntimeError: If a session is already active on this service
        """
        if self._session_active():
            raise RuntimeError(f"Capture session {self.session.session_id} is already active")

        session_id = self.file_manager.create_session_directory()
        self.session = CaptureSession(
            on_recorded=partial(self._handle_recorded, session_id),
            on_record_failed=partial(self._handle_record_failed, session_id),
            on_finalize_failed=partial(self._handle_finalize_failed, session_id),
            request=self.config.get_device_request(),
            device_factory=self.device_factory,
            tick_hz=float(self.config.get('audio.tick_hz', 60)),
            session_id=session_id,
        )

        try:
            await self.session.start()
        except AudioError as e:
            logger.error(f"Error starting recording: {e}")
            self.session = None
            return {
                "success": False,
                "error": str(e),
                "session_id": session_id
            }

        logger.info(f"Started recording for session: {session_id}")
        return {
            "success": True,
            "session_id": session_id,
            "started_at": datetime.now().isoformat()
        }

    async def stop_recording(self) -> Dict[str, Any]:
        """Stop the active session and wait for its normalized result.

        A session that already finalized itself after losing its device is
        reported here as well.

        Returns:
            Result dictionary with session data
        """
        session = self.session
        if session is None or session.state is CaptureState.IDLE:
            return {
                "success": False,
                "error": "Not recording"
            }

        if session.state is CaptureState.FAILED:
            self.session = None
            return {
                "success": False,
                "error": str(session.error) if session.error else "Recording failed",
                "session_id": session.session_id
            }

        try:
            result = await session.stop()
        except DecodeError as e:
            logger.error(f"Error finalizing recording {session.session_id}: {e}")
            return {
                "success": False,
                "error": str(e),
                "session_id": session.session_id
            }
        finally:
            if session.state in (CaptureState.DONE, CaptureState.FAILED):
                self.session = None

        header = parse_wav_header(result.data)
        return {
            "success": True,
            "session_id": session.session_id,
            "stopped_at": datetime.now().isoformat(),
            "locator": self.last_locator,
            "gain": result.gain,
            "duration_seconds": header.data_bytes / header.byte_rate if header.byte_rate else 0.0,
            "total_chunks": len(session.chunks),
            "amplitude": list(session.amplitude)
        }

    async def record(self, duration_seconds: float) -> Dict[str, Any]:
        """Record for a fixed duration, then stop and store the result."""
        started = await self.start_recording()
        if not started["success"]:
            return started
        try:
            await asyncio.sleep(duration_seconds)
        finally:
            stopped = await self.stop_recording()
        return stopped

    def get_live_amplitude(self) -> List[float]:
        """Amplitude series of the session currently recording."""
        if self.session is None:
            return []
        return list(self.session.amplitude)

    def get_live_stats(self) -> Optional[AudioStats]:
        """Statistics of the session currently recording."""
        if self.session is None:
            return None
        return self.session.get_stats()

    def _handle_recorded(self, session_id: str, result: NormalizationResult, amplitude: List[float]) -> None:
        locator = self.file_manager.save_recording(session_id, result.data)
        self.file_manager.save_amplitude(session_id, amplitude)

        header = parse_wav_header(result.data)
        session = self.session
        self.file_manager.save_session_info(SessionInfo(
            session_id=session_id,
            start_time=session.start_time if session and session.start_time else datetime.now(),
            duration_seconds=header.data_bytes / header.byte_rate if header.byte_rate else 0.0,
            audio_file=locator,
            file_size_bytes=len(result.data),
            sample_rate=header.sample_rate,
            channels=header.channels,
            gain=result.gain,
            amplitude_points=len(amplitude),
        ))

        self.last_locator = locator
        self.publisher.publish_recorded(RecordingEvent(
            session_id=session_id,
            locator=locator,
            amplitude=amplitude,
            gain=result.gain,
        ))
        if self.on_recorded:
            self.on_recorded(locator, amplitude)

    def _handle_record_failed(self, session_id: str) -> None:
        self.publisher.publish_failed(SessionEvent(
            event_id=session_id,
            event_type="failed",
            metadata={"reason": "capture could not start"}
        ))
        if self.on_record_failed:
            self.on_record_failed()

    def _handle_finalize_failed(self, session_id: str, error: BaseException) -> None:
        self.publisher.publish_failed(SessionEvent(
            event_id=session_id,
            event_type="failed",
            metadata={"reason": str(error)}
        ))

    async def cleanup(self) -> None:
        """Release the device of a session that is still recording."""
        if self.session is not None:
            await self.session.release()
            self.session = None
        logger.info("RecordingService cleaned up")
