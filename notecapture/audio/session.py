"""Capture session: microphone recording, live amplitude and normalization.

A session moves through IDLE -> RECORDING -> FINALIZING -> DONE, or to FAILED
when the device cannot be opened or the recording cannot be decoded. The
device connection, analyser and ticker it holds while recording are bundled
in :class:`SessionResources` and released together on every exit path.
"""

import asyncio
import logging
import uuid
from contextlib import AsyncExitStack
from datetime import datetime
from typing import Callable, List, Optional

from ..models.audio import AudioStats, DeviceRequest, NormalizationResult
from ..models.events import AudioEvent
from ..models.session import CaptureState
from .amplitude import LiveWindow
from .analyser import ANALYSER_FFT_SIZE, TimeDomainAnalyser
from .normalizer import normalize_audio
from .ticker import DEFAULT_TICK_HZ, Ticker

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[AudioEvent], None]
RecordedCallback = Callable[[NormalizationResult, List[float]], None]
FailedCallback = Callable[[], None]
FinalizeFailedCallback = Callable[[BaseException], None]


def default_device_factory(callback: ChunkCallback, request: DeviceRequest):
    """Create the PyAudio-backed capture device."""
    from .capture import AudioCapture

    return AudioCapture(callback=callback, request=request)


class SessionResources:
    """Device connection, analyser and ticker owned by one recording."""

    def __init__(self):
        self.device = None
        self.analyser: Optional[TimeDomainAnalyser] = None
        self.ticker: Optional[Ticker] = None
        self._stack = AsyncExitStack()
        self.released = False

    async def acquire(self, device_factory, request: DeviceRequest,
                      on_chunk: ChunkCallback, fft_size: int) -> None:
        """Connect the analyser and open the device.

        Raises whatever the device raises when it cannot be opened; anything
        acquired up to that point is still released by :meth:`release`.
        """
        self.analyser = TimeDomainAnalyser(fft_size)
        self._stack.callback(self.analyser.disconnect)

        self.device = device_factory(on_chunk, request)
        # Opening runs to completion even if the caller is cancelled meanwhile,
        # so the close callback always sees a settled device.
        opening = asyncio.ensure_future(asyncio.to_thread(self.device.start_recording))
        self._stack.push_async_callback(self._close_device, opening)
        await asyncio.shield(opening)

    def start_ticker(self, on_tick: Callable[[], None], tick_hz: float) -> None:
        self.ticker = Ticker(on_tick, tick_hz, name="live-amplitude")
        self._stack.push_async_callback(self.ticker.stop)
        self.ticker.start()

    async def _close_device(self, opening: asyncio.Future) -> None:
        await asyncio.wait({opening})
        if opening.cancelled() or opening.exception() is not None:
            return
        await asyncio.to_thread(self.device.stop_recording)

    async def release(self) -> None:
        """Stop the ticker, close the device and disconnect the analyser."""
        if self.released:
            return
        self.released = True
        await self._stack.aclose()
        logger.debug("Session resources released")


class CaptureSession:
    """One recording from a single capture surface.

    Chunks from the device and live amplitude samples are only ever appended
    on the event loop thread, in delivery and tick order respectively.
    """

    def __init__(
        self,
        on_recorded: Optional[RecordedCallback] = None,
        on_record_failed: Optional[FailedCallback] = None,
        on_finalize_failed: Optional[FinalizeFailedCallback] = None,
        request: Optional[DeviceRequest] = None,
        device_factory=None,
        tick_hz: float = DEFAULT_TICK_HZ,
        fft_size: int = ANALYSER_FFT_SIZE,
        session_id: Optional[str] = None,
    ):
        """Initialize a capture session.

        Args:
            on_recorded: Called once with the normalized result and amplitude series
            on_record_failed: Called once if the device could not be started
            on_finalize_failed: Called once with the error if the recording could not be normalized
            request: Capture device parameters
            device_factory: Builds the capture device from (chunk callback, request)
            tick_hz: Live amplitude sampling rate
            fft_size: Live analysis window in samples
            session_id: Identifier used in logs and stored files
        """
        self.on_recorded = on_recorded
        self.on_record_failed = on_record_failed
        self.on_finalize_failed = on_finalize_failed
        self.request = request or DeviceRequest()
        self.device_factory = device_factory or default_device_factory
        self.tick_hz = tick_hz
        self.fft_size = fft_size
        self.session_id = session_id or uuid.uuid4().hex[:8]

        self.state = CaptureState.IDLE
        self.chunks: List[bytes] = []
        self.amplitude: List[float] = []
        self.result: Optional[NormalizationResult] = None
        self.error: Optional[BaseException] = None
        self.start_time: Optional[datetime] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._resources: Optional[SessionResources] = None
        self._live: Optional[LiveWindow] = None
        self._accepting = False
        self._stop_task: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "CaptureSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    @property
    def is_recording(self) -> bool:
        return self.state is CaptureState.RECORDING

    async def start(self) -> None:
        """Open the capture device and begin recording.

        Raises:
            RuntimeError: If the session was already started
            DeviceUnavailable: If no capture device exists
            PermissionDenied: If microphone access is refused
        """
        if self.state is not CaptureState.IDLE:
            raise RuntimeError(f"Session {self.session_id} already started (state: {self.state.value})")

        logger.info(f"Starting capture session {self.session_id}")
        self._loop = asyncio.get_running_loop()
        self.chunks = []
        self.amplitude = []
        self._resources = SessionResources()
        self._accepting = True

        try:
            await self._resources.acquire(self.device_factory, self.request,
                                          self._on_device_chunk, self.fft_size)
        except BaseException as e:
            self._accepting = False
            await self._resources.release()
            self.state = CaptureState.FAILED
            self.error = e
            if isinstance(e, Exception):
                logger.error(f"Could not start capture session {self.session_id}: {e}")
                if self.on_record_failed:
                    self.on_record_failed()
            raise

        self._live = LiveWindow(self._resources.analyser)
        self.start_time = datetime.now()
        self.state = CaptureState.RECORDING
        self._resources.start_ticker(self._on_tick, self.tick_hz)

    def _on_device_chunk(self, event: AudioEvent) -> None:
        # Runs on the device thread; hand the chunk to the loop thread.
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._append_chunk, event)

    def _append_chunk(self, event: AudioEvent) -> None:
        if not self._accepting:
            logger.debug(f"Ignoring chunk {event.chunk_id} delivered after recording ended")
            return
        self.chunks.append(event.audio_data)
        self._resources.analyser.push(event)

    def _on_tick(self) -> None:
        if self.state is not CaptureState.RECORDING:
            return
        self.amplitude.append(self._live.sample())

        device = self._resources.device
        if self._stop_task is None and not device.is_active():
            logger.warning(f"Capture device stopped delivering audio, finalizing session {self.session_id}")
            task = self._loop.create_task(self.stop())
            task.add_done_callback(self._log_auto_stop)

    def _log_auto_stop(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Session {self.session_id} failed after device loss: {task.exception()}")

    async def stop(self) -> NormalizationResult:
        """Stop capture and normalize everything recorded so far.

        Once started, finalization runs to completion even if the caller is
        cancelled; a later call returns the same result.

        Raises:
            RuntimeError: If the session never started recording
            DecodeError: If the recorded audio cannot be decoded
        """
        if self._stop_task is None:
            if self.state is not CaptureState.RECORDING:
                raise RuntimeError(f"Session {self.session_id} is not recording (state: {self.state.value})")
            self._stop_task = asyncio.ensure_future(self._finish())
        return await asyncio.shield(self._stop_task)

    async def _finish(self) -> NormalizationResult:
        logger.info(f"Stopping capture session {self.session_id}")
        await self._resources.release()
        # Chunks handed over while the device was closing are queued ahead of us
        await asyncio.sleep(0)
        self._accepting = False
        self.state = CaptureState.FINALIZING

        raw = b"".join(self.chunks)
        logger.info(f"Session {self.session_id}: {len(self.chunks)} chunks, {len(raw)} bytes, "
                    f"{len(self.amplitude)} amplitude points")
        try:
            result = await normalize_audio(raw, self.request.raw_format)
        except Exception as e:
            self.state = CaptureState.FAILED
            self.error = e
            logger.error(f"Normalization failed for session {self.session_id}: {e}")
            if self.on_finalize_failed:
                self.on_finalize_failed(e)
            raise

        self.result = result
        self.amplitude = [value * result.gain for value in self.amplitude]
        self.state = CaptureState.DONE
        if self.on_recorded:
            self.on_recorded(result, list(self.amplitude))
        return result

    async def release(self) -> None:
        """Release device handles of a session that is being abandoned.

        A session already stopping keeps finalizing; one still recording is
        marked FAILED and keeps nothing.
        """
        if self._resources is None or self._stop_task is not None:
            return
        self._accepting = False
        await self._resources.release()
        if self.state is CaptureState.RECORDING:
            logger.warning(f"Session {self.session_id} abandoned while recording")
            self.state = CaptureState.FAILED

    def get_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()
        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.request.sample_rate,
            channels=self.request.channels,
            chunk_size=self.request.frames_per_buffer,
            total_chunks=len(self.chunks),
            total_bytes=sum(len(chunk) for chunk in self.chunks),
            amplitude_points=len(self.amplitude),
        )
