"""Microphone capture through PyAudio with per-chunk event delivery."""

import time
import logging
from typing import Optional, Callable

import pyaudio

from ..models.audio import DeviceRequest
from ..models.events import AudioEvent
from .errors import DeviceUnavailable, PermissionDenied


logger = logging.getLogger(__name__)


class AudioCapture:
    """Raw 16-bit PCM capture that pushes every chunk to a callback.

    PortAudio applies no echo cancellation, noise suppression or gain control,
    so chunks are the untouched device signal. The callback runs on the
    PortAudio thread.
    """

    def __init__(
        self,
        callback: Callable[[AudioEvent], None],
        request: Optional[DeviceRequest] = None,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            callback: Receives an AudioEvent per captured chunk
            request: Sample rate, channel count and buffer size to open the device with
            format: PyAudio sample format (16-bit signed int)
        """
        self.audio_event_callback = callback
        self.request = request or DeviceRequest()
        self.sample_rate = self.request.sample_rate
        self.channels = self.request.channels
        self.chunk_size = self.request.frames_per_buffer
        self.format = format

        self.is_recording = False
        self.total_chunks = 0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional["pyaudio.Stream"] = None

    def start_recording(self) -> None:
        """Open the input device and start delivering chunks.

        Raises:
            DeviceUnavailable: If no input device exists
            PermissionDenied: If the device exists but cannot be opened
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            self.__check_input_device()
            self.stream = self.__open_audio_stream()
        except Exception:
            self.__terminate()
            raise

        self.total_chunks = 0
        self.is_recording = True

    def stop_recording(self) -> None:
        """Stop recording and release the device. Safe to call repeatedly."""
        if self.stream is not None:
            logger.info("Stopping audio recording")
            try:
                if self.stream.is_active():
                    self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
            self.stream = None
        self.__terminate()

        if self.is_recording:
            self.is_recording = False
            logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def is_active(self) -> bool:
        """Whether the device is still delivering audio."""
        if self.stream is None:
            return False
        try:
            return self.stream.is_active()
        except OSError:
            return False

    def __check_input_device(self) -> None:
        if self.request.input_device_index is not None:
            try:
                info = self.pyaudio_instance.get_device_info_by_index(self.request.input_device_index)
            except (OSError, ValueError) as e:
                raise DeviceUnavailable(f"Input device {self.request.input_device_index} not found: {e}") from e
        else:
            try:
                info = self.pyaudio_instance.get_default_input_device_info()
            except OSError as e:
                raise DeviceUnavailable(f"No default input device: {e}") from e

        if info.get("maxInputChannels", 0) < 1:
            raise DeviceUnavailable(f"Device '{info.get('name')}' has no input channels")
        logger.debug(f"Using input device: {info.get('name')}")

    def __open_audio_stream(self) -> "pyaudio.Stream":
        try:
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.request.input_device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._on_audio,
            )
        except OSError as e:
            logger.error(f"Could not open microphone: {e}")
            raise PermissionDenied(f"Could not access microphone: {e}") from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, {self.channels} channels, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _on_audio(self, in_data, frame_count, time_info, status):
        if status & pyaudio.paInputOverflow:
            logger.debug("Input overflow reported by device")
        if in_data:
            self.total_chunks += 1
            self.__publish_audio_event(in_data)
        return (None, pyaudio.paContinue)

    def __publish_audio_event(self, audio_chunk: bytes) -> None:
        audio_event = AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
        )
        self.audio_event_callback(audio_event)

    def __terminate(self) -> None:
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_recording:
            self.stop_recording()
