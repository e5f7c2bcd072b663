"""Time-domain analysis node fed by capture chunks."""

import logging

import numpy as np

from ..models.events import AudioEvent
from .amplitude import to_byte_domain

logger = logging.getLogger(__name__)

ANALYSER_FFT_SIZE = 1024


class TimeDomainAnalyser:
    """Keeps the latest ``fft_size`` mono samples of a capture stream.

    Multi-channel input is down-mixed by averaging. Until enough audio has
    arrived the window is padded with silence.
    """

    def __init__(self, fft_size: int = ANALYSER_FFT_SIZE):
        self.fft_size = fft_size
        self._window = np.zeros(fft_size, dtype=np.float32)
        self.connected = True

    def push(self, event: AudioEvent) -> None:
        """Feed one 16-bit PCM chunk into the window."""
        if not self.connected or not event.audio_data:
            return

        pcm = np.frombuffer(event.audio_data, dtype="<i2")
        usable = len(pcm) - len(pcm) % event.channels
        frames = pcm[:usable].reshape(-1, event.channels).astype(np.float32) / 32768.0
        self.push_samples(frames.mean(axis=1))

    def push_samples(self, mono: np.ndarray) -> None:
        if not self.connected or len(mono) == 0:
            return
        if len(mono) >= self.fft_size:
            self._window = np.array(mono[-self.fft_size:], dtype=np.float32)
        else:
            self._window = np.concatenate((self._window[len(mono):], mono.astype(np.float32)))

    def get_byte_time_domain_data(self) -> np.ndarray:
        """Return the current window in the byte domain."""
        return to_byte_domain(self._window)

    def disconnect(self) -> None:
        """Stop accepting audio; the last window stays readable."""
        if self.connected:
            self.connected = False
            logger.debug("Analyser disconnected")
