"""RMS amplitude extraction for live capture and stored audio.

Both modes run samples through the same float -> byte -> float quantization
an analyser applies to its time-domain data, so a series sampled live and
one extracted later from the stored file are numerically comparable.
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

import numpy as np

from ..models.audio import AudioBuffer, RawFormat
from .decoder import decode_audio

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2048


def to_byte_domain(samples: np.ndarray) -> np.ndarray:
    """Map float samples in [-1, 1] onto unsigned bytes centred on 128."""
    scaled = np.round(np.asarray(samples, dtype=np.float64) * 128.0 + 128.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def sample_window(byte_window: np.ndarray) -> float:
    """RMS of one window of byte-domain samples."""
    window = np.asarray(byte_window)
    if window.size == 0:
        return 0.0
    values = (window.astype(np.float64) - 128.0) / 128.0
    return float(np.sqrt(np.mean(values * values)))


class AmplitudeSource(ABC):
    """A producer of byte-domain windows whose RMS values form a series."""

    @abstractmethod
    def windows(self) -> Iterator[np.ndarray]:
        """Yield byte-domain windows in chronological order."""

    def series(self) -> List[float]:
        return [sample_window(window) for window in self.windows()]


class LiveWindow(AmplitudeSource):
    """The most recent fixed-size window of an active capture analyser."""

    def __init__(self, analyser):
        self.analyser = analyser

    def windows(self) -> Iterator[np.ndarray]:
        yield self.analyser.get_byte_time_domain_data()

    def sample(self) -> float:
        """Take one live RMS reading."""
        return sample_window(self.analyser.get_byte_time_domain_data())


class DecodedChunks(AmplitudeSource):
    """Consecutive non-overlapping windows over the first channel of a buffer.

    The final window may be shorter than ``chunk_size``; its RMS is taken over
    the samples it actually holds rather than a zero-padded window.
    """

    def __init__(self, buffer: AudioBuffer, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.buffer = buffer
        self.chunk_size = chunk_size

    def __len__(self) -> int:
        return math.ceil(self.buffer.num_frames / self.chunk_size)

    def windows(self) -> Iterator[np.ndarray]:
        channel = self.buffer.channel(0)
        for start in range(0, len(channel), self.chunk_size):
            yield to_byte_domain(channel[start:start + self.chunk_size])


def extract(buffer: AudioBuffer, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[float]:
    """Compute the amplitude series of a decoded buffer."""
    return DecodedChunks(buffer, chunk_size).series()


async def extract_amplitude(file_bytes: bytes,
                            chunk_size: int = DEFAULT_CHUNK_SIZE,
                            raw_format: Optional[RawFormat] = None) -> List[float]:
    """Decode stored audio and compute its amplitude series.

    Raises:
        DecodeError: If the file cannot be decoded
    """
    buffer = await asyncio.to_thread(decode_audio, file_bytes, raw_format)
    series = await asyncio.to_thread(extract, buffer, chunk_size)
    logger.debug(f"Extracted {len(series)} amplitude points from {len(file_bytes)} bytes")
    return series
