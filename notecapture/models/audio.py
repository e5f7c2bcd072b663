"""Audio-related data models."""

from dataclasses import dataclass
from typing import Optional

import numpy as np


WAV_MIME_TYPE = "audio/wav"


@dataclass(frozen=True)
class AudioBuffer:
    """Decoded float PCM audio.

    Samples are held as a read-only float32 array shaped (channels, frames),
    so ``samples[0]`` is the first channel.
    """
    sample_rate: int
    samples: np.ndarray

    def __post_init__(self):
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(1, -1)
        if samples.ndim != 2 or samples.shape[0] < 1:
            raise ValueError(f"AudioBuffer needs at least one channel, got shape {samples.shape}")
        if samples.flags.writeable:
            samples = samples.copy()
            samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @classmethod
    def from_interleaved(cls, frames: np.ndarray, sample_rate: int) -> "AudioBuffer":
        """Build a buffer from a (frames, channels) array as returned by decoders."""
        frames = np.asarray(frames, dtype=np.float32)
        if frames.ndim == 1:
            frames = frames.reshape(-1, 1)
        return cls(sample_rate=sample_rate, samples=frames.T)

    @property
    def num_channels(self) -> int:
        return self.samples.shape[0]

    @property
    def num_frames(self) -> int:
        return self.samples.shape[1]

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.num_frames / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        """Return the samples of one channel."""
        return self.samples[index]


@dataclass(frozen=True)
class NormalizationResult:
    """Encoded WAV bytes paired with the gain that was applied."""
    data: bytes
    gain: float
    mime_type: str = WAV_MIME_TYPE


@dataclass(frozen=True)
class RawFormat:
    """Layout of headerless PCM bytes, such as chunks from the capture device."""
    sample_rate: int
    channels: int
    subtype: str = "PCM_16"


@dataclass(frozen=True)
class DeviceRequest:
    """Parameters requested from the capture device.

    Capture must be raw so the normalization gain is meaningful, which is why
    all processing flags default to off.
    """
    sample_rate: int = 48000
    channels: int = 2
    frames_per_buffer: int = 1024
    echo_cancellation: bool = False
    noise_suppression: bool = False
    auto_gain_control: bool = False
    input_device_index: Optional[int] = None

    def __post_init__(self):
        if self.echo_cancellation or self.noise_suppression or self.auto_gain_control:
            raise ValueError("Capture processing (echo cancellation, noise suppression, "
                             "auto gain control) is not supported; raw capture is required")

    @property
    def raw_format(self) -> RawFormat:
        return RawFormat(sample_rate=self.sample_rate, channels=self.channels)


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    channels: int
    chunk_size: int
    total_chunks: int
    total_bytes: int = 0
    amplitude_points: int = 0
