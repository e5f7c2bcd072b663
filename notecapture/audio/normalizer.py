"""Peak normalization of recorded audio followed by WAV encoding."""

import asyncio
import logging
from typing import Optional, Tuple

import numpy as np

from ..models.audio import AudioBuffer, NormalizationResult, RawFormat
from .decoder import decode_audio
from .wav_encoder import encode_wav

logger = logging.getLogger(__name__)

# Peaks below this are treated as silence and left at unity gain
SILENCE_THRESHOLD = 1e-8


def find_peak(buffer: AudioBuffer) -> float:
    """Return the largest absolute sample over every channel."""
    if buffer.samples.size == 0:
        return 0.0
    return float(np.max(np.abs(buffer.samples)))


def compute_gain(peak: float) -> float:
    """Gain that brings ``peak`` to 1.0, or 1.0 for (near) silence."""
    if peak < SILENCE_THRESHOLD:
        peak = 1.0
    return 1.0 / peak


def render_with_gain(buffer: AudioBuffer, gain: float) -> AudioBuffer:
    """Offline render pass: a new buffer of the same shape scaled by ``gain``."""
    rendered = (buffer.samples.astype(np.float64) * gain).astype(np.float32)
    return AudioBuffer(sample_rate=buffer.sample_rate, samples=rendered)


def normalize_buffer(buffer: AudioBuffer) -> Tuple[AudioBuffer, float]:
    """Scale a decoded buffer so its peak reaches 1.0.

    Returns:
        Tuple of (rendered buffer, gain applied)
    """
    peak = find_peak(buffer)
    gain = compute_gain(peak)
    if peak < SILENCE_THRESHOLD:
        logger.info("Silent recording, leaving gain at 1.0")
    else:
        logger.debug(f"Peak {peak:.6f}, applying gain {gain:.4f}")
    return render_with_gain(buffer, gain), gain


async def normalize_audio(raw_bytes: bytes, raw_format: Optional[RawFormat] = None) -> NormalizationResult:
    """Decode, peak-normalize and re-encode recorded audio as WAV.

    Decoding, rendering and encoding run in worker threads so the event loop
    keeps servicing live amplitude sampling meanwhile.

    Args:
        raw_bytes: Recorded audio, either a container format or headerless PCM
        raw_format: Layout of headerless PCM, None for container formats

    Returns:
        NormalizationResult with the WAV bytes and the gain applied

    Raises:
        DecodeError: If the recording cannot be decoded
    """
    buffer = await asyncio.to_thread(decode_audio, raw_bytes, raw_format)
    rendered, gain = await asyncio.to_thread(normalize_buffer, buffer)
    data = await asyncio.to_thread(encode_wav, rendered)

    logger.info(f"Normalized {buffer.duration_seconds:.2f}s of audio "
                f"({buffer.num_channels}ch, {buffer.sample_rate}Hz): gain={gain:.4f}, {len(data)} bytes")
    return NormalizationResult(data=data, gain=gain)
