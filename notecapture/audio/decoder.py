"""Decoding of audio bytes into float buffers."""

import io
import logging
from typing import Optional

import numpy as np
import soundfile as sf

from ..models.audio import AudioBuffer, RawFormat
from .errors import DecodeError

logger = logging.getLogger(__name__)


def decode_audio(data: bytes, raw_format: Optional[RawFormat] = None) -> AudioBuffer:
    """Decode audio bytes into a float32 buffer.

    Self-describing containers (WAV, FLAC, OGG, ...) are detected from their
    header. Headerless PCM such as the chunks delivered by the capture device
    needs ``raw_format`` to describe its layout.

    Args:
        data: Encoded or raw audio bytes
        raw_format: Layout of headerless PCM, None for container formats

    Returns:
        Decoded AudioBuffer

    Raises:
        DecodeError: If the bytes are corrupt or in an unsupported format
    """
    if not data:
        if raw_format is None:
            raise DecodeError("No audio data to decode")
        # Headerless PCM with nothing captured is an empty recording
        return AudioBuffer(sample_rate=raw_format.sample_rate,
                           samples=np.zeros((raw_format.channels, 0), dtype=np.float32))

    kwargs = {}
    if raw_format is not None:
        kwargs = {
            "format": "RAW",
            "samplerate": raw_format.sample_rate,
            "channels": raw_format.channels,
            "subtype": raw_format.subtype,
            "endian": "LITTLE",
        }

    try:
        frames, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True, **kwargs)
    except (RuntimeError, TypeError, ValueError) as e:
        logger.error(f"Failed to decode {len(data)} bytes of audio: {e}")
        raise DecodeError(f"Could not decode audio: {e}") from e

    if frames.shape[1] < 1:
        raise DecodeError("Decoded audio has no channels")

    buffer = AudioBuffer.from_interleaved(frames, sample_rate)
    logger.debug(f"Decoded {len(data)} bytes: {buffer.num_channels}ch, "
                 f"{buffer.sample_rate}Hz, {buffer.num_frames} frames")
    return buffer
