"""16-bit PCM WAV encoding of float audio buffers."""

import struct
from dataclasses import dataclass

import numpy as np

from ..models.audio import AudioBuffer


WAV_HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
PCM_FORMAT_CODE = 1

# RIFF header, fmt chunk and data chunk header, all little-endian
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    """Fields of a canonical 44-byte PCM WAV header."""
    riff_size: int
    format_code: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_bytes: int


def quantize_pcm16(samples: np.ndarray) -> np.ndarray:
    """Clamp float samples to [-1, 1] and truncate them to int16.

    Negative values scale by 32768 and non-negative values by 32767, so both
    ends of the range map exactly onto the int16 limits.
    """
    clamped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    # astype truncates toward zero
    return scaled.astype("<i2")


def build_wav_header(channels: int, sample_rate: int, data_bytes: int) -> bytes:
    """Build the 44-byte RIFF/WAVE header for 16-bit linear PCM."""
    block_align = channels * BYTES_PER_SAMPLE
    return _HEADER_STRUCT.pack(
        b"RIFF",
        36 + data_bytes,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_CODE,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_bytes,
    )


def encode_wav(buffer: AudioBuffer) -> bytes:
    """Encode an audio buffer as a 16-bit PCM WAV byte string.

    Args:
        buffer: Decoded audio with at least one channel

    Returns:
        Header followed by the interleaved (frame-major) PCM payload
    """
    if buffer.num_channels < 1:
        raise ValueError("Cannot encode a buffer without channels")

    # (channels, frames) -> (frames, channels) -> frame-major interleaving
    interleaved = buffer.samples.T.reshape(-1)
    payload = quantize_pcm16(interleaved).tobytes()

    header = build_wav_header(buffer.num_channels, buffer.sample_rate, len(payload))
    return header + payload


def parse_wav_header(data: bytes) -> WavHeader:
    """Read back the canonical header written by :func:`encode_wav`."""
    if len(data) < WAV_HEADER_SIZE:
        raise ValueError(f"WAV data too short: {len(data)} bytes")

    (riff, riff_size, wave, fmt, fmt_size, format_code, channels, sample_rate,
     byte_rate, block_align, bits_per_sample, data_tag, data_bytes) = _HEADER_STRUCT.unpack_from(data)

    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data" or fmt_size != 16:
        raise ValueError("Not a canonical PCM WAV header")

    return WavHeader(
        riff_size=riff_size,
        format_code=format_code,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_bytes=data_bytes,
    )
