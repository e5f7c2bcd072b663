"""Audio capture, normalization, encoding and amplitude extraction."""

from .amplitude import AmplitudeSource, DecodedChunks, LiveWindow, extract, extract_amplitude, sample_window
from .decoder import decode_audio
from .errors import AudioError, DecodeError, DeviceUnavailable, PermissionDenied
from .normalizer import normalize_audio, normalize_buffer
from .session import CaptureSession
from .wav_encoder import encode_wav, parse_wav_header

__all__ = [
    'AmplitudeSource',
    'DecodedChunks',
    'LiveWindow',
    'extract',
    'extract_amplitude',
    'sample_window',
    'decode_audio',
    'AudioError',
    'DecodeError',
    'DeviceUnavailable',
    'PermissionDenied',
    'normalize_audio',
    'normalize_buffer',
    'CaptureSession',
    'encode_wav',
    'parse_wav_header',
]
