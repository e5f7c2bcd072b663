"""Pytest configuration and fixtures for NoteCapture tests."""

import io
import time
import pytest
import tempfile
import logging
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np
import soundfile as sf
import yaml

from notecapture.models.audio import AudioBuffer, DeviceRequest
from notecapture.models.events import AudioEvent


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware")
    config.addinivalue_line("markers", "integration: tests spanning several components")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


def make_sine(duration_seconds=1.0, freq=440.0, sample_rate=48000, channels=2, amplitude=0.5):
    """Float sine wave shaped (frames, channels)."""
    frames = int(duration_seconds * sample_rate)
    t = np.arange(frames) / sample_rate
    wave_data = amplitude * np.sin(2 * np.pi * freq * t)
    return np.repeat(wave_data[:, None], channels, axis=1).astype(np.float32)


def to_pcm16(frames: np.ndarray) -> bytes:
    """Interleave (frames, channels) floats as 16-bit little-endian PCM."""
    return (np.clip(frames, -1, 1) * 32767).astype("<i2").tobytes()


@pytest.fixture
def sine_pcm():
    """Raw 48kHz stereo 16-bit PCM of a sine wave, as a capture device delivers it."""
    def generate(duration_seconds=1.0, freq=440.0, amplitude=0.5):
        return to_pcm16(make_sine(duration_seconds, freq, amplitude=amplitude))
    return generate


@pytest.fixture
def float_wav_bytes():
    """Encode (frames, channels) float samples as a 32-bit float WAV file in memory."""
    def encode(frames, sample_rate=48000):
        buf = io.BytesIO()
        sf.write(buf, frames, sample_rate, format="WAV", subtype="FLOAT")
        return buf.getvalue()
    return encode


@pytest.fixture
def stereo_buffer():
    """A short stereo buffer with distinct channels."""
    left = np.array([0.5, -0.5, 0.25, 0.0], dtype=np.float32)
    right = np.array([1.0, -1.0, -0.25, 0.75], dtype=np.float32)
    return AudioBuffer(sample_rate=8000, samples=np.stack([left, right]))


class FakeCaptureDevice:
    """Capture device stand-in whose chunks are delivered by the test."""

    def __init__(self, callback, request: DeviceRequest, fail_with=None):
        self.callback = callback
        self.request = request
        self.fail_with = fail_with
        self.started = False
        self.stopped = False
        self.active = False
        self.sequence = 0

    def start_recording(self):
        if self.fail_with is not None:
            raise self.fail_with
        self.started = True
        self.active = True

    def stop_recording(self):
        self.stopped = True
        self.active = False

    def is_active(self):
        return self.active

    def deliver(self, audio_data: bytes):
        self.sequence += 1
        self.callback(AudioEvent(
            chunk_id=f"chunk_{self.sequence}",
            audio_data=audio_data,
            timestamp=time.time(),
            sequence_number=self.sequence,
            sample_rate=self.request.sample_rate,
            channels=self.request.channels,
        ))


class FakeDeviceFactory:
    """Device factory that remembers every device it built."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.devices = []

    def __call__(self, callback, request):
        device = FakeCaptureDevice(callback, request, fail_with=self.fail_with)
        self.devices.append(device)
        return device

    @property
    def device(self):
        return self.devices[-1]


@pytest.fixture
def fake_device_factory():
    return FakeDeviceFactory()


@pytest.fixture
def make_device_factory():
    """Build device factories, optionally failing to open."""
    return FakeDeviceFactory


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.is_active.return_value = True
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            "index": 0, "name": "Mock Microphone", "maxInputChannels": 2
        }

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def config_file(temp_data_dir):
    """Write a test configuration file and return its path."""
    config = {
        "audio": {
            "sample_rate": 48000,
            "channels": 2,
            "frames_per_buffer": 1024,
            "tick_hz": 200,
        },
        "waveform": {
            "chunk_size": 2048,
            "max_local_extraction_mb": 20,
        },
        "storage": {
            "data_directory": "data",
        },
        "logging": {
            "level": "DEBUG",
            "file_path": "data/logs/test.log",
            "console_output": False,
        },
    }
    path = Path(temp_data_dir) / "notecapture.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(config, f)
    return str(path)
