"""Unit tests for RMS amplitude extraction."""

import asyncio
import math
import pytest
import numpy as np

from notecapture.audio.amplitude import (
    DecodedChunks, LiveWindow, extract, extract_amplitude, sample_window, to_byte_domain
)
from notecapture.audio.analyser import TimeDomainAnalyser
from notecapture.audio.errors import DecodeError
from notecapture.audio.wav_encoder import encode_wav
from notecapture.models.audio import AudioBuffer, RawFormat


@pytest.mark.unit
class TestByteDomain:
    """Test cases for the byte-domain quantization."""

    def test_mapping_and_clamping(self):
        """Test floats map onto bytes centred on 128 and saturate."""
        values = to_byte_domain(np.array([-2.0, -1.0, 0.0, 0.5, 1.0, 2.0]))

        assert values.dtype == np.uint8
        assert values.tolist() == [0, 0, 128, 192, 255, 255]

    def test_silence_has_zero_rms(self):
        """Test a window at the centre value has no amplitude."""
        assert sample_window(np.full(1024, 128, dtype=np.uint8)) == 0.0

    def test_empty_window(self):
        """Test an empty window yields zero."""
        assert sample_window(np.array([], dtype=np.uint8)) == 0.0

    def test_rms_formula(self):
        """Test RMS over the recentred byte values."""
        window = np.array([0, 255], dtype=np.uint8)
        expected = math.sqrt(((-1.0) ** 2 + (127 / 128) ** 2) / 2)

        assert sample_window(window) == pytest.approx(expected)

    def test_full_scale_square_wave(self):
        """Test the series stays within [0, 1]."""
        window = to_byte_domain(np.tile([1.0, -1.0], 512))

        value = sample_window(window)
        assert 0.0 <= value <= 1.0
        assert value == pytest.approx(1.0, abs=0.01)


@pytest.mark.unit
class TestDecodedChunks:
    """Test cases for chunked extraction from decoded audio."""

    def test_partial_last_chunk(self):
        """Test 5000 samples in chunks of 2048 give three values, the last over 904 samples."""
        samples = np.concatenate([np.zeros(4096), np.full(904, 0.5)])
        buffer = AudioBuffer(sample_rate=48000, samples=samples)

        source = DecodedChunks(buffer, 2048)
        series = source.series()

        assert len(source) == 3
        assert len(series) == 3
        assert series[0] == 0.0
        assert series[1] == 0.0
        # Not zero-padded to a full chunk
        assert series[2] == pytest.approx(0.5)

    def test_uses_first_channel_only(self, stereo_buffer):
        """Test only channel 0 contributes."""
        silent_left = AudioBuffer(sample_rate=8000,
                                  samples=np.stack([np.zeros(4), stereo_buffer.channel(1)]))

        assert extract(silent_left, 4) == [0.0]

    def test_empty_buffer(self):
        """Test a buffer without frames has an empty series."""
        buffer = AudioBuffer(sample_rate=48000, samples=np.zeros((2, 0)))

        assert extract(buffer) == []
        assert len(DecodedChunks(buffer)) == 0

    def test_invalid_chunk_size(self, stereo_buffer):
        """Test a non-positive chunk size is rejected."""
        with pytest.raises(ValueError):
            DecodedChunks(stereo_buffer, 0)

    def test_live_and_offline_agree(self):
        """Test the live and offline paths give the same value for the same samples."""
        rng = np.random.default_rng(3)
        samples = rng.uniform(-0.8, 0.8, size=1024).astype(np.float32)
        analyser = TimeDomainAnalyser(1024)
        analyser.push_samples(samples)

        live = LiveWindow(analyser)
        offline = extract(AudioBuffer(sample_rate=48000, samples=samples), 1024)

        assert live.sample() == offline[0]
        assert live.series() == offline


@pytest.mark.unit
class TestExtractAmplitude:
    """Test cases for extraction from stored bytes."""

    def test_from_wav_file(self):
        """Test a stored WAV gives nearly the series of the buffer it was encoded from."""
        t = np.arange(10000) / 48000
        buffer = AudioBuffer(sample_rate=48000, samples=0.6 * np.sin(2 * np.pi * 220 * t))

        series = asyncio.run(extract_amplitude(encode_wav(buffer), 2048))

        assert len(series) == 5
        assert series == pytest.approx(extract(buffer, 2048), abs=0.01)

    def test_from_raw_pcm(self, sine_pcm):
        """Test headerless PCM with its layout."""
        raw = sine_pcm(0.1)

        series = asyncio.run(extract_amplitude(raw, 1024, RawFormat(sample_rate=48000, channels=2)))

        assert len(series) == math.ceil(4800 / 1024)
        assert all(0.0 <= value <= 1.0 for value in series)
        assert series[0] == pytest.approx(0.5 / math.sqrt(2), abs=0.02)

    def test_undecodable(self):
        """Test corrupt input raises DecodeError."""
        with pytest.raises(DecodeError):
            asyncio.run(extract_amplitude(b"\x00\x01garbage" * 50))
