"""Integration tests for the complete recording workflow."""

import io
import asyncio
import pytest
import numpy as np
from pathlib import Path
from scipy.io import wavfile

from notecapture.audio.session import CaptureSession
from notecapture.audio.wav_encoder import WAV_HEADER_SIZE, parse_wav_header
from notecapture.config import NoteCaptureConfig
from notecapture.models.playback import PlaybackState
from notecapture.services.recording_service import RecordingService
from notecapture.services.waveform_service import WaveformService
from notecapture.ui.waveform_view import WaveformView


@pytest.mark.integration
class TestAudioRecordingIntegration:
    """Integration tests for capture, normalization, storage and display."""

    def test_one_second_sine(self, fake_device_factory, sine_pcm):
        """Test a one second 440Hz stereo tone comes out as a normalized WAV."""
        recorded = []
        chunk = sine_pcm(1.0, freq=440)
        assert len(chunk) == 192000

        async def scenario():
            session = CaptureSession(
                on_recorded=lambda result, amplitude: recorded.append((result, amplitude)),
                device_factory=fake_device_factory,
                tick_hz=200,
            )
            async with session:
                await session.start()
                fake_device_factory.device.deliver(chunk)
                await asyncio.sleep(0.05)
                return await session.stop()

        result = asyncio.run(scenario())

        header = parse_wav_header(result.data)
        assert header.sample_rate == 48000
        assert header.channels == 2
        assert header.bits_per_sample == 16
        assert header.data_bytes == 192000
        assert len(result.data) == WAV_HEADER_SIZE + 192000

        rate, pcm = wavfile.read(io.BytesIO(result.data))
        assert rate == 48000
        assert pcm.shape == (48000, 2)
        assert np.abs(pcm.astype(np.int32)).max() >= 32766

        assert len(recorded) == 1
        assert recorded[0][0] is result
        amplitude = recorded[0][1]
        assert amplitude
        assert all(0.0 <= value <= 1.0 for value in amplitude)
        assert max(amplitude) == pytest.approx(1 / np.sqrt(2), abs=0.02)

    def test_record_store_and_redraw(self, config_file, fake_device_factory, sine_pcm):
        """Test a stored recording can be redrawn from disk with a playback marker."""
        config = NoteCaptureConfig(config_file)
        service = RecordingService(config, device_factory=fake_device_factory)

        async def scenario():
            await service.start_recording()
            for _ in range(4):
                fake_device_factory.device.deliver(sine_pcm(0.25, amplitude=0.3))
                await asyncio.sleep(0.01)
            stopped = await service.stop_recording()
            series = await WaveformService(config).amplitude_for_file(stopped["locator"])
            return stopped, series

        stopped, series = asyncio.run(scenario())

        assert stopped["success"] is True
        assert stopped["duration_seconds"] == pytest.approx(1.0)
        assert Path(stopped["locator"]).stat().st_size == WAV_HEADER_SIZE + 192000

        # 48000 frames in chunks of 2048
        assert len(series) == 24
        assert all(0.0 <= value <= 1.0 for value in series)
        assert series[0] == pytest.approx(1 / np.sqrt(2), abs=0.02)

        seeks = []
        view = WaveformView(series, on_seek=seeks.append)
        frame = view.render(PlaybackState(current_time=0.5, duration=stopped["duration_seconds"]))
        assert len(frame.bars) == 24
        assert frame.marker_x == pytest.approx(300)
        view.click(600, stopped["duration_seconds"])
        assert seeks == [pytest.approx(1.0)]
