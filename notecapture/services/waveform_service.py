"""Waveform extraction for previously stored audio files."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from ..audio.amplitude import DEFAULT_CHUNK_SIZE, extract_amplitude
from ..config import NoteCaptureConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOCAL_EXTRACTION_BYTES = 20 * 1024 * 1024


class WaveformService:
    """Derives amplitude series from stored files, skipping files that are too large."""

    def __init__(self, config: Optional[NoteCaptureConfig] = None,
                 max_bytes: Optional[int] = None, chunk_size: Optional[int] = None):
        if max_bytes is None:
            max_bytes = config.get_max_local_extraction_bytes() if config else DEFAULT_MAX_LOCAL_EXTRACTION_BYTES
        if chunk_size is None:
            chunk_size = int(config.get('waveform.chunk_size', DEFAULT_CHUNK_SIZE)) if config else DEFAULT_CHUNK_SIZE
        self.max_bytes = max_bytes
        self.chunk_size = chunk_size

    def should_extract(self, size_bytes: int) -> bool:
        return size_bytes < self.max_bytes

    async def amplitude_for_bytes(self, data: bytes) -> List[float]:
        """Amplitude series of in-memory audio, empty when it is too large.

        Raises:
            DecodeError: If the audio cannot be decoded
        """
        if not self.should_extract(len(data)):
            logger.info(f"Skipping waveform extraction for {len(data)} bytes (limit {self.max_bytes})")
            return []
        return await extract_amplitude(data, self.chunk_size)

    async def amplitude_for_file(self, path: str) -> List[float]:
        """Amplitude series of a stored file, empty when it is too large.

        Raises:
            DecodeError: If the file cannot be decoded
        """
        file_path = Path(path)
        size = file_path.stat().st_size
        if not self.should_extract(size):
            logger.info(f"Skipping waveform extraction for {file_path.name} ({size} bytes, limit {self.max_bytes})")
            return []
        data = await asyncio.to_thread(file_path.read_bytes)
        return await extract_amplitude(data, self.chunk_size)
