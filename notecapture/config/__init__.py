"""Simple YAML configuration loader for NoteCapture."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.audio import DeviceRequest

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "notecapture.yaml"


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for notecapture.yaml in ``start`` (default: cwd) and its parents."""
    directory = (start or Path.cwd()).resolve()
    for candidate_dir in [directory, *directory.parents]:
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class NoteCaptureConfig:
    """NoteCapture configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for notecapture.yaml
                        in current directory and parent directories.
        """
        if config_path is None:
            found = find_config_file()
            if found is None:
                raise FileNotFoundError(f"Configuration file not found: no {CONFIG_FILENAME} "
                                        f"in {Path.cwd()} or its parents")
            self.config_file = found
        else:
            self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve data directory
        if 'storage' in config and 'data_directory' in config['storage']:
            data_dir = config['storage']['data_directory']
            if not os.path.isabs(data_dir):
                config['storage']['data_directory'] = str(config_dir / data_dir)

        # Resolve log file path
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

        Args:
            key_path: Dot-separated key path (e.g., 'waveform.chunk_size')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'audio.tick_hz')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_device_request(self) -> DeviceRequest:
        """Build the capture device request from the 'audio' section."""
        return DeviceRequest(
            sample_rate=int(self.get('audio.sample_rate', 48000)),
            channels=int(self.get('audio.channels', 2)),
            frames_per_buffer=int(self.get('audio.frames_per_buffer', 1024)),
            echo_cancellation=bool(self.get('audio.echo_cancellation', False)),
            noise_suppression=bool(self.get('audio.noise_suppression', False)),
            auto_gain_control=bool(self.get('audio.auto_gain_control', False)),
            input_device_index=self.get('audio.input_device_index'),
        )

    def get_max_local_extraction_bytes(self) -> int:
        """Files at or above this size are not decoded for waveform extraction."""
        return int(float(self.get('waveform.max_local_extraction_mb', 20)) * 1024 * 1024)

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
