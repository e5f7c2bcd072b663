"""Error types raised by the audio pipeline."""


class AudioError(Exception):
    """Base class for audio capture and processing failures."""


class DeviceUnavailable(AudioError):
    """No capture device is present in the host environment."""


class PermissionDenied(AudioError):
    """The user or operating system refused access to the microphone."""


class DecodeError(AudioError):
    """Audio bytes could not be decoded (corrupt or unsupported input)."""
