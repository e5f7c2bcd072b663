"""NoteCapture: personal note capture with recorded, normalized audio."""

__version__ = "0.1.0"
