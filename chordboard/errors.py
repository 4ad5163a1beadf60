from __future__ import annotations


class ChordboardError(Exception):
    """Base error for the chordboard package."""


class InvalidConfigError(ChordboardError):
    """Raised when performance settings cannot be parsed or validated."""


class InvalidKeyMapError(ChordboardError):
    """Raised when a key map file is unreadable or describes an invalid effect."""


class PlaybackError(ChordboardError):
    """Raised when no audio backend is available for live playback."""


class CaptureError(ChordboardError):
    """Raised when keyboard capture cannot be started."""
