"""
Error taxonomy for the voice translation client.

Every failure in the record/translate/synthesize/play cycle maps onto one
of these types. The pipeline controller catches them, logs them and returns
to idle.
"""

from typing import Optional


class DualingoError(Exception):
    """Base class for all client errors."""


class DeviceError(DualingoError):
    """Microphone/speaker setup failed or the recording file could not be used."""


class PlaybackError(DualingoError):
    """Synthesized audio could not be decoded or played."""


class TransportError(DualingoError):
    """Network unreachable or the server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(DualingoError):
    """Response body was malformed JSON, had an unexpected shape, or bad base64."""
