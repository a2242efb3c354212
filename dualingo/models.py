"""
Data model for one record -> translate -> synthesize -> play cycle.

Wire payloads are decoded with pydantic; the controller's published state is
an immutable dataclass snapshot replaced on every transition.
"""

import base64
import binascii
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from .errors import DecodeError


class LanguageMode(str, Enum):
    """Source language hint sent with every upload."""
    ENGLISH = "English"
    TAIWANESE = "Taiwanese"
    ANY = "Any"


class Phase(str, Enum):
    IDLE = "Idle"
    RECORDING = "Recording"
    PROCESSING = "Processing"
    SYNTHESIZING = "Synthesizing"
    PLAYING = "Playing"


@dataclass(frozen=True)
class RecordingSession:
    """A single microphone capture, fixed at creation."""
    file_path: Path
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2
    format: str = "linear-pcm"


class TranslationResult(BaseModel):
    """Detected language, transcription and translation for one recording."""
    model_config = ConfigDict(frozen=True)

    detected_language: StrictStr
    processed_text: StrictStr
    translated_text: StrictStr

    @classmethod
    def from_payload(cls, payload: Any) -> "TranslationResult":
        """
        Decode the translate endpoint's JSON object.

        Raises:
            DecodeError: If the payload is not an object with the three string fields
        """
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected JSON object, got {type(payload).__name__}")
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"Unexpected translation response: {e}") from e


class SynthesisResult(BaseModel):
    """Raw synthesized audio, as delivered by the text-to-speech endpoint."""
    model_config = ConfigDict(frozen=True)

    audio_bytes: bytes

    @classmethod
    def from_payload(cls, payload: Any) -> "SynthesisResult":
        """
        Decode `audio_content_base64` from the text-to-speech JSON object.

        Raises:
            DecodeError: If the field is missing, not a string, or not valid base64
        """
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected JSON object, got {type(payload).__name__}")

        encoded = payload.get("audio_content_base64")
        if not isinstance(encoded, str):
            raise DecodeError("Missing or non-string 'audio_content_base64' field")

        try:
            audio = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 audio content: {e}") from e

        if not audio:
            raise DecodeError("Empty audio content")

        return cls(audio_bytes=audio)


@dataclass(frozen=True)
class PipelineState:
    """Snapshot of everything the view renders."""
    phase: Phase = Phase.IDLE
    is_recording: bool = False
    is_loading: bool = False
    is_playing: bool = False
    result: Optional[TranslationResult] = None
    audio: Optional[SynthesisResult] = None
    error: Optional[str] = None
    language_mode: LanguageMode = LanguageMode.ANY

    @property
    def record_enabled(self) -> bool:
        return not (self.is_loading or self.is_playing)

    def evolve(self, **changes) -> "PipelineState":
        return replace(self, **changes)
