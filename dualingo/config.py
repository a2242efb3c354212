"""
Configuration module for the Dualingo voice translation client.

Loads configuration from .env and optional config.yaml using Pydantic models.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
import yaml

from .audio_devices import find_device_by_name
from .models import LanguageMode


DEFAULT_BASE_URL = "https://dualingo-app-3rod5lbaca-de.a.run.app"


class ServiceConfig(BaseModel):
    """Remote translation service endpoints."""
    base_url: str = Field(DEFAULT_BASE_URL, description="Translation service base URL")
    translate_path: str = Field("/process-and-translate/", description="Speech upload endpoint")
    synthesize_path: str = Field("/text-to-speech/", description="Text-to-speech endpoint")
    timeout_s: Optional[float] = Field(None, description="HTTP timeout in seconds (None = httpx default)")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("DUALINGO_BASE_URL must be an http(s) URL")
        try:
            host = httpx.URL(v).host
        except httpx.InvalidURL as e:
            raise ValueError(f"DUALINGO_BASE_URL is not a valid URL: {e}") from e
        if not host:
            raise ValueError("DUALINGO_BASE_URL has no host")
        return v.rstrip("/")

    @property
    def translate_url(self) -> str:
        return self.base_url + self.translate_path

    @property
    def synthesize_url(self) -> str:
        return self.base_url + self.synthesize_path


class AudioConfig(BaseModel):
    """Audio capture and playback parameters."""
    sample_rate: int = Field(16000, description="Recording sample rate (Hz)")
    fallback_sample_rate: int = Field(44100, description="Used when the device rejects sample_rate")
    channels: int = Field(1, description="Recording channels")
    input_device: Optional[str] = Field(None, description="Microphone device name")
    output_device: Optional[str] = Field(None, description="Speaker device name")
    recordings_dir: str = Field(
        str(Path(tempfile.gettempdir()) / "dualingo"),
        description="Directory for recording files"
    )
    keep_recordings: bool = Field(False, description="Keep old recording files on reset")
    volume: float = Field(1.0, ge=0.0, le=1.0, description="Playback volume (0-1)")


class UIConfig(BaseModel):
    """Console view configuration."""
    language_mode: LanguageMode = Field(LanguageMode.ANY, description="Initial language mode")
    hotkey: Optional[str] = Field(None, description="Global record hotkey (e.g. F8)")
    hotkey_mode: str = Field("toggle", description="Hotkey behaviour: toggle or hold")

    @field_validator('hotkey_mode')
    @classmethod
    def validate_hotkey_mode(cls, v):
        if v not in ("toggle", "hold"):
            raise ValueError("hotkey_mode must be 'toggle' or 'hold'")
        return v


class LoggingConfig(BaseModel):
    """Logging and diagnostics configuration."""
    log_level: str = Field("INFO", description="Logging level")
    log_file: str = Field("logs/dualingo.log", description="Log file path")
    dump_audio: bool = Field(False, description="Dump synthesized audio for debugging")
    dump_path: str = Field("debug_dumps", description="Audio dump directory")


class Config(BaseModel):
    """Main configuration model."""
    service: ServiceConfig = ServiceConfig()
    audio: AudioConfig = AudioConfig()
    ui: UIConfig = UIConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(env_file: Optional[str] = None, yaml_file: Optional[str] = None) -> Config:
    """
    Load configuration from environment and optional YAML file.

    Args:
        env_file: Path to .env file (default: .env in working directory)
        yaml_file: Path to config.yaml (optional)

    Returns:
        Config: Validated configuration object

    Raises:
        ValueError: If configuration is invalid
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    config_dict = {
        "service": {
            "base_url": os.getenv("DUALINGO_BASE_URL", DEFAULT_BASE_URL),
        },
        "audio": {},
        "ui": {
            "language_mode": os.getenv("DUALINGO_LANGUAGE_MODE", LanguageMode.ANY.value),
        },
        "logging": {
            "log_level": os.getenv("DUALINGO_LOG_LEVEL", "INFO"),
        },
    }

    if os.getenv("DUALINGO_RECORDINGS_DIR"):
        config_dict["audio"]["recordings_dir"] = os.getenv("DUALINGO_RECORDINGS_DIR")

    # Override with YAML if provided
    if yaml_file and Path(yaml_file).exists():
        with open(yaml_file, 'r') as f:
            yaml_config = yaml.safe_load(f) or {}
            # Deep merge
            for key, value in yaml_config.items():
                if key in config_dict and isinstance(value, dict):
                    config_dict[key].update(value)
                else:
                    config_dict[key] = value

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}")


def validate_environment(config: Config) -> list[str]:
    """
    Validate environment prerequisites.

    Returns:
        List of validation errors (empty if all OK)
    """
    errors = []

    if config.audio.input_device:
        if find_device_by_name(config.audio.input_device, input_device=True) is None:
            errors.append(f"Input device not found: {config.audio.input_device}")

    if config.audio.output_device:
        if find_device_by_name(config.audio.output_device, input_device=False) is None:
            errors.append(f"Output device not found: {config.audio.output_device}")

    recordings_dir = Path(config.audio.recordings_dir)
    if recordings_dir.exists() and not recordings_dir.is_dir():
        errors.append(f"Recordings path is not a directory: {recordings_dir}")

    return errors
