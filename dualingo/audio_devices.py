"""
Audio device enumeration and session setup using sounddevice.

Handles device queries, name lookups, sample rate checks and multichannel→mono downmixing.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from .errors import DeviceError

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    # OSError: PortAudio shared library missing
    sd = None
    SOUNDDEVICE_AVAILABLE = False
    logger.warning("sounddevice not available - device queries disabled")


def list_audio_devices() -> List[dict]:
    """
    Enumerate all available audio devices.

    Returns:
        List of device dictionaries with name, index, channels, sample rate
    """
    if not SOUNDDEVICE_AVAILABLE:
        raise DeviceError("sounddevice/PortAudio not available")

    try:
        queried = sd.query_devices()
    except sd.PortAudioError as e:
        raise DeviceError(f"Could not query audio devices: {e}") from e

    devices = []
    for idx, dev in enumerate(queried):
        devices.append({
            "index": idx,
            "name": dev['name'],
            "max_input_channels": dev['max_input_channels'],
            "max_output_channels": dev['max_output_channels'],
            "default_samplerate": dev['default_samplerate'],
            "hostapi": sd.query_hostapis(dev['hostapi'])['name']
        })
    return devices


def find_device_by_name(name: str, input_device: bool = True) -> Optional[int]:
    """
    Find device index by name (case-insensitive substring match).

    Args:
        name: Device name or substring
        input_device: True for input, False for output

    Returns:
        Device index or None if not found
    """
    devices = list_audio_devices()
    name_lower = name.lower()

    for dev in devices:
        if name_lower in dev['name'].lower():
            if input_device and dev['max_input_channels'] > 0:
                return dev['index']
            elif not input_device and dev['max_output_channels'] > 0:
                return dev['index']

    return None


def configure_session(
    input_name: Optional[str] = None,
    output_name: Optional[str] = None
) -> Tuple[Optional[int], Optional[int]]:
    """
    Resolve the microphone and speaker used together for record and playback.

    None means the system default device.

    Raises:
        DeviceError: If a named device is missing or no default device exists
    """
    try:
        in_idx = resolve_device(input_name, input_device=True)
        out_idx = resolve_device(output_name, input_device=False)
    except sd.PortAudioError as e:
        raise DeviceError(f"Audio session setup failed: {e}") from e

    logger.info(f"Audio session configured: input={in_idx}, output={out_idx}")
    return in_idx, out_idx


def resolve_device(name: Optional[str], input_device: bool) -> Optional[int]:
    """Device index for a name, or None for the system default device."""
    if not SOUNDDEVICE_AVAILABLE:
        raise DeviceError("sounddevice/PortAudio not available")

    kind = "input" if input_device else "output"
    if name:
        idx = find_device_by_name(name, input_device=input_device)
        if idx is None:
            raise DeviceError(f"Audio {kind} device not found: {name!r}")
        return idx

    # Raises PortAudioError when there is no default device at all
    sd.query_devices(kind=kind)
    return None


def default_samplerate(device: Optional[int], input_device: bool = True) -> int:
    """Default sample rate reported by the device (or the system default device)."""
    kind = "input" if input_device else "output"
    info = sd.query_devices(device, kind=kind)
    return int(info['default_samplerate'])


def supports_samplerate(
    device: Optional[int],
    samplerate: int,
    channels: int = 1,
    input_device: bool = True
) -> bool:
    """
    Check whether a device accepts the given sample rate for int16 streams.
    """
    check = sd.check_input_settings if input_device else sd.check_output_settings
    try:
        check(device=device, samplerate=samplerate, channels=channels, dtype='int16')
        return True
    except (sd.PortAudioError, ValueError) as e:
        logger.debug(f"Device {device} rejected {samplerate} Hz: {e}")
        return False


def downmix_to_mono(frames: np.ndarray) -> np.ndarray:
    """
    Downmix multichannel audio to mono by averaging channels.

    Args:
        frames: Shape (frames,) or (frames, channels) array

    Returns:
        Shape (frames,) array of the same dtype
    """
    if frames.ndim == 1:
        # Already mono
        return frames

    if frames.shape[1] == 1:
        return frames.flatten()

    # Widen to avoid overflow during addition
    wide = frames.astype(np.float64 if frames.dtype.kind == 'f' else np.int32)
    return wide.mean(axis=1).astype(frames.dtype)
