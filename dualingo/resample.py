"""
Audio resampling utilities using pysoxr.

Used when the output device cannot play synthesized audio at its native rate.
"""

import logging

import numpy as np
import soxr

logger = logging.getLogger(__name__)


def resample_int16(
    audio: np.ndarray,
    source_rate: int,
    target_rate: int
) -> np.ndarray:
    """
    Resample mono int16 audio from source rate to target rate.

    Args:
        audio: Mono int16 PCM at source_rate
        source_rate: Source sample rate in Hz
        target_rate: Target sample rate in Hz

    Returns:
        Mono int16 PCM at target_rate
    """
    if not validate_resample_ratio(source_rate, target_rate):
        raise ValueError(f"Unsupported resample ratio: {source_rate} Hz -> {target_rate} Hz")

    if source_rate == target_rate:
        return audio

    if len(audio) == 0:
        return np.array([], dtype=np.int16)

    logger.debug(f"Resampling from {source_rate} Hz to {target_rate} Hz")

    # Convert to float32 for resampling
    audio_float = audio.astype(np.float32) / 32768.0

    resampled = soxr.resample(
        audio_float,
        in_rate=source_rate,
        out_rate=target_rate,
        quality='HQ'
    )

    # Convert back to int16
    return np.clip(resampled * 32767.0, -32768, 32767).astype(np.int16)


def validate_resample_ratio(source_rate: int, target_rate: int) -> bool:
    """
    Validate that resampling ratio is sensible.

    Args:
        source_rate: Source sample rate in Hz
        target_rate: Target sample rate in Hz

    Returns:
        True if ratio is valid
    """
    if source_rate <= 0 or target_rate <= 0:
        return False

    ratio = max(source_rate, target_rate) / min(source_rate, target_rate)

    # Allow ratios up to 8x
    return ratio <= 8.0
