"""
Unit tests for resampling functions.
"""

import numpy as np
import pytest
from dualingo.resample import resample_int16, validate_resample_ratio


def test_resample_24k_to_48k_length():
    """Test that upsampling produces correct output length."""
    # 1 second of 24 kHz audio
    audio_24k = np.random.randint(-1000, 1000, size=24000, dtype=np.int16)

    audio_48k = resample_int16(audio_24k, 24000, 48000)

    assert audio_48k.dtype == np.int16
    assert abs(len(audio_48k) - 48000) < 10, f"Expected ~48000, got {len(audio_48k)}"


def test_resample_44k_to_16k_length():
    """Test that downsampling produces correct output length."""
    audio = np.random.randint(-1000, 1000, size=44100, dtype=np.int16)

    resampled = resample_int16(audio, 44100, 16000)

    assert abs(len(resampled) - 16000) < 10


def test_resample_empty_array():
    """Test resampling with empty input."""
    audio = np.array([], dtype=np.int16)

    assert len(resample_int16(audio, 24000, 48000)) == 0


def test_resample_identity():
    """Test that same rate resampling returns original."""
    audio = np.random.randint(-1000, 1000, size=1000, dtype=np.int16)

    resampled = resample_int16(audio, 48000, 48000)

    np.testing.assert_array_equal(resampled, audio)


def test_resample_full_scale_stays_positive():
    """Full-scale input must clip, not wrap around int16."""
    audio = np.full(4800, 32767, dtype=np.int16)

    resampled = resample_int16(audio, 24000, 48000)

    assert resampled[200:-200].min() > 30000


def test_resample_rejects_bad_ratio():
    audio = np.zeros(100, dtype=np.int16)

    with pytest.raises(ValueError, match="Unsupported resample ratio"):
        resample_int16(audio, 8000, 192000)


def test_validate_resample_ratio_valid():
    """Test valid resample ratios."""
    assert validate_resample_ratio(48000, 16000) is True
    assert validate_resample_ratio(16000, 48000) is True
    assert validate_resample_ratio(24000, 48000) is True
    assert validate_resample_ratio(44100, 48000) is True


def test_validate_resample_ratio_invalid():
    """Test invalid resample ratios."""
    assert validate_resample_ratio(0, 48000) is False
    assert validate_resample_ratio(48000, 0) is False
    assert validate_resample_ratio(48000, 400000) is False  # Ratio > 8


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
