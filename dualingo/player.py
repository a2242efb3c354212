"""
Playback of synthesized speech through a sounddevice output stream.

Decodes the encoded buffer with soundfile, resamples with soxr when the
output device rejects the native rate, and reports completion through a
one-shot callback.
"""

import io
import logging
import threading
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from . import audio_devices
from .errors import DeviceError, PlaybackError
from .resample import resample_int16

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    # OSError: PortAudio shared library missing
    sd = None
    SOUNDDEVICE_AVAILABLE = False
    logger.warning("sounddevice not available - playback disabled")


def decode_audio(audio_bytes: bytes) -> tuple[np.ndarray, int]:
    """
    Decode an encoded audio buffer to mono int16 samples.

    Returns:
        (samples, sample_rate)

    Raises:
        PlaybackError: If the buffer is not a format libsndfile can read
    """
    try:
        data, samplerate = sf.read(io.BytesIO(audio_bytes), dtype='int16', always_2d=True)
    except (RuntimeError, TypeError, ValueError) as e:
        raise PlaybackError(f"Error decoding audio data: {e}") from e

    return audio_devices.downmix_to_mono(data), int(samplerate)


class Player:
    """
    Owns the decoded-audio playback lifecycle.

    Only one buffer plays at a time; play() stops the previous one.
    """

    def __init__(self, output_device: Optional[str] = None, volume: float = 1.0):
        """
        Initialize player.

        Args:
            output_device: Speaker device name (None for default)
            volume: Linear gain applied to samples (0-1)
        """
        self.output_device = output_device
        self.volume = volume

        self._stream = None
        self._samples = np.array([], dtype=np.int16)
        self._position = 0
        self._on_finished: Optional[Callable[[bool], None]] = None
        self._playing = False
        self._aborted = False
        self._lock = threading.Lock()

    @property
    def is_playing(self) -> bool:
        return self._playing

    def play(self, audio_bytes: bytes, on_finished: Optional[Callable[[bool], None]] = None):
        """
        Decode and start playing an audio buffer.

        Args:
            audio_bytes: Encoded audio (WAV, FLAC, OGG or MP3)
            on_finished: Called once with success flag when playback ends

        Raises:
            PlaybackError: On decode or device errors
        """
        if not SOUNDDEVICE_AVAILABLE:
            raise PlaybackError("sounddevice/PortAudio not available")

        self.stop()

        samples, samplerate = decode_audio(audio_bytes)
        logger.info(f"Audio data length: {len(audio_bytes)} bytes, {len(samples)} samples @ {samplerate} Hz")

        try:
            device = audio_devices.resolve_device(self.output_device, input_device=False)
            if not audio_devices.supports_samplerate(device, samplerate, 1, input_device=False):
                target = audio_devices.default_samplerate(device, input_device=False)
                logger.info(f"Output device rejected {samplerate} Hz, resampling to {target} Hz")
                samples = resample_int16(samples, samplerate, target)
                samplerate = target
        except (DeviceError, sd.PortAudioError, ValueError) as e:
            raise PlaybackError(f"Audio output setup failed: {e}") from e

        if self.volume != 1.0:
            samples = np.clip(samples.astype(np.float32) * self.volume, -32768, 32767).astype(np.int16)

        with self._lock:
            self._samples = samples
            self._position = 0
            self._aborted = False
            self._on_finished = on_finished
            self._playing = True

        try:
            self._stream = sd.OutputStream(
                device=device,
                channels=1,
                samplerate=samplerate,
                dtype='int16',
                callback=self._stream_callback,
                finished_callback=self._on_stream_finished
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            with self._lock:
                self._playing = False
                self._on_finished = None
            self._stream = None
            raise PlaybackError(f"Error playing audio: {e}") from e

        logger.info("Playback started")

    def stop(self):
        """Abort playback and release the stream; a pending completion fires with successfully=False."""
        stream, self._stream = self._stream, None
        if stream is None:
            return

        self._aborted = True
        try:
            stream.abort()
            stream.close()
        except sd.PortAudioError as e:
            logger.error(f"Error closing output stream: {e}")

        self._finish(False)

    def _stream_callback(self, outdata, frames, time_info, status):
        """Internal callback for sounddevice stream."""
        if status:
            logger.warning(f"Stream status: {status}")

        chunk = self._samples[self._position:self._position + frames]
        self._position += len(chunk)

        outdata[:len(chunk), 0] = chunk
        if len(chunk) < frames:
            outdata[len(chunk):] = 0
            raise sd.CallbackStop

    def _on_stream_finished(self):
        self._finish(not self._aborted and self._position >= len(self._samples))

    def _finish(self, successfully: bool):
        with self._lock:
            if not self._playing:
                return
            self._playing = False
            callback, self._on_finished = self._on_finished, None

        logger.info(f"Playback finished. Success: {successfully}")
        if callback:
            callback(successfully)
