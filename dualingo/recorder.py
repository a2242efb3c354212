"""
Microphone recorder writing 16 kHz mono linear PCM WAV files.

Each start() opens a new uniquely named file; every captured block is written
to it verbatim until stop().
"""

import logging
import threading
import time
import wave
from pathlib import Path
from typing import Callable, Optional

from . import audio_devices
from .errors import DeviceError
from .models import RecordingSession
from .utils import wav_frames

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    # OSError: PortAudio shared library missing
    sd = None
    SOUNDDEVICE_AVAILABLE = False
    logger.warning("sounddevice not available - recording disabled")


class Recorder:
    """
    Owns the microphone capture lifecycle.

    The optional on_finished callback is the recorder's completion signal. It
    fires from the audio thread with successfully=False when the input stream
    ends without stop() being called (device lost).
    """

    def __init__(
        self,
        recordings_dir: str,
        sample_rate: int = 16000,
        fallback_sample_rate: int = 44100,
        channels: int = 1,
        input_device: Optional[str] = None,
        output_device: Optional[str] = None,
        keep_recordings: bool = False,
        on_finished: Optional[Callable[[bool], None]] = None
    ):
        """
        Initialize recorder.

        Args:
            recordings_dir: Directory for recording files
            sample_rate: Preferred capture rate in Hz
            fallback_sample_rate: Rate used when the device rejects sample_rate
            channels: Number of channels to capture
            input_device: Microphone device name (None for default)
            output_device: Speaker device name, checked alongside the microphone
            keep_recordings: Keep previous files instead of deleting them
            on_finished: Called once when capture ends unexpectedly
        """
        self.recordings_dir = Path(recordings_dir)
        self.sample_rate = sample_rate
        self.fallback_sample_rate = fallback_sample_rate
        self.channels = channels
        self.input_device = input_device
        self.output_device = output_device
        self.keep_recordings = keep_recordings
        self.on_finished = on_finished

        self.last_session: Optional[RecordingSession] = None

        self._session: Optional[RecordingSession] = None
        self._stream = None
        self._wav: Optional[wave.Wave_write] = None
        self._lock = threading.Lock()
        self._stopping = False

    @property
    def is_recording(self) -> bool:
        return self._session is not None

    def start(self) -> RecordingSession:
        """
        Start capturing into a new file.

        Returns:
            The new recording session

        Raises:
            DeviceError: If the device cannot be configured or the file cannot be opened
        """
        if not SOUNDDEVICE_AVAILABLE:
            raise DeviceError("sounddevice/PortAudio not available")

        if self.is_recording:
            logger.warning("Recorder already running, restarting")
            self.stop()

        self._discard_last()

        in_idx, _ = audio_devices.configure_session(self.input_device, self.output_device)
        samplerate = self._pick_samplerate(in_idx)

        session = RecordingSession(
            file_path=self._unique_path(),
            sample_rate=samplerate,
            channels=self.channels
        )

        try:
            session.file_path.parent.mkdir(parents=True, exist_ok=True)
            wav = wave.open(str(session.file_path), 'wb')
            wav.setnchannels(session.channels)
            wav.setsampwidth(session.sample_width)
            wav.setframerate(session.sample_rate)
        except OSError as e:
            raise DeviceError(f"Could not open recording file {session.file_path}: {e}") from e

        self._wav = wav
        self._stopping = False

        try:
            stream = sd.InputStream(
                device=in_idx,
                channels=session.channels,
                samplerate=session.sample_rate,
                dtype='int16',
                callback=self._stream_callback,
                finished_callback=self._on_stream_finished
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self._close_wav()
            session.file_path.unlink(missing_ok=True)
            raise DeviceError(f"Could not start audio recording: {e}") from e

        self._stream = stream
        self._session = session
        logger.info(f"Recording started at {session.file_path} ({session.sample_rate} Hz)")
        return session

    def stop(self) -> Optional[RecordingSession]:
        """
        Stop capturing and close the file.

        Returns:
            The finished session, or None if not recording
        """
        if not self.is_recording:
            return None

        self._stopping = True
        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as e:
            logger.error(f"Error closing input stream: {e}")

        self._close_wav()

        session, self._session = self._session, None
        self.last_session = session

        try:
            length = len(wav_frames(session.file_path))
            logger.info(f"Recording stopped. Data length: {length} bytes")
        except (OSError, EOFError, wave.Error):
            logger.warning("Recording stopped but data is not available.")

        return session

    def reset(self):
        """Stop if active and forget the last recording."""
        self.stop()
        self._discard_last()

    def _discard_last(self):
        session, self.last_session = self.last_session, None
        if session is None or self.keep_recordings:
            return
        try:
            session.file_path.unlink(missing_ok=True)
            logger.debug(f"Deleted previous recording {session.file_path}")
        except OSError as e:
            logger.warning(f"Could not delete {session.file_path}: {e}")

    def _pick_samplerate(self, device: Optional[int]) -> int:
        for rate in (self.sample_rate, self.fallback_sample_rate):
            if audio_devices.supports_samplerate(device, rate, self.channels, input_device=True):
                return rate
            logger.warning(f"Input device rejected {rate} Hz")
        raise DeviceError(
            f"Input device supports neither {self.sample_rate} Hz nor {self.fallback_sample_rate} Hz"
        )

    def _unique_path(self) -> Path:
        path = self.recordings_dir / f"recording_{time.time()}.wav"
        counter = 1
        while path.exists():
            path = self.recordings_dir / f"recording_{time.time()}_{counter}.wav"
            counter += 1
        return path

    def _stream_callback(self, indata, frames, time_info, status):
        """Internal callback for sounddevice stream."""
        if status:
            logger.warning(f"Stream status: {status}")

        with self._lock:
            if self._wav is not None:
                self._wav.writeframes(indata.tobytes())

    def _on_stream_finished(self):
        successfully = self._stopping
        if not successfully:
            logger.error("Input stream ended unexpectedly")
        if self.on_finished:
            self.on_finished(successfully)

    def _close_wav(self):
        with self._lock:
            wav, self._wav = self._wav, None
        if wav is not None:
            wav.close()
