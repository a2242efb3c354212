"""
Pytest configuration and fixtures.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest


class FakePortAudioError(Exception):
    pass


class FakeCallbackStop(Exception):
    pass


class FakeStream:
    """Stands in for sounddevice Input/OutputStream; tests drive the callbacks."""

    def __init__(self, registry, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs.get("callback")
        self.finished_callback = kwargs.get("finished_callback")
        self.active = False
        self.closed = False
        registry.append(self)

    def start(self):
        self.active = True

    def stop(self):
        self._finish()

    def abort(self):
        self._finish()

    def close(self):
        self.closed = True

    def _finish(self):
        if self.active:
            self.active = False
            if self.finished_callback:
                self.finished_callback()

    def feed(self, samples):
        """Push one block of int16 samples into an input stream callback."""
        block = np.asarray(samples, dtype=np.int16).reshape(-1, 1)
        self.callback(block, len(block), None, None)

    def pull(self, frames):
        """
        Run one output stream callback.

        Returns:
            (block, stopped)
        """
        outdata = np.zeros((frames, 1), dtype=np.int16)
        try:
            self.callback(outdata, frames, None, None)
        except FakeCallbackStop:
            return outdata, True
        return outdata, False


class ImmediateDispatcher:
    """Runs posted callbacks inline."""

    def post(self, func):
        func()


def inline_runner(func):
    func()


@pytest.fixture
def mock_sd():
    """Replace sounddevice in every audio module with a controllable mock."""
    inputs, outputs = [], []

    sd = MagicMock()
    sd.PortAudioError = FakePortAudioError
    sd.CallbackStop = FakeCallbackStop
    sd.InputStream.side_effect = lambda **kw: FakeStream(inputs, **kw)
    sd.OutputStream.side_effect = lambda **kw: FakeStream(outputs, **kw)
    sd.query_devices.return_value = {
        "name": "Fake Device",
        "max_input_channels": 1,
        "max_output_channels": 2,
        "default_samplerate": 48000.0,
        "hostapi": 0,
    }
    sd.check_input_settings.return_value = None
    sd.check_output_settings.return_value = None

    with patch("dualingo.audio_devices.sd", sd), \
         patch("dualingo.audio_devices.SOUNDDEVICE_AVAILABLE", True), \
         patch("dualingo.recorder.sd", sd), \
         patch("dualingo.recorder.SOUNDDEVICE_AVAILABLE", True), \
         patch("dualingo.player.sd", sd), \
         patch("dualingo.player.SOUNDDEVICE_AVAILABLE", True):
        yield SimpleNamespace(sd=sd, inputs=inputs, outputs=outputs)


@pytest.fixture
def mock_config():
    """Provide a configuration for testing."""
    from dualingo.config import Config

    return Config()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of config tests."""
    for name in (
        "DUALINGO_BASE_URL",
        "DUALINGO_LANGUAGE_MODE",
        "DUALINGO_LOG_LEVEL",
        "DUALINGO_RECORDINGS_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
