"""
Logging setup, request timing, and audio debugging helpers.
"""

import logging
import threading
import time
import wave
from collections import deque
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(threadName)s %(filename)s:%(lineno)d %(message)s'


def setup_logger(
    name: str = "dualingo",
    level: str = "INFO",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Attach console and rotating file handlers to the package logger.

    Module loggers (`dualingo.pipeline`, `dualingo.recorder`, ...) propagate
    to it, so calling this once from the CLI covers the whole package.

    Args:
        name: Root logger name of the package
        level: DEBUG, INFO, WARNING or ERROR
        log_file: Rotating log file (10 MB x 5), None for console only

    Returns:
        The package logger
    """
    root = logging.getLogger(name)
    root.setLevel(getattr(logging, level.upper()))

    # Reconfiguring replaces handlers instead of stacking them
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    root.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        rotating.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(rotating)

    return root


class TimingStats:
    """
    Rolling latency window for one kind of service request.

    Samples arrive from worker threads; reads take a snapshot under the lock.
    """

    def __init__(self, name: str, window: int = 200):
        self.name = name
        self._samples: deque[float] = deque(maxlen=window)
        self._failures = 0
        self._lock = threading.Lock()

    def add_sample(self, duration_ms: float):
        with self._lock:
            self._samples.append(duration_ms)

    def add_failure(self):
        with self._lock:
            self._failures += 1

    def get_stats(self) -> dict:
        """
        Summarize the window.

        Returns:
            Dict with count, failures, mean, p50, p90 and max (ms); empty when
            nothing has been recorded
        """
        with self._lock:
            ordered = sorted(self._samples)
            failures = self._failures

        if not ordered and not failures:
            return {}

        n = len(ordered)
        stats = {"count": n, "failures": failures}
        if n:
            stats.update(
                mean=sum(ordered) / n,
                p50=ordered[n // 2],
                p90=ordered[min(n - 1, int(n * 0.9))],
                max=ordered[-1],
            )
        return stats

    def log_stats(self):
        stats = self.get_stats()
        if not stats:
            return
        if not stats["count"]:
            logger.info(f"{self.name}: no successful requests, {stats['failures']} failed")
            return
        logger.info(
            f"{self.name}: {stats['count']} ok / {stats['failures']} failed, "
            f"mean {stats['mean']:.0f} ms, p50 {stats['p50']:.0f} ms, "
            f"p90 {stats['p90']:.0f} ms, max {stats['max']:.0f} ms"
        )


class Timer:
    """
    Times a request block.

    Successful blocks add a sample to `stats`; blocks that raise count as a
    failure and the exception propagates.
    """

    def __init__(self, name: str, stats: Optional[TimingStats] = None):
        self.name = name
        self.stats = stats
        self.duration_ms = 0.0
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._started) * 1000

        if self.stats:
            if exc_type is None:
                self.stats.add_sample(self.duration_ms)
            else:
                self.stats.add_failure()

        outcome = "failed" if exc_type else "done"
        logger.debug(f"{self.name} {outcome} in {self.duration_ms:.0f} ms")
        return False


def dump_audio_bytes(audio_bytes: bytes, filepath: str, description: str = ""):
    """Write received audio to disk for inspection. Failures are logged, not raised."""
    path = Path(filepath)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(audio_bytes)
    except OSError as e:
        logger.error(f"Failed to dump audio to {path}: {e}")
        return
    logger.debug(f"Dumped {description or 'audio'} to {path} ({len(audio_bytes)} bytes)")


def wav_frames(filepath: str) -> bytes:
    """Read the raw PCM frames of a WAV file."""
    with wave.open(str(filepath), 'rb') as wf:
        return wf.readframes(wf.getnframes())


def format_device_list(devices: List[dict]) -> str:
    """Table of devices for `dualingo list-devices`, marking usable directions."""
    rule = "-" * 80
    lines = ["", "Audio devices:", rule]

    for dev in devices:
        roles = []
        if dev['max_input_channels'] > 0:
            roles.append(f"mic x{dev['max_input_channels']}")
        if dev['max_output_channels'] > 0:
            roles.append(f"speaker x{dev['max_output_channels']}")
        lines.append(f"  [{dev['index']:>2}] {dev['name']}")
        lines.append(
            f"       {', '.join(roles) or 'no channels'} | "
            f"{dev['default_samplerate']:.0f} Hz | {dev['hostapi']}"
        )

    lines.append(rule)
    return "\n".join(lines)
