"""
Thread handoff for pipeline work.

Blocking calls (HTTP requests) run on daemon threads; their completions are
posted back to a MainThreadDispatcher and run by whichever thread drains it,
so pipeline state is only ever mutated from that one thread.
"""

import logging
import queue
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def run_in_background(func: Callable[[], None], name: str = "dualingo-worker") -> threading.Thread:
    """Run func on a daemon thread."""
    thread = threading.Thread(target=func, name=name, daemon=True)
    thread.start()
    return thread


class MainThreadDispatcher:
    """
    FIFO of callbacks executed by the draining thread.
    """

    def __init__(self):
        self._queue: queue.Queue[Callable[[], None]] = queue.Queue()

    def post(self, func: Callable[[], None]):
        """Schedule func on the draining thread. Safe from any thread."""
        self._queue.put(func)

    def drain(self, timeout: Optional[float] = None) -> int:
        """
        Run all pending callbacks.

        Args:
            timeout: Seconds to wait for the first callback (None = don't wait)

        Returns:
            Number of callbacks executed
        """
        count = 0
        block = timeout is not None
        while True:
            try:
                func = self._queue.get(block=block, timeout=timeout if block else None)
            except queue.Empty:
                return count

            block = False
            try:
                func()
            except Exception as e:
                logger.error(f"Error in dispatched callback: {e}", exc_info=True)
            count += 1

    def pending(self) -> int:
        return self._queue.qsize()
