"""
Global record hotkey with debouncing.

Uses keyboard library for global hotkey detection.
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

try:
    import keyboard
    KEYBOARD_AVAILABLE = True
except ImportError:
    KEYBOARD_AVAILABLE = False
    logger.warning("keyboard library not available - hotkey disabled")


class RecordHotkey:
    """
    Global keyboard hook for the record button.

    In "toggle" mode each press acts like pressing the record button once.
    In "hold" mode recording runs while the key is held (push-to-talk).
    """

    def __init__(self, key: str = "F8", mode: str = "toggle", debounce_ms: int = 50):
        """
        Initialize hotkey handler.

        Args:
            key: Key to hook (e.g., 'F8', 'ctrl+space')
            mode: 'toggle' or 'hold'
            debounce_ms: Debounce duration in milliseconds
        """
        if mode not in ("toggle", "hold"):
            raise ValueError(f"Unknown hotkey mode: {mode}")

        self.key = key
        self.mode = mode
        self.debounce_ms = debounce_ms
        self._pressed = False
        self._last_event_time = 0.0
        self._lock = threading.Lock()

        self.on_pressed: Optional[Callable[[], None]] = None
        self.on_released: Optional[Callable[[], None]] = None

        self._active = False

    def subscribe(
        self,
        on_pressed: Optional[Callable[[], None]] = None,
        on_released: Optional[Callable[[], None]] = None
    ):
        """
        Subscribe to hotkey events.

        Args:
            on_pressed: Callback when the key goes down
            on_released: Callback when the key comes up
        """
        self.on_pressed = on_pressed
        self.on_released = on_released
        logger.info(f"Hotkey callbacks registered for key: {self.key} ({self.mode})")

    def _handle_key_event(self, event):
        """Internal handler for keyboard events."""
        current_time = time.time() * 1000

        with self._lock:
            if current_time - self._last_event_time < self.debounce_ms:
                return

            self._last_event_time = current_time

            if event.event_type == 'down' and not self._pressed:
                self._pressed = True
                logger.debug(f"Hotkey pressed: {self.key}")
                callback = self.on_pressed
            elif event.event_type == 'up' and self._pressed:
                self._pressed = False
                logger.debug(f"Hotkey released: {self.key}")
                callback = self.on_released
            else:
                return

        if callback:
            callback()

    def start(self) -> bool:
        """
        Start listening for hotkey events.

        Returns:
            True if the hook is installed
        """
        if not KEYBOARD_AVAILABLE:
            logger.error("Cannot start hotkey - keyboard library not available")
            return False

        if self._active:
            logger.warning("Hotkey handler already active")
            return True

        try:
            keyboard.hook_key(self.key, self._handle_key_event)
        except (ImportError, OSError, ValueError) as e:
            # ImportError: keyboard requires root on Linux
            logger.error(f"Failed to start hotkey handler: {e}")
            return False

        self._active = True
        logger.info(f"Hotkey handler started for key: {self.key}")
        return True

    def stop(self):
        """Stop listening for hotkey events."""
        if not self._active:
            return

        try:
            keyboard.unhook_key(self.key)
        except (KeyError, ValueError) as e:
            logger.error(f"Error stopping hotkey handler: {e}")

        self._active = False
        self._pressed = False
        logger.info("Hotkey handler stopped")

    def is_pressed(self) -> bool:
        with self._lock:
            return self._pressed
