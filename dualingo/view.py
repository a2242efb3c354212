"""
Terminal view for the translation pipeline.

Renders the published PipelineState and turns keyboard input into
record-button presses and language mode changes.
"""

import logging
import sys
import threading
from functools import partial
from typing import Optional, TextIO

from .models import LanguageMode, PipelineState

logger = logging.getLogger(__name__)


MODE_KEYS = {
    "e": LanguageMode.ENGLISH,
    "t": LanguageMode.TAIWANESE,
    "a": LanguageMode.ANY,
}

HELP = "[Enter] record/stop  [e/t/a] English/Taiwanese/Any  [r] reset  [q] quit"


def button_label(state: PipelineState) -> str:
    if state.is_recording:
        return "Stop Recording"
    if state.is_loading or state.is_playing:
        return "Processing..."
    return "Start Recording"


def button_color(state: PipelineState) -> str:
    if state.is_recording:
        return "red"
    if state.is_loading:
        return "orange"
    if state.is_playing:
        return "gray"
    return "blue"


def render(state: PipelineState) -> str:
    """Full text rendering of a state snapshot."""
    result = state.result
    enabled = "" if state.record_enabled else " (disabled)"
    lines = [
        f"Language Mode: {state.language_mode.value}",
        f"[ {button_label(state)} ]{enabled}",
        f"Detected Language: {result.detected_language if result else ''}",
        f"Processed Text: {result.processed_text if result else ''}",
        f"Translated Text: {result.translated_text if result else ''}",
    ]
    if state.error:
        lines.append(f"Error: {state.error}")
    return "\n".join(lines)


class ConsoleView:
    """
    Line-oriented console front end.

    Input is read on a daemon thread and handed to the controller's
    dispatcher, so commands run on the same thread as pipeline completions.
    """

    def __init__(self, controller, out: TextIO = sys.stdout, hotkey=None):
        """
        Args:
            controller: PipelineController to drive
            out: Stream the view renders to
            hotkey: Optional RecordHotkey that presses the record button
        """
        self.controller = controller
        self.out = out
        self.hotkey = hotkey
        self._last_rendered: Optional[str] = None
        self._running = False
        self._unsubscribe = None

    def attach(self):
        self._unsubscribe = self.controller.subscribe(self.on_state)
        self.on_state(self.controller.state)

    def detach(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def on_state(self, state: PipelineState):
        text = render(state)
        if text == self._last_rendered:
            return
        self._last_rendered = text
        print("\n" + "=" * 60, file=self.out)
        print(text, file=self.out)
        self.out.flush()

    def handle_command(self, line: str) -> bool:
        """
        Apply one line of input.

        Returns:
            False when the user asked to quit
        """
        command = line.strip().lower()

        if command == "":
            self.controller.toggle_recording()
        elif command in MODE_KEYS:
            self.controller.set_language_mode(MODE_KEYS[command])
        elif command == "r":
            self.controller.reset()
        elif command in ("q", "quit", "exit"):
            return False
        else:
            print(HELP, file=self.out)
        return True

    def run(self, stdin: TextIO = sys.stdin):
        """Render and process input until quit, EOF or Ctrl+C."""
        self.attach()
        print(HELP, file=self.out)
        self._running = True

        if self.hotkey:
            self.bind_hotkey(self.hotkey)
            self.hotkey.start()

        reader = threading.Thread(target=self._read_input, args=(stdin,), daemon=True)
        reader.start()

        try:
            while self._running:
                self.controller.dispatcher.drain(timeout=0.1)
        finally:
            if self.hotkey:
                self.hotkey.stop()
            self.detach()

    def bind_hotkey(self, hotkey):
        """Route hotkey events through the dispatcher to the record button."""
        post = self.controller.dispatcher.post
        if hotkey.mode == "hold":
            hotkey.subscribe(
                on_pressed=lambda: post(self._hold_pressed),
                on_released=lambda: post(self.controller.stop_recording)
            )
        else:
            hotkey.subscribe(on_pressed=lambda: post(self.controller.toggle_recording))

    def _hold_pressed(self):
        if not self.controller.state.is_recording:
            self.controller.toggle_recording()

    def _read_input(self, stdin: TextIO):
        for line in stdin:
            self.controller.dispatcher.post(partial(self._apply, line))
        self.controller.dispatcher.post(self._quit)

    def _apply(self, line: str):
        if not self.handle_command(line):
            self._quit()

    def _quit(self):
        logger.info("Quit requested")
        self._running = False
