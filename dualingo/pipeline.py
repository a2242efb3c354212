"""
Main pipeline for voice translation.

Orchestrates recording, upload/translation, speech synthesis, and playback.
"""

import logging
import time
from functools import partial
from typing import Callable, List, Optional, Union

from .dispatch import MainThreadDispatcher, run_in_background
from .errors import DualingoError, PlaybackError
from .models import LanguageMode, Phase, PipelineState, SynthesisResult, TranslationResult
from .utils import Timer, TimingStats, dump_audio_bytes

logger = logging.getLogger(__name__)


StateCallback = Callable[[PipelineState], None]


class StateStore:
    """
    Holds the current PipelineState and publishes every replacement to subscribers.
    """

    def __init__(self, initial: Optional[PipelineState] = None):
        self._state = initial or PipelineState()
        self._subscribers: List[StateCallback] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """
        Register an observer.

        Returns:
            Function that removes the observer again
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update(self, **changes) -> PipelineState:
        return self.replace(self._state.evolve(**changes))

    def replace(self, state: PipelineState) -> PipelineState:
        previous, self._state = self._state, state
        if previous.phase != state.phase:
            logger.info(f"State: {previous.phase.value} -> {state.phase.value}")
        for callback in list(self._subscribers):
            callback(state)
        return state


class PipelineController:
    """
    Voice translation pipeline: record → translate → synthesize → play.

    Flow:
    1. start_recording() → mic capture into a new WAV file
    2. stop_recording() → file is uploaded with the language mode
    3. Translation result arrives → translated text is sent for synthesis
    4. Synthesized audio arrives → played back
    5. Playback completes → Idle

    Blocking HTTP calls run through `runner`; their completions are posted to
    `dispatcher`, and all state changes happen on the thread draining it.
    Every cycle has a generation number so completions of an abandoned cycle
    are dropped instead of overwriting newer state.
    """

    def __init__(
        self,
        recorder,
        player,
        translation_client,
        synthesis_client,
        dispatcher: Optional[MainThreadDispatcher] = None,
        runner: Callable[[Callable[[], None]], object] = run_in_background,
        language_mode: Union[LanguageMode, str] = LanguageMode.ANY,
        dump_audio: bool = False,
        dump_path: str = "debug_dumps"
    ):
        """
        Initialize pipeline.

        Args:
            recorder: Recorder instance
            player: Player instance
            translation_client: TranslationClient instance
            synthesis_client: SpeechSynthesisClient instance
            dispatcher: Completion queue drained by the UI thread
            runner: Runs a blocking callable off the UI thread
            language_mode: Initial language mode
            dump_audio: Write synthesized audio to dump_path
            dump_path: Directory for audio dumps
        """
        self.recorder = recorder
        self.player = player
        self.translation_client = translation_client
        self.synthesis_client = synthesis_client
        self.dispatcher = dispatcher or MainThreadDispatcher()
        self.runner = runner
        self.dump_audio = dump_audio
        self.dump_path = dump_path

        self.store = StateStore(PipelineState(language_mode=LanguageMode(language_mode)))
        self._generation = 0

        self.recorder.on_finished = self._recorder_finished

        self.timing_translate = TimingStats("Translate")
        self.timing_synthesize = TimingStats("Synthesize")

    @property
    def state(self) -> PipelineState:
        return self.store.state

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        return self.store.subscribe(callback)

    def set_language_mode(self, mode: Union[LanguageMode, str]):
        mode = LanguageMode(mode)
        logger.info(f"Language mode: {mode.value}")
        self.store.update(language_mode=mode)

    def toggle_recording(self):
        """Record button: stop when recording, otherwise start (ignored while busy)."""
        if self.state.is_recording:
            self.stop_recording()
        elif not self.state.record_enabled:
            logger.debug("Record button disabled while processing or playing")
        else:
            self.start_recording()

    def start_recording(self):
        """Discard the current cycle and start a new recording."""
        self.reset()

        try:
            self.recorder.start()
        except DualingoError as e:
            logger.error(f"Could not start audio recording: {e}")
            self.store.update(error=str(e))
            return

        self.store.update(phase=Phase.RECORDING, is_recording=True)

    def stop_recording(self):
        """Stop the recorder and send the recording for translation."""
        if not self.recorder.is_recording:
            return

        session = self.recorder.stop()
        self.store.update(phase=Phase.IDLE, is_recording=False)

        if session is not None:
            self.process_file(session.file_path)

    def process_file(self, file_path):
        """
        Upload a WAV file for translation and continue the cycle with its result.

        Prior result fields are kept until the new translation arrives.
        """
        generation = self._generation
        language_mode = self.state.language_mode
        self.store.update(phase=Phase.PROCESSING, is_loading=True, error=None)

        def work():
            try:
                with Timer("Translate", self.timing_translate):
                    result = self.translation_client.send(file_path, language_mode)
            except DualingoError as e:
                self.dispatcher.post(partial(self._fail, generation, e))
                return
            except Exception as e:
                logger.error(f"Unexpected error in translation request: {e}", exc_info=True)
                self.dispatcher.post(partial(self._fail, generation, DualingoError(f"Unexpected error: {e}")))
                return
            self.dispatcher.post(lambda: self._on_translated(generation, result))

        self.runner(work)

    def reset(self):
        """Return to Idle from any state, clearing results and dropping in-flight work."""
        self._generation += 1
        self.recorder.reset()
        self.player.stop()
        self.store.replace(PipelineState(language_mode=self.state.language_mode))

    def close(self):
        """Release devices and HTTP clients and log request timing."""
        self.reset()
        self.translation_client.close()
        self.synthesis_client.close()
        self.timing_translate.log_stats()
        self.timing_synthesize.log_stats()
        logger.info("Pipeline closed")

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation != self._generation:
            logger.info(f"Dropping stale {what} from cycle {generation} (current {self._generation})")
            return True
        return False

    def _on_translated(self, generation: int, result: TranslationResult):
        if self._is_stale(generation, "translation"):
            return

        logger.info(f"Processed text: {result.processed_text}")
        logger.info(f"Translated text: {result.translated_text}")
        self.store.update(phase=Phase.SYNTHESIZING, result=result)

        def work():
            try:
                with Timer("Synthesize", self.timing_synthesize):
                    audio = self.synthesis_client.send(result.translated_text, result.detected_language)
            except DualingoError as e:
                self.dispatcher.post(partial(self._fail, generation, e))
                return
            except Exception as e:
                logger.error(f"Unexpected error in synthesis request: {e}", exc_info=True)
                self.dispatcher.post(partial(self._fail, generation, DualingoError(f"Unexpected error: {e}")))
                return
            self.dispatcher.post(lambda: self._on_synthesized(generation, audio))

        self.runner(work)

    def _on_synthesized(self, generation: int, audio: SynthesisResult):
        if self._is_stale(generation, "synthesized audio"):
            return

        if self.dump_audio:
            dump_audio_bytes(
                audio.audio_bytes,
                f"{self.dump_path}/tts_{int(time.time() * 1000)}.bin",
                "TTS output"
            )

        self.store.update(phase=Phase.PLAYING, audio=audio, is_loading=False, is_playing=True)

        try:
            self.player.play(audio.audio_bytes, on_finished=self._playback_finished(generation))
        except PlaybackError as e:
            self._fail(generation, e)

    def _playback_finished(self, generation: int) -> Callable[[bool], None]:
        def on_finished(successfully: bool):
            self.dispatcher.post(lambda: self._on_playback_finished(generation, successfully))
        return on_finished

    def _on_playback_finished(self, generation: int, successfully: bool):
        if self._is_stale(generation, "playback completion"):
            return
        logger.info(f"Playback finished. Success: {successfully}")
        # Releases the finished output stream
        self.player.stop()
        self.store.update(phase=Phase.IDLE, is_playing=False)

    def _recorder_finished(self, successfully: bool):
        # Audio thread; hop to the dispatcher before touching state
        if not successfully:
            self.dispatcher.post(self.stop_recording)

    def _fail(self, generation: int, error: DualingoError):
        if self._is_stale(generation, type(error).__name__):
            return
        logger.error(f"{type(error).__name__}: {error}")
        self.store.update(
            phase=Phase.IDLE,
            is_recording=False,
            is_loading=False,
            is_playing=False,
            error=str(error)
        )
