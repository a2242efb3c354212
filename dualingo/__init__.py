"""
Dualingo voice translation client.

Records a short voice clip, uploads it to a remote translation service,
then plays back synthesized speech of the translation.
"""

from .config import Config, load_config
from .pipeline import PipelineController
from .player import Player
from .recorder import Recorder
from .synthesis_client import SpeechSynthesisClient
from .translation_client import TranslationClient
from .view import ConsoleView

__version__ = "0.1.0"
__all__ = [
    "Config",
    "load_config",
    "Recorder",
    "Player",
    "TranslationClient",
    "SpeechSynthesisClient",
    "PipelineController",
    "ConsoleView",
]
