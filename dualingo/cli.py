"""
Command-line interface for the Dualingo voice translation client.

Provides commands for the interactive recorder, one-shot file translation,
listing devices, and self-test.
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import Config, ServiceConfig, load_config, validate_environment
from .audio_devices import list_audio_devices
from .dispatch import MainThreadDispatcher
from .errors import DeviceError
from .hotkey import RecordHotkey
from .models import LanguageMode, Phase
from .pipeline import PipelineController
from .player import Player
from .recorder import Recorder
from .synthesis_client import SpeechSynthesisClient
from .translation_client import TranslationClient
from .utils import setup_logger, format_device_list
from .view import ConsoleView, render

logger = logging.getLogger(__name__)


def build_pipeline(config: Config) -> PipelineController:
    """Wire recorder, player and HTTP clients from configuration."""
    recorder = Recorder(
        recordings_dir=config.audio.recordings_dir,
        sample_rate=config.audio.sample_rate,
        fallback_sample_rate=config.audio.fallback_sample_rate,
        channels=config.audio.channels,
        input_device=config.audio.input_device,
        output_device=config.audio.output_device,
        keep_recordings=config.audio.keep_recordings
    )
    player = Player(output_device=config.audio.output_device, volume=config.audio.volume)

    return PipelineController(
        recorder=recorder,
        player=player,
        translation_client=TranslationClient(
            config.service.translate_url, timeout=config.service.timeout_s
        ),
        synthesis_client=SpeechSynthesisClient(
            config.service.synthesize_url, timeout=config.service.timeout_s
        ),
        dispatcher=MainThreadDispatcher(),
        language_mode=config.ui.language_mode,
        dump_audio=config.logging.dump_audio,
        dump_path=config.logging.dump_path
    )


def _load(args) -> Config:
    config = load_config(yaml_file=getattr(args, "config", None))

    if getattr(args, "language_mode", None):
        config.ui.language_mode = LanguageMode(args.language_mode)
    if getattr(args, "base_url", None):
        overrides = {**config.service.model_dump(), "base_url": args.base_url}
        try:
            config.service = ServiceConfig(**overrides)
        except ValidationError as e:
            raise ValueError(f"Invalid --base-url: {e}") from e
    if getattr(args, "input_device", None):
        config.audio.input_device = args.input_device
    if getattr(args, "output_device", None):
        config.audio.output_device = args.output_device
    if getattr(args, "hotkey", None):
        config.ui.hotkey = args.hotkey
    if getattr(args, "hotkey_mode", None):
        config.ui.hotkey_mode = args.hotkey_mode
    if getattr(args, "log_level", None):
        config.logging.log_level = args.log_level

    setup_logger(level=config.logging.log_level, log_file=config.logging.log_file)
    return config


def cmd_list_devices(args):
    """List all available audio devices."""
    print("\n🎤 Enumerating Audio Devices...")

    try:
        devices = list_audio_devices()
    except DeviceError as e:
        print(f"❌ {e}")
        return 1

    print(format_device_list(devices))
    return 0


def cmd_self_test(args):
    """Run self-test to verify configuration and audio devices."""
    print("\n🔧 Running Self-Test...\n")

    try:
        config = _load(args)
    except ValueError as e:
        print(f"❌ Configuration error: {e}")
        return 1

    print(f"✅ Configuration OK (service: {config.service.base_url})")

    errors = []

    try:
        env_errors = validate_environment(config)
        devices = list_audio_devices()
    except DeviceError as e:
        env_errors, devices = [str(e)], []

    errors.extend(env_errors)
    for err in env_errors:
        print(f"❌ {err}")

    print("\n🎵 Checking audio devices...")
    input_devices = [d for d in devices if d['max_input_channels'] > 0]
    output_devices = [d for d in devices if d['max_output_channels'] > 0]

    if input_devices:
        print(f"✅ Found {len(input_devices)} input device(s)")
    else:
        print("❌ No input devices found")
        errors.append("No input devices")

    if output_devices:
        print(f"✅ Found {len(output_devices)} output device(s)")
    else:
        print("❌ No output devices found")
        errors.append("No output devices")

    print("\n" + "=" * 60)
    if errors:
        print(f"❌ Self-test FAILED with {len(errors)} error(s)")
        return 1

    print("✅ Self-test PASSED - all systems operational")
    return 0


def cmd_run(args):
    """Run the interactive recorder."""
    print("\n🚀 Starting Dualingo...\n")

    try:
        config = _load(args)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\n❌ Configuration error: {e}")
        return 1

    print("Configuration:")
    print(f"  Service: {config.service.base_url}")
    print(f"  Language Mode: {config.ui.language_mode.value}")
    print(f"  Input Device: {config.audio.input_device or 'Default'}")
    print(f"  Output Device: {config.audio.output_device or 'Default'}")
    print(f"  Recordings: {config.audio.recordings_dir}")
    print()

    hotkey = None
    if config.ui.hotkey:
        hotkey = RecordHotkey(config.ui.hotkey, mode=config.ui.hotkey_mode)

    pipeline = build_pipeline(config)
    view = ConsoleView(pipeline, hotkey=hotkey)
    try:
        view.run()
    except KeyboardInterrupt:
        print("\n\n👋 Shutting down...")
    finally:
        pipeline.close()

    return 0


def cmd_translate(args):
    """Translate an existing WAV file, then synthesize and play the translation."""
    try:
        config = _load(args)
    except ValueError as e:
        print(f"\n❌ Configuration error: {e}")
        return 1

    path = Path(args.file)
    if not path.is_file():
        print(f"❌ File not found: {path}")
        return 1

    pipeline = build_pipeline(config)
    try:
        pipeline.process_file(path)
        while pipeline.state.phase != Phase.IDLE:
            pipeline.dispatcher.drain(timeout=0.1)
    except KeyboardInterrupt:
        print("\n\n👋 Interrupted")
        return 130
    finally:
        state = pipeline.state
        pipeline.close()

    print(render(state))
    return 1 if state.error else 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Dualingo - record, translate and speak",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List available audio devices
  dualingo list-devices

  # Run self-test
  dualingo self-test

  # Interactive recorder, Taiwanese input, hold F8 to talk
  dualingo run --language-mode Taiwanese --hotkey F8 --hotkey-mode hold

  # Translate an existing recording
  dualingo translate recording.wav --language-mode English
        """
    )
    parser.add_argument('--config', type=str, help='Path to config.yaml')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    parser_list = subparsers.add_parser('list-devices', help='List all available audio devices')
    parser_list.set_defaults(func=cmd_list_devices)

    parser_test = subparsers.add_parser('self-test', help='Check configuration and audio devices')
    parser_test.set_defaults(func=cmd_self_test)

    def add_common(sub):
        sub.add_argument(
            '--language-mode',
            choices=[m.value for m in LanguageMode],
            help='Source language hint (default: Any)'
        )
        sub.add_argument('--base-url', type=str, help='Translation service base URL')
        sub.add_argument('--output-device', type=str, help='Speaker device name (substring match)')
        sub.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            help='Logging level (default: INFO)'
        )

    parser_run = subparsers.add_parser('run', help='Interactive record/translate/playback')
    add_common(parser_run)
    parser_run.add_argument('--input-device', type=str, help='Microphone device name (substring match)')
    parser_run.add_argument('--hotkey', type=str, help='Global record hotkey (e.g. F8)')
    parser_run.add_argument(
        '--hotkey-mode',
        choices=['toggle', 'hold'],
        help='Press to toggle, or hold to record (default: toggle)'
    )
    parser_run.set_defaults(func=cmd_run)

    parser_translate = subparsers.add_parser('translate', help='Translate and speak an existing WAV file')
    parser_translate.add_argument('file', type=str, help='WAV file to upload')
    add_common(parser_translate)
    parser_translate.set_defaults(func=cmd_translate)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
