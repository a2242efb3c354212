"""
Tests for the command-line entry points.
"""

import sys
from unittest.mock import MagicMock, patch

import pytest

from dualingo import cli
from dualingo.models import LanguageMode, Phase, PipelineState, TranslationResult

from conftest import FakePortAudioError


@pytest.fixture(autouse=True)
def no_log_files():
    with patch("dualingo.cli.setup_logger"):
        yield


def run_main(*argv):
    with patch.object(sys, "argv", ["dualingo", *argv]):
        return cli.main()


def test_no_command_prints_help(capsys):
    assert run_main() == 1
    assert "usage" in capsys.readouterr().out


def test_list_devices(capsys):
    devices = [{"index": 0, "name": "Mic", "max_input_channels": 1, "max_output_channels": 0,
                "default_samplerate": 16000.0, "hostapi": "ALSA"}]

    with patch("dualingo.cli.list_audio_devices", return_value=devices):
        assert run_main("list-devices") == 0

    out = capsys.readouterr().out
    assert "[ 0] Mic" in out
    assert "mic x1" in out


def test_self_test_reports_missing_outputs(capsys):
    devices = [{"index": 0, "name": "Mic", "max_input_channels": 1, "max_output_channels": 0,
                "default_samplerate": 16000.0, "hostapi": "ALSA"}]

    with patch("dualingo.cli.list_audio_devices", return_value=devices), \
         patch("dualingo.cli.validate_environment", return_value=[]):
        assert run_main("self-test") == 1

    assert "No output devices found" in capsys.readouterr().out


def test_cli_overrides_config(tmp_path):
    with patch("dualingo.cli.cmd_run", return_value=0) as cmd_run:
        run_main("run", "--language-mode", "Taiwanese", "--base-url", "http://localhost:8080/",
                 "--hotkey", "F9", "--hotkey-mode", "hold")

    config = cli._load(cmd_run.call_args.args[0])

    assert config.ui.language_mode == LanguageMode.TAIWANESE
    assert config.service.translate_url == "http://localhost:8080/process-and-translate/"
    assert config.ui.hotkey == "F9"
    assert config.ui.hotkey_mode == "hold"


def test_translate_missing_file(tmp_path, capsys):
    assert run_main("translate", str(tmp_path / "absent.wav")) == 1
    assert "File not found" in capsys.readouterr().out


def test_translate_prints_result(tmp_path, capsys):
    wav = tmp_path / "in.wav"
    wav.write_bytes(b"RIFF")
    result = TranslationResult(detected_language="en", processed_text="hi", translated_text="hello")

    pipeline = MagicMock()
    pipeline.state = PipelineState(phase=Phase.PROCESSING, is_loading=True)

    def finish(timeout=None):
        pipeline.state = PipelineState(result=result)

    pipeline.dispatcher.drain.side_effect = finish

    with patch("dualingo.cli.build_pipeline", return_value=pipeline):
        assert run_main("translate", str(wav), "--language-mode", "English") == 0

    pipeline.process_file.assert_called_once_with(wav)
    pipeline.close.assert_called_once()
    assert "Translated Text: hello" in capsys.readouterr().out


def test_translate_failure_exit_code(tmp_path):
    wav = tmp_path / "in.wav"
    wav.write_bytes(b"RIFF")
    pipeline = MagicMock()
    pipeline.state = PipelineState(error="Server error: status 500")

    with patch("dualingo.cli.build_pipeline", return_value=pipeline):
        assert run_main("translate", str(wav)) == 1


@pytest.mark.parametrize("base_url", ["ftp://translator.test", "translator.test", "http://[::1"])
def test_invalid_base_url_override(tmp_path, capsys, base_url):
    wav = tmp_path / "in.wav"
    wav.write_bytes(b"RIFF")

    with patch("dualingo.cli.build_pipeline") as build_pipeline:
        assert run_main("translate", str(wav), "--base-url", base_url) == 1

    build_pipeline.assert_not_called()
    assert "Configuration error" in capsys.readouterr().out


def test_list_devices_backend_failure(mock_sd, capsys):
    mock_sd.sd.query_devices.side_effect = FakePortAudioError("Error querying host API")

    assert run_main("list-devices") == 1
    assert "Could not query audio devices" in capsys.readouterr().out


def test_self_test_backend_failure(mock_sd, capsys):
    mock_sd.sd.query_devices.side_effect = FakePortAudioError("Error querying host API")

    assert run_main("self-test") == 1
    assert "Self-test FAILED" in capsys.readouterr().out
