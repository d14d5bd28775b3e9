"""Tests for CLI entry point — patches deferred imports at source module level."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from click.testing import CliRunner

from tests.conftest import DOWNLOAD_EVENTS, FakeEngine, FakeEngineLoader
from transcribex import __version__
from transcribex.l1_entities.errors import EngineUnavailable, InvalidAudio
from transcribex.l1_entities.messages import Failed, Queued, Result
from transcribex.l1_entities.transcript import ProcessedChunk
from transcribex.l4_frameworks_and_drivers.cli import (
    _build_overrides,  # noqa: PLC2701 -- testing private helper
    cli,
    run_and_print,
)
from transcribex.l4_frameworks_and_drivers.container import DependencyContainer

# Patch targets at SOURCE module level (not cli module) because cli() uses
# deferred `from X import Y` which creates local bindings that bypass
# module-level attribute patches.
_LOAD_AUDIO = 'transcribex.l3_interface_adapters.gateways.audio_file_loader.load_audio_file'
_CONTAINER = 'transcribex.l4_frameworks_and_drivers.container.DependencyContainer'
_CONFIG_PATHS = 'transcribex.l3_interface_adapters.gateways.yaml_config_loader.DEFAULT_CONFIG_PATHS'

_AUDIO = np.full(16000 * 65, 0.1, dtype=np.float32)


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path):
    with patch(_CONFIG_PATHS, [tmp_path / 'absent.yaml']):
        yield


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / 'talk.wav'
    path.touch()
    return path


def _invoke(args, loader: FakeEngineLoader | None = None, audio=_AUDIO):
    built: list[DependencyContainer] = []

    def make_container(config):
        container = DependencyContainer(config, engine_loader=loader or FakeEngineLoader())
        built.append(container)
        return container

    with (
        patch(_LOAD_AUDIO, return_value=audio) as mock_load,
        patch(_CONTAINER, side_effect=make_container),
    ):
        result = CliRunner().invoke(cli, args)
    return result, built, mock_load


class TestBuildOverrides:
    def test_empty(self):
        assert _build_overrides(None, None, None, None, None) == {}

    def test_all_options(self):
        assert _build_overrides('openai/whisper-base', 20.0, 4.0, 'cuda', 'run.log') == {
            'transcription': {
                'model': 'openai/whisper-base',
                'window_length_s': 20.0,
                'stride_s': 4.0,
                'device': 'cuda',
            },
            'logging': {'file': 'run.log'},
        }

    def test_zero_stride_kept(self):
        assert _build_overrides(None, None, 0.0, None, None) == {'transcription': {'stride_s': 0.0}}


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_prints_transcript(self, audio_file: Path):
        result, _, mock_load = _invoke([str(audio_file)])

        assert result.exit_code == 0, result.output
        assert '[00:00:00] hello world' in result.output
        assert '[00:00:10] how are you fine thanks' in result.output
        assert '[00:00:40] see you later' in result.output
        assert 'Model ready' in result.output
        mock_load.assert_called_once_with(audio_file)

    def test_download_progress_reported(self, audio_file: Path):
        result, _, _ = _invoke([str(audio_file)], loader=FakeEngineLoader(progress=DOWNLOAD_EVENTS))
        assert 'Downloading model.safetensors: 50%' in result.output
        assert 'Downloading model.safetensors: 100%' in result.output

    def test_options_override_config(self, audio_file: Path, tmp_path: Path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text('transcription:\n  model: openai/whisper-base.en\n  stride_s: 3\n', encoding='utf-8')

        result, built, _ = _invoke(
            [str(audio_file), '-c', str(config_path), '--window-length', '20', '--device', 'cpu'],
            loader=FakeEngineLoader(engine=FakeEngine(scripted=[])),
        )

        assert result.exit_code == 0, result.output
        cfg = built[0].config.transcription
        assert (cfg.model, cfg.window_length_s, cfg.stride_s) == ('openai/whisper-base.en', 20.0, 3.0)

    def test_model_option_passed_to_loader(self, audio_file: Path):
        loader = FakeEngineLoader()
        result, _, _ = _invoke([str(audio_file), '-m', 'openai/whisper-small.en'], loader=loader)
        assert result.exit_code == 0, result.output
        assert loader.load_calls == ['openai/whisper-small.en']

    def test_invalid_window_policy_exits(self, audio_file: Path):
        result, built, _ = _invoke([str(audio_file), '--window-length', '5', '--stride', '5'])
        assert result.exit_code == 1
        assert 'Error' in result.output
        assert built == []

    def test_window_beyond_model_context_exits(self, audio_file: Path):
        result, _, _ = _invoke([str(audio_file), '--window-length', '40'])
        assert result.exit_code == 1
        assert 'WindowTooLong' in result.output

    def test_audio_load_error_exits(self, audio_file: Path):
        with patch(_LOAD_AUDIO, side_effect=RuntimeError('ffmpeg is required but not found on PATH.')):
            result = CliRunner().invoke(cli, [str(audio_file)])
        assert result.exit_code == 1
        assert 'ffmpeg is required' in result.output

    def test_empty_audio_exits(self, audio_file: Path):
        with patch(_LOAD_AUDIO, side_effect=InvalidAudio('Audio file contains no decodable audio')):
            result = CliRunner().invoke(cli, [str(audio_file)])
        assert result.exit_code == 1
        assert 'no decodable audio' in result.output

    def test_engine_failure_exits(self, audio_file: Path):
        result, _, _ = _invoke(
            [str(audio_file)],
            loader=FakeEngineLoader(error=EngineUnavailable('network unreachable')),
        )
        assert result.exit_code == 1
        assert 'EngineUnavailable' in result.output
        assert 'network unreachable' in result.output

    def test_silence_reports_no_speech(self, audio_file: Path):
        result, _, _ = _invoke([str(audio_file)], loader=FakeEngineLoader(engine=FakeEngine(scripted=[])))
        assert result.exit_code == 0
        assert 'No speech detected' in result.output

    def test_missing_audio_file_rejected(self, tmp_path: Path):
        result = CliRunner().invoke(cli, [str(tmp_path / 'nope.wav')])
        assert result.exit_code == 2

    def test_log_file_written(self, audio_file: Path, tmp_path: Path):
        log_path = tmp_path / 'logs' / 'run.log'
        logger = logging.getLogger('txb')
        handlers, level = list(logger.handlers), logger.level
        try:
            result, _, _ = _invoke([str(audio_file), '--log-file', str(log_path)])
            for handler in logger.handlers:
                handler.flush()
            assert result.exit_code == 0, result.output
            assert log_path.exists()
            assert 'Debug logging started' in log_path.read_text(encoding='utf-8')
        finally:
            for handler in logger.handlers:
                if handler not in handlers:
                    handler.close()
            logger.handlers = handlers
            logger.setLevel(level)


class _InterruptedStream:
    """Raises KeyboardInterrupt on the second read, then drains to Failed."""

    def __init__(self) -> None:
        self.cancelled = False
        self._reads = 0

    def __iter__(self):
        return self

    def __next__(self):
        self._reads += 1
        if self._reads == 1:
            return Queued()
        if self._reads == 2:
            raise KeyboardInterrupt
        if self._reads == 3:
            return Result(transcript=[ProcessedChunk(index=0, text='partial', start=0, end=5)], cursor=5)
        if self._reads == 4:
            return Failed(reason='Cancelled')
        raise StopIteration

    def cancel(self) -> None:
        self.cancelled = True


class TestRunAndPrint:
    def test_keyboard_interrupt_cancels_and_drains(self, capsys):
        stream = _InterruptedStream()
        container = MagicMock()
        container.worker.submit.return_value = stream

        ok = run_and_print(container, _AUDIO, 'openai/whisper-tiny.en')

        assert ok is False
        assert stream.cancelled
        assert 'Cancelling' in capsys.readouterr().err
