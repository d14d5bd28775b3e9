"""CLI entry point for transcribex."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from pydantic import ValidationError

from transcribex import __version__
from transcribex.l1_entities.model_names import ModelName


def _err(msg: str) -> None:
    click.echo(msg, err=True)


def _build_overrides(model, window_length, stride, device, log_file) -> dict:
    transcription: dict = {}
    if model:
        transcription['model'] = model
    if window_length is not None:
        transcription['window_length_s'] = window_length
    if stride is not None:
        transcription['stride_s'] = stride
    if device:
        transcription['device'] = device
    overrides: dict = {}
    if transcription:
        overrides['transcription'] = transcription
    if log_file:
        overrides['logging'] = {'file': log_file}
    return overrides


@click.command()
@click.argument('audio_file', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option(
    '-m',
    '--model',
    default=None,
    help=f'Whisper model repo id or local directory (e.g. {", ".join(m.value for m in ModelName)}).',
)
@click.option('--window-length', type=float, default=None, help='Window length in seconds (default 30, at most the model context).')
@click.option('--stride', type=float, default=None, help='Overlap between windows in seconds (default 5).')
@click.option('--device', default=None, help="Torch device, e.g. 'cpu' or 'cuda'.")
@click.option('--log-file', default=None, type=click.Path(dir_okay=False), help='Write debug log to this file.')
@click.version_option(version=__version__)
def cli(audio_file, config_path, model, window_length, stride, device, log_file):
    """transcribex -- transcribe a long audio file with Whisper, streaming progress."""
    from transcribex.l1_entities.errors import InvalidAudio  # noqa: PLC0415 -- deferred: not needed for --help
    from transcribex.l3_interface_adapters.gateways.audio_file_loader import (  # noqa: PLC0415 -- deferred: not needed for --help
        load_audio_file,
    )
    from transcribex.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from transcribex.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )

    try:
        overrides = _build_overrides(model, window_length, stride, device, log_file)
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides or None)
        config = build_app_config(raw)
    except (FileNotFoundError, ValidationError, ValueError) as e:
        _err(f'Error: {e}')
        sys.exit(1)

    if config.logging.file:
        from transcribex.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: only with --log-file
            setup_file_logging,
        )

        setup_file_logging(Path(config.logging.file), config.logging.level)

    _err(f'Loading audio: {audio_file}')
    try:
        audio = load_audio_file(Path(audio_file))
    except (FileNotFoundError, RuntimeError, InvalidAudio) as e:
        _err(f'Error: {e}')
        sys.exit(1)

    from transcribex.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: torch stack not loaded for --help
        DependencyContainer,
    )

    container = DependencyContainer(config)
    ok = run_and_print(container, audio, config.transcription.model)
    if not ok:
        sys.exit(1)


def run_and_print(container, audio, model_name: str) -> bool:
    """Submit *audio*, echo progress to stderr and the final transcript to stdout."""
    from transcribex.l1_entities.messages import (  # noqa: PLC0415 -- deferred: pydantic models not loaded on --help
        Done,
        Downloading,
        Failed,
        LoadingModel,
        ModelReady,
        Result,
        StartTranscription,
    )
    from transcribex.l1_entities.transcript import format_wall_time  # noqa: PLC0415 -- deferred alongside messages

    stream = container.worker.submit(StartTranscription(audio=audio, model_name=model_name))
    latest: Result | None = None
    shown_percent: dict[str, int] = {}

    try:
        for message in stream:
            if isinstance(message, LoadingModel):
                _err(f'Loading model: {message.model_name}')
            elif isinstance(message, Downloading):
                percent = int(message.progress)
                if shown_percent.get(message.file) != percent:
                    shown_percent[message.file] = percent
                    _err(f'  Downloading {message.file}: {percent}%')
            elif isinstance(message, ModelReady):
                _err('Model ready. Transcribing...')
            elif isinstance(message, Result):
                latest = message
                _err(f'  transcribed up to {format_wall_time(message.cursor)}')
            elif isinstance(message, Failed):
                _err(f'Error: {message.reason}: {message.detail}')
                return False
            elif isinstance(message, Done):
                break
    except KeyboardInterrupt:
        _err('Cancelling after the current window...')
        stream.cancel()
        for message in stream:
            if isinstance(message, Result):
                latest = message
        return False

    if latest is None or not latest.transcript:
        _err('No speech detected in the audio file.')
        return True

    for chunk in latest.transcript:
        click.echo(f'[{format_wall_time(chunk.start)}] {chunk.text}')
    return True
