"""Gateway: decode any file ffmpeg understands into 16 kHz mono float32 PCM."""

from __future__ import annotations

import logging
import shutil
import subprocess  # noqa: S404 -- fixed argument list, never shell=True
from pathlib import Path

import numpy as np

from transcribex.l1_entities.audio_constants import SAMPLE_RATE
from transcribex.l1_entities.errors import InvalidAudio

log = logging.getLogger('txb.audio')

DECODE_TIMEOUT_S = 300.0


def ffmpeg_command(path: Path, sample_rate: int = SAMPLE_RATE) -> list[str]:
    """ffmpeg invocation that writes raw little-endian float32 mono samples to stdout."""
    return [
        'ffmpeg',
        '-nostdin',
        '-loglevel',
        'error',
        '-i',
        str(path),
        '-vn',
        '-ac',
        '1',
        '-ar',
        str(sample_rate),
        '-f',
        'f32le',
        'pipe:1',
    ]


def load_audio_file(path: Path, timeout: float = DECODE_TIMEOUT_S) -> np.ndarray:
    """Decode *path* (audio or video container) to a float32 array at SAMPLE_RATE.

    Raises:
        FileNotFoundError: *path* is not a file.
        RuntimeError: ffmpeg is missing, cannot start, fails or exceeds *timeout*.
        InvalidAudio: decoding produced no samples (e.g. no audio stream).
    """
    if not path.is_file():
        raise FileNotFoundError(f'Audio file not found: {path}')
    if shutil.which('ffmpeg') is None:
        raise RuntimeError('ffmpeg is required to decode audio files but was not found on PATH')

    cmd = ffmpeg_command(path)
    log.debug('Decoding %s', path)
    try:
        proc = subprocess.run(cmd, capture_output=True, timeout=timeout, check=False)  # noqa: S603
    except subprocess.TimeoutExpired as exc:
        raise RuntimeError(f'Decoding {path.name} took longer than {timeout:g}s') from exc
    except OSError as exc:
        raise RuntimeError(f'Could not start ffmpeg: {exc}') from exc

    if proc.returncode != 0:
        detail = proc.stderr.decode('utf-8', errors='replace').strip() or 'no error output'
        raise RuntimeError(f'ffmpeg could not decode {path.name} (exit {proc.returncode}): {detail}')

    samples = np.frombuffer(proc.stdout, dtype=np.float32)
    if samples.size == 0:
        raise InvalidAudio(f'{path.name} contains no audio stream')
    log.info('Decoded %s: %.1fs of audio', path.name, samples.size / SAMPLE_RATE)
    return samples
