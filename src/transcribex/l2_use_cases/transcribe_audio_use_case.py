"""Use case: transcribe one decoded audio buffer — load, plan, run, stitch."""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from transcribex.l1_entities.audio_constants import SAMPLE_RATE
from transcribex.l1_entities.errors import InvalidAudio, TranscriptionCancelled, WindowTooLong
from transcribex.l1_entities.messages import LoadingModel, ModelReady, WorkerMessage
from transcribex.l1_entities.transcript import TranscriptState
from transcribex.l1_entities.window import WindowSpec
from transcribex.l2_use_cases.generation_tracker import GenerationTracker
from transcribex.l2_use_cases.plan_windows_use_case import plan_windows
from transcribex.l2_use_cases.ports.engine_provider import EngineProvider
from transcribex.l2_use_cases.progress_reporter import ProgressReporter

log = logging.getLogger('txb.transcribe')


def validate_audio(audio: np.ndarray) -> np.ndarray:
    """Return *audio* as a 1-D float32 array, or raise InvalidAudio."""
    if not isinstance(audio, np.ndarray):
        raise InvalidAudio(f'audio must be a numpy array, got {type(audio).__name__}')
    if audio.ndim != 1:
        raise InvalidAudio(f'audio must be 1-dimensional mono, got shape {audio.shape}')
    if len(audio) == 0:
        raise InvalidAudio('audio cannot be empty')
    if not np.issubdtype(audio.dtype, np.floating):
        raise InvalidAudio(f'audio must be floating point PCM, got {audio.dtype}')
    if not np.all(np.isfinite(audio)):
        raise InvalidAudio('audio contains NaN or infinite samples')
    return audio.astype(np.float32, copy=False)


class TranscribeAudioUseCase:
    """Runs one transcription call end to end, posting protocol messages.

    Does no threading itself — the worker decides where this runs. Errors
    propagate as TranscriptionError subclasses; turning them into ``Failed``
    is the worker's job.
    """

    def __init__(
        self,
        engines: EngineProvider,
        window_spec: WindowSpec | None = None,
    ) -> None:
        self._engines = engines
        self._window_spec = window_spec or WindowSpec()

    @property
    def window_spec(self) -> WindowSpec:
        return self._window_spec

    def execute(
        self,
        audio: np.ndarray,
        model_name: str,
        post_message: Callable[[WorkerMessage], None],
        is_cancelled: Callable[[], bool] = lambda: False,
    ) -> TranscriptState:
        audio = validate_audio(audio)
        duration = len(audio) / SAMPLE_RATE

        post_message(LoadingModel(model_name=model_name))
        engine = self._engines.get_engine(model_name, on_progress=ProgressReporter(post_message))
        post_message(ModelReady())

        if self._window_spec.window_length_s > engine.max_window_s:
            raise WindowTooLong(
                f'window_length_s={self._window_spec.window_length_s}s exceeds the '
                f'{engine.max_window_s}s context of {model_name}'
            )

        windows = plan_windows(len(audio), self._window_spec, SAMPLE_RATE)
        log.info(
            'Transcribing %.1fs of audio in %d window(s) (window=%ss, stride=%ss)',
            duration,
            len(windows),
            self._window_spec.window_length_s,
            self._window_spec.stride_s,
        )

        tracker = GenerationTracker(
            tokenizer=engine.tokenizer,
            time_precision=engine.time_precision,
            stride_s=self._window_spec.stride_s,
            post_message=post_message,
        )
        finished = engine.run(audio, windows, tracker.on_chunk, is_cancelled)
        if not finished:
            log.info('Transcription cancelled after %d window(s)', len(tracker.history))
            raise TranscriptionCancelled(f'cancelled after {len(tracker.history)} of {len(windows)} windows')

        return tracker.on_complete()
