"""Transcription worker — runs one call at a time on a background thread.

The caller and the worker share nothing but a ``queue.Queue`` of protocol
messages; each accepted call gets its own queue, exposed as a
``TranscriptionStream``.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

from transcribex.l1_entities.errors import Busy, TranscriptionError
from transcribex.l1_entities.messages import (
    Failed,
    Queued,
    StartTranscription,
    WorkerMessage,
    is_terminal,
)
from transcribex.l1_entities.transcript import TranscriptState
from transcribex.l1_entities.window import WindowSpec
from transcribex.l2_use_cases.ports.engine_provider import EngineProvider
from transcribex.l2_use_cases.transcribe_audio_use_case import TranscribeAudioUseCase

log = logging.getLogger('txb.worker')


class CancellationToken:
    """Set by the caller, polled by the engine between windows."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


class TranscriptionStream:
    """Messages of one transcription call, ending with ``Done`` or ``Failed``.

    Iterating blocks until the worker posts the next message. Once the
    terminal message has been yielded the stream is exhausted for good.
    """

    def __init__(self, messages: queue.Queue, token: CancellationToken) -> None:
        self._messages = messages
        self._token = token
        self._finished = False

    def __iter__(self) -> TranscriptionStream:
        return self

    def __next__(self) -> WorkerMessage:
        if self._finished:
            raise StopIteration
        message = self._messages.get()
        if is_terminal(message):
            self._finished = True
        return message

    @property
    def finished(self) -> bool:
        return self._finished

    def cancel(self) -> None:
        self._token.cancel()


def run_transcription(
    post_message: Callable[[WorkerMessage], None],
    is_cancelled: Callable[[], bool],
    use_case: TranscribeAudioUseCase,
    request: StartTranscription,
) -> TranscriptState | None:
    """Thread body: run one call, posting exactly one terminal message.

    ``Done`` comes from the use case; every failure becomes ``Failed``.
    """
    try:
        return use_case.execute(
            audio=request.audio,
            model_name=request.model_name,
            post_message=post_message,
            is_cancelled=is_cancelled,
        )
    except TranscriptionError as exc:
        log.error('Transcription failed (%s): %s', exc.reason, exc, exc_info=True)
        post_message(Failed(reason=exc.reason, detail=str(exc)))
    except Exception as exc:
        log.error('Unexpected transcription failure: %s', exc, exc_info=True)
        post_message(Failed(reason='InternalError', detail=str(exc)))
    return None


class TranscriptionWorker:
    """Single-flight front door: a request arriving mid-call is rejected as Busy."""

    def __init__(self, engines: EngineProvider, window_spec: WindowSpec | None = None) -> None:
        self._use_case = TranscribeAudioUseCase(engines, window_spec)
        self._busy = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def submit(
        self,
        request: StartTranscription,
        cancel: CancellationToken | None = None,
    ) -> TranscriptionStream:
        token = cancel or CancellationToken()
        messages: queue.Queue = queue.Queue()
        stream = TranscriptionStream(messages, token)

        if not self._busy.acquire(blocking=False):
            log.warning('Rejected transcription request: another call is in progress')
            messages.put(Failed(reason=Busy.reason, detail='a transcription is already in progress'))
            return stream

        messages.put(Queued())
        self._thread = threading.Thread(
            target=self._run,
            args=(request, messages, token),
            name='txb-transcription',
            daemon=True,
        )
        self._thread.start()
        return stream

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run(self, request: StartTranscription, messages: queue.Queue, token: CancellationToken) -> None:
        terminal: list[WorkerMessage] = []

        def _post(message: WorkerMessage) -> None:
            # Hold the terminal message until the worker is free again, so a
            # caller reacting to it can submit the next call straight away.
            if is_terminal(message):
                terminal.append(message)
            else:
                messages.put(message)

        try:
            run_transcription(_post, token, self._use_case, request)
        finally:
            self._busy.release()
            for message in terminal[:1]:
                messages.put(message)
