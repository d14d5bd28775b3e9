"""Relay model-acquisition progress to the caller as protocol messages."""

from __future__ import annotations

from collections.abc import Callable

from transcribex.l1_entities.messages import Downloading, WorkerMessage
from transcribex.l1_entities.progress import ProgressEvent, ProgressStatus


class ProgressReporter:
    """Turns byte-progress events into ``Downloading`` messages.

    Only ``progress`` events that name a file and carry both byte counts are
    forwarded; ``queued``/``done`` bookkeeping stays internal.
    """

    def __init__(self, post_message: Callable[[WorkerMessage], None]) -> None:
        self._post_message = post_message

    def __call__(self, event: ProgressEvent) -> None:
        if event.status != ProgressStatus.PROGRESS:
            return
        if event.file is None or event.loaded is None or event.total is None:
            return
        self._post_message(Downloading(file=event.file, loaded=event.loaded, total=event.total))
