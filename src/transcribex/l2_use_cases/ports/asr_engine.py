"""Port: automatic-speech-recognition engine."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

import numpy as np

from transcribex.l1_entities.chunk import RawChunk
from transcribex.l1_entities.window import AudioWindow


class Tokenizer(Protocol):
    """The slice of a Whisper tokenizer the stitcher needs."""

    @property
    def timestamp_begin(self) -> int:
        """Id of the ``<|0.00|>`` token; every id at or above it is a timestamp."""
        ...

    @property
    def all_special_ids(self) -> set[int]:
        ...

    def decode(self, token_ids: Sequence[int]) -> str:
        """Decode text tokens, skipping special tokens."""
        ...


class AsrEngine(Protocol):
    """A loaded model. Read-only after loading; not safe for concurrent ``run`` calls."""

    @property
    def tokenizer(self) -> Tokenizer:
        ...

    @property
    def time_precision(self) -> float:
        """Seconds per timestamp-token step, derived from the loaded model."""
        ...

    @property
    def max_window_s(self) -> float:
        """Longest window the model decodes in one pass; anything beyond is cut off."""
        ...

    def run(
        self,
        audio: np.ndarray,
        windows: Sequence[AudioWindow],
        on_chunk: Callable[[RawChunk], None],
        is_cancelled: Callable[[], bool] = lambda: False,
    ) -> bool:
        """Decode every window in order, calling *on_chunk* once per window.

        *is_cancelled* is checked before each window. Returns False if the run
        stopped early because of cancellation, True otherwise.
        """
        ...
