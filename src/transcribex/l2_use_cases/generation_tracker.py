"""Use case: accumulate engine chunks and publish the stitched transcript."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from transcribex.l1_entities.chunk import MergedChunk, RawChunk
from transcribex.l1_entities.errors import StitchFailure
from transcribex.l1_entities.messages import Done, Result, WorkerMessage
from transcribex.l1_entities.transcript import ProcessedChunk, TranscriptState
from transcribex.l2_use_cases.ports.asr_engine import Tokenizer
from transcribex.l2_use_cases.utils.stitching import decode_asr

log = logging.getLogger('txb.tracker')

# Share of the stride assumed to be covered by an unresolved tail.
_TAIL_STRIDE_FRACTION = 0.9


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def to_processed_chunk(
    merged: MergedChunk,
    index: int,
    stride_s: float,
    previous_end: int = 0,
) -> ProcessedChunk:
    """Trim and round a stitched chunk to whole seconds.

    A missing start falls back to *previous_end*; a missing end to
    ``start + 0.9 * stride_s``. The end never moves before *previous_end*.
    """
    raw_start, raw_end = merged.timestamp
    start_s = float(previous_end) if raw_start is None else raw_start
    start = round_half_up(start_s)
    if raw_end is None:
        end = round_half_up(start_s + _TAIL_STRIDE_FRACTION * stride_s)
    else:
        end = round_half_up(raw_end)
    return ProcessedChunk(index=index, text=merged.text.strip(), start=start, end=max(end, previous_end))


class GenerationTracker:
    """Re-stitches the full chunk history on every new chunk.

    Overlapping windows can move the split point of text already emitted, so
    the transcript is recomputed from scratch rather than patched.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        time_precision: float,
        stride_s: float,
        post_message: Callable[[WorkerMessage], None] | None = None,
    ) -> None:
        self._tokenizer = tokenizer
        self._time_precision = time_precision
        self._stride_s = stride_s
        self._post_message = post_message or (lambda message: None)
        self._history: list[RawChunk] = []
        self._state = TranscriptState()
        self._completed = False

    @property
    def state(self) -> TranscriptState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._state.cursor

    @property
    def history(self) -> tuple[RawChunk, ...]:
        return tuple(self._history)

    @property
    def completed(self) -> bool:
        return self._completed

    def stitch(self) -> TranscriptState:
        """Compute the transcript for the current history without touching state."""
        try:
            merged = decode_asr(
                self._history,
                self._tokenizer,
                self._time_precision,
                force_full_sequence=False,
            )
        except StitchFailure:
            raise
        except (ValueError, TypeError, KeyError, IndexError) as exc:
            raise StitchFailure(f'could not decode engine output: {exc}') from exc

        chunks: list[ProcessedChunk] = []
        previous_end = 0
        for index, item in enumerate(merged):
            processed = to_processed_chunk(item, index, self._stride_s, previous_end)
            chunks.append(processed)
            previous_end = processed.end
        return TranscriptState(chunks=tuple(chunks))

    def on_chunk(self, raw_chunk: RawChunk) -> TranscriptState:
        if self._completed:
            raise RuntimeError('on_chunk() called after on_complete()')

        self._history.append(raw_chunk)
        try:
            state = self.stitch()
        except StitchFailure:
            self._history.pop()
            log.warning('Dropped malformed chunk #%d', len(self._history), exc_info=True)
            raise

        self._state = state
        log.debug('Stitched %d window(s) into %d chunk(s), cursor=%ds', len(self._history), len(state), state.cursor)
        self._post_message(Result.from_state(state))
        return state

    def on_complete(self) -> TranscriptState:
        if self._completed:
            raise RuntimeError('on_complete() called twice')
        self._completed = True
        self._post_message(Done())
        return self._state
