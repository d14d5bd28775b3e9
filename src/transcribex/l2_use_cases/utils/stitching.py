"""Merge overlapping per-window Whisper token streams into timed text chunks.

Timestamp tokens (ids at or above ``tokenizer.timestamp_begin``) mark segment
boundaries relative to the start of their window. Text that runs across a
window boundary is carried over and merged with the next window's copy of
the overlap by longest-common-sequence matching.
"""

from __future__ import annotations

from collections.abc import Sequence

from transcribex.l1_entities.chunk import MergedChunk, RawChunk
from transcribex.l1_entities.errors import StitchFailure
from transcribex.l2_use_cases.ports.asr_engine import Tokenizer


def find_longest_common_sequence(sequences: Sequence[Sequence[int]]) -> list[int]:
    """Join token runs, collapsing the best-matching overlap between neighbours.

    Each pair is aligned at every possible offset; the alignment with the
    highest match ratio (at least two matching tokens) wins, and the runs are
    cut at the middle of the aligned region. Without a usable alignment the
    runs are simply concatenated.
    """
    if not sequences:
        return []

    left_sequence = list(sequences[0])
    left_length = len(left_sequence)
    total_sequence: list[int] = []

    for right_sequence in sequences[1:]:
        right_length = len(right_sequence)
        best = 0.0
        best_indices = (left_length, left_length, 0, 0)
        for i in range(1, left_length + right_length):
            # Later (longer) alignments win ties.
            eps = i / 10000.0
            left_start = max(0, left_length - i)
            left_stop = min(left_length, left_length + right_length - i)
            right_start = max(0, i - left_length)
            right_stop = min(right_length, i)
            left = left_sequence[left_start:left_stop]
            right = right_sequence[right_start:right_stop]
            if len(left) != len(right):
                raise StitchFailure('misaligned token runs while merging window overlap')

            matches = sum(1 for a, b in zip(left, right) if a == b)
            matching = matches / i + eps
            if matches > 1 and matching > best:
                best = matching
                best_indices = (left_start, left_stop, right_start, right_stop)

        left_start, left_stop, right_start, right_stop = best_indices
        left_mid = (left_stop + left_start) // 2
        right_mid = (right_stop + right_start) // 2
        total_sequence.extend(left_sequence[:left_mid])
        left_sequence = list(right_sequence[right_mid:])
        left_length = len(left_sequence)

    total_sequence.extend(left_sequence)
    return total_sequence


def _check_chunk(chunk: RawChunk) -> None:
    chunk_len, stride_left, stride_right = chunk.stride
    if chunk_len <= 0 or stride_left < 0 or stride_right < 0:
        raise StitchFailure(f'invalid window stride {chunk.stride}')
    if any(token < 0 for token in chunk.tokens):
        raise StitchFailure('negative token id in engine output')


def decode_asr(
    chunks: Sequence[RawChunk],
    tokenizer: Tokenizer,
    time_precision: float,
    force_full_sequence: bool = False,
) -> list[MergedChunk]:
    """Stitch the whole chunk history into timed text chunks.

    With *force_full_sequence* False a trailing run of text without a closing
    timestamp is returned with ``end=None`` (best effort for an in-progress
    tail); with True it raises StitchFailure instead.
    """
    if time_precision <= 0:
        raise StitchFailure(f'time_precision must be positive, got {time_precision}')

    timestamp_begin = tokenizer.timestamp_begin
    special_ids = set(tokenizer.all_special_ids)

    merged: list[MergedChunk] = []
    start: float | None = None
    time_offset = 0.0
    previous_tokens: list[list[int]] = []
    skip = False

    for chunk in chunks:
        _check_chunk(chunk)
        token_ids = chunk.tokens
        chunk_len, stride_left, stride_right = chunk.stride

        time_offset -= stride_left
        right_stride_start = chunk_len - stride_right
        first_timestamp = timestamp_begin
        if stride_left:
            first_timestamp = stride_left / time_precision + timestamp_begin

        # The final timestamp (and any others inside the right stride) stays
        # open so the tail text can be merged with the next window.
        last_timestamp: int | None = None
        if stride_right:
            for token in reversed(token_ids):
                if token >= timestamp_begin:
                    if last_timestamp is not None and (token - timestamp_begin) * time_precision < right_stride_start:
                        break
                    last_timestamp = token

        current_tokens: list[int] = []
        for token in token_ids:
            if token in special_ids:
                continue
            if token < timestamp_begin:
                current_tokens.append(token)
                continue

            time = round((token - timestamp_begin) * time_precision + time_offset, 2)
            if last_timestamp is not None and token >= last_timestamp:
                skip = True
            elif skip or (previous_tokens and token < first_timestamp):
                skip = False
            elif start is None:
                start = time
            elif time != start:
                previous_tokens.append(current_tokens)
                resolved = find_longest_common_sequence(previous_tokens)
                merged.append(MergedChunk(text=tokenizer.decode(resolved), timestamp=(start, time)))
                previous_tokens = []
                current_tokens = []
                start = None

        time_offset += chunk_len - stride_right

        if current_tokens:
            previous_tokens.append(current_tokens)
        elif all(not tokens for tokens in previous_tokens):
            previous_tokens = []
            start = None

    if previous_tokens:
        if force_full_sequence:
            raise StitchFailure(
                'engine did not predict an ending timestamp; audio may be cut off in the middle of a word'
            )
        resolved = find_longest_common_sequence(previous_tokens)
        merged.append(MergedChunk(text=tokenizer.decode(resolved), timestamp=(start, None)))

    return merged
