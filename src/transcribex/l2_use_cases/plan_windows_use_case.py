"""Use case: plan the overlapping windows the engine decodes."""

from __future__ import annotations

from transcribex.l1_entities.audio_constants import SAMPLE_RATE
from transcribex.l1_entities.errors import InvalidAudio
from transcribex.l1_entities.window import AudioWindow, WindowSpec


def plan_windows(
    total_samples: int,
    spec: WindowSpec | None = None,
    sample_rate: int = SAMPLE_RATE,
) -> list[AudioWindow]:
    """Split ``[0, total_samples)`` into windows of ``spec.window_length_s``.

    Consecutive windows start ``window_length_s - stride_s`` apart, so each
    pair overlaps by exactly ``stride_s``; the last window is clipped to the
    end of the audio. The overlap is shared evenly between the two sides of a
    boundary (right stride of the earlier window, left stride of the later).

    Raises:
        InvalidAudio: *total_samples* is not positive.
    """
    spec = spec or WindowSpec()
    if total_samples <= 0:
        raise InvalidAudio('audio cannot be empty')

    window_samples = round(spec.window_length_s * sample_rate)
    step_samples = round(spec.step_s * sample_rate)
    if window_samples <= 0 or step_samples <= 0:
        raise ValueError(f'window too short for sample rate {sample_rate}: {spec}')

    half_stride = spec.stride_s / 2
    bounds: list[tuple[int, int]] = []
    start = 0
    while True:
        end = min(start + window_samples, total_samples)
        bounds.append((start, end))
        if end >= total_samples:
            break
        start += step_samples

    last = len(bounds) - 1
    return [
        AudioWindow(
            index=i,
            start_sample=start,
            end_sample=end,
            sample_rate=sample_rate,
            stride_left_s=half_stride if i > 0 else 0.0,
            stride_right_s=half_stride if i < last else 0.0,
            is_last=i == last,
        )
        for i, (start, end) in enumerate(bounds)
    ]
