"""Window/stride policy and the audio windows planned from it."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from transcribex.l1_entities.audio_constants import SAMPLE_RATE


class WindowSpec(BaseModel):
    """How long each engine window is and how much consecutive windows overlap."""

    model_config = ConfigDict(frozen=True)

    window_length_s: float = Field(default=30.0, description='Duration of one engine window in seconds')
    stride_s: float = Field(default=5.0, description='Overlap between consecutive windows in seconds')

    @model_validator(mode='after')
    def _check_overlap(self) -> WindowSpec:
        if self.window_length_s <= 0:
            raise ValueError(f'window_length_s must be positive, got {self.window_length_s}')
        if self.stride_s < 0:
            raise ValueError(f'stride_s must be non-negative, got {self.stride_s}')
        if self.stride_s >= self.window_length_s:
            raise ValueError(
                f'stride_s ({self.stride_s}s) must be less than window_length_s ({self.window_length_s}s)'
            )
        return self

    @property
    def step_s(self) -> float:
        return self.window_length_s - self.stride_s


class AudioWindow(BaseModel):
    """One slice of the input handed to the engine in a single decode pass.

    ``stride_left_s``/``stride_right_s`` record how the overlap with the
    previous/next window is shared out; their sum across a boundary equals
    the configured stride.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    start_sample: int
    end_sample: int
    sample_rate: int = SAMPLE_RATE
    stride_left_s: float = 0.0
    stride_right_s: float = 0.0
    is_last: bool = False

    @property
    def start_s(self) -> float:
        return self.start_sample / self.sample_rate

    @property
    def end_s(self) -> float:
        return self.end_sample / self.sample_rate

    @property
    def length_s(self) -> float:
        return (self.end_sample - self.start_sample) / self.sample_rate

    @property
    def stride(self) -> tuple[float, float, float]:
        """``(window_length_s, stride_left_s, stride_right_s)`` as the stitcher expects it."""
        return (self.length_s, self.stride_left_s, self.stride_right_s)
