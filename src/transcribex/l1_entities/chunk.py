"""Engine output units before and after stitching."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RawChunk(BaseModel):
    """Tokens the engine produced for one window, timestamp tokens included."""

    model_config = ConfigDict(frozen=True)

    tokens: list[int]
    stride: tuple[float, float, float] = Field(
        description='(window_length_s, stride_left_s, stride_right_s) of the source window'
    )
    is_last: bool = False


class MergedChunk(BaseModel):
    """A stitched span of text. ``end`` is None when the engine left the tail unresolved."""

    text: str = ''
    timestamp: tuple[float | None, float | None] = (None, None)
