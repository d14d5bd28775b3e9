"""Transcript entities."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


def format_wall_time(seconds: float) -> str:
    """Format seconds as HH:MM:SS for wall-clock display."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f'{hours:02d}:{minutes:02d}:{secs:02d}'


class ProcessedChunk(BaseModel):
    """A single stitched transcript line with whole-second bounds."""

    model_config = ConfigDict(frozen=True)

    index: int
    text: str
    start: int = Field(description='Offset in seconds from the start of the audio')
    end: int = Field(description='Offset in seconds from the start of the audio')


class TranscriptState(BaseModel):
    """Ordered transcript snapshot; ``cursor`` is how far it has been resolved."""

    model_config = ConfigDict(frozen=True)

    chunks: tuple[ProcessedChunk, ...] = ()

    @property
    def cursor(self) -> int:
        return self.chunks[-1].end if self.chunks else 0

    def __len__(self) -> int:
        return len(self.chunks)
