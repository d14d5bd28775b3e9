"""Model acquisition progress events."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ProgressStatus(str, Enum):
    QUEUED = 'queued'
    PROGRESS = 'progress'
    DONE = 'done'


class ProgressEvent(BaseModel):
    status: ProgressStatus
    file: str | None = None
    loaded: int | None = None
    total: int | None = None

