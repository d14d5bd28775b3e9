"""Port: process-wide access to a loaded ASR engine."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from transcribex.l1_entities.progress import ProgressEvent
from transcribex.l2_use_cases.ports.asr_engine import AsrEngine


class EngineProvider(Protocol):
    """Hands out a lazily loaded engine, loading each model at most once."""

    def get_engine(
        self,
        model_name: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> AsrEngine:
        """Return the cached engine, loading it on first use. Raises EngineUnavailable."""
        ...
