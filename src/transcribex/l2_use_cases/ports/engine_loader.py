"""Port: ASR engine construction."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from transcribex.l1_entities.progress import ProgressEvent
from transcribex.l2_use_cases.ports.asr_engine import AsrEngine


class EngineLoader(Protocol):
    """Builds an engine for a model name, reporting acquisition progress."""

    def load(
        self,
        model_name: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> AsrEngine:
        """Fetch and load *model_name*. Raises EngineUnavailable on failure."""
        ...
