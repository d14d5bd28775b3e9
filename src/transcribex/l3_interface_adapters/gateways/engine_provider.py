"""Gateway: single-flight engine cache — implements EngineProvider port."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from transcribex.l1_entities.errors import EngineUnavailable
from transcribex.l1_entities.progress import ProgressEvent
from transcribex.l2_use_cases.ports.asr_engine import AsrEngine
from transcribex.l2_use_cases.ports.engine_loader import EngineLoader

log = logging.getLogger('txb.engine')


class _EngineCell:
    """Init-once slot for one model. Failed loads leave it empty so a later call can retry."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.engine: AsrEngine | None = None


class SingleFlightEngineProvider:
    """Loads each model at most once per process.

    A caller arriving while a load is in flight blocks on the cell lock and
    then reuses the loaded engine; only the loading call sees progress events.
    """

    def __init__(self, loader: EngineLoader) -> None:
        self._loader = loader
        self._cells: dict[str, _EngineCell] = {}
        self._cells_lock = threading.Lock()

    def get_engine(
        self,
        model_name: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> AsrEngine:
        with self._cells_lock:
            cell = self._cells.setdefault(model_name, _EngineCell())

        with cell.lock:
            if cell.engine is not None:
                return cell.engine
            log.info('Loading engine for %s', model_name)
            try:
                cell.engine = self._loader.load(model_name, on_progress=on_progress)
            except EngineUnavailable:
                raise
            except Exception as exc:
                raise EngineUnavailable(f'Failed to load {model_name}: {exc}') from exc
            return cell.engine
