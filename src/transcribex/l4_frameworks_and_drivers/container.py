"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from transcribex.l1_entities.config import AppConfig
from transcribex.l2_use_cases.ports.engine_loader import EngineLoader
from transcribex.l3_interface_adapters.gateways.engine_provider import SingleFlightEngineProvider
from transcribex.l4_frameworks_and_drivers.workers.transcription_worker import TranscriptionWorker


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(self, config: AppConfig, engine_loader: EngineLoader | None = None) -> None:
        self.config = config

        if engine_loader is None:  # pragma: no cover -- default wiring; loader always injected in tests
            from transcribex.l3_interface_adapters.gateways.whisper_engine import (  # noqa: PLC0415 -- deferred: torch/transformers load only when needed
                WhisperEngineLoader,
            )

            engine_loader = WhisperEngineLoader(device=config.transcription.device)

        self.engine_loader: EngineLoader = engine_loader
        self.engines = SingleFlightEngineProvider(engine_loader)
        self.worker = TranscriptionWorker(self.engines, config.transcription.window_spec())
