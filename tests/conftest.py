"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

import numpy as np
import pytest

from transcribex.l1_entities.chunk import RawChunk
from transcribex.l1_entities.config import AppConfig
from transcribex.l1_entities.errors import EngineUnavailable
from transcribex.l1_entities.progress import ProgressEvent, ProgressStatus
from transcribex.l1_entities.window import AudioWindow
from transcribex.l4_frameworks_and_drivers.infra_config import build_app_config

# --- Token layout shared by the fakes ---

SOT = 50
EOT = 51
TIMESTAMP_BEGIN = 100
TIME_PRECISION = 0.02  # 30 s / 1500 positions, as in real Whisper

VOCAB = {
    1: 'hello',
    2: 'world',
    3: 'how',
    4: 'are',
    5: 'you',
    6: 'fine',
    7: 'thanks',
    8: 'I',
    9: 'am',
    10: 'good',
    11: 'see',
    12: 'later',
}
WORD_IDS = {word: token for token, word in VOCAB.items()}


def ts(seconds: float) -> int:
    """Timestamp token id for *seconds* into a window."""
    return TIMESTAMP_BEGIN + round(seconds / TIME_PRECISION)


def words(text: str) -> list[int]:
    return [WORD_IDS[w] for w in text.split()]


# Token streams for 65 s of audio planned as [0,30) [25,55) [50,65).
SCRIPTED_WINDOWS = [
    [SOT, ts(0), *words('hello world'), ts(10), ts(10), *words('how are you'), ts(26), ts(26), *words('fine thanks')],
    [SOT, ts(0), *words('you fine thanks'), ts(3), ts(3), *words('I am good'), ts(15), ts(15), *words('see you'), ts(29)],
    [SOT, ts(0), *words('see you later'), ts(4), EOT],
]


# --- Protocol-conforming Fakes ---


class FakeTokenizer:
    """Fake Whisper tokenizer: ids < 50 are words, 50/51 special, >= 100 timestamps."""

    timestamp_begin = TIMESTAMP_BEGIN
    all_special_ids = {SOT, EOT}

    def decode(self, token_ids: Sequence[int]) -> str:
        return ' ' + ' '.join(VOCAB[t] for t in token_ids)


class FakeEngine:
    """Fake engine replaying scripted token lists, one per planned window."""

    def __init__(
        self,
        scripted: list[list[int]] | None = None,
        time_precision: float = TIME_PRECISION,
        max_window_s: float = 30.0,
    ) -> None:
        self._scripted = scripted if scripted is not None else SCRIPTED_WINDOWS
        self.tokenizer = FakeTokenizer()
        self.time_precision = time_precision
        self.max_window_s = max_window_s
        self.run_calls: list[list[AudioWindow]] = []
        self.window_started: Callable[[AudioWindow], None] | None = None

    def run(
        self,
        audio: np.ndarray,
        windows: Sequence[AudioWindow],
        on_chunk: Callable[[RawChunk], None],
        is_cancelled: Callable[[], bool] = lambda: False,
    ) -> bool:
        self.run_calls.append(list(windows))
        for window in windows:
            if is_cancelled():
                return False
            if self.window_started is not None:
                self.window_started(window)
            tokens = self._scripted[window.index] if window.index < len(self._scripted) else []
            on_chunk(RawChunk(tokens=tokens, stride=window.stride, is_last=window.is_last))
        return True


class FakeEngineLoader:
    """Fake loader that reports scripted progress and counts loads."""

    def __init__(
        self,
        engine: FakeEngine | None = None,
        progress: list[ProgressEvent] | None = None,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.engine = engine or FakeEngine()
        self._progress = progress or []
        self._error = error
        self._gate = gate
        self.load_calls: list[str] = []

    def load(
        self,
        model_name: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> FakeEngine:
        self.load_calls.append(model_name)
        if self._gate is not None:
            self._gate.wait(timeout=5)
        for event in self._progress:
            if on_progress is not None:
                on_progress(event)
        if self._error is not None:
            raise self._error
        return self.engine


class FakeEngineProvider:
    """Fake EngineProvider handing out a fixed engine or raising."""

    def __init__(self, engine: FakeEngine | None = None, error: Exception | None = None) -> None:
        self.engine = engine or FakeEngine()
        self._error = error
        self.calls: list[str] = []

    def get_engine(self, model_name: str, on_progress=None) -> FakeEngine:
        self.calls.append(model_name)
        if self._error is not None:
            raise self._error
        return self.engine


# --- Standard Fixtures ---

DOWNLOAD_EVENTS = [
    ProgressEvent(status=ProgressStatus.QUEUED, file='model.safetensors', loaded=0, total=200),
    ProgressEvent(status=ProgressStatus.PROGRESS, file='model.safetensors', loaded=100, total=200),
    ProgressEvent(status=ProgressStatus.PROGRESS, file='model.safetensors', loaded=200, total=200),
    ProgressEvent(status=ProgressStatus.DONE, file='model.safetensors', loaded=200, total=200),
]


@pytest.fixture
def audio_65s() -> np.ndarray:
    return np.full(16000 * 65, 0.1, dtype=np.float32)


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_loader(fake_engine: FakeEngine) -> FakeEngineLoader:
    return FakeEngineLoader(engine=fake_engine, progress=DOWNLOAD_EVENTS)


@pytest.fixture
def failing_loader() -> FakeEngineLoader:
    return FakeEngineLoader(error=EngineUnavailable('network unreachable'))
