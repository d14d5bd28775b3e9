"""Gateway: HuggingFace transformers Whisper engine — implements AsrEngine and EngineLoader ports."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

import numpy as np
import torch
from transformers import WhisperForConditionalGeneration, WhisperProcessor

from transcribex.l1_entities.chunk import RawChunk
from transcribex.l1_entities.errors import EngineUnavailable
from transcribex.l1_entities.progress import ProgressEvent
from transcribex.l1_entities.window import AudioWindow
from transcribex.l2_use_cases.ports.model_resolver import ModelResolver
from transcribex.l3_interface_adapters.gateways.hf_model_resolver import HfModelResolver

log = logging.getLogger('txb.engine')


class WhisperTokenizerAdapter:
    """Exposes timestamp/special-token layout and text decoding of a Whisper tokenizer."""

    def __init__(self, tokenizer) -> None:
        self._tokenizer = tokenizer
        self._timestamp_begin = tokenizer.convert_tokens_to_ids('<|notimestamps|>') + 1
        self._special_ids = {i for i in tokenizer.all_special_ids if i < self._timestamp_begin}

    @property
    def timestamp_begin(self) -> int:
        return self._timestamp_begin

    @property
    def all_special_ids(self) -> set[int]:
        return self._special_ids

    def decode(self, token_ids: Sequence[int]) -> str:
        return self._tokenizer.decode(list(token_ids), skip_special_tokens=True)


class WhisperEngine:
    """Greedy Whisper decoding with timestamp tokens, one generate() per window."""

    def __init__(self, processor, model, device: str = 'cpu') -> None:
        self._processor = processor
        self._model = model
        self._device = device
        self._tokenizer = WhisperTokenizerAdapter(processor.tokenizer)
        self._max_window_s = float(processor.feature_extractor.chunk_length)
        self._time_precision = processor.feature_extractor.chunk_length / model.config.max_source_positions

    @property
    def tokenizer(self) -> WhisperTokenizerAdapter:
        return self._tokenizer

    @property
    def time_precision(self) -> float:
        return self._time_precision

    @property
    def max_window_s(self) -> float:
        return self._max_window_s

    def run(
        self,
        audio: np.ndarray,
        windows: Sequence[AudioWindow],
        on_chunk: Callable[[RawChunk], None],
        is_cancelled: Callable[[], bool] = lambda: False,
    ) -> bool:
        for window in windows:
            if is_cancelled():
                return False
            on_chunk(self._decode_window(audio, window))
        return True

    @torch.inference_mode()
    def _decode_window(self, audio: np.ndarray, window: AudioWindow) -> RawChunk:
        segment = audio[window.start_sample : window.end_sample]
        inputs = self._processor(segment, sampling_rate=window.sample_rate, return_tensors='pt')
        features = inputs.input_features.to(self._device)
        generated = self._model.generate(
            features,
            return_timestamps=True,
            do_sample=False,
            num_beams=1,
        )
        tokens = [int(t) for t in generated[0].tolist()]
        log.debug('Window %d [%.1fs, %.1fs): %d tokens', window.index, window.start_s, window.end_s, len(tokens))
        return RawChunk(tokens=tokens, stride=window.stride, is_last=window.is_last)


class WhisperEngineLoader:
    """Fetches a Whisper checkpoint (reporting download progress) and loads it."""

    def __init__(
        self,
        device: str = 'cpu',
        resolver_factory: Callable[..., ModelResolver] | None = None,
    ) -> None:
        self._device = device
        self._resolver_factory = resolver_factory

    def load(
        self,
        model_name: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> WhisperEngine:
        resolver_factory = self._resolver_factory or HfModelResolver
        model_dir = resolver_factory(on_progress=on_progress).resolve(model_name)
        try:
            processor = WhisperProcessor.from_pretrained(model_dir)
            model = WhisperForConditionalGeneration.from_pretrained(model_dir)
            model.to(self._device)
            model.eval()
        except Exception as exc:
            raise EngineUnavailable(f'Failed to load {model_name}: {exc}') from exc
        log.info('Loaded %s on %s', model_name, self._device)
        return WhisperEngine(processor, model, device=self._device)
