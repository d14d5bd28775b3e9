"""Known Whisper checkpoints on the HuggingFace hub."""

from __future__ import annotations

from enum import Enum


class ModelName(str, Enum):
    WHISPER_TINY_EN = 'openai/whisper-tiny.en'
    WHISPER_TINY = 'openai/whisper-tiny'
    WHISPER_BASE = 'openai/whisper-base'
    WHISPER_BASE_EN = 'openai/whisper-base.en'
    WHISPER_SMALL = 'openai/whisper-small'
    WHISPER_SMALL_EN = 'openai/whisper-small.en'


DEFAULT_MODEL = ModelName.WHISPER_TINY_EN.value
