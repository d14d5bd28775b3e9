"""Message protocol exchanged between the caller and the transcription worker.

Per call the worker emits, in order::

    Queued -> LoadingModel -> Downloading* -> ModelReady -> Result* -> Done

``Failed`` may appear at any point and ends the sequence. Messages are plain
pydantic models so they survive ``model_dump()`` / ``parse_message()`` across
a channel that shares no memory.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer, field_validator

from transcribex.l1_entities.model_names import DEFAULT_MODEL
from transcribex.l1_entities.transcript import ProcessedChunk, TranscriptState


class StartTranscription(BaseModel):
    """Host -> worker: transcribe *audio* (float32 mono 16 kHz) with *model_name*."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    type: Literal['start_transcription'] = 'start_transcription'
    audio: np.ndarray
    model_name: str = DEFAULT_MODEL

    @field_validator('audio', mode='before')
    @classmethod
    def _own_audio(cls, value):
        # Copy only. Dtype and shape are checked by validate_audio so a bad
        # buffer comes back as Failed(InvalidAudio) rather than failing here.
        if isinstance(value, np.ndarray):
            return value.copy()
        try:
            return np.array(value)
        except ValueError:
            # ragged sample lists
            return np.array(value, dtype=object)

    @field_serializer('audio')
    def _audio_to_list(self, audio: np.ndarray) -> list[float]:
        return audio.tolist()


class Queued(BaseModel):
    type: Literal['queued'] = 'queued'


class LoadingModel(BaseModel):
    type: Literal['loading_model'] = 'loading_model'
    model_name: str = ''


class Downloading(BaseModel):
    type: Literal['downloading'] = 'downloading'
    file: str
    loaded: int
    total: int

    @property
    def progress(self) -> float:
        return min(self.loaded / self.total * 100, 100.0) if self.total else 0.0


class ModelReady(BaseModel):
    type: Literal['model_ready'] = 'model_ready'


class Result(BaseModel):
    """Incremental transcript snapshot; always the full current transcript."""

    type: Literal['result'] = 'result'
    transcript: list[ProcessedChunk]
    done: Literal[False] = False
    cursor: int

    @classmethod
    def from_state(cls, state: TranscriptState) -> Result:
        return cls(transcript=list(state.chunks), cursor=state.cursor)


class Done(BaseModel):
    type: Literal['done'] = 'done'


class Failed(BaseModel):
    type: Literal['failed'] = 'failed'
    reason: str
    detail: str = ''


WorkerMessage = Union[Queued, LoadingModel, Downloading, ModelReady, Result, Done, Failed]

TERMINAL_MESSAGES = (Done, Failed)

_ANY_MESSAGE = TypeAdapter(Annotated[Union[WorkerMessage, StartTranscription], Field(discriminator='type')])


def parse_message(data: dict) -> WorkerMessage | StartTranscription:
    """Rebuild a protocol message from its ``model_dump()`` dict."""
    return _ANY_MESSAGE.validate_python(data)


def is_terminal(message: BaseModel) -> bool:
    return isinstance(message, TERMINAL_MESSAGES)
