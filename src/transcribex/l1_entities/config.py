"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, model_validator

from transcribex.l1_entities.window import WindowSpec


class TranscriptionConfig(BaseModel):
    model: str
    window_length_s: float
    stride_s: float
    device: str = 'cpu'

    @model_validator(mode='after')
    def _check_window(self) -> TranscriptionConfig:
        self.window_spec()
        return self

    def window_spec(self) -> WindowSpec:
        return WindowSpec(window_length_s=self.window_length_s, stride_s=self.stride_s)


class LoggingConfig(BaseModel):
    file: str | None = None
    level: str = 'DEBUG'


class AppConfig(BaseModel):
    transcription: TranscriptionConfig
    logging: LoggingConfig = LoggingConfig()
