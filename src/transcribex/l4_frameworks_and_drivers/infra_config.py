"""Application config defaults — lives in L4, not domain."""

from __future__ import annotations

import copy

from transcribex.l1_entities.config import AppConfig
from transcribex.l1_entities.model_names import DEFAULT_MODEL
from transcribex.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'transcription': {
        'model': DEFAULT_MODEL,
        'window_length_s': 30.0,
        'stride_s': 5.0,
        'device': 'cpu',
    },
    'logging': {
        'file': None,
        'level': 'DEBUG',
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)
