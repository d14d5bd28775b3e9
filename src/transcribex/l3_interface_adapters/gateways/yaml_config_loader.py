"""Gateway: YAML configuration loader."""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from pathlib import Path

import yaml

from transcribex.l3_interface_adapters.gateways.paths import DEFAULT_CONFIG_PATHS

log = logging.getLogger('txb.config')


class YamlConfigLoader:
    """Reads the user's YAML config and layers CLI overrides on top.

    With no explicit path the first existing file in *search_paths*
    (by default the platformdirs locations) is used; with none found the
    result is just the overrides.
    """

    def __init__(self, search_paths: Sequence[Path] | None = None) -> None:
        self._search_paths = search_paths

    def load_raw(
        self,
        config_path: str | None = None,
        overrides: dict | None = None,
    ) -> dict:
        """Return the merged data as a plain dict, before validation.

        Raises:
            FileNotFoundError: *config_path* was given but does not exist.
            ValueError: the file is not valid YAML or its top level is not a mapping.
        """
        source = self._locate(config_path)
        data = _read_mapping(source) if source is not None else {}
        if overrides:
            deep_merge(data, copy.deepcopy(overrides))
        log.debug('Config from %s, overrides=%s', source or '<defaults>', overrides)
        return data

    def _locate(self, config_path: str | None) -> Path | None:
        if config_path is not None:
            path = Path(config_path).expanduser()
            if not path.is_file():
                raise FileNotFoundError(f'Config file not found: {path}')
            return path
        candidates = self._search_paths if self._search_paths is not None else DEFAULT_CONFIG_PATHS
        return next((p for p in candidates if p.is_file()), None)


def _read_mapping(path: Path) -> dict:
    with path.open(encoding='utf-8') as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValueError(f'Invalid YAML in {path}: {exc}') from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f'{path}: top level must be a mapping, got {type(data).__name__}')
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Fold *override* into *base* in place; nested mappings merge, anything else replaces."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            deep_merge(current, value)
        else:
            base[key] = value
    return base
