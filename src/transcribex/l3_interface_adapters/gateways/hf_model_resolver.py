"""Gateway: HuggingFace model resolver — implements ModelResolver port."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from huggingface_hub import hf_hub_download
from huggingface_hub.errors import EntryNotFoundError

from transcribex.l1_entities.errors import ModelResolutionError
from transcribex.l1_entities.progress import ProgressEvent, ProgressStatus

log = logging.getLogger('txb.resolver')

REQUIRED_FILES = (
    'config.json',
    'preprocessor_config.json',
    'tokenizer_config.json',
)
OPTIONAL_FILES = (
    'generation_config.json',
    'tokenizer.json',
    'vocab.json',
    'merges.txt',
    'normalizer.json',
    'added_tokens.json',
    'special_tokens_map.json',
)
WEIGHT_FILES = ('model.safetensors', 'pytorch_model.bin')


def _make_progress_class(callback: Callable[[ProgressEvent], None], filename: str) -> type:
    """Create a tqdm-compatible class that reports byte progress for *filename* via *callback*."""

    class _ProgressReporter:
        def __init__(self, *args, **kwargs):
            self.total: int = kwargs.get('total', 0) or 0
            self.n: int = kwargs.get('initial', 0) or 0
            self._closed = False
            callback(ProgressEvent(status=ProgressStatus.QUEUED, file=filename, loaded=self.n, total=self.total))

        def update(self, n: int = 1) -> None:
            self.n += n
            if self.total > 0:
                callback(
                    ProgressEvent(
                        status=ProgressStatus.PROGRESS,
                        file=filename,
                        loaded=min(self.n, self.total),
                        total=self.total,
                    )
                )

        def close(self) -> None:
            if self._closed:
                return
            self._closed = True
            callback(ProgressEvent(status=ProgressStatus.DONE, file=filename, loaded=self.n, total=self.total))

        def set_description(self, *a, **kw) -> None:
            pass

        def set_description_str(self, *a, **kw) -> None:
            pass

        def refresh(self) -> None:
            pass

        def __enter__(self):
            return self

        def __exit__(self, *args):
            self.close()

    return _ProgressReporter


class HfModelResolver:
    """Resolves whisper model names to a local directory, downloading from HF if needed."""

    def __init__(self, on_progress: Callable[[ProgressEvent], None] | None = None) -> None:
        self._on_progress = on_progress

    def resolve(self, model_name: str) -> str:
        local = Path(model_name).expanduser()
        if local.is_dir() or local.is_absolute():
            if not (local / 'config.json').exists():
                raise ModelResolutionError(f'Model directory not found or incomplete: {model_name}')
            return str(local)

        try:
            config_path = self._download(model_name, REQUIRED_FILES[0])
            for filename in REQUIRED_FILES[1:]:
                self._download(model_name, filename)
            for filename in OPTIONAL_FILES:
                self._download_optional(model_name, filename)
            self._download_weights(model_name)
        except ModelResolutionError:
            raise
        except Exception as exc:
            raise ModelResolutionError(f'Failed to fetch {model_name}: {exc}') from exc

        return str(Path(config_path).parent)

    def _download(self, repo_id: str, filename: str) -> str:
        kwargs: dict = dict(repo_id=repo_id, filename=filename)
        if self._on_progress is not None:
            kwargs['tqdm_class'] = _make_progress_class(self._on_progress, filename)
        return hf_hub_download(**kwargs)

    def _download_optional(self, repo_id: str, filename: str) -> str | None:
        try:
            return self._download(repo_id, filename)
        except EntryNotFoundError:
            log.debug('%s has no %s', repo_id, filename)
            return None

    def _download_weights(self, repo_id: str) -> str:
        for filename in WEIGHT_FILES:
            path = self._download_optional(repo_id, filename)
            if path is not None:
                return path
        raise ModelResolutionError(f'No model weights found in {repo_id} (tried {", ".join(WEIGHT_FILES)})')
