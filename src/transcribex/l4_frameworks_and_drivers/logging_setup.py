"""File-based debug logging setup."""

from __future__ import annotations

import logging
from pathlib import Path


def setup_file_logging(log_path: Path, level: str = 'DEBUG') -> logging.Handler:
    """Send everything under the ``txb`` logger to *log_path*."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    root = logging.getLogger('txb')
    root.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    root.addHandler(handler)
    root.info('Debug logging started → %s', log_path)
    return handler
