"""Durable key-value storage: one whole-document JSON file per key."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

STORAGE_DIR = Path(os.environ.get('FLOODHUB_STORAGE_DIR', Path.cwd() / '.floodhub'))


class LocalStorage:
    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory is not None else STORAGE_DIR

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, fallback: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return fallback
        try:
            raw = path.read_text(encoding='utf-8')
            return json.loads(raw) if raw else fallback
        except (OSError, ValueError) as exc:
            logger.error(f"Storage read failed ({key}): {exc}")
            return fallback

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(value, ensure_ascii=False), encoding='utf-8')
        except (OSError, TypeError) as exc:
            logger.error(f"Storage write failed ({key}): {exc}")
