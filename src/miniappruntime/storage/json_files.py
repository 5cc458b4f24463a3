"""miniappruntime.storage.json_files

Simple file-based persistence:
- key/value data as one JSON object file
- saved apps as one `<app_id>.json` file per app

This is meant as a straightforward backend for desktop hosts.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List, Optional

from ..core.logging import get_logger
from ..document.models import MiniApp, load_app_json
from .base import AppStore, AppSummary, KeyValueStore, sort_summaries

logger = get_logger(__name__)


def _write_json_atomic(path: Path, data: object) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    tmp.replace(path)


class JsonFileKeyValueStore(KeyValueStore):
    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        _write_json_atomic(self._path, data)

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            _write_json_atomic(self._path, data)


_UNSAFE_ID_CHARS = re.compile(r"[/.\\]")


def sanitize_app_id(app_id: str) -> str:
    """Strip path separators and dots so an id can't escape the store directory."""
    sanitized = _UNSAFE_ID_CHARS.sub("", str(app_id or ""))
    if not sanitized:
        raise ValueError(f"Invalid app id: {app_id!r}")
    return sanitized


class JsonDirectoryAppStore(AppStore):
    def __init__(self, base_dir: str | Path):
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    def _path(self, app_id: str) -> Path:
        return self._base / f"{sanitize_app_id(app_id)}.json"

    def list_apps(self) -> List[AppSummary]:
        out: List[AppSummary] = []
        for p in self._base.glob("*.json"):
            try:
                with p.open("r", encoding="utf-8") as f:
                    app = load_app_json(json.load(f))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable app file", path=str(p), error=str(e))
                continue
            out.append(AppSummary.of(app))
        return sort_summaries(out)

    def load(self, app_id: str) -> Optional[MiniApp]:
        p = self._path(app_id)
        if not p.exists():
            return None
        with p.open("r", encoding="utf-8") as f:
            return load_app_json(json.load(f))

    def save(self, app: MiniApp) -> MiniApp:
        app.touch()
        _write_json_atomic(self._path(app.id), app.to_dict())
        return app

    def delete(self, app_id: str) -> bool:
        p = self._path(app_id)
        if not p.exists():
            return False
        p.unlink()
        return True
