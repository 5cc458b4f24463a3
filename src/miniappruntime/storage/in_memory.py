"""miniappruntime.storage.in_memory

In-memory storage backends (testing/dev/headless runs).
"""

from __future__ import annotations

import copy
from typing import Dict, List, Optional

from ..document.models import MiniApp
from .base import AppStore, AppSummary, KeyValueStore, sort_summaries


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class InMemoryAppStore(AppStore):
    def __init__(self):
        self._apps: Dict[str, MiniApp] = {}

    def list_apps(self) -> List[AppSummary]:
        return sort_summaries([AppSummary.of(a) for a in self._apps.values()])

    def load(self, app_id: str) -> Optional[MiniApp]:
        app = self._apps.get(app_id)
        # hand out copies so callers can't edit the stored document in place
        return copy.deepcopy(app) if app is not None else None

    def save(self, app: MiniApp) -> MiniApp:
        app.touch()
        self._apps[app.id] = copy.deepcopy(app)
        return app

    def delete(self, app_id: str) -> bool:
        return self._apps.pop(app_id, None) is not None
