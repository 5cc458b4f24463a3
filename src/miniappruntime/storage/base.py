"""miniappruntime.storage.base

Storage interfaces:
- KeyValueStore: the persistent string store behind saveData/loadData/deleteData
- AppStore: the library of saved mini-app documents
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..document.models import MiniApp


class KeyValueStore(ABC):
    """String-keyed store of JSON text values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...


@dataclass(frozen=True)
class AppSummary:
    id: str
    name: str
    version: str
    created_at: Optional[str]
    updated_at: Optional[str]
    ui_count: int
    node_count: int

    @classmethod
    def of(cls, app: MiniApp) -> "AppSummary":
        return cls(
            id=app.id,
            name=app.name,
            version=app.version,
            created_at=app.created_at,
            updated_at=app.updated_at,
            ui_count=len(app.ui_components),
            node_count=len(app.nodes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "uiCount": self.ui_count,
            "nodeCount": self.node_count,
        }


def sort_summaries(items: List[AppSummary]) -> List[AppSummary]:
    """Most recently updated first (ISO timestamps sort lexicographically)."""
    return sorted(items, key=lambda s: s.updated_at or "", reverse=True)


class AppStore(ABC):
    @abstractmethod
    def list_apps(self) -> List[AppSummary]: ...

    @abstractmethod
    def load(self, app_id: str) -> Optional[MiniApp]: ...

    @abstractmethod
    def save(self, app: MiniApp) -> MiniApp:
        """Persist `app`, refreshing its `updated_at` timestamp."""

    @abstractmethod
    def delete(self, app_id: str) -> bool: ...
