"""Storage for installation sessions and the last applied configuration."""

import json
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from hyprdeck.errors import SessionNotFoundError, ValidationError

from .models import InstallationConfiguration

if TYPE_CHECKING:
    from .pipeline import Installation

_logging = logging.getLogger(__name__)


class SessionRepository(Protocol):
    def save(self, installation: "Installation") -> None: ...

    def find_by_id(self, session_id: str) -> "Installation": ...

    def find_all(self) -> list["Installation"]: ...

    def delete(self, session_id: str) -> None: ...


class MemorySessionRepository:
    """Thread-safe in-process repository keyed by session id."""

    def __init__(self):
        self._items: dict[str, "Installation"] = {}
        self._lock = threading.Lock()

    def save(self, installation: "Installation") -> None:
        with self._lock:
            self._items[installation.id] = installation

    def find_by_id(self, session_id: str) -> "Installation":
        with self._lock:
            installation = self._items.get(session_id)
        if installation is None:
            raise SessionNotFoundError(session_id)
        return installation

    def find_all(self) -> list["Installation"]:
        with self._lock:
            items = list(self._items.values())
        return sorted(items, key=lambda i: i.created_at)

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._items.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)


class AppliedConfigurationStore(Protocol):
    def load(self) -> InstallationConfiguration | None: ...

    def save(self, configuration: InstallationConfiguration) -> None: ...


class MemoryAppliedConfigurationStore:
    def __init__(self, configuration: InstallationConfiguration | None = None):
        self.configuration = configuration

    def load(self) -> InstallationConfiguration | None:
        return self.configuration

    def save(self, configuration: InstallationConfiguration) -> None:
        self.configuration = configuration


class JsonAppliedConfigurationStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> InstallationConfiguration | None:
        if not self.path.exists():
            return None
        try:
            return InstallationConfiguration.from_dict(json.loads(self.path.read_text()))
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            _logging.warning(f"Ignoring unreadable applied configuration {self.path}: {e}")
            return None

    def save(self, configuration: InstallationConfiguration) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(configuration.to_dict(), indent=2))
        tmp.replace(self.path)


__all__ = [
    "SessionRepository",
    "MemorySessionRepository",
    "AppliedConfigurationStore",
    "MemoryAppliedConfigurationStore",
    "JsonAppliedConfigurationStore",
]
