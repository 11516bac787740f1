"""Persisted record of the active theme and the themes applied before it."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from hyprdeck.orchestration.results import utcnow

from .themes import DEFAULT_THEME

_logging = logging.getLogger(__name__)


@dataclass
class ThemeState:
    active: str = DEFAULT_THEME
    history: list[str] = field(default_factory=list)
    set_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "active": self.active,
            "history": list(self.history),
            "set_at": self.set_at.isoformat() if self.set_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThemeState":
        set_at = data.get("set_at")
        return cls(
            active=data.get("active") or DEFAULT_THEME,
            history=[str(name) for name in data.get("history", [])],
            set_at=datetime.fromisoformat(set_at) if set_at else None,
        )


class ThemeStateStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> ThemeState:
        if not self.path.exists():
            return ThemeState()
        try:
            return ThemeState.from_dict(json.loads(self.path.read_text()))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            _logging.warning(f"Ignoring unreadable theme state {self.path}: {e}")
            return ThemeState()

    def save(self, state: ThemeState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(state.to_dict(), indent=2))
        tmp.replace(self.path)

    def record(self, name: str, history: list[str]) -> ThemeState:
        """Make ``name`` the active theme with the given history."""
        state = ThemeState(active=name, history=list(history), set_at=utcnow())
        self.save(state)
        return state


__all__ = ["ThemeState", "ThemeStateStore"]
