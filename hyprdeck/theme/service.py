"""Listing, applying and rolling back themes."""

import logging
from dataclasses import dataclass

from hyprdeck.errors import ValidationError
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.orchestrator import Orchestrator, StepCallback
from hyprdeck.orchestration.session import Session
from hyprdeck.system.interfaces import ConfigDeployer

from .operations import build_theme_operations
from .state import ThemeState, ThemeStateStore
from .themes import Theme, get_theme, get_themes

_logging = logging.getLogger(__name__)


@dataclass
class ThemeChange:
    theme: Theme
    previous: str
    session: Session | None = None
    rollback_errors: list[Exception] | None = None

    @property
    def changed(self) -> bool:
        return self.session is not None

    @property
    def success(self) -> bool:
        if self.session is None:
            return True
        return not self.session.failure_count() and not self.session.cancelled

    def to_dict(self) -> dict:
        if self.session is None:
            message = f"{self.theme.name} is already active"
        elif self.success:
            message = f"Theme changed from {self.previous} to {self.theme.name}"
        else:
            message = f"Theme change to {self.theme.name} failed; {self.previous} kept"
        return {
            "success": self.success,
            "theme": self.theme.name,
            "previous": self.previous,
            "message": message,
            "results": [r.to_dict() for r in self.session.results()] if self.session else [],
            "rollback_errors": [str(e) for e in self.rollback_errors or []],
        }


class ThemeService:
    def __init__(
        self,
        store: ThemeStateStore,
        deployer: ConfigDeployer,
        template_variables: dict[str, str],
    ):
        self.store = store
        self.deployer = deployer
        self.template_variables = template_variables

    def list_themes(self) -> list[Theme]:
        return sorted(get_themes().values(), key=lambda t: t.name)

    def get(self, name: str) -> Theme:
        return get_theme(name)

    def state(self) -> ThemeState:
        return self.store.load()

    def active(self) -> Theme:
        return get_theme(self.store.load().active)

    async def apply(
        self, ctx: RunContext, name: str, on_step: StepCallback | None = None
    ) -> ThemeChange:
        """Switch to a theme, recording it in the theme history.

        A failed switch is rolled back so the previous theme stays in place.
        """
        theme = get_theme(name)
        state = self.store.load()
        if theme.name == state.active:
            return ThemeChange(theme, state.active)
        history = list(state.history) or [state.active]
        return await self._switch(ctx, theme, state, history + [theme.name], on_step)

    async def rollback(
        self, ctx: RunContext, on_step: StepCallback | None = None
    ) -> ThemeChange:
        """Go back to the theme applied before the current one."""
        state = self.store.load()
        if len(state.history) < 2:
            raise ValidationError("no previous theme to roll back to")
        theme = get_theme(state.history[-2])
        return await self._switch(ctx, theme, state, state.history[:-1], on_step)

    async def _switch(
        self,
        ctx: RunContext,
        theme: Theme,
        state: ThemeState,
        history: list[str],
        on_step: StepCallback | None,
    ) -> ThemeChange:
        operations = build_theme_operations(
            theme, history, self.template_variables, self.deployer, self.store
        )
        session = await Orchestrator().run_with_progress(ctx, operations, on_step)
        change = ThemeChange(theme, state.active, session)
        if not change.success and session.can_rollback():
            _logging.info(f"Theme change to {theme.name} failed, restoring {state.active}")
            change.rollback_errors = await session.rollback_async()
        return change


__all__ = ["ThemeChange", "ThemeService"]
