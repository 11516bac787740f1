"""Units of work driven by the orchestrator.

Three variants share a small common shape (name, component and an async
``run``): installers mutate the host and can verify and roll themselves
back, validators and checkers are read-only.
"""

from abc import ABC, abstractmethod
from typing import Any

from .context import RunContext
from .results import CheckResult, OperationResult


class Operation(ABC):
    name: str = ""
    component: str = ""
    registers_rollback = False

    @abstractmethod
    async def run(self, ctx: RunContext) -> OperationResult | CheckResult:
        """Perform the operation and return its result."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class Installer(Operation):
    registers_rollback = True

    async def run(self, ctx: RunContext) -> OperationResult:
        return await self.execute(ctx)

    @abstractmethod
    async def execute(self, ctx: RunContext) -> OperationResult:
        ...

    async def verify(self, ctx: RunContext) -> bool:
        return True

    @abstractmethod
    async def rollback(self, ctx: RunContext) -> None:
        ...

    def rollback_intent(self) -> dict[str, Any]:
        """Serializable description of what rollback() will undo."""
        return {"action": "rollback", "operation": self.name}


class Validator(Operation):
    async def run(self, ctx: RunContext) -> CheckResult:
        return await self.validate(ctx)

    @abstractmethod
    async def validate(self, ctx: RunContext) -> CheckResult:
        ...


class Checker(Operation):
    async def run(self, ctx: RunContext) -> CheckResult:
        return await self.check(ctx)

    @abstractmethod
    async def check(self, ctx: RunContext) -> CheckResult:
        ...


__all__ = ["Operation", "Installer", "Validator", "Checker"]
