"""Drive an ordered list of operations through a session."""

import logging
from typing import Callable, Sequence

from .context import RunContext
from .operations import Installer, Operation
from .results import CheckResult, OperationResult
from .session import RollbackAction, Session

_logging = logging.getLogger(__name__)

StepCallback = Callable[[str, OperationResult | CheckResult], None]


class Orchestrator:
    """Runs operations in order, stopping at the first failure.

    Exceptions raised by an operation are converted into a failed result and
    never propagate; the caller inspects the returned session instead. With
    fail_fast off every operation runs, which suits read-only check runs
    that report all findings at once.
    """

    def __init__(self, fail_fast: bool = True):
        self.fail_fast = fail_fast

    async def run(
        self,
        ctx: RunContext,
        operations: Sequence[Operation],
        session: Session | None = None,
    ) -> Session:
        return await self.run_with_progress(ctx, operations, None, session=session)

    async def run_with_progress(
        self,
        ctx: RunContext,
        operations: Sequence[Operation],
        on_step: StepCallback | None,
        session: Session | None = None,
    ) -> Session:
        owns_session = session is None
        if session is None:
            session = Session()

        for operation in operations:
            if ctx.done():
                _logging.info(f"Stopping before {operation.name}: {ctx.reason}")
                session.mark_cancelled(ctx.reason)
                break

            result = await self._run_one(ctx, operation)
            session.add_result(result)
            _notify(on_step, operation.name, result)

            if isinstance(operation, Installer) and result.is_success():
                session.add_rollback(_rollback_action_for(ctx, operation))

            if result.is_failure() and self.fail_fast:
                _logging.info(f"{operation.name} failed, skipping remaining operations")
                break

        # A caller-supplied session may span several runs; its owner completes it.
        if owns_session:
            session.complete()
        return session

    async def _run_one(
        self, ctx: RunContext, operation: Operation
    ) -> OperationResult | CheckResult:
        if ctx.debug:
            _logging.debug(f"Running {operation.name}")
        try:
            return await operation.run(ctx)
        except Exception as e:
            _logging.error(f"{operation.name} raised {type(e).__name__}: {e}")
            if isinstance(operation, Installer):
                return OperationResult.failed(
                    operation.component, "Installation failed", error=e
                ).with_details(str(e))
            return CheckResult.failed(
                operation.component, f"{operation.name} could not run", error=e
            ).with_details(str(e))


def _notify(on_step: StepCallback | None, name: str, result) -> None:
    if on_step is None:
        return
    try:
        on_step(name, result)
    except Exception as e:
        _logging.warning(f"Progress callback for {name} raised {type(e).__name__}: {e}")


def _rollback_action_for(ctx: RunContext, operation: Installer) -> RollbackAction:
    # Rollback may happen long after the run's own context was cancelled.
    async def undo() -> None:
        await operation.rollback(RunContext(debug=ctx.debug))

    return RollbackAction(
        component=operation.component,
        description=f"Rollback {operation.name}",
        undo=undo,
        intent=operation.rollback_intent(),
    )


async def run_operations(
    operations: Sequence[Operation],
    ctx: RunContext | None = None,
    on_step: StepCallback | None = None,
) -> Session:
    """Convenience wrapper running operations on a fresh orchestrator."""
    return await Orchestrator().run_with_progress(ctx or RunContext(), operations, on_step)


__all__ = ["Orchestrator", "StepCallback", "run_operations"]
