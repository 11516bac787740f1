"""Installation session surfaces shared by the CLI and any API layer.

Every method returns plain dicts with stable field names. Errors surface
as ValidationError (bad request), SessionNotFoundError (unknown id) or
InvalidStateTransitionError (wrong lifecycle state).
"""

import logging

from hyprdeck.errors import InvalidStateTransitionError, ValidationError
from hyprdeck.history import HistoryRecorder, InstallationOutcome
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.progress import ProgressChannel

from .models import InstallationRequest
from .pipeline import Installation, InstallationPipeline, ProgressCallback
from .planning import build_configuration
from .repository import SessionRepository

_logging = logging.getLogger(__name__)


class InstallationService:
    def __init__(
        self,
        pipeline: InstallationPipeline,
        repository: SessionRepository,
        history: HistoryRecorder,
        debug: bool = False,
    ):
        self.pipeline = pipeline
        self.repository = repository
        self.history = history
        self.debug = debug

    def start(self, request: InstallationRequest | dict) -> dict:
        """Validate a request and create a pending installation session."""
        if not isinstance(request, InstallationRequest):
            request = InstallationRequest.from_dict(request)
        configuration = build_configuration(request)

        installation = Installation(request, configuration, ctx=RunContext(debug=self.debug))
        self.repository.save(installation)
        _logging.info(
            f"Created installation {installation.id} with "
            f"{len(configuration.components)} component(s)"
        )
        return {
            "session_id": installation.id,
            "status": installation.state.value,
            "message": "Installation session created successfully",
            "started_at": installation.created_at.isoformat(),
            "component_count": len(configuration.components),
        }

    async def execute(
        self,
        session_id: str,
        on_progress: ProgressCallback | None = None,
        channel: ProgressChannel | None = None,
    ) -> dict:
        installation = self.repository.find_by_id(session_id)
        await self.pipeline.execute(installation, on_progress=on_progress, channel=channel)
        self.repository.save(installation)
        return installation.summary()

    def get_status(self, session_id: str) -> dict:
        return self.repository.find_by_id(session_id).summary()

    def list_sessions(self) -> dict:
        sessions = [i.summary() for i in self.repository.find_all()]
        return {"sessions": sessions, "total_count": len(sessions)}

    def cancel(self, session_id: str) -> dict:
        """Request cancellation.

        A pending session is cancelled immediately. A running one stops at
        its next checkpoint; the in-flight package operation is not
        interrupted.
        """
        installation = self.repository.find_by_id(session_id)
        installation.cancel("cancelled by user")
        self.repository.save(installation)
        return installation.summary()

    async def rollback(self, session_id: str) -> dict:
        """Undo the successful steps of a finished installation, newest first."""
        installation = self.repository.find_by_id(session_id)
        if not installation.state.is_terminal:
            raise InvalidStateTransitionError(
                f"installation {session_id} is still {installation.state.value}"
            )
        session = installation.session
        if not session.can_rollback():
            raise ValidationError(f"installation {session_id} has nothing to roll back")

        actions = [a.to_dict() for a in reversed(session.rollback_actions())]
        errors = await session.rollback_async()

        record = self.pipeline.build_audit_record(installation, InstallationOutcome.ROLLED_BACK)
        try:
            await self.history.record(RunContext(debug=self.debug), record)
        except Exception as e:
            _logging.warning(f"Could not record rollback of {session_id}: {e}")

        return {
            "session_id": session_id,
            "actions": actions,
            "errors": [str(e) for e in errors],
            "can_rollback": session.can_rollback(),
        }


__all__ = ["InstallationService"]
