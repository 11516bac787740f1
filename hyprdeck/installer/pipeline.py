"""End-to-end installation pipeline.

An installation moves through planning, the preflight gate, conflict
resolution, package installation and configuration deployment. Whatever
happens, it then passes through history recording before settling in
one of the terminal states (completed, failed or cancelled). Nothing is
rolled back automatically; callers decide whether to undo a run.
"""

import dataclasses
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from hyprdeck.errors import (
    InvalidConfigurationError,
    InvalidStateTransitionError,
    OperationCancelledError,
)
from hyprdeck.history import (
    DEFAULT_PACKAGE_SIZE,
    AuditRecord,
    FailureDetails,
    HistoryRecorder,
    InstallationOutcome,
    InstalledPackage,
    SystemContext,
)
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Validator
from hyprdeck.orchestration.orchestrator import Orchestrator
from hyprdeck.orchestration.progress import ProgressChannel, ProgressEstimator, ProgressUpdate
from hyprdeck.orchestration.results import OperationResult, SetupStatus, utcnow
from hyprdeck.orchestration.session import Session
from hyprdeck.preflight.report import PreflightReport
from hyprdeck.system.interfaces import ConfigDeployer, PackageManager

from .catalog import get_entry
from .merging import ConfigurationMerger
from .models import CORE_COMPONENT, DiskSpace, InstallationConfiguration, InstallationRequest
from .operations import ConfigDeployOperation, PackageInstallOperation
from .repository import AppliedConfigurationStore
from .resolution import ConflictResolution, ConflictResolver

_logging = logging.getLogger(__name__)


class PipelineState(Enum):
    PENDING = "pending"
    PLANNING = "planning"
    PREFLIGHT = "preflight"
    RESOLVING = "resolving"
    INSTALLING = "installing"
    CONFIGURING = "configuring"
    RECORDING_HISTORY = "recording_history"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.FAILED, PipelineState.CANCELLED)


_S = PipelineState

_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    _S.PENDING: {_S.PLANNING, _S.RECORDING_HISTORY, _S.FAILED, _S.CANCELLED},
    _S.PLANNING: {_S.PREFLIGHT, _S.RECORDING_HISTORY, _S.FAILED},
    _S.PREFLIGHT: {_S.RESOLVING, _S.RECORDING_HISTORY, _S.FAILED},
    _S.RESOLVING: {_S.INSTALLING, _S.RECORDING_HISTORY, _S.FAILED},
    _S.INSTALLING: {_S.CONFIGURING, _S.RECORDING_HISTORY, _S.FAILED},
    _S.CONFIGURING: {_S.RECORDING_HISTORY, _S.FAILED},
    _S.RECORDING_HISTORY: {_S.COMPLETED, _S.FAILED, _S.CANCELLED},
    _S.COMPLETED: set(),
    _S.FAILED: set(),
    _S.CANCELLED: set(),
}

_TERMINAL_FOR_OUTCOME = {
    InstallationOutcome.SUCCESS: _S.COMPLETED,
    InstallationOutcome.FAILED: _S.FAILED,
    InstallationOutcome.CANCELLED: _S.CANCELLED,
}


class Installation:
    """One installation session as seen by the service and its callers.

    The pipeline task drives it. Cancellation and status queries may come
    from other threads at any time; state changes happen under one lock.
    """

    def __init__(
        self,
        request: InstallationRequest,
        configuration: InstallationConfiguration,
        installation_id: str | None = None,
        ctx: RunContext | None = None,
    ):
        self.id = installation_id or str(uuid.uuid4())
        self.request = request
        self.configuration = configuration
        self.ctx = ctx or RunContext()
        self.session = Session(self.id)
        self.created_at = utcnow()
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None
        self.preflight: PreflightReport | None = None
        self.resolutions: list[ConflictResolution] = []
        self.failed_phase: PipelineState | None = None
        self.failure_reason: str | None = None
        self.error_code = ""
        self.warnings: list[str] = []
        self.history_recorded = False
        self._state = PipelineState.PENDING
        self._progress: ProgressUpdate | None = None
        self._lock = threading.RLock()

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    def transition(self, new_state: PipelineState) -> None:
        with self._lock:
            if new_state not in _TRANSITIONS[self._state]:
                raise InvalidStateTransitionError(
                    f"cannot move installation {self.id} from {self._state.value} "
                    f"to {new_state.value}"
                )
            _logging.debug(f"{self.id}: {self._state.value} -> {new_state.value}")
            self._state = new_state
            if new_state.is_terminal:
                self.completed_at = utcnow()

    def begin(self) -> bool:
        """Claim a pending installation for execution.

        Returns False when it was cancelled before it started.
        """
        with self._lock:
            if self._state == PipelineState.CANCELLED:
                return False
            if self._state != PipelineState.PENDING:
                raise InvalidStateTransitionError(
                    f"installation {self.id} is already {self._state.value}"
                )
            self.started_at = utcnow()
            self.transition(PipelineState.PLANNING)
            return True

    def cancel(self, reason: str) -> None:
        """Cancel now if still pending, otherwise at the next checkpoint."""
        with self._lock:
            if self._state.is_terminal:
                raise InvalidStateTransitionError(
                    f"installation {self.id} is already {self._state.value}"
                )
            self.ctx.cancel(reason)
            if self._state == PipelineState.PENDING:
                self.record_failure(PipelineState.PENDING, f"Installation {reason}", "CANCELLED")
                self.transition(PipelineState.CANCELLED)

    def record_failure(self, phase: PipelineState, reason: str, error_code: str) -> None:
        with self._lock:
            self.failed_phase = phase
            self.failure_reason = reason
            self.error_code = error_code

    def update_progress(self, update: ProgressUpdate) -> None:
        with self._lock:
            self._progress = update

    @property
    def progress(self) -> ProgressUpdate | None:
        with self._lock:
            return self._progress

    @property
    def components_total(self) -> int:
        return len(self.configuration.components)

    def components_installed(self) -> int:
        names = {c.value for c in self.configuration.component_names()}
        return sum(
            1
            for r in self.session.results()
            if r.component in names and isinstance(r, OperationResult) and r.is_success()
        )

    def percent_complete(self) -> int:
        if self.state == PipelineState.COMPLETED:
            return 100
        progress = self.progress
        return progress.percent if progress else 0

    def message(self) -> str:
        if self.failure_reason and self.state.is_terminal:
            return self.failure_reason
        progress = self.progress
        if progress is not None:
            return progress.message
        return "Installation session created successfully"

    def summary(self) -> dict:
        progress = self.progress
        remaining = progress.estimated_remaining if progress else None
        return {
            "session_id": self.id,
            "status": self.state.value,
            "current_phase": progress.phase if progress else self.state.value,
            "percent_complete": self.percent_complete(),
            "message": self.message(),
            "components_installed": self.components_installed(),
            "components_total": self.components_total,
            "estimated_remaining_seconds": (
                int(remaining.total_seconds()) if remaining is not None else None
            ),
            "started_at": (self.started_at or self.created_at).isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "failed_phase": self.failed_phase.value if self.failed_phase else None,
            "warnings": list(self.warnings),
        }


ProgressCallback = Callable[[ProgressUpdate], None]


class _Halt(Exception):
    """Internal signal that the pipeline must stop at the current phase."""

    def __init__(self, outcome: InstallationOutcome, reason: str, error_code: str):
        super().__init__(reason)
        self.outcome = outcome
        self.reason = reason
        self.error_code = error_code


@dataclass
class _Run:
    installation: Installation
    estimator: ProgressEstimator
    on_progress: ProgressCallback | None = None
    channel: ProgressChannel | None = None
    installed: list[ConflictResolution] = field(default_factory=list)


class InstallationPipeline:
    def __init__(
        self,
        package_manager: PackageManager,
        deployer: ConfigDeployer,
        history: HistoryRecorder,
        preflight_factory: Callable[[InstallationConfiguration], list[Validator]],
        applied_store: AppliedConfigurationStore,
        measure_disk: Callable[[], DiskSpace],
        system_context: Callable[[], SystemContext],
        template_variables: dict[str, str],
        merge_by_default: bool = True,
    ):
        self.package_manager = package_manager
        self.deployer = deployer
        self.history = history
        self.preflight_factory = preflight_factory
        self.applied_store = applied_store
        self.measure_disk = measure_disk
        self.system_context = system_context
        self.template_variables = template_variables
        self.merge_by_default = merge_by_default
        self.resolver = ConflictResolver(package_manager)
        self.merger = ConfigurationMerger()
        self.orchestrator = Orchestrator()

    async def execute(
        self,
        installation: Installation,
        on_progress: ProgressCallback | None = None,
        channel: ProgressChannel | None = None,
    ) -> Installation:
        run = _Run(installation, ProgressEstimator(), on_progress, channel)
        if not installation.begin():
            _logging.info(f"Installation {installation.id} was cancelled before it started")
            installation.session.complete()
            self._emit(run, installation.message())
            if channel is not None:
                channel.close()
            return installation

        run.estimator.start()
        outcome = InstallationOutcome.SUCCESS

        try:
            await self._plan(run)
            await self._preflight(run)
            await self._resolve(run)
            await self._install(run)
            await self._configure(run)
        except _Halt as halt:
            outcome = halt.outcome
            installation.record_failure(installation.state, halt.reason, halt.error_code)
            _logging.info(
                f"Installation {installation.id} stopped in {installation.state.value}: "
                f"{halt.reason}"
            )
        except Exception as e:
            outcome = InstallationOutcome.FAILED
            _logging.exception(f"Installation {installation.id} crashed")
            installation.record_failure(installation.state, f"Internal error: {e}", "INTERNAL")

        installation.transition(PipelineState.RECORDING_HISTORY)
        self._emit(run, "Recording installation history")
        await self._record_history(run, outcome)

        if outcome == InstallationOutcome.SUCCESS:
            run.estimator.finish()
            self._save_applied(installation)

        installation.transition(_TERMINAL_FOR_OUTCOME[outcome])
        installation.session.complete()
        self._emit(run, self._final_message(installation, outcome))
        if channel is not None:
            channel.close()
        return installation

    def _checkpoint(self, run: _Run) -> None:
        try:
            run.installation.ctx.check()
        except OperationCancelledError as e:
            raise _Halt(InstallationOutcome.CANCELLED, f"Installation {e}", "CANCELLED") from e

    async def _plan(self, run: _Run) -> None:
        installation = run.installation
        self._checkpoint(run)
        self._emit(run, "Planning installation")

        try:
            configuration = dataclasses.replace(
                installation.configuration, disk=self.measure_disk()
            )
            merge = configuration.merge_existing
            if merge is None:
                merge = self.merge_by_default
            if merge:
                existing = self.applied_store.load()
                if existing is not None:
                    configuration = self.merger.merge(existing, configuration)
        except InvalidConfigurationError as e:
            raise _Halt(InstallationOutcome.FAILED, str(e), "INVALID_CONFIGURATION") from e

        installation.configuration = configuration
        run.estimator.complete("planning")

    async def _preflight(self, run: _Run) -> None:
        installation = run.installation
        self._checkpoint(run)
        installation.transition(PipelineState.PREFLIGHT)
        self._emit(run, "Running preflight checks")

        validators = self.preflight_factory(installation.configuration)
        done = 0

        def on_step(name, result):
            nonlocal done
            done += 1
            run.estimator.advance("preflight", done / max(len(validators), 1))
            self._emit(run, f"{name}: {result.message}")

        session = await self.orchestrator.run_with_progress(
            installation.ctx, validators, on_step
        )
        report = PreflightReport(session)
        installation.preflight = report

        if session.cancelled:
            raise _Halt(InstallationOutcome.CANCELLED, "Installation cancelled", "CANCELLED")
        if not report.can_proceed():
            count = len(report.blockers)
            raise _Halt(
                InstallationOutcome.FAILED,
                f"Installation blocked by {count} preflight check failure(s)",
                "PREFLIGHT_BLOCKED",
            )
        installation.warnings.extend(f"{w.component}: {w.message}" for w in report.warnings)
        run.estimator.complete("preflight")

    async def _resolve(self, run: _Run) -> None:
        installation = run.installation
        self._checkpoint(run)
        installation.transition(PipelineState.RESOLVING)
        self._emit(run, "Resolving components against installed packages")

        resolutions = await self.resolver.plan(
            installation.ctx, installation.configuration.components
        )
        installation.resolutions = resolutions
        for resolution in resolutions:
            if not resolution.needs_work:
                installation.session.add_result(
                    OperationResult.skipped(resolution.component.value, resolution.reason)
                )
        run.estimator.complete("resolving")

    async def _install(self, run: _Run) -> None:
        installation = run.installation
        self._checkpoint(run)
        installation.transition(PipelineState.INSTALLING)

        pending = [r for r in installation.resolutions if r.needs_work]
        self._emit(run, f"Installing {len(pending)} component(s)")
        operations = [
            PackageInstallOperation(get_entry(r.component), r, self.package_manager)
            for r in pending
        ]
        done = 0

        def on_step(name, result):
            nonlocal done
            done += 1
            percent = ProgressEstimator.phase_progress(len(operations), done)
            run.estimator.advance("installing", percent / 100)
            self._emit(run, result.message)

        session = await self.orchestrator.run_with_progress(
            installation.ctx, operations, on_step, session=installation.session
        )
        self._raise_for_session(session, [op.component for op in operations], "INSTALL_FAILED")
        run.installed = pending
        run.estimator.complete("installing")

    async def _configure(self, run: _Run) -> None:
        installation = run.installation
        self._checkpoint(run)
        installation.transition(PipelineState.CONFIGURING)
        self._emit(run, "Deploying configuration files")

        operations = [
            ConfigDeployOperation(spec, self.template_variables, self.deployer)
            for resolution in run.installed
            for spec in get_entry(resolution.component).files
        ]
        done = 0

        def on_step(name, result):
            nonlocal done
            done += 1
            percent = ProgressEstimator.phase_progress(len(operations), done)
            run.estimator.advance("configuring", percent / 100)
            self._emit(run, result.message)

        session = await self.orchestrator.run_with_progress(
            installation.ctx, operations, on_step, session=installation.session
        )
        self._raise_for_session(session, [op.component for op in operations], "DEPLOY_FAILED")

        for op in operations:
            result = session.result_for(op.component)
            if result is None:
                continue
            installation.warnings.extend(
                d.removeprefix("warning: ") for d in result.details if d.startswith("warning: ")
            )
        run.estimator.complete("configuring")

    def _raise_for_session(self, session: Session, components: list[str], error_code: str) -> None:
        if session.cancelled:
            raise _Halt(InstallationOutcome.CANCELLED, "Installation cancelled", "CANCELLED")
        for component in components:
            result = session.result_for(component)
            if result is not None and result.is_failure():
                raise _Halt(
                    InstallationOutcome.FAILED,
                    f"{component}: {result.message}",
                    error_code,
                )

    async def _record_history(self, run: _Run, outcome: InstallationOutcome) -> None:
        installation = run.installation
        record = self.build_audit_record(installation, outcome)
        try:
            # The run's own context may already be cancelled; history is written anyway.
            await self.history.record(RunContext(debug=installation.ctx.debug), record)
            installation.history_recorded = True
        except Exception as e:
            _logging.warning(f"Could not record history for {installation.id}: {e}")
            installation.warnings.append(f"history not recorded: {e}")
        run.estimator.advance("recording_history", 1.0)

    def build_audit_record(
        self, installation: Installation, outcome: InstallationOutcome
    ) -> AuditRecord:
        configuration = installation.configuration
        core = configuration.selection_for(CORE_COMPONENT) or configuration.components[0]

        packages = []
        for resolution in installation.resolutions:
            result = installation.session.result_for(resolution.component.value)
            if result is None or not result.is_success():
                continue
            selection = configuration.selection_for(resolution.component)
            size = DEFAULT_PACKAGE_SIZE
            if selection is not None and selection.package is not None:
                size = selection.package.size_bytes or DEFAULT_PACKAGE_SIZE
            for package in get_entry(resolution.component).packages:
                packages.append(InstalledPackage(package, resolution.requested_version, size))

        failure = None
        if outcome != InstallationOutcome.SUCCESS:
            failed_phase = installation.failed_phase or installation.state
            failure = FailureDetails(
                reason=installation.failure_reason or outcome.value,
                phase=failed_phase.value,
                error_code=installation.error_code,
            )

        return AuditRecord(
            session_id=installation.id,
            package_name=get_entry(core.component).primary_package,
            target_version=core.version,
            outcome=outcome,
            started_at=installation.started_at or installation.created_at,
            completed_at=utcnow(),
            system=self.system_context(),
            packages=tuple(packages),
            failure=failure,
        )

    def _save_applied(self, installation: Installation) -> None:
        try:
            self.applied_store.save(installation.configuration)
        except OSError as e:
            _logging.warning(f"Could not store applied configuration: {e}")
            installation.warnings.append(f"applied configuration not stored: {e}")

    def _final_message(self, installation: Installation, outcome: InstallationOutcome) -> str:
        if outcome == InstallationOutcome.SUCCESS:
            skipped = sum(
                1
                for r in installation.session.results()
                if isinstance(r, OperationResult) and r.status == SetupStatus.SKIPPED
            )
            message = f"Installed {installation.components_installed()} component(s)"
            if skipped:
                message += f", {skipped} already up to date"
            return message
        return installation.failure_reason or outcome.value

    def _emit(self, run: _Run, message: str) -> None:
        installation = run.installation
        update = ProgressUpdate(
            phase=installation.state.value,
            percent=run.estimator.percent(),
            message=message,
            components_installed=installation.components_installed(),
            components_total=installation.components_total,
            estimated_remaining=run.estimator.estimate_remaining(),
        )
        installation.update_progress(update)
        if run.on_progress is not None:
            try:
                run.on_progress(update)
            except Exception as e:
                _logging.warning(f"Progress callback raised {type(e).__name__}: {e}")
        if run.channel is not None:
            run.channel.publish(update)


__all__ = [
    "PipelineState",
    "Installation",
    "InstallationPipeline",
    "ProgressCallback",
]
