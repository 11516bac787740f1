import asyncio
import threading

import pytest

from hyprdeck.errors import (
    InvalidStateTransitionError,
    SessionNotFoundError,
    ValidationError,
)
from hyprdeck.history import InstallationOutcome
from hyprdeck.installer import (
    ComponentName,
    Installation,
    InstallationRequest,
    InstallationService,
    MemoryAppliedConfigurationStore,
    MemorySessionRepository,
    PipelineState,
    build_configuration,
)
from hyprdeck.installer.models import DiskSpace
from hyprdeck.orchestration.progress import ProgressChannel
from hyprdeck.orchestration.results import CheckResult, SetupStatus, Severity
from hyprdeck.preflight import DiskSpaceValidator
from tests.conftest import GB, FakeDeployer, FakePackageManager, StaticValidator

DESKTOP = {"components": ["hyprland", "waybar", "kitty"]}


def new_installation(body=None) -> Installation:
    request = InstallationRequest.from_dict(body or DESKTOP)
    return Installation(request, build_configuration(request))


class TestInstallationPipeline:
    """End-to-end pipeline behavior against fake collaborators."""

    def test_successful_installation(self, make_pipeline, package_manager, deployer, history):
        installation = new_installation()

        asyncio.run(make_pipeline().execute(installation))

        assert installation.state == PipelineState.COMPLETED
        assert package_manager.install_calls == [("hyprland",), ("waybar",), ("kitty",)]
        assert "/home/tester/.config/hypr/hyprland.conf" not in deployer.deployed
        assert "$config_dir/hypr/hyprland.conf" in deployer.deployed
        assert installation.components_installed() == 3
        assert installation.percent_complete() == 100

        [record] = history.records()
        assert record.outcome == InstallationOutcome.SUCCESS
        assert record.session_id == installation.id
        assert record.package_name == "hyprland"
        assert record.failure is None
        assert [p.name for p in record.packages] == ["hyprland", "waybar", "kitty"]
        assert installation.history_recorded

    def test_insufficient_disk_fails_at_preflight(self, make_pipeline, package_manager, history):
        disk = DiskSpace(5 * GB, 10 * GB)
        pipeline = make_pipeline(
            disk=disk, preflight_factory=lambda configuration: [DiskSpaceValidator(disk)]
        )
        installation = new_installation()

        asyncio.run(pipeline.execute(installation))

        assert installation.state == PipelineState.FAILED
        assert installation.failed_phase == PipelineState.PREFLIGHT
        assert installation.error_code == "PREFLIGHT_BLOCKED"
        assert package_manager.install_calls == []
        assert installation.preflight.blockers[0].component == "disk_space"

        [record] = history.records()
        assert record.outcome == InstallationOutcome.FAILED
        assert record.failure.phase == "preflight"
        assert record.packages == ()

    def test_warnings_do_not_block(self, make_pipeline):
        validators = [
            StaticValidator("gpu_support", CheckResult.warning("gpu_support", "NVIDIA GPU")),
            StaticValidator(
                "source_repositories",
                CheckResult.failed("source_repositories", "no main", Severity.MEDIUM),
            ),
        ]
        installation = new_installation()

        asyncio.run(make_pipeline(preflight_factory=lambda c: validators).execute(installation))

        assert installation.state == PipelineState.COMPLETED
        assert "gpu_support: NVIDIA GPU" in installation.warnings

    def test_install_failure_stops_and_keeps_rollback(self, make_pipeline, history):
        pm = FakePackageManager(fail_on={"kitty"})
        installation = new_installation()

        asyncio.run(make_pipeline(package_manager=pm).execute(installation))

        assert installation.state == PipelineState.FAILED
        assert installation.failed_phase == PipelineState.INSTALLING
        assert installation.error_code == "INSTALL_FAILED"
        assert installation.session.result_for("kitty").is_failure()
        assert [a.component for a in installation.session.rollback_actions()] == [
            "hyprland",
            "waybar",
        ]
        [record] = history.records()
        assert [p.name for p in record.packages] == ["hyprland", "waybar"]

    def test_deploy_failure(self, make_pipeline):
        installation = new_installation()
        pipeline = make_pipeline(deployer=FakeDeployer(fail_on={"waybar"}))

        asyncio.run(pipeline.execute(installation))

        assert installation.state == PipelineState.FAILED
        assert installation.failed_phase == PipelineState.CONFIGURING
        assert installation.error_code == "DEPLOY_FAILED"

    def test_deploy_warnings_surface(self, make_pipeline):
        installation = new_installation({"components": ["hyprland"]})
        pipeline = make_pipeline(deployer=FakeDeployer(warnings=["backup skipped"]))

        asyncio.run(pipeline.execute(installation))

        assert installation.state == PipelineState.COMPLETED
        assert "backup skipped" in installation.warnings

    def test_installed_components_are_skipped(self, make_pipeline, deployer):
        pm = FakePackageManager({"hyprland": "0.45.2", "waybar": "0.11.0"})
        installation = new_installation()

        asyncio.run(make_pipeline(package_manager=pm).execute(installation))

        assert installation.state == PipelineState.COMPLETED
        assert pm.install_calls == [("kitty",)]
        assert installation.session.result_for("hyprland").status == SetupStatus.SKIPPED
        assert deployer.deployed == ["$config_dir/kitty/kitty.conf"]
        assert "1 component(s)" in installation.message()
        assert "2 already up to date" in installation.message()

    def test_cancel_before_execution_records_history(self, make_pipeline, history, package_manager):
        installation = new_installation()
        installation.ctx.cancel()

        asyncio.run(make_pipeline().execute(installation))

        assert installation.state == PipelineState.CANCELLED
        assert installation.error_code == "CANCELLED"
        assert package_manager.install_calls == []
        assert history.records()[0].outcome == InstallationOutcome.CANCELLED

    def test_cancel_during_install_stops_at_checkpoint(self, make_pipeline):
        installation = new_installation()
        pm = FakePackageManager()
        original_install = pm.install

        async def install_then_cancel(ctx, *names):
            await original_install(ctx, *names)
            ctx.cancel()

        pm.install = install_then_cancel

        asyncio.run(make_pipeline(package_manager=pm).execute(installation))

        assert installation.state == PipelineState.CANCELLED
        assert installation.session.cancelled
        assert pm.versions == {"hyprland": "1.0.0"}

    def test_history_failure_becomes_warning(self, make_pipeline):
        class BrokenHistory:
            async def record(self, ctx, record):
                raise OSError("read-only filesystem")

        installation = new_installation()
        asyncio.run(make_pipeline(history=BrokenHistory()).execute(installation))

        assert installation.state == PipelineState.COMPLETED
        assert not installation.history_recorded
        assert any("history not recorded" in w for w in installation.warnings)

    def test_merges_with_applied_configuration(self, make_pipeline):
        previous = build_configuration(
            InstallationRequest.from_dict({"components": ["hyprland", "rofi"]})
        )
        store = MemoryAppliedConfigurationStore(previous)
        installation = new_installation({"components": ["hyprland", "kitty"]})

        asyncio.run(make_pipeline(applied_store=store).execute(installation))

        assert installation.configuration.component_names() == [
            ComponentName.HYPRLAND,
            ComponentName.KITTY,
            ComponentName.ROFI,
        ]
        assert store.load() == installation.configuration

    def test_no_merge_when_disabled(self, make_pipeline):
        previous = build_configuration(
            InstallationRequest.from_dict({"components": ["hyprland", "rofi"]})
        )
        installation = new_installation({"components": ["hyprland"], "merge_existing": False})

        asyncio.run(
            make_pipeline(applied_store=MemoryAppliedConfigurationStore(previous)).execute(
                installation
            )
        )

        assert installation.configuration.component_names() == [ComponentName.HYPRLAND]

    def test_progress_is_monotonic_and_reaches_100(self, make_pipeline):
        updates = []
        channel = ProgressChannel(capacity=256)
        installation = new_installation()

        asyncio.run(make_pipeline().execute(installation, updates.append, channel))

        percents = [u.percent for u in updates]
        assert percents == sorted(percents)
        assert percents[-1] == 100
        assert all(p < 100 for p in percents[:-1])
        assert channel.closed
        assert [u.percent for u in channel.drain()] == percents

    def test_cannot_execute_twice(self, make_pipeline):
        installation = new_installation()
        pipeline = make_pipeline()
        asyncio.run(pipeline.execute(installation))
        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(pipeline.execute(installation))

    def test_illegal_transition_rejected(self):
        installation = new_installation()
        with pytest.raises(InvalidStateTransitionError):
            installation.transition(PipelineState.COMPLETED)


@pytest.fixture
def service(make_pipeline, history) -> InstallationService:
    return InstallationService(make_pipeline(), MemorySessionRepository(), history)


class TestInstallationService:
    """Tests for the session surfaces."""

    def test_start_creates_pending_session(self, service):
        started = service.start(DESKTOP)

        assert started["status"] == "pending"
        assert started["component_count"] == 3
        assert started["message"] == "Installation session created successfully"
        assert service.get_status(started["session_id"])["percent_complete"] == 0

    @pytest.mark.parametrize(
        "body",
        [
            {"components": []},
            {"components": ["hyprland"], "gpu": {"vendor": 5}},
            {"components": ["hyprland"], "gpu": {"vendor": "amd", "requires_driver": "no"}},
        ],
    )
    def test_start_rejects_invalid_request(self, service, body):
        with pytest.raises(ValidationError):
            service.start(body)
        assert service.list_sessions()["total_count"] == 0

    def test_execute_returns_summary(self, service):
        session_id = service.start(DESKTOP)["session_id"]

        summary = asyncio.run(service.execute(session_id))

        assert summary["status"] == "completed"
        assert summary["percent_complete"] == 100
        assert summary["components_installed"] == 3
        assert summary["components_total"] == 3
        assert summary["completed_at"] is not None
        assert summary["failed_phase"] is None

    def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            service.get_status("nope")

    def test_list_sessions(self, service):
        service.start(DESKTOP)
        service.start({"components": ["hyprland"]})
        listing = service.list_sessions()
        assert listing["total_count"] == 2
        assert len(listing["sessions"]) == 2

    def test_cancel_pending(self, service, package_manager, history):
        session_id = service.start(DESKTOP)["session_id"]

        summary = service.cancel(session_id)

        assert summary["status"] == "cancelled"
        with pytest.raises(InvalidStateTransitionError):
            service.cancel(session_id)

        summary = asyncio.run(service.execute(session_id))

        assert summary["status"] == "cancelled"
        assert summary["message"] == "Installation cancelled by user"
        assert package_manager.install_calls == []
        assert history.records() == []

    def test_cancel_while_execute_starts(self, make_pipeline, history, package_manager):
        entered = threading.Event()
        release = threading.Event()

        def slow_disk():
            entered.set()
            release.wait(5)
            return DiskSpace(50 * GB, 10 * GB)

        service = InstallationService(
            make_pipeline(measure_disk=slow_disk), MemorySessionRepository(), history
        )
        session_id = service.start(DESKTOP)["session_id"]
        outcome = {}

        def run():
            try:
                outcome["summary"] = asyncio.run(service.execute(session_id))
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=run)
        worker.start()
        assert entered.wait(5)

        cancelled = service.cancel(session_id)
        release.set()
        worker.join(5)

        assert cancelled["status"] == "planning"
        assert "error" not in outcome
        assert outcome["summary"]["status"] == "cancelled"
        assert package_manager.install_calls == []
        [record] = history.records()
        assert record.outcome == InstallationOutcome.CANCELLED

    def test_execute_finished_session_rejected(self, service):
        session_id = service.start(DESKTOP)["session_id"]
        asyncio.run(service.execute(session_id))
        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(service.execute(session_id))

    def test_rollback_after_failure(self, make_pipeline, history):
        pm = FakePackageManager(fail_on={"kitty"})
        service = InstallationService(
            make_pipeline(package_manager=pm), MemorySessionRepository(), history
        )
        session_id = service.start(DESKTOP)["session_id"]
        asyncio.run(service.execute(session_id))

        outcome = asyncio.run(service.rollback(session_id))

        assert outcome["errors"] == []
        assert [a["component"] for a in outcome["actions"]] == ["waybar", "hyprland"]
        assert pm.remove_calls == [("waybar",), ("hyprland",)]
        assert not outcome["can_rollback"]
        assert history.records()[-1].outcome == InstallationOutcome.ROLLED_BACK

    def test_rollback_requires_finished_session(self, service):
        session_id = service.start(DESKTOP)["session_id"]
        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(service.rollback(session_id))

    def test_rollback_with_nothing_to_undo(self, make_pipeline, history):
        pm = FakePackageManager({"hyprland": "0.45", "waybar": "0.11", "kitty": "0.39"})
        service = InstallationService(
            make_pipeline(package_manager=pm), MemorySessionRepository(), history
        )
        session_id = service.start(DESKTOP)["session_id"]
        asyncio.run(service.execute(session_id))

        with pytest.raises(ValidationError, match="nothing to roll back"):
            asyncio.run(service.rollback(session_id))
