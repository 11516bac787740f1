import asyncio

from hyprdeck.config import Settings
from hyprdeck.installer import DiskSpace, GPUSupport, InstallationConfiguration
from hyprdeck.installer.models import ComponentName, ComponentSelection
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.results import CheckResult, CheckStatus, Severity
from hyprdeck.preflight import (
    ConnectivityValidator,
    DebianVersionValidator,
    DiskSpaceValidator,
    GPUValidator,
    PreflightOutcome,
    SourceRepositoryValidator,
    build_validators,
    measure_disk,
    run_preflight,
)
from tests.conftest import GB, FakeProbe, StaticValidator

SUPPORTED = ["trixie", "sid"]


def validate(validator) -> CheckResult:
    return asyncio.run(validator.run(RunContext()))


class TestDebianVersionValidator:
    def test_supported_release_passes(self):
        result = validate(DebianVersionValidator(FakeProbe(), SUPPORTED))
        assert result.status == CheckStatus.PASS
        assert "codename: trixie" in result.details

    def test_unsupported_release_blocks(self):
        probe = FakeProbe({"ID": "debian", "VERSION_CODENAME": "bookworm"})
        result = validate(DebianVersionValidator(probe, SUPPORTED))
        assert result.is_blocking()
        assert "bookworm" in result.message

    def test_sid_without_codename(self):
        probe = FakeProbe({"ID": "debian", "PRETTY_NAME": "Debian GNU/Linux trixie/sid"})
        assert validate(DebianVersionValidator(probe, SUPPORTED)).status == CheckStatus.PASS

    def test_derivative_is_accepted(self):
        probe = FakeProbe({"ID": "kali", "ID_LIKE": "debian", "VERSION_CODENAME": "trixie"})
        assert validate(DebianVersionValidator(probe, SUPPORTED)).status == CheckStatus.PASS

    def test_other_distribution_is_critical(self):
        probe = FakeProbe({"ID": "fedora", "PRETTY_NAME": "Fedora Linux 41"})
        result = validate(DebianVersionValidator(probe, SUPPORTED))
        assert result.is_critical()
        assert "not a Debian system" in result.message


class TestDiskSpaceValidator:
    def test_sufficient(self):
        result = validate(DiskSpaceValidator(DiskSpace(50 * GB, 10 * GB)))
        assert result.status == CheckStatus.PASS
        assert result.details == ("50.0 GB available, 10.0 GB required",)

    def test_insufficient_blocks(self):
        result = validate(DiskSpaceValidator(DiskSpace(5 * GB, 10 * GB)))
        assert result.is_blocking()
        assert result.severity == Severity.CRITICAL
        assert result.suggestions == ("Free at least 5.0 GB and retry",)


class TestGPUValidator:
    def test_no_gpu_is_low_warning(self):
        result = validate(GPUValidator(FakeProbe()))
        assert result.status == CheckStatus.WARNING
        assert result.severity == Severity.LOW

    def test_nvidia_warns_about_driver(self):
        result = validate(GPUValidator(FakeProbe(gpus=["nvidia"])))
        assert result.is_warning()
        assert not result.is_blocking()
        assert "proprietary driver" in result.message

    def test_requested_vendor_missing(self):
        result = validate(GPUValidator(FakeProbe(gpus=["intel"]), GPUSupport("amd")))
        assert result.status == CheckStatus.WARNING
        assert "amd" in result.message

    def test_amd_passes(self):
        result = validate(GPUValidator(FakeProbe(gpus=["amd"]), GPUSupport("amd")))
        assert result.status == CheckStatus.PASS
        assert result.details == ("detected: amd",)


class TestConnectivityValidator:
    def test_online(self):
        result = validate(ConnectivityValidator(FakeProbe(), "deb.debian.org"))
        assert result.status == CheckStatus.PASS

    def test_offline_blocks(self):
        result = validate(ConnectivityValidator(FakeProbe(online=False), "deb.debian.org"))
        assert result.is_blocking()
        assert result.message == "Cannot reach deb.debian.org:443"


class TestSourceRepositoryValidator:
    def test_main_configured(self):
        result = validate(SourceRepositoryValidator(FakeProbe()))
        assert result.status == CheckStatus.PASS
        assert result.message == "1 package source(s) configured"

    def test_deb822_sources(self):
        probe = FakeProbe(sources=["Types: deb deb-src", "Components: main contrib"])
        assert validate(SourceRepositoryValidator(probe)).status == CheckStatus.PASS

    def test_no_sources_blocks(self):
        result = validate(SourceRepositoryValidator(FakeProbe(sources=[])))
        assert result.is_blocking()

    def test_missing_main_is_warning(self):
        probe = FakeProbe(sources=["deb http://deb.debian.org/debian trixie contrib"])
        result = validate(SourceRepositoryValidator(probe))
        assert result.status == CheckStatus.FAIL
        assert not result.is_blocking()
        assert result.is_warning()


class TestBuildValidators:
    def test_order_and_measured_disk(self):
        settings = Settings()
        validators = build_validators(settings, FakeProbe(disk_bytes=3 * GB))
        assert [v.component for v in validators] == [
            "debian_version",
            "disk_space",
            "gpu_support",
            "internet_connectivity",
            "source_repositories",
        ]
        assert validators[1].disk == DiskSpace(3 * GB, 10 * GB)

    def test_uses_configuration_disk_when_measured(self):
        configuration = InstallationConfiguration.build(
            [ComponentSelection(ComponentName.HYPRLAND)],
            disk=DiskSpace(20 * GB, 10 * GB),
            gpu=GPUSupport("intel"),
        )
        validators = build_validators(Settings(), FakeProbe(disk_bytes=1), configuration)
        assert validators[1].disk == DiskSpace(20 * GB, 10 * GB)
        assert validators[2].gpu == GPUSupport("intel")

    def test_measure_disk(self):
        settings = Settings(required_disk_gb=4)
        assert measure_disk(FakeProbe(disk_bytes=8 * GB), settings) == DiskSpace(8 * GB, 4 * GB)


class TestPreflightReport:
    """Tests for preflight outcomes and recommendations."""

    def run(self, *results: CheckResult):
        validators = [StaticValidator(r.component, r) for r in results]
        return asyncio.run(run_preflight(RunContext(), validators))

    def test_all_pass(self):
        report = self.run(CheckResult.passed("a", "ok"), CheckResult.passed("b", "ok"))
        assert report.outcome == PreflightOutcome.SUCCESS
        assert report.can_proceed()

    def test_warnings(self):
        report = self.run(
            CheckResult.passed("a", "ok"),
            CheckResult.warning("b", "hmm").with_suggestions("look at b"),
        )
        assert report.outcome == PreflightOutcome.WARNINGS
        assert report.recommendations() == ["look at b"]

    def test_non_blocking_failure_is_partial_success(self):
        report = self.run(CheckResult.failed("a", "meh", Severity.MEDIUM))
        assert report.outcome == PreflightOutcome.PARTIAL_SUCCESS
        assert report.can_proceed()

    def test_blocker_does_not_hide_later_checks(self):
        later = StaticValidator("b", CheckResult.failed("b", "worse", Severity.CRITICAL))
        blocker = CheckResult.failed("a", "bad", Severity.HIGH).with_suggestions("fix a")
        validators = [StaticValidator("a", blocker), later]
        report = asyncio.run(run_preflight(RunContext(), validators))

        assert report.outcome == PreflightOutcome.BLOCKED
        assert not report.can_proceed()
        assert later.calls == 1
        assert [r.component for r in report.blockers] == ["a", "b"]
        assert report.recommendations() == ["fix a"]

    def test_every_validator_reports_on_a_broken_host(self, settings):
        probe = FakeProbe(
            os_release={"ID": "ubuntu", "VERSION_CODENAME": "noble"},
            disk_bytes=1 * GB,
            online=False,
        )
        report = asyncio.run(run_preflight(RunContext(), build_validators(settings, probe)))

        assert len(report.results) == 5
        assert [r.component for r in report.blockers] == [
            "debian_version",
            "disk_space",
            "internet_connectivity",
        ]

    def test_recommendations_are_deduplicated(self):
        report = self.run(
            CheckResult.warning("a", "x").with_suggestions("same"),
            CheckResult.warning("b", "y").with_suggestions("same", "other"),
        )
        assert report.recommendations() == ["same", "other"]

    def test_to_dict(self):
        data = self.run(CheckResult.passed("a", "ok")).to_dict()
        assert data["outcome"] == "success"
        assert data["can_proceed"] is True
        assert data["blocker_count"] == 0
        assert data["results"][0]["component"] == "a"

    def test_step_callback_sees_every_validator(self):
        seen = []
        validators = [
            StaticValidator("a", CheckResult.passed("a", "ok")),
            StaticValidator("b", CheckResult.passed("b", "ok")),
        ]
        asyncio.run(
            run_preflight(RunContext(), validators, lambda name, result: seen.append(name))
        )
        assert seen == ["validate a", "validate b"]
