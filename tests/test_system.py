import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from hyprdeck.backup import BackupStore
from hyprdeck.execution import join_command, run_command_async
from hyprdeck.orchestration.context import RunContext
from hyprdeck.system.apt import AptPackageManager, parse_dpkg_status
from hyprdeck.system.deploy import FileConfigDeployer, expand_target, render_template
from hyprdeck.system.interfaces import CommandError, FileSpec
from hyprdeck.system.probe import HostProbe, parse_gpu_vendors, parse_os_release
from hyprdeck.system.systemd import SystemdServiceManager

LSPCI = """\
00:02.0 VGA compatible controller: Intel Corporation Alder Lake-P GT2 [Iris Xe Graphics]
01:00.0 3D controller: NVIDIA Corporation GA107M [GeForce RTX 3050 Mobile] (rev a1)
02:00.0 Audio device: Advanced Micro Devices, Inc. [AMD] Raven/Raven2 HDMI audio
"""


class TestParsers:
    def test_parse_dpkg_status(self):
        assert parse_dpkg_status("installed 0.45.2-1\n") == "0.45.2-1"
        assert parse_dpkg_status("config-files 1.0") is None
        assert parse_dpkg_status("") is None

    def test_parse_os_release(self):
        text = '# comment\nID=debian\nPRETTY_NAME="Debian GNU/Linux 13 (trixie)"\n\nBROKEN\n'
        assert parse_os_release(text) == {
            "ID": "debian",
            "PRETTY_NAME": "Debian GNU/Linux 13 (trixie)",
        }

    def test_parse_gpu_vendors_ignores_non_display_devices(self):
        assert parse_gpu_vendors(LSPCI) == ["intel", "nvidia"]

    def test_parse_gpu_vendors_radeon(self):
        line = "03:00.0 VGA compatible controller: Advanced Micro Devices [AMD/ATI] Radeon RX 6600"
        assert parse_gpu_vendors(line) == ["amd"]

    def test_host_probe_reads_os_release(self, temp_dir):
        release = temp_dir / "os-release"
        release.write_text("ID=debian\nVERSION_CODENAME=trixie\n")
        assert HostProbe(release).os_info()["VERSION_CODENAME"] == "trixie"
        assert HostProbe(temp_dir / "missing").os_info() == {}


class TestAptPackageManager:
    """Tests for apt command construction and error handling."""

    def test_install_builds_noninteractive_command(self):
        mock_run = AsyncMock(return_value=("", 0))
        with patch("hyprdeck.system.apt.run_command_async", mock_run):
            asyncio.run(AptPackageManager().install(RunContext(), "waybar", "kitty"))

        command = mock_run.call_args[0][0]
        assert command == (
            "sudo DEBIAN_FRONTEND=noninteractive apt-get install -y "
            "--no-install-recommends waybar kitty"
        )

    def test_install_failure_raises(self):
        mock_run = AsyncMock(return_value=("E: Unable to locate package nope", 100))
        with patch("hyprdeck.system.apt.run_command_async", mock_run):
            with pytest.raises(CommandError) as exc:
                asyncio.run(AptPackageManager(use_sudo=False).install(RunContext(), "nope"))

        assert exc.value.returncode == 100
        assert "Unable to locate package nope" in str(exc.value)

    def test_install_nothing_is_noop(self):
        mock_run = AsyncMock()
        with patch("hyprdeck.system.apt.run_command_async", mock_run):
            asyncio.run(AptPackageManager().install(RunContext()))
        mock_run.assert_not_called()

    def test_installed_version(self):
        mock_run = AsyncMock(return_value=("installed 0.11.0-3", 0))
        with patch("hyprdeck.system.apt.run_command_async", mock_run):
            pm = AptPackageManager()
            assert asyncio.run(pm.installed_version(RunContext(), "waybar")) == "0.11.0-3"
            assert asyncio.run(pm.is_installed(RunContext(), "waybar"))

    def test_unknown_package_is_not_installed(self):
        mock_run = AsyncMock(return_value=("dpkg-query: no packages found", 1))
        with patch("hyprdeck.system.apt.run_command_async", mock_run):
            assert asyncio.run(AptPackageManager().installed_version(RunContext(), "x")) is None


class TestSystemdServiceManager:
    def test_queries_do_not_use_sudo(self):
        manager = SystemdServiceManager()
        assert manager._command("is-enabled", "--quiet", "sddm") == "systemctl is-enabled --quiet sddm"
        assert manager._command("enable", "sddm") == "sudo systemctl enable sddm"

    def test_user_units(self):
        manager = SystemdServiceManager(user=True)
        assert manager._command("start", "waybar") == "systemctl --user start waybar"

    def test_enable_failure_raises(self):
        mock_run = AsyncMock(return_value=("Failed to enable unit", 1))
        with patch("hyprdeck.system.systemd.run_command_async", mock_run):
            with pytest.raises(CommandError):
                asyncio.run(SystemdServiceManager().enable(RunContext(), "sddm"))

    def test_is_active(self):
        mock_run = AsyncMock(return_value=("", 0))
        with patch("hyprdeck.system.systemd.run_command_async", mock_run):
            assert asyncio.run(SystemdServiceManager().is_active(RunContext(), "sddm"))


class TestFileConfigDeployer:
    """Tests for templated deployment with backups."""

    VARIABLES = {"terminal": "kitty"}

    def spec(self, target) -> FileSpec:
        return FileSpec("hyprland", str(target), "$$mod = SUPER\nbind = $$mod, Q, exec, $terminal\n")

    def test_render_template_keeps_unknown_placeholders(self):
        assert render_template("$terminal $missing", self.VARIABLES) == "kitty $missing"

    def test_expand_target(self):
        assert str(expand_target("$config_dir/hypr/x.conf", {"config_dir": "/h/.config"})) == (
            "/h/.config/hypr/x.conf"
        )

    def test_new_file_has_no_backup(self, temp_dir):
        deployer = FileConfigDeployer(BackupStore(temp_dir / "backups"))
        target = temp_dir / "hypr" / "hyprland.conf"

        result = asyncio.run(deployer.deploy_with_backup(RunContext(), self.spec(target), self.VARIABLES))

        assert result.success
        assert result.backup_id is None
        assert target.read_text() == "$mod = SUPER\nbind = $mod, Q, exec, kitty\n"

        asyncio.run(deployer.undo(RunContext(), result))
        assert not target.exists()

    def test_existing_file_is_backed_up_and_restored(self, temp_dir):
        store = BackupStore(temp_dir / "backups")
        deployer = FileConfigDeployer(store)
        target = temp_dir / "hyprland.conf"
        target.write_text("# my config\n")

        result = asyncio.run(deployer.deploy_with_backup(RunContext(), self.spec(target), self.VARIABLES))

        assert result.backup_id is not None
        assert store.get(result.backup_id).entries[0].original == str(target)
        assert "kitty" in target.read_text()

        asyncio.run(deployer.undo(RunContext(), result))
        assert target.read_text() == "# my config\n"


class TestRunCommandAsync:
    def test_captures_output(self):
        output, returncode = asyncio.run(run_command_async("echo hello"))
        assert output == "hello"
        assert returncode == 0

    def test_stderr_used_when_stdout_empty(self):
        output, returncode = asyncio.run(run_command_async("echo oops >&2; exit 3"))
        assert returncode == 3
        assert output == "oops"

    def test_timeout(self):
        output, returncode = asyncio.run(run_command_async("sleep 5", timeout=0.1))
        assert returncode == 1
        assert "timed out" in output

    def test_join_command_quotes(self):
        assert join_command(["dpkg-query", "-W", "-f=${Version}", "a b"]) == (
            "dpkg-query -W '-f=${Version}' 'a b'"
        )
