import asyncio

import pytest

from hyprdeck.errors import InvalidConfigurationError, ValidationError
from hyprdeck.installer import (
    ComponentName,
    ComponentSelection,
    ConfigurationMerger,
    ConflictResolver,
    DiskSpace,
    GPUSupport,
    InstallationConfiguration,
    InstallationRequest,
    ResolutionAction,
    build_configuration,
    default_components,
    get_catalog,
    render_plan,
    resolve,
    template_variables,
)
from hyprdeck.orchestration.context import RunContext
from tests.conftest import GB, FakePackageManager

C = ComponentName


def config_of(*names, **kwargs) -> InstallationConfiguration:
    return InstallationConfiguration.build([ComponentSelection(n) for n in names], **kwargs)


class TestComponentName:
    def test_parse_is_case_insensitive(self):
        assert ComponentName.parse(" Waybar ") == C.WAYBAR

    def test_parse_unknown_lists_known_names(self):
        with pytest.raises(ValidationError, match="unknown component 'sway'"):
            ComponentName.parse("sway")


class TestInstallationConfiguration:
    """Tests for configuration invariants."""

    def test_requires_core_component(self):
        with pytest.raises(InvalidConfigurationError, match="core component"):
            config_of(C.WAYBAR)

    def test_requires_components(self):
        with pytest.raises(InvalidConfigurationError):
            InstallationConfiguration(components=())

    def test_rejects_duplicates(self):
        with pytest.raises(InvalidConfigurationError, match="duplicate"):
            InstallationConfiguration(
                components=(ComponentSelection(C.HYPRLAND), ComponentSelection(C.HYPRLAND, "0.45"))
            )

    def test_build_keeps_last_selection(self):
        configuration = InstallationConfiguration.build(
            [
                ComponentSelection(C.HYPRLAND),
                ComponentSelection(C.WAYBAR, "0.10"),
                ComponentSelection(C.WAYBAR, "0.11"),
            ]
        )
        assert configuration.component_names() == [C.HYPRLAND, C.WAYBAR]
        assert configuration.selection_for(C.WAYBAR).version == "0.11"

    def test_blank_version_rejected(self):
        with pytest.raises(InvalidConfigurationError, match="version"):
            ComponentSelection(C.KITTY, " ")

    def test_driver_must_match_gpu(self):
        with pytest.raises(InvalidConfigurationError, match="without a matching GPU"):
            config_of(C.HYPRLAND, C.NVIDIA_DRIVER, gpu=GPUSupport("amd"))
        with pytest.raises(InvalidConfigurationError, match="without a matching GPU"):
            config_of(C.HYPRLAND, C.AMD_DRIVER)

    def test_dict_round_trip_preserves_gpu(self):
        configuration = config_of(
            C.HYPRLAND, C.NVIDIA_DRIVER, gpu=GPUSupport("NVIDIA", requires_driver=True)
        )
        restored = InstallationConfiguration.from_dict(configuration.to_dict())
        assert restored == configuration


class TestGPUSupport:
    def test_vendor_normalized_and_driver_filled(self):
        gpu = GPUSupport(" AMD ", requires_driver=True)
        assert gpu.vendor == "amd"
        assert gpu.driver == C.AMD_DRIVER
        assert not gpu.is_proprietary

    def test_mismatched_driver_rejected(self):
        with pytest.raises(InvalidConfigurationError, match="does not match"):
            GPUSupport("intel", driver=C.NVIDIA_DRIVER)

    def test_unknown_vendor_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            GPUSupport("matrox")


class TestDiskSpace:
    def test_sufficient(self):
        assert DiskSpace(12 * GB, 10 * GB).is_sufficient()
        assert not DiskSpace(5 * GB, 10 * GB).is_sufficient()

    def test_unmeasured(self):
        assert not DiskSpace().is_measured


class TestInstallationRequest:
    """Tests for request validation."""

    def test_from_dict_accepts_names_and_objects(self):
        request = InstallationRequest.from_dict(
            {"components": ["hyprland", {"name": "waybar", "version": "0.11.0"}]}
        )
        assert [c.name for c in request.components] == ["hyprland", "waybar"]
        assert request.components[1].version == "0.11.0"

    @pytest.mark.parametrize(
        "body,message",
        [
            ([], "must be an object"),
            ({}, "at least one component"),
            ({"components": [{"version": "1"}]}, "name"),
            ({"components": [{"name": "kitty", "version": ""}]}, "version"),
            ({"components": ["hyprland"], "merge_existing": "yes"}, "boolean"),
            ({"components": ["hyprland"], "gpu": {"vendor": 5}}, "vendor' must be a string"),
            (
                {"components": ["hyprland"], "gpu": {"vendor": "amd", "requires_driver": "no"}},
                "requires_driver' must be a boolean",
            ),
        ],
    )
    def test_from_dict_rejects(self, body, message):
        with pytest.raises(ValidationError, match=message):
            InstallationRequest.from_dict(body)

    def test_validate_rejects_unknown_gpu(self):
        request = InstallationRequest.from_dict(
            {"components": ["hyprland"], "gpu": {"vendor": "voodoo"}}
        )
        with pytest.raises(ValidationError, match="GPU vendor"):
            request.validate()


class TestBuildConfiguration:
    def test_driver_added_for_gpu(self):
        request = InstallationRequest.from_dict(
            {"components": ["hyprland"], "gpu": {"vendor": "nvidia", "requires_driver": True}}
        )
        configuration = build_configuration(request)
        assert configuration.component_names() == [C.HYPRLAND, C.NVIDIA_DRIVER]

    def test_driver_without_gpu_rejected(self):
        request = InstallationRequest.from_dict({"components": ["hyprland", "amd_driver"]})
        with pytest.raises(InvalidConfigurationError, match="without a matching GPU"):
            build_configuration(request)

    def test_missing_core_rejected(self):
        request = InstallationRequest.from_dict({"components": ["waybar"]})
        with pytest.raises(InvalidConfigurationError):
            build_configuration(request)


class TestResolve:
    """Tests for conflict resolution decisions."""

    def test_not_installed_installs(self):
        resolution = resolve(C.WAYBAR, "latest", None)
        assert resolution.action == ResolutionAction.INSTALL
        assert resolution.needs_work

    def test_latest_when_installed_skips(self):
        resolution = resolve(C.WAYBAR, "latest", "0.11.0-1")
        assert resolution.action == ResolutionAction.SKIP

    def test_older_installed_upgrades(self):
        resolution = resolve(C.HYPRLAND, "0.46.0", "0.45.2-1")
        assert resolution.action == ResolutionAction.UPGRADE
        assert resolution.installed_version == "0.45.2-1"

    def test_same_version_skips(self):
        resolution = resolve(C.HYPRLAND, "0.45.2", "0.45.2-1")
        assert resolution.action == ResolutionAction.SKIP
        assert resolution.reason == "already at requested version"

    def test_never_downgrades(self):
        resolution = resolve(C.HYPRLAND, "0.40.0", "1:0.45.2-1")
        assert resolution.action == ResolutionAction.SKIP
        assert not resolution.needs_work

    def test_resolver_checks_extra_packages(self):
        pm = FakePackageManager({"hyprland": "0.45.2"})
        resolver = ConflictResolver(pm)
        resolutions = asyncio.run(
            resolver.plan(RunContext(), config_of(C.HYPRLAND, C.KITTY).components)
        )
        assert [r.action for r in resolutions] == [ResolutionAction.SKIP, ResolutionAction.INSTALL]


class TestConfigurationMerger:
    """Tests for merging a new request over the applied configuration."""

    def test_no_existing_returns_requested(self):
        requested = config_of(C.HYPRLAND)
        assert ConfigurationMerger().merge(None, requested) is requested

    def test_requested_first_then_existing_only(self):
        existing = config_of(C.HYPRLAND, C.WAYBAR, C.KITTY)
        requested = InstallationConfiguration.build(
            [ComponentSelection(C.HYPRLAND, "0.46.0"), ComponentSelection(C.FUZZEL)]
        )
        merged = ConfigurationMerger().merge(existing, requested)

        assert merged.component_names() == [C.HYPRLAND, C.FUZZEL, C.WAYBAR, C.KITTY]
        assert merged.selection_for(C.HYPRLAND).version == "0.46.0"

    def test_gpu_and_disk_fall_back_to_existing(self):
        existing = config_of(
            C.HYPRLAND, gpu=GPUSupport("amd"), disk=DiskSpace(20 * GB, 10 * GB)
        )
        merged = ConfigurationMerger().merge(existing, config_of(C.HYPRLAND))
        assert merged.gpu == GPUSupport("amd")
        assert merged.disk == DiskSpace(20 * GB, 10 * GB)

    def test_driver_for_replaced_gpu_is_dropped(self):
        existing = config_of(
            C.HYPRLAND, C.NVIDIA_DRIVER, gpu=GPUSupport("nvidia", requires_driver=True)
        )
        requested = config_of(C.HYPRLAND, gpu=GPUSupport("amd"))

        merged = ConfigurationMerger().merge(existing, requested)

        assert merged.component_names() == [C.HYPRLAND]
        assert merged.gpu.vendor == "amd"

    def test_driver_kept_when_gpu_carries_over(self):
        existing = config_of(C.HYPRLAND, C.NVIDIA_DRIVER, gpu=GPUSupport("nvidia"))
        merged = ConfigurationMerger().merge(existing, config_of(C.HYPRLAND, C.KITTY))
        assert merged.component_names() == [C.HYPRLAND, C.KITTY, C.NVIDIA_DRIVER]

    def test_merge_is_idempotent(self):
        existing = config_of(C.HYPRLAND, C.WAYBAR)
        requested = config_of(C.HYPRLAND, C.KITTY)
        merger = ConfigurationMerger()
        once = merger.merge(existing, requested)
        assert merger.merge(existing, once) == once

    def test_should_backup_existing(self, temp_dir):
        target = temp_dir / "hyprland.conf"
        assert not ConfigurationMerger().should_backup_existing(target)
        target.write_text("monitor=,preferred,auto,1\n")
        assert ConfigurationMerger().should_backup_existing(target)


class TestCatalog:
    def test_every_component_has_an_entry(self):
        assert set(get_catalog()) == set(ComponentName)

    def test_default_components_follow_launcher(self):
        assert C.ROFI in default_components("rofi")
        assert C.FUZZEL not in default_components("rofi")
        assert default_components()[0] == C.HYPRLAND

    def test_template_variables(self):
        variables = template_variables("tester", "/home/tester/", "rofi")
        assert variables["config_dir"] == "/home/tester/.config"
        assert variables["launcher_command"] == "rofi -show drun"
        assert variables["wallpaper_dir"] == "/home/tester/Pictures/wallpapers"


class TestRenderPlan:
    def test_lists_actions_and_files(self):
        configuration = config_of(C.HYPRLAND, C.WAYBAR, gpu=GPUSupport("nvidia"))
        resolutions = [resolve(C.HYPRLAND, "latest", None), resolve(C.WAYBAR, "latest", "0.11")]

        plan = render_plan(configuration, resolutions)

        assert "hyprland: install (not installed)" in plan
        assert "waybar: skip" in plan
        assert "$config_dir/waybar/style.css" in plan
        assert "GPU: nvidia (proprietary driver)" in plan
