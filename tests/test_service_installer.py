"""
Tests for ServiceInstaller — stop, register, relabel, alias, apply.
"""

from pathlib import Path

from hifi_setup.core.models.result import FailureKind
from hifi_setup.core.services.provision.execution.service_installer import ServiceInstaller


class TestStopIfActive:
    def test_stops_running_service(self, runner, arch_profile, settings):
        result = ServiceInstaller(runner, arch_profile, settings).stop_if_active()
        assert result.ok
        (stop,) = runner.calls_to("systemctl", "stop")
        assert stop["cmd"] == ["systemctl", "stop", "hifi-wifi"]
        assert stop["elevated"]

    def test_not_running(self, runner, arch_profile, settings):
        runner.set_failure(("systemctl", "is-active"), returncode=3)
        result = ServiceInstaller(runner, arch_profile, settings).stop_if_active()
        assert result.ok
        assert runner.calls_to("systemctl", "stop") == []

    def test_stop_fails(self, runner, arch_profile, settings):
        runner.set_failure(("systemctl", "stop"))
        result = ServiceInstaller(runner, arch_profile, settings).stop_if_active()
        assert result.fatal
        assert result.kind == FailureKind.SERVICE_INSTALL_FAILED


class TestRegister:
    def test_runs_artifact_install(self, runner, arch_profile, settings, tmp_path):
        staged = tmp_path / "target/release/hifi-wifi"
        result = ServiceInstaller(runner, arch_profile, settings).register(staged)
        assert result.ok
        (call,) = runner.call_log
        assert call["cmd"] == [str(staged), "install"]
        assert call["elevated"]

    def test_failure_is_fatal(self, runner, arch_profile, settings, tmp_path):
        staged = tmp_path / "hifi-wifi"
        runner.set_failure((str(staged), "install"), returncode=2)
        result = ServiceInstaller(runner, arch_profile, settings).register(staged)
        assert result.fatal
        assert result.remediation


class TestRelabel:
    def test_no_selinux(self, runner, arch_profile, settings):
        result = ServiceInstaller(runner, arch_profile, settings).relabel()
        assert result.ok
        assert runner.commands == []

    def test_chcon_missing_is_ignored(self, runner, make_profile, settings):
        profile = make_profile(has_selinux=True)
        result = ServiceInstaller(runner, profile, settings).relabel()
        assert result.ignored
        assert runner.commands == []

    def test_relabels_installed_binary(self, runner, make_profile, settings):
        runner.set_which("chcon", "/usr/bin/chcon")
        profile = make_profile(has_selinux=True)
        result = ServiceInstaller(runner, profile, settings).relabel()
        assert result.ok
        (call,) = runner.call_log
        assert call["cmd"] == [
            "chcon", "-t", "bin_t", str(Path(settings.paths.install_root) / "hifi-wifi"),
        ]

    def test_chcon_failure_is_ignored(self, runner, make_profile, settings):
        runner.set_which("chcon", "/usr/bin/chcon")
        runner.set_failure(("chcon",))
        result = ServiceInstaller(runner, make_profile(has_selinux=True), settings).relabel()
        assert result.ignored


class TestCreateAlias:
    def test_links_to_installed_binary(self, runner, arch_profile, settings):
        result = ServiceInstaller(runner, arch_profile, settings).create_alias()
        assert result.ok
        (link,) = runner.calls_to("ln")
        assert link["cmd"] == [
            "ln", "-s",
            str(Path(settings.paths.install_root) / "hifi-wifi"),
            settings.paths.alias,
        ]
        assert runner.calls_to("steamos-readonly") == []

    def test_immutable_unlocks_root(self, runner, steamos_profile, settings):
        result = ServiceInstaller(runner, steamos_profile, settings).create_alias()
        assert result.ok
        assert result.metadata["root_unlocked"]
        assert runner.commands[0] == ["steamos-readonly", "disable"]
        assert runner.commands[-1] == ["steamos-readonly", "enable"]


class TestApplyInitialState:
    def test_uses_alias_when_on_path(self, runner, arch_profile, settings):
        runner.set_which("hifi-wifi", "/usr/local/bin/hifi-wifi")
        result = ServiceInstaller(runner, arch_profile, settings).apply_initial_state()
        assert result.ok
        assert runner.commands == [["/usr/local/bin/hifi-wifi", "apply"]]

    def test_falls_back_to_install_path(self, runner, arch_profile, settings):
        result = ServiceInstaller(runner, arch_profile, settings).apply_initial_state()
        assert result.ok
        binary = str(Path(settings.paths.install_root) / "hifi-wifi")
        assert runner.commands == [[binary, "apply"]]

    def test_failure_is_fatal(self, runner, arch_profile, settings):
        binary = str(Path(settings.paths.install_root) / "hifi-wifi")
        runner.set_failure((binary, "apply"))
        result = ServiceInstaller(runner, arch_profile, settings).apply_initial_state()
        assert result.fatal
        assert result.kind == FailureKind.APPLY_FAILED
