"""
Tests for uninstall — plan construction and the ReversalOrchestrator.
"""

import textwrap
from pathlib import Path

import pytest

from hifi_setup.adapters.mock import ok
from hifi_setup.core.models.result import FailureKind
from hifi_setup.core.services.provision.domain.uninstall_plan import (
    REMOVE_ALIAS,
    STRIP_PROFILE,
    build_uninstall_plan,
)
from hifi_setup.core.services.provision.orchestration.reversal import ReversalOrchestrator

IP_LINK = textwrap.dedent("""\
    1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue state UNKNOWN
    2: wlan0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc cake state UP
    3: enp5s0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP
""")


@pytest.fixture
def clean_host(runner):
    """Nothing running, nothing enabled, no lingering, no interfaces."""
    runner.set_failure(("systemctl", "is-active"), returncode=3)
    runner.set_failure(("systemctl", "is-enabled"), returncode=1)
    runner.set_failure(("systemctl", "--user", "is-active"), returncode=3)
    runner.set_failure(("systemctl", "--user", "is-enabled"), returncode=1)
    runner.set_response(("loginctl", "show-user"), ok("no\n"))
    return runner


def _write(path: Path, content: str = "x\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def full_install(settings, home, root_dir):
    """Every artifact an install can leave behind."""
    paths = settings.paths
    _write(Path(paths.system_unit), "[Unit]\n")
    _write(home / paths.user_unit_relpath, "[Unit]\n")
    _write(Path(paths.polkit_rule))
    _write(Path(paths.install_root) / "hifi-wifi")
    _write(Path(paths.install_root) / "state.json", "{}")
    alias = Path(paths.alias)
    alias.parent.mkdir(parents=True)
    alias.symlink_to(Path(paths.install_root) / "hifi-wifi")
    _write(Path(paths.user_config_dir) / "config.toml")
    for fragment in paths.driver_fragment_paths():
        _write(fragment)
    _write(Path(paths.sysctl_conf))
    _write(home / ".bashrc", textwrap.dedent("""\
        export EDITOR=vim
        # hifi-wifi CLI access
        export PATH="{root}:$PATH"
    """).format(root=paths.install_root))
    return root_dir


class TestUninstallPlan:
    def test_fixed_order(self, settings, steamos_profile):
        names = build_uninstall_plan(settings, steamos_profile).names
        assert names.index("stop_service") < names.index("remove_system_unit")
        assert names.index("remove_system_unit") < names.index("daemon_reload")
        assert names.index("stop_repair_service") < names.index("revoke_linger")
        assert names.index("remove_install_root") < names.index("strip_profile:.bashrc")
        assert names[-1] == "detach_qdiscs"

    def test_config_only_when_asked(self, settings, steamos_profile):
        assert "remove_config" not in build_uninstall_plan(settings, steamos_profile).names
        plan = build_uninstall_plan(settings, steamos_profile, remove_config=True)
        assert "remove_config" in plan.names

    def test_targets_follow_acting_user(self, settings, steamos_profile, home):
        plan = build_uninstall_plan(settings, steamos_profile)
        profiles = [s.target for s in plan if s.action == STRIP_PROFILE]
        assert profiles == [str(home / name) for name in (".bashrc", ".bash_profile", ".zshrc")]
        (alias,) = [s for s in plan if s.action == REMOVE_ALIAS]
        assert alias.target == settings.paths.alias

    def test_every_fragment_listed(self, settings, steamos_profile):
        names = build_uninstall_plan(settings, steamos_profile).names
        for fragment in ("rtl_legacy.conf", "ralink.conf", "mediatek.conf",
                         "intel_wifi.conf", "atheros.conf", "broadcom.conf"):
            assert f"remove_fragment:{fragment}" in names
        assert "remove_sysctl_conf" in names


class TestReversalOrchestrator:
    def test_only_system_unit_present(self, clean_host, steamos_profile, settings):
        unit = _write(Path(settings.paths.system_unit), "[Unit]\n")

        report = ReversalOrchestrator(clean_host, steamos_profile, settings).run()

        assert report.ok
        assert report.exit_code == 0
        assert not unit.exists()
        assert clean_host.calls_to("systemctl", "stop") == []
        assert clean_host.calls_to("loginctl", "disable-linger") == []
        assert clean_host.calls_to("steamos-readonly") == []
        skipped = [r.step for r in report.results if r.metadata.get("skipped")]
        assert "remove_install_root" in skipped
        assert "remove_polkit_rule" in skipped

    def test_second_run_never_errors(self, clean_host, steamos_profile, settings, full_install):
        orchestrator = ReversalOrchestrator(clean_host, steamos_profile, settings)
        assert orchestrator.run(remove_config=True).ok
        second = orchestrator.run(remove_config=True)
        assert second.ok
        assert not [r for r in second.results if r.fatal]

    def test_full_teardown(self, runner, steamos_profile, settings, home, full_install):
        runner.set_response(("loginctl", "show-user"), ok("yes\n"))
        runner.set_response(("ip", "-o", "link", "show"), ok(IP_LINK))
        runner.set_response(("tc", "qdisc", "show", "dev", "wlan0"), ok("qdisc cake 8001: root refcnt 2\n"))
        runner.set_response(("tc", "qdisc", "show", "dev", "enp5s0"), ok("qdisc fq_codel 0: root\n"))

        report = ReversalOrchestrator(runner, steamos_profile, settings).run(remove_config=True)

        assert report.ok
        paths = settings.paths
        for gone in (
            paths.system_unit, paths.polkit_rule, paths.install_root,
            paths.alias, paths.user_config_dir, paths.sysctl_conf,
        ):
            assert not Path(gone).exists() and not Path(gone).is_symlink()
        assert not (home / paths.user_unit_relpath).exists()
        assert not any(f.exists() for f in paths.driver_fragment_paths())
        assert (home / ".bashrc").read_text() == "export EDITOR=vim\n"

        assert runner.calls_to("systemctl", "stop", "hifi-wifi")[0]["elevated"]
        assert runner.calls_to("systemctl", "disable", "hifi-wifi")
        user_disable = runner.calls_to("systemctl", "--user", "disable", "--now")
        assert user_disable[0]["as_user"]
        assert runner.calls_to("loginctl", "disable-linger", "deck")
        assert runner.calls_to("tc", "qdisc", "del") == [
            c for c in runner.call_log if c["cmd"] == ["tc", "qdisc", "del", "dev", "wlan0", "root"]
        ]
        assert len(runner.calls_to("tc", "qdisc", "del")) == 1
        assert [c["cmd"][1] for c in runner.calls_to("steamos-readonly")] == ["disable", "enable"]

    def test_keeps_config_by_default(self, clean_host, steamos_profile, settings, full_install):
        ReversalOrchestrator(clean_host, steamos_profile, settings).run()
        assert Path(settings.paths.user_config_dir).is_dir()

    def test_failed_step_does_not_stop_the_rest(self, clean_host, steamos_profile, settings, full_install):
        clean_host.set_response(("ip", "-o", "link", "show"), ok(IP_LINK))
        clean_host.set_response(("tc", "qdisc", "show", "dev", "wlan0"), ok("qdisc cake 8001: root\n"))
        clean_host.set_failure(("tc", "qdisc", "del"))
        clean_host.set_response(("systemctl", "is-active"), ok())
        clean_host.set_failure(("systemctl", "stop"))

        report = ReversalOrchestrator(clean_host, steamos_profile, settings).run()

        assert not report.ok
        assert report.exit_code == 1
        assert [r.step for r in report.failed] == ["stop_service", "detach_qdiscs"]
        assert all(r.kind == FailureKind.REMOVAL_FAILED for r in report.failed)
        assert not Path(settings.paths.install_root).exists()
        assert not Path(settings.paths.sysctl_conf).exists()

    def test_user_reload_without_session_is_ignored(self, clean_host, steamos_profile, settings):
        clean_host.set_failure(("systemctl", "--user", "daemon-reload"))
        report = ReversalOrchestrator(clean_host, steamos_profile, settings).run()
        assert report.ok
        (reload_result,) = [r for r in report.results if r.step == "user_daemon_reload"]
        assert reload_result.ignored

    def test_foreign_alias_left_alone(self, clean_host, steamos_profile, settings):
        alias = _write(Path(settings.paths.alias), "#!/bin/sh\n")
        report = ReversalOrchestrator(clean_host, steamos_profile, settings).run()
        assert report.ok
        assert alias.exists()
        assert clean_host.calls_to("steamos-readonly") == []

    def test_unremovable_file_is_reported(self, clean_host, steamos_profile, settings, monkeypatch):
        unit = _write(Path(settings.paths.system_unit))

        def deny(self, *args, **kwargs):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(Path, "unlink", deny)
        report = ReversalOrchestrator(clean_host, steamos_profile, settings).run()

        assert not report.ok
        (failure,) = report.failed
        assert failure.step == "remove_system_unit"
        assert str(unit) in failure.remediation

    def test_reporter_called_per_step(self, clean_host, steamos_profile, settings):
        seen = []
        orchestrator = ReversalOrchestrator(clean_host, steamos_profile, settings, reporter=seen.append)
        report = orchestrator.run()
        assert seen == report.results
        assert len(seen) == len(orchestrator.plan())
