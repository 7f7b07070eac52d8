"""
Tests for the runner adapters — CommandRunner privilege wrapping and MockRunner.
"""

import os
import pwd

import pytest

from hifi_setup.adapters.mock import MockRunner, failed, ok
from hifi_setup.adapters.shell.command import CommandRunner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.settings import TimeoutSettings

ENV = {"PATH": "/usr/bin:/bin", "LANG": "C.UTF-8"}


def _profile(**overrides) -> PlatformProfile:
    values = {
        "acting_user": "deck",
        "acting_home": "/home/deck",
        "acting_uid": 1000,
        "is_elevated": True,
    }
    values.update(overrides)
    return PlatformProfile(**values)


# ── CommandRunner ────────────────────────────────────────────────────


class TestCommandRunnerPrepare:
    def test_as_user_from_root_uses_sudo_u(self):
        runner = CommandRunner(_profile(), brew_prefix="/home/linuxbrew/.linuxbrew", environ=ENV)
        cmd, _ = runner._prepare(["cargo", "build"], as_user=True, elevated=False, env=None)
        assert cmd[:4] == ["sudo", "-u", "deck", "env"]
        assert cmd[-2:] == ["cargo", "build"]
        assert "HOME=/home/deck" in cmd
        assert "PATH=/home/deck/.cargo/bin:/usr/bin:/bin:/home/linuxbrew/.linuxbrew/bin" in cmd
        assert "XDG_RUNTIME_DIR=/run/user/1000" in cmd

    def test_as_user_expands_path(self):
        runner = CommandRunner(_profile(), environ=ENV)
        cmd, _ = runner._prepare(
            ["cargo"], as_user=True, elevated=False, env={"PATH": "$PATH:/opt/gcc/bin"},
        )
        assert "PATH=/home/deck/.cargo/bin:/usr/bin:/bin:/opt/gcc/bin" in cmd

    def test_as_user_when_not_elevated(self):
        runner = CommandRunner(_profile(is_elevated=False), environ=ENV)
        cmd, env = runner._prepare(["cargo"], as_user=True, elevated=False, env=None)
        assert cmd == ["cargo"]
        assert env["HOME"] == "/home/deck"
        assert env["PATH"].startswith("/home/deck/.cargo/bin")
        assert env["LANG"] == "C.UTF-8"

    def test_elevated_when_root(self):
        runner = CommandRunner(_profile(), environ=ENV)
        cmd, _ = runner._prepare(["systemctl", "stop", "x"], as_user=False, elevated=True, env=None)
        assert cmd == ["systemctl", "stop", "x"]

    def test_elevated_when_not_root(self):
        runner = CommandRunner(_profile(is_elevated=False), environ=ENV)
        cmd, _ = runner._prepare(["systemctl", "stop", "x"], as_user=False, elevated=True, env=None)
        assert cmd == ["sudo", "systemctl", "stop", "x"]

    def test_elevated_passes_env_through_sudo(self):
        runner = CommandRunner(_profile(is_elevated=False), environ=ENV)
        cmd, _ = runner._prepare(["x"], as_user=False, elevated=True, env={"A": "1"})
        assert cmd == ["sudo", "env", "A=1", "x"]

    def test_timeout_tiers(self):
        runner = CommandRunner(_profile(), TimeoutSettings(build=10), environ=ENV)
        assert runner._timeout("build") == 10
        assert runner._timeout("network") == 600
        assert runner._timeout("bogus") == 120


class TestCommandRunnerRun:
    @pytest.fixture
    def local(self):
        entry = pwd.getpwuid(os.geteuid())
        profile = _profile(
            acting_user=entry.pw_name,
            acting_home=entry.pw_dir,
            acting_uid=entry.pw_uid,
            is_elevated=False,
        )
        return CommandRunner(profile, environ=dict(os.environ))

    def test_success(self, local):
        result = local.run(["sh", "-c", "echo hello"])
        assert result["ok"]
        assert result["stdout"].strip() == "hello"
        assert "elapsed_ms" in result

    def test_failure(self, local):
        result = local.run(["sh", "-c", "echo oops >&2; exit 3"])
        assert not result["ok"]
        assert result["returncode"] == 3
        assert "oops" in result["stderr"]

    def test_missing_binary(self, local):
        result = local.run(["hifi-setup-no-such-binary"])
        assert not result["ok"]
        assert result["returncode"] == 127
        assert result["missing"]

    def test_timeout(self):
        entry = pwd.getpwuid(os.geteuid())
        profile = _profile(acting_user=entry.pw_name, acting_home=entry.pw_dir, is_elevated=False)
        runner = CommandRunner(profile, TimeoutSettings(default=1), environ=dict(os.environ))
        result = runner.run(["sleep", "5"])
        assert not result["ok"]
        assert result["timed_out"]

    def test_succeeds(self, local):
        assert local.succeeds(["true"])
        assert not local.succeeds(["false"])


# ── MockRunner ───────────────────────────────────────────────────────


class TestMockRunner:
    def test_default_success(self):
        mock = MockRunner()
        assert mock.run(["anything"])["ok"]
        assert mock.commands == [["anything"]]

    def test_longest_prefix_wins(self):
        mock = MockRunner()
        mock.set_failure(("systemctl",))
        mock.set_response(("systemctl", "is-active"), ok("active"))
        assert mock.run(["systemctl", "is-active", "x"])["stdout"] == "active"
        assert not mock.run(["systemctl", "stop", "x"])["ok"]

    def test_callable_response(self):
        mock = MockRunner()
        mock.set_response(("build",), lambda cmd, call: ok(" ".join(cmd)) if call["as_user"] else failed())
        assert mock.run(["build", "x"], as_user=True)["stdout"] == "build x"
        assert not mock.run(["build", "x"])["ok"]

    def test_call_log_records_privilege(self):
        mock = MockRunner()
        mock.run(["a"], elevated=True, tier="package")
        (call,) = mock.call_log
        assert call["elevated"]
        assert call["tier"] == "package"
        assert not call["as_user"]

    def test_which_tables(self):
        mock = MockRunner(which={"curl": "/usr/bin/curl"})
        mock.set_which("cargo", "/home/deck/.cargo/bin/cargo", as_user=True)
        assert mock.which("curl") == "/usr/bin/curl"
        assert mock.which("curl", as_user=True) == "/usr/bin/curl"
        assert mock.which("cargo") is None
        assert mock.which("cargo", as_user=True) == "/home/deck/.cargo/bin/cargo"
        mock.set_which("curl", None)
        assert mock.which("curl") is None

    def test_reset(self):
        mock = MockRunner()
        mock.set_failure(("x",))
        mock.run(["x"])
        mock.reset()
        assert mock.call_log == []
        assert not mock.run(["x"])["ok"]
