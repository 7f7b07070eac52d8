"""
Tests for ToolchainManager — install, single repair attempt, verification.
"""

from pathlib import Path

import pytest

from hifi_setup.adapters.mock import failed, ok
from hifi_setup.core.models.result import FailureKind
from hifi_setup.core.services.provision.execution.toolchain import ToolchainManager


@pytest.fixture
def cargo_bin(home: Path) -> Path:
    return home / ".cargo" / "bin"


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    path.chmod(0o755)
    return path


class TestToolchainManager:
    def test_working_toolchain_is_verified(self, runner, steamos_profile, settings, cargo_bin):
        cargo = _touch(cargo_bin / "cargo")
        runner.set_response((str(cargo), "--version"), ok("cargo 1.82.0 (8f40fc59f 2024-08-21)"))

        result = ToolchainManager(runner, steamos_profile, settings).ensure()

        assert result.ok
        assert result.metadata["action"] == "verified"
        assert result.metadata["version"] == "1.82.0"
        assert runner.calls_to("curl") == []

    def test_cargo_on_user_path(self, runner, steamos_profile, settings):
        runner.set_which("cargo", "/usr/bin/cargo", as_user=True)
        result = ToolchainManager(runner, steamos_profile, settings).ensure()
        assert result.ok
        assert result.metadata["cargo"] == "/usr/bin/cargo"

    def test_absent_without_curl(self, runner, steamos_profile, settings):
        result = ToolchainManager(runner, steamos_profile, settings).ensure()
        assert result.fatal
        assert result.kind == FailureKind.MISSING_FETCH_TOOL
        assert runner.commands == []

    def test_installs_with_rustup(self, runner, steamos_profile, settings, cargo_bin):
        def rustup_init(cmd, call):
            _touch(cargo_bin / "cargo")
            return ok()

        runner.set_which("curl", "/usr/bin/curl")
        runner.set_response(("sh",), rustup_init)

        result = ToolchainManager(runner, steamos_profile, settings).ensure()

        assert result.ok
        assert result.metadata["action"] == "installed"
        (curl,) = runner.calls_to("curl")
        assert curl["cmd"][-1] == settings.toolchain.rustup_url
        assert "=https" in curl["cmd"]
        (script,) = runner.calls_to("sh")
        assert script["as_user"]
        assert script["cmd"][-1] == "-y"

    def test_rustup_download_fails(self, runner, steamos_profile, settings):
        runner.set_which("curl", "/usr/bin/curl")
        runner.set_failure(("curl",), returncode=6)
        result = ToolchainManager(runner, steamos_profile, settings).ensure()
        assert result.fatal
        assert result.kind == FailureKind.TOOLCHAIN_UNREPAIRABLE
        assert runner.calls_to("sh") == []
        assert "download failed" in result.message
        assert "installed" not in result.message

    def test_rustup_script_fails(self, runner, steamos_profile, settings):
        runner.set_which("curl", "/usr/bin/curl")
        runner.set_failure(("sh",), returncode=1)
        result = ToolchainManager(runner, steamos_profile, settings).ensure()
        assert result.fatal
        assert "install failed" in result.message

    def test_broken_toolchain_is_repaired(self, runner, steamos_profile, settings, cargo_bin):
        cargo = _touch(cargo_bin / "cargo")
        rustup = _touch(cargo_bin / "rustup")

        def cargo_version(cmd, call):
            if runner.calls_to(str(rustup), "default", "stable"):
                return ok("cargo 1.82.0")
            return failed(1, "error: no default toolchain configured")

        runner.set_response((str(cargo), "--version"), cargo_version)

        result = ToolchainManager(runner, steamos_profile, settings).ensure()

        assert result.ok
        assert result.metadata["action"] == "repaired"
        assert [c["cmd"][1:] for c in runner.calls_to(str(rustup))] == [
            ["self", "update"],
            ["default", "stable"],
        ]

    def test_unrepairable_gets_one_attempt(self, runner, steamos_profile, settings, cargo_bin):
        cargo = _touch(cargo_bin / "cargo")
        rustup = _touch(cargo_bin / "rustup")
        runner.set_failure((str(cargo), "--version"))

        result = ToolchainManager(runner, steamos_profile, settings).ensure()

        assert result.fatal
        assert result.kind == FailureKind.TOOLCHAIN_UNREPAIRABLE
        assert "deck" in result.remediation
        assert len(runner.calls_to(str(rustup), "self", "update")) == 1
