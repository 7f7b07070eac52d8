"""
L4 Execution — ServiceInstaller.

Turns the staged binary into a running, persistent service with a
global command name. Each step is safe to repeat:

    stop_if_active       stop a running instance before its binary is replaced
    register             '<staged> install' (the artifact registers itself)
    relabel              SELinux label on the installed binary, best effort
    create_alias         /usr/local/bin symlink, inside a WritableRoot scope
    apply_initial_state  '<hifi-wifi> apply'
"""

from __future__ import annotations

import logging
from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.services.provision.data.remediation import hint
from hifi_setup.core.services.provision.detection.service_status import (
    alias_present,
    is_active,
)
from hifi_setup.core.services.provision.execution.writable_root import WritableRoot

logger = logging.getLogger(__name__)

SELINUX_EXEC_TYPE = "bin_t"


class ServiceInstaller:
    """Install the hifi-wifi service from a staged binary."""

    def __init__(self, runner: Runner, profile: PlatformProfile, settings: InstallerSettings):
        self._runner = runner
        self._profile = profile
        self._settings = settings

    @property
    def installed_binary(self) -> Path:
        return self._settings.paths.installed_binary(self._settings.service.binary_name)

    @property
    def alias(self) -> Path:
        return Path(self._settings.paths.alias)

    def stop_if_active(self) -> StepResult:
        name = self._settings.service.name
        if not is_active(self._runner, name):
            return StepResult.success("stop_service", f"{name} not running")

        result = self._runner.run(["systemctl", "stop", name], elevated=True)
        if not result.get("ok"):
            return StepResult.failure(
                "stop_service",
                FailureKind.SERVICE_INSTALL_FAILED,
                f"Cannot stop running {name}: {result.get('error')}",
                hint(FailureKind.SERVICE_INSTALL_FAILED.value, binary=name),
            )
        return StepResult.success("stop_service", f"Stopped {name}")

    def register(self, staged: Path) -> StepResult:
        result = self._runner.run([str(staged), "install"], elevated=True, stream=True)
        if not result.get("ok"):
            return StepResult.failure(
                "install_service",
                FailureKind.SERVICE_INSTALL_FAILED,
                f"'{staged} install' exited {result.get('returncode')}",
                hint(FailureKind.SERVICE_INSTALL_FAILED.value, binary=str(staged)),
            )
        return StepResult.success("install_service", "Service registered")

    def relabel(self) -> StepResult:
        if not self._profile.has_selinux:
            return StepResult.success("relabel", "No SELinux; nothing to relabel")
        if self._runner.which("chcon") is None:
            return StepResult.ignore("relabel", "chcon not available; binary left unlabeled")

        binary = str(self.installed_binary)
        result = self._runner.run(["chcon", "-t", SELINUX_EXEC_TYPE, binary], elevated=True)
        if not result.get("ok"):
            logger.warning("chcon on %s failed: %s", binary, result.get("stderr") or result.get("error"))
            return StepResult.ignore("relabel", f"Could not relabel {binary}")
        return StepResult.success("relabel", f"Labeled {binary} {SELINUX_EXEC_TYPE}")

    def create_alias(self) -> StepResult:
        """Symlink the global command name, unless something is already there.

        A failed link is not fatal: apply falls back to the absolute path.
        """
        if alias_present(self.alias):
            return StepResult.success("configure_alias", f"{self.alias} already present")

        guard = WritableRoot(self._runner, self._profile)
        with guard:
            if not self.alias.parent.is_dir():
                self._runner.run(["mkdir", "-p", str(self.alias.parent)], elevated=True)
            result = self._runner.run(
                ["ln", "-s", str(self.installed_binary), str(self.alias)],
                elevated=True,
            )

        metadata = {"root_unlocked": guard.needed}
        if not result.get("ok"):
            logger.warning("Creating %s failed: %s", self.alias, result.get("stderr") or result.get("error"))
            return StepResult.ignore(
                "configure_alias",
                f"Could not create {self.alias}; use {self.installed_binary} directly",
                metadata=metadata,
            )
        return StepResult.success("configure_alias", f"Linked {self.alias}", metadata=metadata)

    def apply_initial_state(self) -> StepResult:
        name = self._settings.service.binary_name
        executable = self._runner.which(name) or str(self.installed_binary)
        result = self._runner.run([executable, "apply"], elevated=True, stream=True)
        if not result.get("ok"):
            return StepResult.failure(
                "apply_initial_state",
                FailureKind.APPLY_FAILED,
                f"'{executable} apply' exited {result.get('returncode')}",
                hint(FailureKind.APPLY_FAILED.value, binary=name),
            )
        return StepResult.success(
            "apply_initial_state", "Optimizations applied", metadata={"executable": executable},
        )
