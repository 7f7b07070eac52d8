"""
L5 Orchestration — ReversalOrchestrator.

Executes an ``UninstallPlan`` against whatever is left of an install.
Every step checks before it acts, so absent targets are skipped and a
second run over a clean system is all no-ops.

A failing step is recorded (fatal, ``removal_failed``) but does not
stop the remaining steps; the run's exit code reflects it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import InterfaceKind, PlatformProfile
from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.models.state import UninstallReport
from hifi_setup.core.services.provision.data.constants import QDISC_KIND
from hifi_setup.core.services.provision.data.remediation import hint
from hifi_setup.core.services.provision.detection.network import attached_qdiscs, list_interfaces
from hifi_setup.core.services.provision.detection.service_status import (
    alias_present,
    has_linger,
    is_active,
    is_enabled,
)
from hifi_setup.core.services.provision.domain import uninstall_plan as plan_mod
from hifi_setup.core.services.provision.domain.uninstall_plan import (
    UninstallPlan,
    UninstallStep,
    build_uninstall_plan,
)
from hifi_setup.core.services.provision.execution.removal import remove_file, remove_tree
from hifi_setup.core.services.provision.execution.shell_profile import strip_profile
from hifi_setup.core.services.provision.execution.writable_root import WritableRoot

logger = logging.getLogger(__name__)

Reporter = Callable[[StepResult], None]


def _command_failed(step: str, what: str, result: dict) -> StepResult:
    return StepResult.failure(
        step,
        FailureKind.REMOVAL_FAILED,
        f"{what} failed: {result.get('stderr') or result.get('error')}",
        hint(FailureKind.REMOVAL_FAILED.value, path=what),
    )


class ReversalOrchestrator:
    """Tear down every artifact an install may have created."""

    def __init__(
        self,
        runner: Runner,
        profile: PlatformProfile,
        settings: InstallerSettings,
        *,
        reporter: Reporter | None = None,
    ):
        self._runner = runner
        self._profile = profile
        self._settings = settings
        self._reporter = reporter

    def plan(self, *, remove_config: bool = False) -> UninstallPlan:
        return build_uninstall_plan(self._settings, self._profile, remove_config=remove_config)

    def run(self, *, remove_config: bool = False) -> UninstallReport:
        report = UninstallReport(profile=self._profile)
        for step in self.plan(remove_config=remove_config):
            logger.info("Uninstall step: %s", step.description or step.name)
            result = self.execute_step(step)
            report.results.append(result)
            if self._reporter is not None:
                self._reporter(result)
        if report.ok:
            logger.info("Uninstall complete")
        else:
            logger.warning("Uninstall finished with %d failed step(s)", len(report.failed))
        return report

    def execute_step(self, step: UninstallStep) -> StepResult:
        """Dispatch a single step on ``step.action``."""
        action = step.action
        if action == plan_mod.STOP_SERVICE:
            return self._stop_service(step)
        elif action == plan_mod.STOP_USER_SERVICE:
            return self._stop_user_service(step)
        elif action == plan_mod.DAEMON_RELOAD:
            return self._daemon_reload(step, user=False)
        elif action == plan_mod.USER_DAEMON_RELOAD:
            return self._daemon_reload(step, user=True)
        elif action == plan_mod.REVOKE_LINGER:
            return self._revoke_linger(step)
        elif action == plan_mod.REMOVE_FILE:
            return remove_file(step.name, Path(step.target))
        elif action == plan_mod.REMOVE_TREE:
            return remove_tree(step.name, Path(step.target))
        elif action == plan_mod.REMOVE_ALIAS:
            return self._remove_alias(step)
        elif action == plan_mod.STRIP_PROFILE:
            return self._strip_profile(step)
        elif action == plan_mod.DETACH_QDISCS:
            return self._detach_qdiscs(step)
        raise ValueError(f"Unknown uninstall action: {action}")

    # ── Services ────────────────────────────────────────────────

    def _stop_service(self, step: UninstallStep) -> StepResult:
        unit = step.target
        done: list[str] = []
        if is_active(self._runner, unit):
            result = self._runner.run(["systemctl", "stop", unit], elevated=True)
            if not result.get("ok"):
                return _command_failed(step.name, f"systemctl stop {unit}", result)
            done.append("stopped")
        if is_enabled(self._runner, unit):
            result = self._runner.run(["systemctl", "disable", unit], elevated=True)
            if not result.get("ok"):
                return _command_failed(step.name, f"systemctl disable {unit}", result)
            done.append("disabled")
        if not done:
            return StepResult.success(step.name, f"{unit} not running", metadata={"skipped": True})
        return StepResult.success(step.name, f"{unit} {' and '.join(done)}")

    def _stop_user_service(self, step: UninstallStep) -> StepResult:
        unit = step.target
        active = is_active(self._runner, unit, user=True)
        enabled = is_enabled(self._runner, unit, user=True)
        if not (active or enabled):
            return StepResult.success(step.name, f"{unit} not present", metadata={"skipped": True})

        result = self._runner.run(
            ["systemctl", "--user", "disable", "--now", unit], as_user=True,
        )
        if not result.get("ok"):
            return _command_failed(step.name, f"systemctl --user disable --now {unit}", result)
        return StepResult.success(step.name, f"{unit} stopped and disabled")

    def _daemon_reload(self, step: UninstallStep, *, user: bool) -> StepResult:
        if user:
            result = self._runner.run(["systemctl", "--user", "daemon-reload"], as_user=True)
        else:
            result = self._runner.run(["systemctl", "daemon-reload"], elevated=True)
        if not result.get("ok"):
            # No user session bus is a normal state under sudo
            return StepResult.ignore(step.name, "daemon-reload did not run")
        return StepResult.success(step.name, "Units reloaded")

    def _revoke_linger(self, step: UninstallStep) -> StepResult:
        user = step.target
        if not has_linger(self._runner, user):
            return StepResult.success(step.name, f"Lingering not enabled for {user}", metadata={"skipped": True})
        result = self._runner.run(["loginctl", "disable-linger", user], elevated=True)
        if not result.get("ok"):
            return _command_failed(step.name, f"loginctl disable-linger {user}", result)
        return StepResult.success(step.name, f"Lingering disabled for {user}")

    # ── Files ───────────────────────────────────────────────────

    def _remove_alias(self, step: UninstallStep) -> StepResult:
        alias = Path(step.target)
        if not alias_present(alias):
            return StepResult.success(step.name, f"{alias} not present", metadata={"skipped": True})
        if not alias.is_symlink():
            return StepResult.ignore(step.name, f"{alias} is not a symlink; left in place")

        with WritableRoot(self._runner, self._profile):
            return remove_file(step.name, alias)

    def _strip_profile(self, step: UninstallStep) -> StepResult:
        path = Path(step.target)
        paths = self._settings.paths
        try:
            removed = strip_profile(
                path, paths.install_root, paths.profile_marker,
                preserve_owner=self._profile.is_elevated,
            )
        except OSError as e:
            return StepResult.failure(
                step.name,
                FailureKind.REMOVAL_FAILED,
                f"Cannot rewrite {path}: {e}",
                hint(FailureKind.REMOVAL_FAILED.value, path=str(path)),
            )
        if not removed:
            return StepResult.success(step.name, f"{path} clean", metadata={"skipped": True})
        return StepResult.success(step.name, f"Removed {removed} line(s) from {path}", metadata={"removed": removed})

    # ── Network ─────────────────────────────────────────────────

    def _detach_qdiscs(self, step: UninstallStep) -> StepResult:
        detached: list[str] = []
        failed: list[str] = []
        for name, kind in list_interfaces(self._runner):
            if kind == InterfaceKind.OTHER:
                continue
            if QDISC_KIND not in attached_qdiscs(self._runner, name):
                continue
            result = self._runner.run(["tc", "qdisc", "del", "dev", name, "root"], elevated=True)
            if result.get("ok"):
                detached.append(name)
            else:
                logger.warning("tc qdisc del on %s failed: %s", name, result.get("stderr"))
                failed.append(name)

        if failed:
            return StepResult.failure(
                step.name,
                FailureKind.REMOVAL_FAILED,
                f"Could not detach {QDISC_KIND} from {', '.join(failed)}",
                hint(FailureKind.REMOVAL_FAILED.value, path=f"the {QDISC_KIND} qdisc"),
                metadata={"detached": detached, "failed": failed},
            )
        if not detached:
            return StepResult.success(step.name, f"No {QDISC_KIND} qdiscs attached", metadata={"skipped": True})
        return StepResult.success(
            step.name, f"Detached {QDISC_KIND} from {', '.join(detached)}", metadata={"detached": detached},
        )
