"""
L1 Domain — Uninstall plan construction (pure).

Lists every artifact an install may have left behind, in teardown
order. No I/O: whether a target still exists is decided when the step
runs, so the same plan is valid against any partial install.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.settings import InstallerSettings

# Step actions understood by the reversal orchestrator
STOP_SERVICE = "stop_service"
STOP_USER_SERVICE = "stop_user_service"
DAEMON_RELOAD = "daemon_reload"
USER_DAEMON_RELOAD = "user_daemon_reload"
REVOKE_LINGER = "revoke_linger"
REMOVE_FILE = "remove_file"
REMOVE_TREE = "remove_tree"
REMOVE_ALIAS = "remove_alias"
STRIP_PROFILE = "strip_profile"
DETACH_QDISCS = "detach_qdiscs"


@dataclass(frozen=True)
class UninstallStep:
    """One guarded removal action."""

    name: str
    action: str
    target: str = ""
    description: str = ""


@dataclass
class UninstallPlan:
    """Ordered teardown for one uninstall run."""

    steps: list[UninstallStep] = field(default_factory=list)

    def add(self, name: str, action: str, target: str | Path = "", description: str = "") -> None:
        self.steps.append(UninstallStep(name, action, str(target), description))

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.steps]


def build_uninstall_plan(
    settings: InstallerSettings,
    profile: PlatformProfile,
    *,
    remove_config: bool = False,
) -> UninstallPlan:
    """Build the fixed teardown sequence.

    Args:
        settings: Paths and unit names to tear down.
        profile: Supplies the acting user and home for per-user state.
        remove_config: Also delete the user-facing configuration dir.
    """
    paths = settings.paths
    service = settings.service
    home = Path(profile.acting_home)
    plan = UninstallPlan()

    # 1-2. System service
    plan.add("stop_service", STOP_SERVICE, service.name, f"Stop and disable {service.name}")
    plan.add("remove_system_unit", REMOVE_FILE, paths.system_unit, "Remove system unit")
    plan.add("daemon_reload", DAEMON_RELOAD, description="Reload systemd units")

    # 3. Per-user repair service and the permissions it was granted
    plan.add(
        "stop_repair_service", STOP_USER_SERVICE, service.repair_unit,
        f"Stop and disable {service.repair_unit} for {profile.acting_user}",
    )
    plan.add(
        "remove_repair_unit", REMOVE_FILE, home / paths.user_unit_relpath,
        "Remove user repair unit",
    )
    plan.add("user_daemon_reload", USER_DAEMON_RELOAD, description="Reload user systemd units")
    plan.add("remove_polkit_rule", REMOVE_FILE, paths.polkit_rule, "Remove polkit rule")
    plan.add("revoke_linger", REVOKE_LINGER, profile.acting_user, "Disable lingering")

    # 4-5. Install root and the global command name
    plan.add("remove_install_root", REMOVE_TREE, paths.install_root, "Remove install directory")
    plan.add("remove_alias", REMOVE_ALIAS, paths.alias, "Remove global alias")

    # 6. PATH exports
    for name in paths.shell_profiles:
        plan.add(f"strip_profile:{name}", STRIP_PROFILE, home / name, f"Clean ~/{name}")

    # 7. Optional user configuration
    if remove_config:
        plan.add("remove_config", REMOVE_TREE, paths.user_config_dir, "Remove configuration")

    # 8. Driver and kernel tuning fragments
    for fragment in paths.driver_fragment_paths():
        plan.add(f"remove_fragment:{fragment.name}", REMOVE_FILE, fragment, "Remove driver tuning")
    plan.add("remove_sysctl_conf", REMOVE_FILE, paths.sysctl_conf, "Remove sysctl tuning")

    # 9. Queue disciplines still attached to live interfaces
    plan.add("detach_qdiscs", DETACH_QDISCS, description="Detach CAKE qdiscs")
    return plan
