"""
L3 Detection — Service state probes.

Read-only: systemctl exit codes and file existence. ``systemctl
is-active --quiet`` / ``is-enabled --quiet`` answer through their exit
status, so nothing here parses human-oriented output.
"""

from __future__ import annotations

from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.models.state import ServiceState


def is_active(runner: Runner, unit: str, *, user: bool = False) -> bool:
    """Whether ``unit`` is running (system or acting user's manager)."""
    if user:
        return runner.succeeds(["systemctl", "--user", "is-active", "--quiet", unit], as_user=True)
    return runner.succeeds(["systemctl", "is-active", "--quiet", unit])


def is_enabled(runner: Runner, unit: str, *, user: bool = False) -> bool:
    """Whether ``unit`` is enabled (system or acting user's manager)."""
    if user:
        return runner.succeeds(["systemctl", "--user", "is-enabled", "--quiet", unit], as_user=True)
    return runner.succeeds(["systemctl", "is-enabled", "--quiet", unit])


def has_linger(runner: Runner, user: str) -> bool:
    """Whether lingering is enabled for ``user``.

    Uses ``--value`` so the answer is the bare property value.
    """
    result = runner.run(["loginctl", "show-user", user, "--property=Linger", "--value"])
    return bool(result.get("ok")) and result.get("stdout", "").strip() == "yes"


def alias_present(alias: Path) -> bool:
    """Whether the global alias exists (a dangling symlink counts)."""
    return alias.is_symlink() or alias.exists()


def probe_service_state(runner: Runner, settings: InstallerSettings) -> ServiceState:
    """Observe the installed service without changing anything."""
    name = settings.service.name
    return ServiceState(
        unit_registered=Path(settings.paths.system_unit).is_file(),
        enabled=is_enabled(runner, name),
        active=is_active(runner, name),
        alias_present=alias_present(Path(settings.paths.alias)),
        binary_present=settings.paths.installed_binary(settings.service.binary_name).is_file(),
    )
