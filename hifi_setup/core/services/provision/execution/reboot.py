"""
L4 Execution — Reboot with graceful fallbacks.

Tried in order; the first that exits 0 wins:

1. ``systemctl reboot`` with elevation
2. KDE session logout-and-reboot, as the acting user
3. GNOME session manager reboot, as the acting user

When none works the operator is told to reboot by hand. A failed
reboot never fails the install.
"""

from __future__ import annotations

import logging

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.result import StepResult

logger = logging.getLogger(__name__)

MANUAL_INSTRUCTION = "Please reboot manually to finish applying driver settings."

# (label, command, as_user)
REBOOT_FALLBACKS: tuple[tuple[str, list[str], bool], ...] = (
    ("systemctl", ["systemctl", "reboot"], False),
    (
        "kde-session",
        ["qdbus", "org.kde.Shutdown", "/Shutdown", "org.kde.Shutdown.logoutAndReboot"],
        True,
    ),
    (
        "gnome-session",
        [
            "gdbus", "call", "--session",
            "--dest", "org.gnome.SessionManager",
            "--object-path", "/org/gnome/SessionManager",
            "--method", "org.gnome.SessionManager.Reboot",
        ],
        True,
    ),
)


def request_reboot(runner: Runner) -> StepResult:
    """Ask the system to reboot, degrading to a printed instruction."""
    tried: list[str] = []
    for label, cmd, as_user in REBOOT_FALLBACKS:
        if runner.which(cmd[0], as_user=as_user) is None:
            continue
        tried.append(label)
        result = runner.run(cmd, as_user=as_user, elevated=not as_user)
        if result.get("ok"):
            return StepResult.success("reboot", f"Reboot requested via {label}")
        logger.info("Reboot via %s failed (exit %s)", label, result.get("returncode"))

    return StepResult.ignore("reboot", MANUAL_INSTRUCTION, metadata={"tried": tried})
