"""
L4 Execution — Scoped write access to an immutable root filesystem.

SteamOS mounts / read-only; ``steamos-readonly disable`` unlocks it
until ``steamos-readonly enable``. The unlock is modelled as a
resource: ``__exit__`` re-enables protection on every exit path,
including a failed or raising protected step::

    with WritableRoot(runner, profile):
        runner.run(["ln", "-s", target, alias], elevated=True)

Success is judged on exit status only. A failing toggle is logged and
the guard still attempts the matching re-enable.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile

logger = logging.getLogger(__name__)

READONLY_TOOL = "steamos-readonly"


class WritableRoot:
    """Context manager holding the root filesystem writable."""

    def __init__(self, runner: Runner, profile: PlatformProfile):
        self._runner = runner
        self._profile = profile
        self._open = False
        self.disable_result: dict[str, Any] | None = None
        self.enable_result: dict[str, Any] | None = None

    @property
    def needed(self) -> bool:
        """Only immutable platforms with the toggle tool need unlocking."""
        return self._profile.is_immutable and self._profile.has_readonly_tool

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> WritableRoot:
        if not self.needed:
            return self
        self._open = True
        self.disable_result = self._runner.run([READONLY_TOOL, "disable"], elevated=True)
        if self.disable_result.get("ok"):
            logger.info("Root filesystem unlocked")
        else:
            logger.warning(
                "%s disable failed (exit %s); continuing",
                READONLY_TOOL,
                self.disable_result.get("returncode"),
            )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if not self._open:
            return False
        self._open = False
        self.enable_result = self._runner.run([READONLY_TOOL, "enable"], elevated=True)
        if self.enable_result.get("ok"):
            logger.info("Root filesystem locked again")
        else:
            logger.warning(
                "%s enable failed (exit %s); run 'sudo %s enable' by hand",
                READONLY_TOOL,
                self.enable_result.get("returncode"),
                READONLY_TOOL,
            )
        return False
