"""
Runner base — the contract between provisioning steps and processes.

Steps never call ``subprocess`` directly. They ask a Runner to execute
a command list, optionally as the acting (unprivileged) user or with
elevation, and get a plain result dict back:

    {"ok": True, "returncode": 0, "stdout": "...", "stderr": "", "elapsed_ms": 12}
    {"ok": False, "returncode": 127, "missing": True, "error": "..."}
    {"ok": False, "returncode": None, "timed_out": True, "error": "..."}

A Runner NEVER raises for a failing command. Callers read ``ok``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Runner(ABC):
    """Abstract command runner."""

    @abstractmethod
    def run(
        self,
        cmd: list[str],
        *,
        as_user: bool = False,
        elevated: bool = False,
        tier: str = "default",
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        stream: bool = False,
    ) -> dict[str, Any]:
        """Execute ``cmd`` and return a result dict.

        Args:
            cmd: Command list.
            as_user: Run as the acting user with their HOME and toolchain PATH.
            elevated: Run with root privilege (sudo only when not already root).
            tier: Timeout tier: ``default``, ``network``, ``package``, ``build``.
            env: Extra environment; ``$PATH`` in a value expands to the
                effective PATH of the identity running the command.
            cwd: Working directory.
            stream: Let output flow to the terminal instead of capturing it.
        """

    @abstractmethod
    def which(self, binary: str, *, as_user: bool = False) -> str | None:
        """Resolve ``binary`` on the (acting user's) search path."""

    def succeeds(self, cmd: list[str], **kwargs: Any) -> bool:
        """Shorthand: did ``cmd`` exit 0?"""
        return bool(self.run(cmd, **kwargs).get("ok"))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
