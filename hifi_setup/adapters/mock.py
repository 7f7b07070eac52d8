"""
Mock runner — scripted test double for every external command.

By default every command succeeds with empty output and no binary is
on PATH. Responses are keyed by command prefix; the longest matching
prefix wins, so ``("systemctl", "is-active")`` can fail while other
``systemctl`` calls succeed. A response may be a result dict or a
callable ``(cmd, call) -> dict`` for commands with side effects.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Union

from hifi_setup.adapters.base import Runner

Response = Union[dict[str, Any], Callable[[list[str], dict[str, Any]], dict[str, Any]]]


def ok(stdout: str = "") -> dict[str, Any]:
    """A successful command result."""
    return {"ok": True, "returncode": 0, "stdout": stdout, "stderr": "", "elapsed_ms": 0}


def failed(returncode: int = 1, stderr: str = "") -> dict[str, Any]:
    """A failed command result."""
    return {
        "ok": False,
        "returncode": returncode,
        "error": f"Command failed (exit {returncode})",
        "stdout": "",
        "stderr": stderr,
    }


def missing(binary: str) -> dict[str, Any]:
    """Result for a binary that is not installed."""
    return {"ok": False, "returncode": 127, "missing": True, "error": f"Command not found: {binary}"}


class MockRunner(Runner):
    """Universal runner double for tests."""

    def __init__(self, which: dict[str, str] | None = None):
        self._responses: dict[tuple[str, ...], Response] = {}
        self._which: dict[str, str] = dict(which or {})
        self._user_which: dict[str, str] = {}
        self._call_log: list[dict[str, Any]] = []

    @property
    def call_log(self) -> list[dict[str, Any]]:
        """Every call received, in order."""
        return self._call_log

    @property
    def commands(self) -> list[list[str]]:
        """Just the command lists, in order."""
        return [call["cmd"] for call in self._call_log]

    def calls_to(self, *prefix: str) -> list[dict[str, Any]]:
        """Calls whose command starts with ``prefix``."""
        return [c for c in self._call_log if tuple(c["cmd"][: len(prefix)]) == prefix]

    def set_response(self, prefix: tuple[str, ...] | list[str], response: Response) -> None:
        """Set the result for commands starting with ``prefix``."""
        self._responses[tuple(prefix)] = response

    def set_failure(self, prefix: tuple[str, ...] | list[str], returncode: int = 1) -> None:
        """Make commands starting with ``prefix`` fail."""
        self._responses[tuple(prefix)] = failed(returncode)

    def set_which(self, binary: str, path: str | None, *, as_user: bool = False) -> None:
        """Put ``binary`` on (or remove it from) the search path."""
        table = self._user_which if as_user else self._which
        if path is None:
            table.pop(binary, None)
        else:
            table[binary] = path

    def which(self, binary: str, *, as_user: bool = False) -> str | None:
        if as_user and binary in self._user_which:
            return self._user_which[binary]
        return self._which.get(binary)

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
        call = {
            "cmd": list(cmd),
            "as_user": as_user,
            "elevated": elevated,
            "tier": tier,
            "env": dict(env or {}),
            "cwd": cwd,
        }
        self._call_log.append(call)

        match: Response | None = None
        best = -1
        for prefix, response in self._responses.items():
            if tuple(cmd[: len(prefix)]) == prefix and len(prefix) > best:
                match, best = response, len(prefix)

        if match is None:
            return ok()
        if callable(match):
            return match(list(cmd), call)
        return dict(match)

    def reset(self) -> None:
        """Clear the call log (responses are kept)."""
        self._call_log.clear()
