"""
L3 Detection — Toolchain probes.

A binary existing on disk is not proof it works: rustup shims can
loop, and a package manager may leave a half-installed compiler. These
probes run the binary and only trust a clean answer.
"""

from __future__ import annotations

import re

from hifi_setup.adapters.base import Runner

_VERSION_RE = re.compile(r"(\d+\.\d+(?:\.\d+)?)")


def probe_version(runner: Runner, binary: str, *, as_user: bool = False) -> str | None:
    """Run ``binary --version``; return the version, or None if it fails.

    A zero exit with no recognisable version number still counts as
    working and yields ``"unknown"``.
    """
    result = runner.run([binary, "--version"], as_user=as_user)
    if not result.get("ok"):
        return None
    output = (result.get("stdout") or "") + (result.get("stderr") or "")
    m = _VERSION_RE.search(output)
    return m.group(1) if m else "unknown"


def find_system_compiler(runner: Runner) -> str | None:
    """First working C compiler driver on the system search path."""
    for name in ("cc", "gcc", "clang"):
        path = runner.which(name)
        if path and probe_version(runner, path) is not None:
            return path
    return None
