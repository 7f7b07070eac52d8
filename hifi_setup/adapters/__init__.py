"""
Adapters — the only code that touches external processes.

    CommandRunner   real subprocess execution with per-step privilege
    MockRunner      scripted test double with a call log
"""

from hifi_setup.adapters.base import Runner
from hifi_setup.adapters.mock import MockRunner
from hifi_setup.adapters.shell.command import CommandRunner

__all__ = ["CommandRunner", "MockRunner", "Runner"]
