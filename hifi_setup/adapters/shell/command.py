"""
Shell command runner — the SINGLE PLACE where ``subprocess.run`` is called.

Privilege is chosen per command, never process-wide:

- ``elevated=True`` prefixes ``sudo`` only when the process is not
  already root. sudo prompts on the controlling terminal.
- ``as_user=True`` runs as the acting user. When the process is root
  on behalf of someone else, the command is re-invoked through
  ``sudo -u USER env HOME=... PATH=...`` so it sees that user's home
  and toolchains, not root's.

The process environment is captured once at construction; nothing is
re-read from ``os.environ`` while a run is in flight. Every command
has a timeout from its tier.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from typing import Any

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.settings import TimeoutSettings

logger = logging.getLogger(__name__)

_DEFAULT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"

# Keep at most this much captured output per stream
_OUTPUT_TAIL = 4000


class CommandRunner(Runner):
    """Execute commands for one PlatformProfile."""

    def __init__(
        self,
        profile: PlatformProfile,
        timeouts: TimeoutSettings | None = None,
        *,
        brew_prefix: str | None = None,
        environ: dict[str, str] | None = None,
    ):
        self._profile = profile
        self._timeouts = timeouts or TimeoutSettings()
        self._brew_prefix = brew_prefix
        self._environ = dict(os.environ if environ is None else environ)

    # ── Paths ───────────────────────────────────────────────────

    @property
    def system_path(self) -> str:
        return self._environ.get("PATH") or _DEFAULT_PATH

    @property
    def user_path(self) -> str:
        """Acting user's search path: their cargo bin, system, then brew."""
        parts = [f"{self._profile.acting_home}/.cargo/bin", self.system_path]
        if self._brew_prefix:
            parts.append(f"{self._brew_prefix}/bin")
        return ":".join(parts)

    def which(self, binary: str, *, as_user: bool = False) -> str | None:
        return shutil.which(binary, path=self.user_path if as_user else self.system_path)

    # ── Execution ───────────────────────────────────────────────

    def _timeout(self, tier: str) -> int:
        return getattr(self._timeouts, tier, self._timeouts.default)

    def _user_env(self, extra: dict[str, str]) -> dict[str, str]:
        """HOME / PATH / runtime dir for the acting user, plus overrides."""
        env = {
            "HOME": self._profile.acting_home,
            "USER": self._profile.acting_user,
            "PATH": self.user_path,
        }
        if self._profile.acting_uid is not None:
            env["XDG_RUNTIME_DIR"] = f"/run/user/{self._profile.acting_uid}"
            env["DBUS_SESSION_BUS_ADDRESS"] = (
                f"unix:path=/run/user/{self._profile.acting_uid}/bus"
            )
        env.update(extra)
        return env

    def _prepare(
        self,
        cmd: list[str],
        *,
        as_user: bool,
        elevated: bool,
        env: dict[str, str] | None,
    ) -> tuple[list[str], dict[str, str]]:
        """Apply the privilege wrapper and build the child environment."""
        proc_env = dict(self._environ)
        extra = dict(env or {})

        if as_user:
            user_env = self._user_env({})
            for key, value in extra.items():
                user_env[key] = value.replace("$PATH", user_env["PATH"])
            if self._profile.acts_for_other_user:
                # sudo resets the environment; pass it on the command line
                assignments = [f"{k}={v}" for k, v in user_env.items()]
                return (
                    ["sudo", "-u", self._profile.acting_user, "env", *assignments, *cmd],
                    proc_env,
                )
            proc_env.update(user_env)
            return cmd, proc_env

        for key, value in extra.items():
            proc_env[key] = value.replace("$PATH", proc_env.get("PATH", _DEFAULT_PATH))

        if elevated and not self._profile.is_elevated:
            if extra:
                assignments = [f"{k}={proc_env[k]}" for k in extra]
                return ["sudo", "env", *assignments, *cmd], proc_env
            return ["sudo", *cmd], proc_env

        return cmd, proc_env

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
        full_cmd, proc_env = self._prepare(cmd, as_user=as_user, elevated=elevated, env=env)
        timeout = self._timeout(tier)
        logger.debug("exec (timeout=%ss): %s", timeout, shlex.join(full_cmd))

        start = time.monotonic()
        try:
            result = subprocess.run(
                full_cmd,
                capture_output=not stream,
                text=True,
                timeout=timeout,
                env=proc_env,
                cwd=cwd,
            )
        except FileNotFoundError:
            return {
                "ok": False,
                "returncode": 127,
                "missing": True,
                "error": f"Command not found: {full_cmd[0]}",
            }
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %ss: %s", timeout, shlex.join(cmd))
            return {
                "ok": False,
                "returncode": None,
                "timed_out": True,
                "error": f"Command timed out ({timeout}s)",
            }
        except OSError as e:
            logger.exception("Subprocess error: %s", cmd)
            return {"ok": False, "returncode": None, "error": str(e)}

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "")[-_OUTPUT_TAIL:]
        stderr = (result.stderr or "")[-_OUTPUT_TAIL:]

        if result.returncode == 0:
            return {
                "ok": True,
                "returncode": 0,
                "stdout": stdout,
                "stderr": stderr,
                "elapsed_ms": elapsed_ms,
            }

        logger.debug("exit %d: %s", result.returncode, stderr.strip()[-500:])
        return {
            "ok": False,
            "returncode": result.returncode,
            "error": f"Command failed (exit {result.returncode})",
            "stdout": stdout,
            "stderr": stderr,
            "elapsed_ms": elapsed_ms,
        }
