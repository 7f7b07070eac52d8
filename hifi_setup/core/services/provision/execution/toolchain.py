"""
L4 Execution — ToolchainManager.

Guarantees the acting user has a working Rust toolchain (cargo +
rustc via rustup):

1. cargo absent → run rustup-init non-interactively as the acting user.
   The script is fetched over HTTPS/TLS >= 1.2 only; no curl is fatal.
2. cargo present but ``cargo --version`` fails → one repair attempt:
   ``rustup self update`` then ``rustup default stable``.
3. Re-probe. Still failing is fatal; there is no second repair.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.services.provision.data.remediation import hint
from hifi_setup.core.services.provision.detection.tool_version import probe_version
from hifi_setup.core.services.provision.execution.script_fetch import fetch_script, run_script

logger = logging.getLogger(__name__)

STEP = "ensure_toolchain"


class ToolchainManager:
    """Install, repair and verify the acting user's Rust toolchain."""

    def __init__(self, runner: Runner, profile: PlatformProfile, settings: InstallerSettings):
        self._runner = runner
        self._profile = profile
        self._settings = settings
        self._cargo_home = Path(profile.acting_home) / ".cargo" / "bin"

    def _locate(self, binary: str) -> str | None:
        candidate = self._cargo_home / binary
        if candidate.is_file():
            return str(candidate)
        return self._runner.which(binary, as_user=True)

    def ensure(self) -> StepResult:
        cargo = self._locate("cargo")
        action = outcome = "verified"

        if cargo is None:
            if self._runner.which("curl") is None:
                return StepResult.failure(
                    STEP,
                    FailureKind.MISSING_FETCH_TOOL,
                    "Rust is not installed and curl is not available to fetch it",
                    hint(FailureKind.MISSING_FETCH_TOOL.value),
                )
            outcome = self._install()
            action = "installed"
        elif probe_version(self._runner, cargo, as_user=True) is None:
            logger.warning("cargo at %s does not answer; attempting repair", cargo)
            self._repair()
            action = outcome = "repaired"

        cargo = self._locate("cargo")
        version = probe_version(self._runner, cargo, as_user=True) if cargo else None
        if version is None:
            return StepResult.failure(
                STEP,
                FailureKind.TOOLCHAIN_UNREPAIRABLE,
                f"cargo is still not working for {self._profile.acting_user} (toolchain {outcome})",
                hint(FailureKind.TOOLCHAIN_UNREPAIRABLE.value, user=self._profile.acting_user),
            )

        return StepResult.success(
            STEP,
            f"Rust toolchain {action}: cargo {version}",
            metadata={"cargo": cargo, "version": version, "action": action},
        )

    def _install(self) -> str:
        """Fetch and run rustup-init. Returns what happened, for reporting."""
        logger.info("Rust not found; installing for %s", self._profile.acting_user)
        fetched = fetch_script(
            self._runner,
            self._profile,
            self._settings.toolchain.rustup_url,
            "rustup-init.sh",
        )
        if not fetched.get("ok"):
            logger.warning("Downloading rustup-init failed: %s", fetched.get("error"))
            return "download failed"
        result = run_script(self._runner, fetched["path"], ["-y"])
        if not result.get("ok"):
            logger.warning("rustup-init exited %s", result.get("returncode"))
            return "install failed"
        return "installed"

    def _repair(self) -> None:
        rustup = self._locate("rustup")
        if rustup is None:
            logger.warning("rustup not found; cannot repair the toolchain")
            return
        for args in (["self", "update"], ["default", "stable"]):
            result = self._runner.run([rustup, *args], as_user=True, tier="network")
            if not result.get("ok"):
                logger.warning("rustup %s exited %s", " ".join(args), result.get("returncode"))
