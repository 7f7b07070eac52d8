"""
L4 Execution — BuildEnvironmentBootstrapper.

Makes sure a C compiler (needed by cargo as the linker) is available
for a source build.

Immutable platforms
    The root partition is replaced on every OS update, so nothing is
    installed there. Homebrew is installed under ``/home/linuxbrew``
    (on the persistent /home partition) and provides a versioned gcc.
    Only the prefix root needs root to create and hand over; brew
    itself always runs as the acting user.

Mutable platforms
    A compiler already on PATH is used as-is. Otherwise the system
    package manager installs one.

Idempotent: a working brew and a working versioned gcc from a previous
run are detected and nothing is reinstalled.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.models.state import BuildEnvironment
from hifi_setup.core.services.provision.data.constants import (
    PACKAGE_INDEX_REFRESH,
    SYSTEM_COMPILER_INSTALL,
)
from hifi_setup.core.services.provision.data.remediation import hint
from hifi_setup.core.services.provision.detection.tool_version import (
    find_system_compiler,
    probe_version,
)
from hifi_setup.core.services.provision.domain.binary import pick_versioned_compiler
from hifi_setup.core.services.provision.execution.script_fetch import fetch_script, run_script

logger = logging.getLogger(__name__)

STEP = "bootstrap"

# Keep brew from self-updating or pruning mid-install
_BREW_ENV = {
    "HOMEBREW_NO_AUTO_UPDATE": "1",
    "HOMEBREW_NO_INSTALL_CLEANUP": "1",
    "HOMEBREW_NO_ENV_HINTS": "1",
}


class BuildEnvironmentBootstrapper:
    """Set up (or find) the compiler a source build links with."""

    def __init__(self, runner: Runner, profile: PlatformProfile, settings: InstallerSettings):
        self._runner = runner
        self._profile = profile
        self._settings = settings
        self._prefix = Path(settings.paths.brew_prefix)

    @property
    def brew(self) -> Path:
        return self._prefix / "bin" / "brew"

    def ensure(self) -> tuple[StepResult, BuildEnvironment | None]:
        """Return the build environment, creating it if needed."""
        if self._profile.is_immutable:
            return self._ensure_persistent_compiler()
        return self._ensure_system_compiler()

    # ── Mutable: system compiler ────────────────────────────────

    def _ensure_system_compiler(self) -> tuple[StepResult, BuildEnvironment | None]:
        existing = find_system_compiler(self._runner)
        if existing:
            return (
                StepResult.success(STEP, f"Compiler already present: {existing}"),
                BuildEnvironment(cc=existing, reused=True),
            )

        pm = self._profile.distro.package_manager
        if pm is None or pm not in SYSTEM_COMPILER_INSTALL:
            return self._fail(
                f"No C compiler found and no known package manager for '{self._profile.distro_id}'",
                path="your system",
            ), None

        refresh = PACKAGE_INDEX_REFRESH.get(pm)
        if refresh is not None:
            result = self._runner.run(refresh, elevated=True, tier="package")
            if not result.get("ok"):
                logger.warning("%s exited %s", " ".join(refresh), result.get("returncode"))

        cmd = SYSTEM_COMPILER_INSTALL[pm]
        logger.info("Installing a C compiler via %s", pm)
        result = self._runner.run(cmd, elevated=True, tier="package", stream=True)
        if not result.get("ok"):
            logger.warning("%s exited %s", " ".join(cmd), result.get("returncode"))

        compiler = find_system_compiler(self._runner)
        if compiler is None:
            return self._fail(
                f"{pm} did not provide a working C compiler", path="your system",
            ), None
        return (
            StepResult.success(STEP, f"Installed compiler via {pm}: {compiler}"),
            BuildEnvironment(cc=compiler),
        )

    # ── Immutable: Homebrew under /home ─────────────────────────

    def _ensure_persistent_compiler(self) -> tuple[StepResult, BuildEnvironment | None]:
        brew_reused = self._brew_works()
        if not brew_reused:
            failure = self._install_brew()
            if failure is not None:
                return failure, None

        compilers = self._locate_compiler()
        compiler_reused = compilers is not None

        if compilers is None:
            pkg = self._settings.toolchain.compiler_package
            logger.info("Installing %s with Homebrew (this can take a while)", pkg)
            result = self._runner.run(
                [str(self.brew), "install", pkg],
                as_user=True,
                tier="package",
                env=_BREW_ENV,
                stream=True,
            )
            if not result.get("ok"):
                # brew exits non-zero on post-install warnings; the probe decides
                logger.warning(
                    "brew install %s exited %s; verifying the compiler directly",
                    pkg,
                    result.get("returncode"),
                )
            compilers = self._locate_compiler()

        if compilers is None:
            return self._fail(
                f"Homebrew did not produce a working versioned gcc under {self._prefix}/bin",
                path=str(self._prefix),
            ), None

        cc, cxx = compilers
        env = BuildEnvironment(
            cc=cc,
            cxx=cxx,
            prefix=str(self._prefix),
            persistent=True,
            reused=brew_reused and compiler_reused,
        )
        message = (
            f"Reusing persistent compiler {cc}"
            if env.reused
            else f"Persistent compiler ready: {cc}"
        )
        return StepResult.success(STEP, message, metadata={"cc": cc, "cxx": cxx}), env

    def _brew_works(self) -> bool:
        if not (self.brew.is_file() and os.access(self.brew, os.X_OK)):
            return False
        return probe_version(self._runner, str(self.brew), as_user=True) is not None

    def _prepare_prefix_root(self) -> dict | None:
        """Create the prefix root and hand it to the acting user.

        Returns a failed runner result, or None on success.
        """
        root = self._prefix.parent
        owner = f"{self._profile.acting_user}:"
        for cmd in (["mkdir", "-p", str(root)], ["chown", owner, str(root)]):
            result = self._runner.run(cmd, elevated=True)
            if not result.get("ok"):
                return result
        return None

    def _install_brew(self) -> StepResult | None:
        """Install Homebrew as the acting user. None on success."""
        if self._runner.which("curl") is None:
            return self._fail("curl is required to install Homebrew", path=str(self._prefix))

        failed = self._prepare_prefix_root()
        if failed is not None:
            return self._fail(
                f"Cannot prepare {self._prefix.parent}: {failed.get('error')}",
                path=str(self._prefix),
            )

        fetched = fetch_script(
            self._runner,
            self._profile,
            self._settings.toolchain.brew_install_url,
            "brew-install.sh",
        )
        if not fetched.get("ok"):
            return self._fail(
                f"Downloading the Homebrew installer failed: {fetched.get('error')}",
                path=str(self._prefix),
            )

        logger.info("Installing Homebrew into %s", self._prefix)
        result = run_script(
            self._runner,
            fetched["path"],
            interpreter="bash",
            env={"NONINTERACTIVE": "1", **_BREW_ENV},
        )
        if not result.get("ok"):
            logger.warning("Homebrew installer exited %s", result.get("returncode"))

        if not self._brew_works():
            return self._fail(
                f"Homebrew is not runnable at {self.brew} after installation",
                path=str(self._prefix),
            )
        return None

    def _locate_compiler(self) -> tuple[str, str | None] | None:
        """Find and probe the newest versioned gcc under the prefix."""
        bindir = self._prefix / "bin"
        try:
            names = os.listdir(bindir)
        except OSError:
            return None

        picked = pick_versioned_compiler(names)
        if picked is None:
            return None

        cc = str(bindir / picked[0])
        if probe_version(self._runner, cc, as_user=True) is None:
            logger.warning("%s exists but does not run", cc)
            return None

        cxx_path = bindir / picked[1]
        cxx = str(cxx_path) if cxx_path.exists() else None
        return cc, cxx

    def _fail(self, message: str, *, path: str) -> StepResult:
        return StepResult.failure(
            STEP,
            FailureKind.BOOTSTRAP_FAILED,
            message,
            hint(FailureKind.BOOTSTRAP_FAILED.value, path=path),
        )
