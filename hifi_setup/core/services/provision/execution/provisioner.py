"""
L4 Execution — ArtifactProvisioner and source build.

Decides between a shipped precompiled binary and a cargo build, and
puts the result at the canonical staging location
``<source_dir>/target/release/hifi-wifi``.

A precompiled binary is only accepted when its ELF architecture
matches the host. A mismatch is fatal: installing it would register a
service that can never start.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.models.state import ArtifactSource, BuildEnvironment
from hifi_setup.core.services.provision.data.constants import RUST_TRIPLES, STAGING_RELPATH
from hifi_setup.core.services.provision.data.remediation import hint
from hifi_setup.core.services.provision.detection.artifact import find_precompiled, read_arch
from hifi_setup.core.services.provision.domain.binary import normalize_arch

logger = logging.getLogger(__name__)


class ArtifactProvisioner:
    """Select, build and stage the hifi-wifi binary."""

    def __init__(
        self,
        runner: Runner,
        profile: PlatformProfile,
        settings: InstallerSettings,
        installer_dir: Path,
        source_dir: Path | None = None,
    ):
        self._runner = runner
        self._profile = profile
        self._settings = settings
        self._installer_dir = installer_dir
        self._source_dir = source_dir or installer_dir

    @property
    def staging_path(self) -> Path:
        return self._source_dir / STAGING_RELPATH

    @property
    def expected_arch(self) -> str:
        required = self._settings.toolchain.required_arch
        return normalize_arch(required) if required else self._profile.arch

    # ── Selection ───────────────────────────────────────────────

    def select(self) -> tuple[StepResult, ArtifactSource | None]:
        """Pick the provisioning path for this run."""
        found = find_precompiled(self._installer_dir)
        if found is None:
            return (
                StepResult.success("provision", "No precompiled binary found; building from source"),
                ArtifactSource.source_build(),
            )

        arch = read_arch(found)
        expected = self.expected_arch
        if arch != expected:
            return StepResult.failure(
                "provision",
                FailureKind.ARCH_MISMATCH,
                f"Precompiled binary {found} is {arch}, host needs {expected}",
                hint(FailureKind.ARCH_MISMATCH.value, path=str(found), arch=arch, expected=expected),
                metadata={"path": str(found), "arch": arch, "expected": expected},
            ), None

        return (
            StepResult.success("provision", f"Using precompiled {arch} binary {found}"),
            ArtifactSource.precompiled(str(found), arch),
        )

    # ── Staging ─────────────────────────────────────────────────

    def stage(self, source: ArtifactSource) -> StepResult:
        """Copy a precompiled binary to the staging location."""
        if not source.is_precompiled or source.path is None:
            raise ValueError("stage() only handles precompiled sources")

        src = Path(source.path)
        dest = self.staging_path
        try:
            if src.resolve() != dest.resolve():
                created = self._make_parents(dest.parent)
                shutil.copy2(src, dest)
                self._hand_to_acting_user([*created, dest])
            dest.chmod(0o755)
        except OSError as e:
            return StepResult.failure(
                "stage",
                FailureKind.STAGING_FAILED,
                f"Cannot stage {src} at {dest}: {e}",
                hint(FailureKind.STAGING_FAILED.value, path=str(dest), user=self._profile.acting_user),
            )
        return StepResult.success("stage", f"Staged {dest}", metadata={"path": str(dest)})

    def _make_parents(self, directory: Path) -> list[Path]:
        """mkdir -p, returning the directories that had to be created."""
        missing: list[Path] = []
        current = directory
        while not current.exists():
            missing.append(current)
            current = current.parent
        directory.mkdir(parents=True, exist_ok=True)
        return list(reversed(missing))

    def _hand_to_acting_user(self, paths: list[Path]) -> None:
        """Staging must not end up root-owned when we run through sudo."""
        profile = self._profile
        if not profile.acts_for_other_user or profile.acting_uid is None:
            return
        gid = profile.acting_gid if profile.acting_gid is not None else -1
        for path in paths:
            os.chown(path, profile.acting_uid, gid)

    # ── Source build ────────────────────────────────────────────

    def build(self, environment: BuildEnvironment | None, cargo: str = "cargo") -> StepResult:
        """``cargo build --release`` as the acting user."""
        manifest = self._source_dir / "Cargo.toml"
        if not manifest.is_file():
            return StepResult.failure(
                "build",
                FailureKind.BUILD_FAILED,
                f"No Cargo.toml in {self._source_dir}",
                hint(FailureKind.BUILD_FAILED.value, path=str(self.staging_path)),
            )

        triple = RUST_TRIPLES.get(self._profile.arch)
        env = environment.build_env(triple) if environment else {}
        logger.info("Building release binary as %s", self._profile.acting_user)
        result = self._runner.run(
            [cargo, "build", "--release"],
            as_user=True,
            tier="build",
            env=env,
            cwd=str(self._source_dir),
            stream=True,
        )

        if not self.staging_path.is_file():
            return StepResult.failure(
                "build",
                FailureKind.BUILD_FAILED,
                f"Build did not produce {self.staging_path} (exit {result.get('returncode')})",
                hint(FailureKind.BUILD_FAILED.value, path=str(self.staging_path)),
            )
        if not result.get("ok"):
            # target/ may still hold a binary from an earlier build
            return StepResult.failure(
                "build",
                FailureKind.BUILD_FAILED,
                f"cargo build failed (exit {result.get('returncode')})",
                hint(FailureKind.BUILD_FAILED.value, path=str(self.staging_path)),
            )
        return StepResult.success(
            "build", f"Built {self.staging_path}", metadata={"path": str(self.staging_path)},
        )
