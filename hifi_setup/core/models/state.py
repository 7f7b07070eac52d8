"""
Provisioning state models — artifact source, build environment,
service state and the reports returned by install / uninstall runs.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.result import StepResult


class ArtifactSource(BaseModel):
    """The provisioning path chosen for one install run.

    Exactly one variant is active: ``precompiled`` carries the path of
    the architecture-verified binary, ``source_build`` carries none.
    """

    kind: Literal["precompiled", "source_build"]
    path: str | None = None
    arch: str | None = None

    @classmethod
    def precompiled(cls, path: str, arch: str) -> ArtifactSource:
        return cls(kind="precompiled", path=path, arch=arch)

    @classmethod
    def source_build(cls) -> ArtifactSource:
        return cls(kind="source_build")

    @property
    def is_precompiled(self) -> bool:
        return self.kind == "precompiled"


class BuildEnvironment(BaseModel):
    """Where the C compiler used for linking lives.

    ``persistent`` is True when the compiler sits under the user-space
    package manager prefix and therefore survives an OS image reset.
    """

    cc: str | None = None
    cxx: str | None = None
    prefix: str | None = None
    persistent: bool = False
    reused: bool = False            # a previous run already set this up

    def build_env(self, triple: str | None = None) -> dict[str, str]:
        """Environment overrides that point the build at this compiler.

        A system compiler is already what cargo finds as ``cc``, so only
        a persistent (package-manager prefix) compiler is injected.
        """
        env: dict[str, str] = {}
        if not self.persistent:
            return env
        if self.prefix:
            env["PATH"] = f"$PATH:{self.prefix}/bin"
        if self.cc:
            env["CC"] = self.cc
            if triple:
                var = "CARGO_TARGET_" + triple.upper().replace("-", "_") + "_LINKER"
                env[var] = self.cc
        if self.cxx:
            env["CXX"] = self.cxx
        return env


class ServiceState(BaseModel):
    """Observed state of the installed service."""

    unit_registered: bool = False
    enabled: bool = False
    active: bool = False
    alias_present: bool = False
    binary_present: bool = False


class InstallPhase(StrEnum):
    IDLE = "idle"
    DETECT = "detect"
    PROVISION = "provision"
    BOOTSTRAP = "bootstrap"
    ENSURE_TOOLCHAIN = "ensure_toolchain"
    BUILD = "build"
    INSTALL_SERVICE = "install_service"
    CONFIGURE_ALIAS = "configure_alias"
    APPLY_INITIAL_STATE = "apply_initial_state"
    REBOOT = "reboot"
    DONE = "done"
    FAILED = "failed"


class InstallReport(BaseModel):
    """Everything one install run did."""

    profile: PlatformProfile
    source: ArtifactSource | None = None
    build_environment: BuildEnvironment | None = None
    phases: list[InstallPhase] = Field(default_factory=list)
    results: list[StepResult] = Field(default_factory=list)
    service_state: ServiceState | None = None
    remediation: str | None = None

    @property
    def phase(self) -> InstallPhase:
        return self.phases[-1] if self.phases else InstallPhase.IDLE

    @property
    def ok(self) -> bool:
        return self.phase == InstallPhase.DONE

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["ok"] = self.ok
        data["exit_code"] = self.exit_code
        return data


class UninstallReport(BaseModel):
    """Everything one uninstall run did."""

    profile: PlatformProfile
    results: list[StepResult] = Field(default_factory=list)

    @property
    def failed(self) -> list[StepResult]:
        return [r for r in self.results if r.fatal]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["ok"] = self.ok
        data["exit_code"] = self.exit_code
        return data
