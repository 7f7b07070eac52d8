"""
L5 Orchestration — Install state machine.

Walks ``InstallPhase`` from IDLE to DONE, one step at a time::

    DETECT → PROVISION → [BOOTSTRAP → ENSURE_TOOLCHAIN → BUILD]
           → INSTALL_SERVICE → CONFIGURE_ALIAS → APPLY_INITIAL_STATE
           → [REBOOT] → DONE

The bracketed build phases run only when no usable precompiled binary
ships with the installer. Any fatal step moves the run to FAILED, which
is absorbing: nothing after it runs, and the report carries the failing
step's remediation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.models.result import StepResult
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.models.state import InstallPhase, InstallReport
from hifi_setup.core.services.provision.data.remediation import PRECOMPILED_HINT
from hifi_setup.core.services.provision.detection.service_status import probe_service_state
from hifi_setup.core.services.provision.execution.bootstrap import BuildEnvironmentBootstrapper
from hifi_setup.core.services.provision.execution.provisioner import ArtifactProvisioner
from hifi_setup.core.services.provision.execution.reboot import request_reboot
from hifi_setup.core.services.provision.execution.service_installer import ServiceInstaller
from hifi_setup.core.services.provision.execution.toolchain import ToolchainManager

logger = logging.getLogger(__name__)

Reporter = Callable[[InstallPhase, StepResult], None]


class InstallFailed(Exception):
    """Internal signal: a step returned a fatal result."""

    def __init__(self, result: StepResult):
        super().__init__(result.message)
        self.result = result


class Installer:
    """Run one install from detection to (optionally) reboot."""

    def __init__(
        self,
        runner: Runner,
        profile: PlatformProfile,
        settings: InstallerSettings,
        installer_dir: Path,
        source_dir: Path | None = None,
        *,
        reboot: bool | Callable[[], bool] = False,
        reporter: Reporter | None = None,
    ):
        self._runner = runner
        self._profile = profile
        self._settings = settings
        self._reboot = reboot
        self._reporter = reporter
        self.provisioner = ArtifactProvisioner(runner, profile, settings, installer_dir, source_dir)
        self.bootstrapper = BuildEnvironmentBootstrapper(runner, profile, settings)
        self.toolchain = ToolchainManager(runner, profile, settings)
        self.service = ServiceInstaller(runner, profile, settings)
        self.report = InstallReport(profile=profile, phases=[InstallPhase.IDLE])

    def _enter(self, phase: InstallPhase) -> None:
        logger.debug("Install phase: %s", phase.value)
        self.report.phases.append(phase)

    def _record(self, result: StepResult) -> StepResult:
        self.report.results.append(result)
        if self._reporter is not None:
            self._reporter(self.report.phase, result)
        if result.fatal:
            raise InstallFailed(result)
        return result

    def run(self) -> InstallReport:
        try:
            self._run_phases()
        except InstallFailed as e:
            self._fail(e.result)
        self.report.service_state = probe_service_state(self._runner, self._settings)
        return self.report

    def _fail(self, result: StepResult) -> None:
        logger.error("Install failed at %s: %s", result.step, result.message)
        remediation = result.remediation or ""
        source = self.report.source
        if source is not None and not source.is_precompiled and PRECOMPILED_HINT not in remediation:
            remediation = f"{remediation} {PRECOMPILED_HINT}".strip()
        self.report.remediation = remediation
        self._enter(InstallPhase.FAILED)

    def _run_phases(self) -> None:
        profile = self._profile

        self._enter(InstallPhase.DETECT)
        self._record(StepResult.success(
            "detect",
            f"{profile.distro_id} ({'immutable' if profile.is_immutable else 'mutable'}), "
            f"user {profile.acting_user}, {profile.arch}",
        ))

        self._enter(InstallPhase.PROVISION)
        result, source = self.provisioner.select()
        self._record(result)
        self.report.source = source

        if source.is_precompiled:
            self._record(self.provisioner.stage(source))
        else:
            self._build_from_source()

        self._enter(InstallPhase.INSTALL_SERVICE)
        self._record(self.service.stop_if_active())
        self._record(self.service.register(self.provisioner.staging_path))
        self._record(self.service.relabel())

        self._enter(InstallPhase.CONFIGURE_ALIAS)
        self._record(self.service.create_alias())

        self._enter(InstallPhase.APPLY_INITIAL_STATE)
        self._record(self.service.apply_initial_state())

        # A callable is asked only once the install has succeeded
        wants_reboot = self._reboot() if callable(self._reboot) else self._reboot
        if wants_reboot:
            self._enter(InstallPhase.REBOOT)
            self._record(request_reboot(self._runner))

        self._enter(InstallPhase.DONE)

    def _build_from_source(self) -> None:
        self._enter(InstallPhase.BOOTSTRAP)
        result, environment = self.bootstrapper.ensure()
        self._record(result)
        self.report.build_environment = environment

        self._enter(InstallPhase.ENSURE_TOOLCHAIN)
        result = self._record(self.toolchain.ensure())
        cargo = result.metadata.get("cargo", "cargo")

        self._enter(InstallPhase.BUILD)
        self._record(self.provisioner.build(environment, cargo))
