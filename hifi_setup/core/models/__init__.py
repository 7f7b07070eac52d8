"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from hifi_setup.core.models import PlatformProfile, StepResult, ServiceState
"""

from hifi_setup.core.models.profile import DistroKind, InterfaceKind, PlatformProfile
from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.models.state import (
    ArtifactSource,
    BuildEnvironment,
    InstallPhase,
    InstallReport,
    ServiceState,
    UninstallReport,
)

__all__ = [
    # state.py
    "ArtifactSource",
    "BuildEnvironment",
    # profile.py
    "DistroKind",
    # result.py
    "FailureKind",
    "InstallPhase",
    "InstallReport",
    "InterfaceKind",
    "PlatformProfile",
    "ServiceState",
    "StepResult",
    "UninstallReport",
]
