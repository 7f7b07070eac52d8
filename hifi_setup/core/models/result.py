"""
StepResult — the outcome contract of every provisioning step.

Steps return results, they do not raise. The orchestrator reads the
status and decides whether to continue, ignore, or stop:

    ok       the step did its work (or found nothing to do)
    ignored  the step could not act but the run may continue
    fatal    the run must stop; ``remediation`` tells the operator why
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field


class FailureKind(StrEnum):
    """Why a step was fatal."""

    ARCH_MISMATCH = "arch_mismatch"
    BOOTSTRAP_FAILED = "bootstrap_failed"
    MISSING_FETCH_TOOL = "missing_fetch_tool"
    TOOLCHAIN_UNREPAIRABLE = "toolchain_unrepairable"
    BUILD_FAILED = "build_failed"
    STAGING_FAILED = "staging_failed"
    SERVICE_INSTALL_FAILED = "service_install_failed"
    APPLY_FAILED = "apply_failed"
    NOT_ELEVATED = "not_elevated"
    REMOVAL_FAILED = "removal_failed"


class StepResult(BaseModel):
    """Result of one provisioning or reversal step."""

    step: str
    status: Literal["ok", "ignored", "fatal"] = "ok"
    message: str = ""
    kind: FailureKind | None = None
    remediation: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def ignored(self) -> bool:
        return self.status == "ignored"

    @property
    def fatal(self) -> bool:
        return self.status == "fatal"

    @classmethod
    def success(cls, step: str, message: str = "", **kwargs: Any) -> StepResult:
        """Create a success result."""
        return cls(step=step, status="ok", message=message, **kwargs)

    @classmethod
    def ignore(cls, step: str, reason: str, **kwargs: Any) -> StepResult:
        """Create an ignored result (non-fatal, run continues)."""
        return cls(step=step, status="ignored", message=reason, **kwargs)

    @classmethod
    def failure(
        cls,
        step: str,
        kind: FailureKind,
        message: str,
        remediation: str,
        **kwargs: Any,
    ) -> StepResult:
        """Create a fatal result. A remediation hint is mandatory."""
        return cls(
            step=step,
            status="fatal",
            kind=kind,
            message=message,
            remediation=remediation,
            **kwargs,
        )
