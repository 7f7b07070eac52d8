"""
L4 Execution — Existence-guarded filesystem removal.

Uninstall runs as root, so removals are done in-process. A target that
is already gone is success; any other ``OSError`` becomes a fatal
``removal_failed`` result and the caller moves on to the next step.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from hifi_setup.core.models.result import FailureKind, StepResult
from hifi_setup.core.services.provision.data.remediation import hint

logger = logging.getLogger(__name__)


def _removal_failed(step: str, path: Path, error: OSError) -> StepResult:
    logger.warning("Removing %s failed: %s", path, error)
    return StepResult.failure(
        step,
        FailureKind.REMOVAL_FAILED,
        f"Cannot remove {path}: {error}",
        hint(FailureKind.REMOVAL_FAILED.value, path=str(path)),
    )


def remove_file(step: str, path: Path) -> StepResult:
    """Unlink a file or symlink."""
    if not (path.is_symlink() or path.exists()):
        return StepResult.success(step, f"{path} not present", metadata={"skipped": True})
    try:
        path.unlink()
    except FileNotFoundError:
        return StepResult.success(step, f"{path} not present", metadata={"skipped": True})
    except OSError as e:
        return _removal_failed(step, path, e)
    logger.info("Removed %s", path)
    return StepResult.success(step, f"Removed {path}")


def remove_tree(step: str, path: Path) -> StepResult:
    """Recursively delete a directory."""
    if path.is_symlink() or path.is_file():
        return remove_file(step, path)
    if not path.exists():
        return StepResult.success(step, f"{path} not present", metadata={"skipped": True})
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return StepResult.success(step, f"{path} not present", metadata={"skipped": True})
    except OSError as e:
        return _removal_failed(step, path, e)
    logger.info("Removed %s", path)
    return StepResult.success(step, f"Removed {path}")
