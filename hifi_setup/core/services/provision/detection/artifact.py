"""
L3 Detection — Precompiled artifact discovery.

Read-only: looks for a shipped binary next to the installer and reads
its ELF header. Choosing what to do with it is ArtifactProvisioner's
job.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hifi_setup.core.services.provision.data.constants import PRECOMPILED_CANDIDATES
from hifi_setup.core.services.provision.domain.binary import (
    ELF_HEADER_PROBE,
    UNKNOWN_ARCH,
    elf_arch,
)

logger = logging.getLogger(__name__)


def find_precompiled(
    installer_dir: Path,
    candidates: tuple[str, ...] = PRECOMPILED_CANDIDATES,
) -> Path | None:
    """Return the first existing candidate binary, or None."""
    for rel in candidates:
        path = installer_dir / rel
        if path.is_file():
            logger.debug("Precompiled candidate found: %s", path)
            return path
    return None


def read_arch(path: Path) -> str:
    """Architecture tag of a binary (``unknown`` if unreadable / not ELF)."""
    try:
        with path.open("rb") as f:
            header = f.read(ELF_HEADER_PROBE)
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return UNKNOWN_ARCH
    return elf_arch(header)
