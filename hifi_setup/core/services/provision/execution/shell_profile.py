"""
L4 Execution — Shell profile cleanup.

Removes the artifact's PATH export from a user's profile. The filtered
content is written to a temp file next to the real file and renamed
over it, so the profile is never half-written. A symlinked profile is
rewritten at its target and the link itself is left in place. Mode of
the original is carried over, and ownership too when the caller runs
as root.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from hifi_setup.core.services.provision.domain.shell_profile import strip_owned_lines

logger = logging.getLogger(__name__)


def strip_profile(
    path: Path,
    install_root: str,
    marker: str,
    *,
    preserve_owner: bool = False,
) -> int:
    """Strip owned lines from ``path`` in place.

    Args:
        preserve_owner: Copy uid/gid of the original onto the rewrite.
            Only possible when elevated.

    Returns:
        Number of lines removed (0 when the file is absent or clean).

    Raises:
        OSError: If the profile exists but cannot be read or replaced.
    """
    if not path.is_file():
        return 0

    target = path.resolve()
    content = target.read_bytes()
    filtered, removed = strip_owned_lines(content, install_root, marker)
    if not removed:
        return 0

    st = target.stat()
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(filtered)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, st.st_mode & 0o7777)
        if preserve_owner:
            os.chown(tmp_name, st.st_uid, st.st_gid)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    if target != path:
        logger.info("Removed %d line(s) from %s (via %s)", removed, target, path)
    else:
        logger.info("Removed %d line(s) from %s", removed, path)
    return removed
