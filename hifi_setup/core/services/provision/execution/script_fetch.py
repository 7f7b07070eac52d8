"""
L4 Execution — Download-then-run for vendor install scripts.

Replaces the ``curl ... | sh`` pattern: the script is fetched with
HTTPS-only, TLS >= 1.2 curl flags into the acting user's cache, then
executed as that user. A failed or partial download never reaches a
shell.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import PlatformProfile
from hifi_setup.core.services.provision.data.constants import (
    SCRIPT_CACHE_RELDIR,
    SECURE_FETCH_FLAGS,
)

logger = logging.getLogger(__name__)


def script_cache(profile: PlatformProfile) -> Path:
    return Path(profile.acting_home) / SCRIPT_CACHE_RELDIR


def fetch_script(
    runner: Runner,
    profile: PlatformProfile,
    url: str,
    filename: str,
) -> dict[str, Any]:
    """Download ``url`` to the acting user's script cache.

    Returns:
        The runner result, with ``path`` set on success.
    """
    cache = script_cache(profile)
    dest = cache / filename

    mk = runner.run(["mkdir", "-p", str(cache)], as_user=True)
    if not mk.get("ok"):
        return mk

    logger.info("Fetching %s", url)
    result = runner.run(
        ["curl", *SECURE_FETCH_FLAGS, "-o", str(dest), url],
        as_user=True,
        tier="network",
    )
    if result.get("ok"):
        result["path"] = str(dest)
    return result


def run_script(
    runner: Runner,
    script: str,
    args: list[str] | None = None,
    *,
    interpreter: str = "sh",
    env: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Execute a downloaded script as the acting user."""
    return runner.run(
        [interpreter, script, *(args or [])],
        as_user=True,
        tier="network",
        env=env,
        stream=True,
    )
