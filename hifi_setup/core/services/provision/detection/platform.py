"""
L3 Detection — PlatformProfileDetector.

Resolves who the installer acts for and what it is running on. Pure
query: reads os-release, the identity database and a couple of sysfs
markers, and never fails. A missing os-release yields an unknown,
mutable platform.
"""

from __future__ import annotations

import logging
import os
import platform
import pwd
import shutil
from pathlib import Path

from hifi_setup.core.models.profile import DistroKind, PlatformProfile
from hifi_setup.core.models.settings import InstallerSettings
from hifi_setup.core.services.provision.domain.binary import normalize_arch
from hifi_setup.core.services.provision.domain.classification import (
    classify_distro,
    parse_os_release,
)

logger = logging.getLogger(__name__)

SELINUX_FS = "/sys/fs/selinux"
READONLY_TOOL = "steamos-readonly"


def read_distro(os_release: Path) -> tuple[str, DistroKind]:
    """Return ``(distro_id, kind)`` from an os-release file."""
    try:
        text = os_release.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.info("No os-release at %s, assuming unknown mutable distro", os_release)
        return "unknown", DistroKind.UNKNOWN

    fields = parse_os_release(text)
    distro_id = fields.get("ID", "").lower() or "unknown"
    return distro_id, classify_distro(distro_id, fields.get("ID_LIKE", ""))


def _lookup_user(name: str) -> pwd.struct_passwd | None:
    try:
        return pwd.getpwnam(name)
    except KeyError:
        return None


def _lookup_uid(uid: int) -> pwd.struct_passwd | None:
    try:
        return pwd.getpwuid(uid)
    except KeyError:
        return None


def resolve_acting_user(
    environ: dict[str, str],
    euid: int,
) -> tuple[str, str, int | None, int | None]:
    """Resolve ``(user, home, uid, gid)`` of the identity we act for.

    When elevated through sudo, that is ``SUDO_USER`` and the home
    directory comes from the identity database, not from ``$HOME``
    (which sudo may have pointed at /root). Otherwise it is the
    current identity.
    """
    sudo_user = environ.get("SUDO_USER", "")
    if euid == 0 and sudo_user and sudo_user != "root":
        entry = _lookup_user(sudo_user)
        if entry is not None:
            return sudo_user, entry.pw_dir, entry.pw_uid, entry.pw_gid
        logger.warning("No passwd entry for %s, assuming /home/%s", sudo_user, sudo_user)
        return sudo_user, f"/home/{sudo_user}", None, None

    entry = _lookup_uid(euid)
    if entry is not None:
        return entry.pw_name, entry.pw_dir, entry.pw_uid, entry.pw_gid

    user = environ.get("USER") or environ.get("LOGNAME") or "unknown"
    home = environ.get("HOME") or f"/home/{user}"
    return user, home, euid, None


def detect_selinux(selinux_fs: Path = Path(SELINUX_FS)) -> bool:
    """Whether SELinux is loaded (enforcing or permissive)."""
    return (selinux_fs / "enforce").exists()


def detect_platform(
    settings: InstallerSettings,
    *,
    environ: dict[str, str] | None = None,
    euid: int | None = None,
    machine: str | None = None,
    selinux_fs: Path = Path(SELINUX_FS),
) -> PlatformProfile:
    """Build the PlatformProfile for this run.

    All arguments besides ``settings`` default to the live process and
    host; tests pass them explicitly.
    """
    env = dict(os.environ if environ is None else environ)
    uid = os.geteuid() if euid is None else euid

    distro_id, kind = read_distro(Path(settings.paths.os_release))
    user, home, acting_uid, acting_gid = resolve_acting_user(env, uid)

    profile = PlatformProfile(
        distro_id=distro_id,
        distro=kind,
        is_immutable=kind.is_immutable,
        acting_user=user,
        acting_home=home,
        acting_uid=acting_uid,
        acting_gid=acting_gid,
        is_elevated=uid == 0,
        arch=normalize_arch(machine or platform.machine()),
        has_selinux=detect_selinux(selinux_fs),
        has_readonly_tool=shutil.which(READONLY_TOOL, path=env.get("PATH")) is not None,
    )
    logger.info(
        "Platform: %s (%s, %s) acting for %s (%s)",
        profile.distro_id,
        profile.distro.value,
        "immutable" if profile.is_immutable else "mutable",
        profile.acting_user,
        profile.acting_home,
    )
    return profile
