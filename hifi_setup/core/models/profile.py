"""
PlatformProfile — the resolved execution context.

Built once at the start of an install or uninstall run and passed to
every component. Nothing downstream reads the process environment
again: who the acting user is, where their home lives, and whether the
root filesystem is immutable are all answered here.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class DistroKind(StrEnum):
    """Distribution families the installer treats differently."""

    STEAMOS = "steamos"
    BAZZITE = "bazzite"
    CHIMERAOS = "chimeraos"
    ARCH = "arch"
    DEBIAN = "debian"
    FEDORA = "fedora"
    SUSE = "suse"
    UNKNOWN = "unknown"

    @property
    def is_immutable(self) -> bool:
        """Whether this family ships a read-only root partition."""
        return self in _IMMUTABLE

    @property
    def package_manager(self) -> str | None:
        """System package manager for mutable families (None if unknown)."""
        return _PACKAGE_MANAGERS.get(self)


_IMMUTABLE = frozenset({DistroKind.STEAMOS, DistroKind.BAZZITE, DistroKind.CHIMERAOS})

_PACKAGE_MANAGERS: dict[DistroKind, str] = {
    DistroKind.ARCH: "pacman",
    DistroKind.DEBIAN: "apt",
    DistroKind.FEDORA: "dnf",
    DistroKind.SUSE: "zypper",
}


class InterfaceKind(StrEnum):
    """Network interface classes, derived from the kernel name."""

    WIRELESS = "wireless"
    ETHERNET = "ethernet"
    OTHER = "other"


class PlatformProfile(BaseModel):
    """Who we act for and what we are running on."""

    distro_id: str = "unknown"
    distro: DistroKind = DistroKind.UNKNOWN
    is_immutable: bool = False

    acting_user: str
    acting_home: str
    acting_uid: int | None = None
    acting_gid: int | None = None

    is_elevated: bool = False           # effective uid 0
    arch: str = "x86_64"                # host, uname -m style
    has_selinux: bool = False
    has_readonly_tool: bool = False     # steamos-readonly present

    @property
    def acts_for_other_user(self) -> bool:
        """Elevated on behalf of a non-root identity (e.g. via sudo)."""
        return self.is_elevated and self.acting_user != "root"
