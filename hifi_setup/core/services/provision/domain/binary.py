"""
L1 Domain — Binary and architecture helpers (pure).

Reads the ELF identification header to find which CPU a precompiled
binary targets, and picks versioned compiler binaries out of a
directory listing.
"""

from __future__ import annotations

import re
import struct

from hifi_setup.core.services.provision.data.constants import ARCH_ALIASES, ELF_MACHINES

ELF_MAGIC = b"\x7fELF"

# e_ident (16 bytes) + e_type (2) + e_machine (2)
ELF_HEADER_PROBE = 20

UNKNOWN_ARCH = "unknown"

_VERSIONED_GCC_RE = re.compile(r"^gcc-(\d+)$")


def normalize_arch(machine: str) -> str:
    """Map a platform.machine() spelling to the uname -m style name."""
    machine = machine.strip()
    return ARCH_ALIASES.get(machine.lower(), machine.lower())


def elf_arch(header: bytes) -> str:
    """Return the architecture tag of an ELF header, or ``unknown``.

    Only the first ``ELF_HEADER_PROBE`` bytes are needed. Anything that
    is not ELF (scripts, truncated files) is ``unknown`` and so never
    matches a host architecture.
    """
    if len(header) < ELF_HEADER_PROBE or not header.startswith(ELF_MAGIC):
        return UNKNOWN_ARCH

    # EI_DATA: 1 = little endian, 2 = big endian
    ei_data = header[5]
    if ei_data == 1:
        fmt = "<H"
    elif ei_data == 2:
        fmt = ">H"
    else:
        return UNKNOWN_ARCH

    (machine,) = struct.unpack_from(fmt, header, 18)
    return ELF_MACHINES.get(machine, UNKNOWN_ARCH)


def pick_versioned_compiler(names: list[str]) -> tuple[str, str] | None:
    """Pick the newest ``gcc-N`` / ``g++-N`` pair from a listing.

    Homebrew installs its compiler only under version-suffixed names
    (``gcc-14``, ``g++-14``); plain ``gcc`` there would be the host's.

    Returns:
        ``("gcc-14", "g++-14")`` or None. ``g++-N`` may be absent from
        the listing, in which case the C++ name is still returned and
        the caller's probe decides.
    """
    versions: list[int] = []
    for name in names:
        m = _VERSIONED_GCC_RE.match(name)
        if m:
            versions.append(int(m.group(1)))
    if not versions:
        return None
    newest = max(versions)
    return f"gcc-{newest}", f"g++-{newest}"
