"""
L1 Domain — Distro and interface classification (pure).

String matching on distro ids and interface names happens here, once.
Everything downstream works with ``DistroKind`` / ``InterfaceKind``.
"""

from __future__ import annotations

import shlex

from hifi_setup.core.models.profile import DistroKind, InterfaceKind

_DISTRO_IDS: dict[str, DistroKind] = {
    "steamos": DistroKind.STEAMOS,
    "holo": DistroKind.STEAMOS,
    "bazzite": DistroKind.BAZZITE,
    "chimeraos": DistroKind.CHIMERAOS,
    "arch": DistroKind.ARCH,
    "cachyos": DistroKind.ARCH,
    "endeavouros": DistroKind.ARCH,
    "manjaro": DistroKind.ARCH,
    "debian": DistroKind.DEBIAN,
    "ubuntu": DistroKind.DEBIAN,
    "pop": DistroKind.DEBIAN,
    "linuxmint": DistroKind.DEBIAN,
    "fedora": DistroKind.FEDORA,
    "nobara": DistroKind.FEDORA,
    "opensuse": DistroKind.SUSE,
    "suse": DistroKind.SUSE,
}

# Kernel interface name prefixes → kind.
_INTERFACE_PREFIXES: tuple[tuple[str, InterfaceKind], ...] = (
    ("wl", InterfaceKind.WIRELESS),
    ("eth", InterfaceKind.ETHERNET),
    ("en", InterfaceKind.ETHERNET),
)


def parse_os_release(text: str) -> dict[str, str]:
    """Parse an os-release descriptor into a key → value mapping.

    Follows os-release(5): ``KEY=value`` lines, values optionally
    shell-quoted, ``#`` comments and blank lines ignored.
    """
    fields: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        fields[key.strip()] = parts[0] if parts else ""
    return fields


def classify_distro(distro_id: str, id_like: str = "") -> DistroKind:
    """Map an os-release ``ID`` (falling back to ``ID_LIKE``) to a kind."""
    kind = _match_distro(distro_id)
    if kind is not DistroKind.UNKNOWN:
        return kind
    for like in id_like.split():
        kind = _match_distro(like)
        if kind is not DistroKind.UNKNOWN:
            return kind
    return DistroKind.UNKNOWN


def _match_distro(token: str) -> DistroKind:
    token = token.strip().lower()
    if not token:
        return DistroKind.UNKNOWN
    if token in _DISTRO_IDS:
        return _DISTRO_IDS[token]
    # opensuse-tumbleweed, opensuse-leap, ...
    head = token.split("-", 1)[0]
    return _DISTRO_IDS.get(head, DistroKind.UNKNOWN)


def classify_interface(name: str) -> InterfaceKind:
    """Classify a kernel network interface name."""
    for prefix, kind in _INTERFACE_PREFIXES:
        if name.startswith(prefix):
            return kind
    return InterfaceKind.OTHER


def parse_link_names(ip_output: str) -> list[str]:
    """Extract interface names from ``ip -o link show`` output.

    Lines look like ``2: wlan0: <BROADCAST,...> mtu 1500 ...``; VLAN and
    veth names carry an ``@parent`` suffix which is dropped.
    """
    names: list[str] = []
    for line in ip_output.splitlines():
        parts = line.split(": ", 2)
        if len(parts) < 2:
            continue
        name = parts[1].split("@", 1)[0].strip()
        if name and name not in names:
            names.append(name)
    return names


def parse_qdisc_kinds(tc_output: str) -> list[str]:
    """Extract qdisc kinds from ``tc qdisc show dev IF`` output.

    Each qdisc line starts ``qdisc <kind> <handle>: ...``.
    """
    kinds: list[str] = []
    for line in tc_output.splitlines():
        fields = line.split()
        if len(fields) >= 2 and fields[0] == "qdisc":
            kinds.append(fields[1])
    return kinds
