"""
L3 Detection — Network interfaces and attached queue disciplines.
"""

from __future__ import annotations

import logging

from hifi_setup.adapters.base import Runner
from hifi_setup.core.models.profile import InterfaceKind
from hifi_setup.core.services.provision.domain.classification import (
    classify_interface,
    parse_link_names,
    parse_qdisc_kinds,
)

logger = logging.getLogger(__name__)


def list_interfaces(runner: Runner) -> list[tuple[str, InterfaceKind]]:
    """All kernel interfaces with their kind. Empty if ``ip`` fails."""
    result = runner.run(["ip", "-o", "link", "show"])
    if not result.get("ok"):
        logger.debug("ip link show failed: %s", result.get("error"))
        return []
    return [(name, classify_interface(name)) for name in parse_link_names(result.get("stdout", ""))]


def attached_qdiscs(runner: Runner, iface: str) -> list[str]:
    """Kinds of the qdiscs attached to ``iface``."""
    result = runner.run(["tc", "qdisc", "show", "dev", iface])
    if not result.get("ok"):
        return []
    return parse_qdisc_kinds(result.get("stdout", ""))
