"""
Shared test fixtures and configuration.

Every filesystem path the installer touches is redirected into
``tmp_path`` through InstallerSettings, so no test reads or writes the
host's /etc, /var or /usr.
"""

import logging
import struct
from pathlib import Path

import pytest

from hifi_setup.adapters.mock import MockRunner
from hifi_setup.core.models.profile import DistroKind, PlatformProfile
from hifi_setup.core.models.settings import InstallerSettings, PathSettings


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Fake filesystem root."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Acting user's home directory."""
    path = tmp_path / "home" / "deck"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def settings(root_dir: Path, tmp_path: Path) -> InstallerSettings:
    """Installer settings with every path inside the fake root."""
    paths = PathSettings(
        install_root=str(root_dir / "var/lib/hifi-wifi"),
        system_unit=str(root_dir / "etc/systemd/system/hifi-wifi.service"),
        polkit_rule=str(root_dir / "etc/polkit-1/rules.d/49-hifi-wifi.rules"),
        modprobe_dir=str(root_dir / "etc/modprobe.d"),
        sysctl_conf=str(root_dir / "etc/sysctl.d/99-hifi-wifi.conf"),
        alias=str(root_dir / "usr/local/bin/hifi-wifi"),
        user_config_dir=str(root_dir / "etc/hifi-wifi"),
        os_release=str(root_dir / "etc/os-release"),
        brew_prefix=str(tmp_path / "home/linuxbrew/.linuxbrew"),
    )
    return InstallerSettings(paths=paths)


@pytest.fixture
def make_profile(home: Path):
    """Factory for PlatformProfile with test defaults."""

    def _make(**overrides) -> PlatformProfile:
        values = {
            "distro_id": "steamos",
            "distro": DistroKind.STEAMOS,
            "is_immutable": True,
            "acting_user": "deck",
            "acting_home": str(home),
            "is_elevated": True,
            "arch": "x86_64",
            "has_readonly_tool": True,
        }
        values.update(overrides)
        return PlatformProfile(**values)

    return _make


@pytest.fixture
def steamos_profile(make_profile) -> PlatformProfile:
    return make_profile()


@pytest.fixture
def arch_profile(make_profile) -> PlatformProfile:
    return make_profile(
        distro_id="arch",
        distro=DistroKind.ARCH,
        is_immutable=False,
        has_readonly_tool=False,
    )


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def make_elf():
    """Write a minimal ELF header for ``machine`` (e_machine value)."""

    def _make(path: Path, machine: int, *, big_endian: bool = False) -> Path:
        order = ">" if big_endian else "<"
        ident = b"\x7fELF" + bytes([2, 2 if big_endian else 1, 1, 0]) + b"\x00" * 8
        header = ident + struct.pack(f"{order}HH", 2, machine) + b"\x00" * 44
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(header)
        path.chmod(0o644)
        return path

    return _make


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
