"""
InstallerSettings — every tunable the installer reads.

Defaults reproduce the paths and URLs the hifi-wifi artifact expects.
A ``hifi-setup.yml`` file may override any subset of them.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from hifi_setup.core.services.provision.data import constants as c


class ServiceSettings(BaseModel):
    """Names of the managed service and its artifact."""

    name: str = c.SERVICE_NAME
    binary_name: str = c.BINARY_NAME
    repair_unit: str = c.REPAIR_UNIT_NAME


class PathSettings(BaseModel):
    """Filesystem locations owned (or read) by the installer."""

    install_root: str = c.INSTALL_ROOT
    system_unit: str = c.SYSTEM_UNIT_PATH
    user_unit_relpath: str = c.USER_UNIT_RELPATH
    polkit_rule: str = c.POLKIT_RULE_PATH
    modprobe_dir: str = c.MODPROBE_DIR
    driver_fragments: list[str] = Field(default_factory=lambda: list(c.DRIVER_FRAGMENTS))
    sysctl_conf: str = c.SYSCTL_CONF_PATH
    alias: str = c.ALIAS_PATH
    user_config_dir: str = c.USER_CONFIG_DIR
    os_release: str = c.OS_RELEASE_PATH
    brew_prefix: str = c.BREW_PREFIX
    shell_profiles: list[str] = Field(default_factory=lambda: list(c.SHELL_PROFILES))
    profile_marker: str = c.PROFILE_MARKER

    def installed_binary(self, binary_name: str) -> Path:
        return Path(self.install_root) / binary_name

    def driver_fragment_paths(self) -> list[Path]:
        return [Path(self.modprobe_dir) / name for name in self.driver_fragments]


class ToolchainSettings(BaseModel):
    """Where toolchains come from."""

    rustup_url: str = c.RUSTUP_URL
    brew_install_url: str = c.BREW_INSTALL_URL
    compiler_package: str = c.COMPILER_PACKAGE
    # None → the host architecture
    required_arch: str | None = None


class TimeoutSettings(BaseModel):
    """Per-tier subprocess timeouts, in seconds."""

    default: int = c.TIMEOUT_DEFAULT
    network: int = c.TIMEOUT_NETWORK
    package: int = c.TIMEOUT_PACKAGE
    build: int = c.TIMEOUT_BUILD


class InstallerSettings(BaseModel):
    """Root settings model — loaded from hifi-setup.yml or defaults."""

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    paths: PathSettings = Field(default_factory=PathSettings)
    toolchain: ToolchainSettings = Field(default_factory=ToolchainSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
