"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.

Default filesystem locations here mirror the paths the hifi-wifi
artifact itself writes; ``InstallerSettings`` copies them as its
defaults so every one can be redirected (tests point them at a
temporary directory).
"""

from __future__ import annotations

# ── Filesystem contract ─────────────────────────────────────────

SERVICE_NAME = "hifi-wifi"
BINARY_NAME = "hifi-wifi"
REPAIR_UNIT_NAME = "hifi-wifi-repair.service"

INSTALL_ROOT = "/var/lib/hifi-wifi"
SYSTEM_UNIT_PATH = "/etc/systemd/system/hifi-wifi.service"
USER_UNIT_RELPATH = ".config/systemd/user/hifi-wifi-repair.service"
POLKIT_RULE_PATH = "/etc/polkit-1/rules.d/49-hifi-wifi.rules"
MODPROBE_DIR = "/etc/modprobe.d"
SYSCTL_CONF_PATH = "/etc/sysctl.d/99-hifi-wifi.conf"
ALIAS_PATH = "/usr/local/bin/hifi-wifi"
USER_CONFIG_DIR = "/etc/hifi-wifi"
OS_RELEASE_PATH = "/etc/os-release"

# Driver-tuning fragments the artifact may drop into MODPROBE_DIR.
DRIVER_FRAGMENTS: tuple[str, ...] = (
    "rtl_legacy.conf",
    "ralink.conf",
    "mediatek.conf",
    "intel_wifi.conf",
    "atheros.conf",
    "broadcom.conf",
)

# Shell profiles (relative to the acting user's home) that may carry
# the artifact's PATH export.
SHELL_PROFILES: tuple[str, ...] = (".bashrc", ".bash_profile", ".zshrc")

# Comment line the artifact writes above its PATH export.
PROFILE_MARKER = "# hifi-wifi CLI access"

# Queue discipline the artifact attaches to interfaces.
QDISC_KIND = "cake"

# ── Build toolchain ─────────────────────────────────────────────

# Homebrew's Linux prefix lives under /home, which survives a SteamOS
# image update; the root partition does not.
BREW_PREFIX = "/home/linuxbrew/.linuxbrew"
BREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
COMPILER_PACKAGE = "gcc"

RUSTUP_URL = "https://sh.rustup.rs"

# curl flags that refuse anything but HTTPS with TLS >= 1.2.
SECURE_FETCH_FLAGS: tuple[str, ...] = ("--proto", "=https", "--tlsv1.2", "-sSf")

# Where install scripts are downloaded before execution, relative to
# the acting user's home.
SCRIPT_CACHE_RELDIR = ".cache/hifi-setup"

# Candidate locations of a precompiled binary, relative to the
# installer directory, in search order.
PRECOMPILED_CANDIDATES: tuple[str, ...] = ("bin/hifi-wifi", "hifi-wifi")

# Canonical staging location, relative to the source directory.
STAGING_RELPATH = "target/release/hifi-wifi"

# Index refresh run before installing, for managers that do not refresh on their own.
PACKAGE_INDEX_REFRESH: dict[str, list[str]] = {
    "apt": ["apt-get", "update"],
}

# System package that provides a C compiler + linker, per package manager.
SYSTEM_COMPILER_INSTALL: dict[str, list[str]] = {
    "pacman": ["pacman", "-S", "--needed", "--noconfirm", "base-devel"],
    "apt":    ["apt-get", "install", "-y", "build-essential"],
    "dnf":    ["dnf", "install", "-y", "gcc"],
    "zypper": ["zypper", "--non-interactive", "install", "gcc"],
}

# ── Architecture ────────────────────────────────────────────────

# ELF e_machine → uname -m style name.
ELF_MACHINES: dict[int, str] = {
    3: "i686",
    40: "armv7l",
    62: "x86_64",
    183: "aarch64",
    243: "riscv64",
}

# platform.machine() aliases → canonical uname -m style name.
ARCH_ALIASES: dict[str, str] = {
    "amd64": "x86_64",
    "x86_64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "i386": "i686",
    "i686": "i686",
    "armv7l": "armv7l",
    "riscv64": "riscv64",
}

# Rust target triple per architecture (for the linker override).
RUST_TRIPLES: dict[str, str] = {
    "x86_64": "x86_64-unknown-linux-gnu",
    "aarch64": "aarch64-unknown-linux-gnu",
    "i686": "i686-unknown-linux-gnu",
    "armv7l": "armv7-unknown-linux-gnueabihf",
    "riscv64": "riscv64gc-unknown-linux-gnu",
}

# ── Timeouts (seconds) ──────────────────────────────────────────

TIMEOUT_DEFAULT = 120
TIMEOUT_NETWORK = 600
TIMEOUT_PACKAGE = 1800
TIMEOUT_BUILD = 3600
