"""
L0 Data — Remediation hints shown to the operator on fatal steps.

Keyed by failure kind value. Templates use ``{binary}``, ``{arch}``,
``{expected}``, ``{path}``, ``{user}`` placeholders, filled in by the
step that fails.
"""

from __future__ import annotations

PRECOMPILED_HINT = (
    "Download the precompiled release from the project's releases page, place the "
    "hifi-wifi binary in the installer's bin/ directory and re-run."
)

REMEDIATION_HINTS: dict[str, str] = {
    "arch_mismatch": (
        "The precompiled binary {path} is built for {arch}, but this host "
        "needs {expected}. Remove it (or fetch the {expected} release) and "
        "re-run to build from source."
    ),
    "bootstrap_failed": (
        "Could not set up a persistent compiler under {path}. "
        + PRECOMPILED_HINT
    ),
    "missing_fetch_tool": (
        "curl is required to install the Rust toolchain. Install curl, or "
        "install Rust yourself from https://rustup.rs, then re-run."
    ),
    "toolchain_unrepairable": (
        "The Rust toolchain for {user} is broken and could not be repaired. "
        "Reinstall it manually (rm -rf ~/.rustup ~/.cargo, then "
        "https://rustup.rs) and re-run."
    ),
    "build_failed": (
        "cargo did not produce {path}. Check the build output above. "
        + PRECOMPILED_HINT
    ),
    "staging_failed": (
        "Could not stage the binary at {path}. Check that the source "
        "directory is writable by {user} and re-run."
    ),
    "service_install_failed": (
        "'{binary} install' failed. Check 'journalctl -xe' and re-run; "
        "every step is safe to repeat."
    ),
    "apply_failed": (
        "The service is installed but '{binary} apply' failed. Run it by "
        "hand with sudo to see the error."
    ),
    "not_elevated": "This command must run as root. Re-run it with sudo.",
    "removal_failed": (
        "Could not remove {path}. Fix the error above and re-run; "
        "uninstall is safe to repeat."
    ),
}


def hint(kind: str, **fields: str) -> str:
    """Render the remediation hint for ``kind``."""
    template = REMEDIATION_HINTS.get(kind, "Re-run with --debug for details.")
    try:
        return template.format(**fields)
    except KeyError:
        return template
