"""
L1 Domain — Shell profile line filtering (pure).

The hifi-wifi artifact appends two lines to the acting user's profile:

    # hifi-wifi CLI access
    export PATH="/var/lib/hifi-wifi:$PATH"

Removal is line-oriented: a line is owned when it is the marker
comment or mentions the install root. Every other line, including
other tools' PATH exports, is passed through byte-for-byte.
"""

from __future__ import annotations


def is_owned_line(line: bytes, install_root: bytes, marker: bytes) -> bool:
    """Whether ``line`` was written by hifi-wifi."""
    body = line.rstrip(b"\r\n")
    if body.strip() == marker:
        return True
    return install_root in body


def strip_owned_lines(
    content: bytes,
    install_root: str,
    marker: str,
) -> tuple[bytes, int]:
    """Drop owned lines from a profile.

    Args:
        content: Raw profile bytes (any encoding; matching is on bytes).
        install_root: Install directory whose mention marks a line owned.
        marker: The ownership comment line.

    Returns:
        ``(new_content, removed_count)``. When nothing is owned the
        original bytes object is returned unchanged.
    """
    root_b = install_root.encode()
    marker_b = marker.strip().encode()

    kept: list[bytes] = []
    removed = 0
    for line in content.splitlines(keepends=True):
        if is_owned_line(line, root_b, marker_b):
            removed += 1
        else:
            kept.append(line)

    if not removed:
        return content, 0
    return b"".join(kept), removed
