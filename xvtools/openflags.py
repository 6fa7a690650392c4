"""Flags accepted by ``open`` and the access rights they imply."""

from __future__ import annotations

import enum

__all__ = ["OpenFlag", "is_readable", "is_writable"]


class OpenFlag(enum.IntFlag):
    """Mode bits for opening a file."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


def is_readable(mode: int) -> bool:
    """Return True if a file opened with ``mode`` may be read."""
    return not (int(mode) & OpenFlag.WRONLY)


def is_writable(mode: int) -> bool:
    """Return True if a file opened with ``mode`` may be written."""
    mode = int(mode)
    return bool(mode & OpenFlag.WRONLY or mode & OpenFlag.RDWR)