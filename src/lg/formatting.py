"""Small helpers that turn raw file metadata into readable text."""

from __future__ import annotations

import stat
from datetime import datetime


def format_size(size: int) -> str:
    """Convert a byte count into a friendly string such as ``12.4K``."""
    units = ["B", "K", "M", "G", "T", "P"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    if index == 0:
        return f"{size}B"
    return f"{value:.1f}{units[index]}"


def format_timestamp(timestamp: datetime) -> str:
    """Render a timestamp using the short ``ls`` style format."""
    return timestamp.strftime("%b %d %H:%M")


def format_permissions(mode: int) -> str:
    """``drwxr-xr-x`` style permission string."""
    return stat.filemode(mode)


def format_octal_mode(mode: int) -> str:
    """Permission bits as four octal digits, e.g. ``0644``."""
    return f"{stat.S_IMODE(mode):04o}"


def truncate(text: str, width: int, marker: str = "~") -> str:
    """Cut ``text`` to ``width`` characters, ending with ``marker`` when cut."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    return text[: width - len(marker)] + marker


__all__ = [
    "format_octal_mode",
    "format_permissions",
    "format_size",
    "format_timestamp",
    "truncate",
]
