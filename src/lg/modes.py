"""Enumerations for the detail level, output format, sort order and name indicators."""

from __future__ import annotations

from enum import Enum


class DetailLevel(Enum):
    MINIMAL = "minimal"
    STANDARD = "standard"
    FULL = "full"

    @classmethod
    def from_count(cls, count: int) -> "DetailLevel":
        """Translate the number of ``-l`` flags into a level."""
        if count <= 0:
            return cls.MINIMAL
        if count == 1:
            return cls.STANDARD
        return cls.FULL


class OutputFormat(Enum):
    NORMAL = "normal"
    JSON = "json"
    PORCELAIN = "porcelain"


class SortOrder(Enum):
    TIME = "time"
    NAME = "name"
    SIZE = "size"
    EXTENSION = "extension"
    NONE = "none"  # directory order


class IndicatorStyle(Enum):
    """Which type suffixes are appended to names."""

    NONE = "none"
    SLASH = "slash"  # ``/`` after directories only
    CLASSIFY = "classify"  # ``/`` directories, ``@`` symlinks, ``*`` executables


__all__ = ["DetailLevel", "IndicatorStyle", "OutputFormat", "SortOrder"]
