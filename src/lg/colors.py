"""Colors and glyphs for git status and file types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, NamedTuple, Optional

if TYPE_CHECKING:
    from lg.listing import FileRecord

RESET = "\x1b[0m"

STAGED_GLYPH = "●"
UNSTAGED_GLYPH = "○"
UNTRACKED_GLYPH = "?"
IGNORED_GLYPH = "!"


class Presentation(NamedTuple):
    """How a display status is drawn: a color token and a glyph."""

    color_token: Optional[str]
    glyph: str


CLEAN_PRESENTATION = Presentation(None, "")

_PRESENTATIONS = {
    "M": Presentation("git_staged_modified", STAGED_GLYPH),
    "m": Presentation("git_unstaged_modified", UNSTAGED_GLYPH),
    "A": Presentation("git_staged_added", STAGED_GLYPH),
    "a": Presentation("git_unstaged_added", UNSTAGED_GLYPH),
    "D": Presentation("git_staged_deleted", STAGED_GLYPH),
    "d": Presentation("git_unstaged_deleted", UNSTAGED_GLYPH),
    "R": Presentation("git_staged_renamed", STAGED_GLYPH),
    "r": Presentation("git_unstaged_renamed", UNSTAGED_GLYPH),
    "C": Presentation("git_staged_copied", STAGED_GLYPH),
    "c": Presentation("git_unstaged_copied", UNSTAGED_GLYPH),
    "?": Presentation("git_untracked", UNTRACKED_GLYPH),
    "!": Presentation("git_ignored", IGNORED_GLYPH),
    " ": CLEAN_PRESENTATION,
}

# ANSI 256-color numbers.  Staged changes use the brighter shade, unstaged
# changes a dimmed version of the same hue.
GIT_COLORS = {
    "git_staged_modified": 214,  # orange
    "git_unstaged_modified": 178,
    "git_staged_added": 34,  # green
    "git_unstaged_added": 28,
    "git_staged_deleted": 167,  # red
    "git_unstaged_deleted": 131,
    "git_staged_renamed": 141,  # purple
    "git_unstaged_renamed": 97,
    "git_staged_copied": 73,  # cyan
    "git_unstaged_copied": 66,
    "git_staged_other": 220,  # conflicts, type changes
    "git_unstaged_other": 136,
    "git_untracked": 245,  # light gray
    "git_ignored": 240,  # dark gray
}

FILE_COLORS = {
    "directory": "\x1b[34m",
    "executable": "\x1b[32m",
    "symlink": "\x1b[36m",
}


def present(status: str) -> Presentation:
    """Map a display status character to its color token and glyph.

    Uppercase letters are staged changes (solid dot), lowercase letters are
    unstaged changes (hollow dot).  Codes outside the usual alphabet keep that
    convention; anything else is treated as clean.
    """
    presentation = _PRESENTATIONS.get(status)
    if presentation is not None:
        return presentation
    if len(status) == 1 and status.isalpha():
        if status.isupper():
            return Presentation("git_staged_other", STAGED_GLYPH)
        return Presentation("git_unstaged_other", UNSTAGED_GLYPH)
    return CLEAN_PRESENTATION


def ansi_for_token(
    token: Optional[str], overrides: Optional[Mapping[str, int]] = None
) -> str:
    """Return the escape sequence for a color token ("" for no color)."""
    if token is None:
        return ""
    number = (overrides or {}).get(token, GIT_COLORS.get(token))
    if number is None:
        return ""
    return f"\x1b[38;5;{number}m"


def colorize(text: str, escape: str) -> str:
    """Wrap ``text`` in ``escape`` and a reset, or return it unchanged."""
    if not escape:
        return text
    return f"{escape}{text}{RESET}"


def get_file_color(record: FileRecord) -> str:
    """Return the escape sequence used for the record's name."""
    if record.is_symlink:
        return FILE_COLORS["symlink"]
    if record.is_dir:
        return FILE_COLORS["directory"]
    if record.is_executable:
        return FILE_COLORS["executable"]
    return ""


__all__ = [
    "FILE_COLORS",
    "GIT_COLORS",
    "Presentation",
    "RESET",
    "ansi_for_token",
    "colorize",
    "get_file_color",
    "present",
]
