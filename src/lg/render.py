"""Turn annotated file records into text.

Three formats are supported: the human oriented ``normal`` table (three
detail levels, optional colors), a ``json`` array and a line based
``porcelain`` format meant for scripts.
"""

from __future__ import annotations

import json
from typing import List, Optional

from lg.colors import ansi_for_token, colorize, get_file_color, present
from lg.config import Settings
from lg.formatting import (
    format_octal_mode,
    format_permissions,
    format_size,
    format_timestamp,
    truncate,
)
from lg.listing import FileRecord, type_group
from lg.modes import DetailLevel, OutputFormat

LEGEND = "Git Status: [●]=Staged [○]=Unstaged [?]=Untracked"

RULE = "─"

NAME_WIDTH = 30
OWNER_WIDTH = 16
INODE_WIDTH = 9

GIT_HEADER = " Git  "
INODE_HEADER = f"{'Inode':>{INODE_WIDTH}} "
OWNER_HEADER = f"{'Owner':<{OWNER_WIDTH}} "
GROUP_HEADER = f"{'Group':<{OWNER_WIDTH}} "

# Column titles left and right of the git column
_HEADER_LEADS = {
    DetailLevel.MINIMAL: "   Size  ",
    DetailLevel.STANDARD: "Permissions    Size  ",
    DetailLevel.FULL: "Mode       Size  ",
}


def _pad(text: str, visible: str, width: int) -> str:
    """Left-align ``text`` whose printed form is ``visible`` (no escapes)."""
    return text + " " * max(width - len(visible), 0)


def _size_column(record: FileRecord, settings: Settings) -> str:
    if record.is_dir and not settings.dir_sizes:
        return f"{'-':>7}"
    return f"{format_size(record.size):>7}"


def _git_column(record: FileRecord, settings: Settings) -> str:
    presentation = present(record.git_status)
    glyph = f" {presentation.glyph or ' '}"
    if not settings.use_color:
        return glyph
    return colorize(glyph, ansi_for_token(presentation.color_token, settings.color_overrides))


def _name_column(record: FileRecord, settings: Settings) -> str:
    name = record.display_name(settings.indicators)
    if not settings.use_color:
        return name
    return colorize(name, get_file_color(record))


def _header_tail(settings: Settings) -> str:
    if settings.detail_level is DetailLevel.STANDARD:
        if settings.omit_owner:
            return "Modified     Name"
        return f"Modified     {'Name':<{NAME_WIDTH}}  Owner"
    if settings.detail_level is DetailLevel.FULL:
        owner = "" if settings.omit_owner else OWNER_HEADER
        group = "" if settings.omit_group else GROUP_HEADER
        return f"{owner}{group}Modified     Name"
    return "Modified     Name"


def format_header(settings: Settings, show_git: bool) -> List[str]:
    """Return the header line and the rule underneath it."""
    inode = INODE_HEADER if settings.show_inodes else ""
    git = GIT_HEADER if show_git else ""
    header = f"{inode}{_HEADER_LEADS[settings.detail_level]}{git}{_header_tail(settings)}"
    return [header, RULE * (len(header) + 4)]


def format_record(record: FileRecord, settings: Settings, show_git: bool = True) -> str:
    """Format one record as a line of the ``normal`` table."""
    name = _name_column(record, settings)
    if settings.one_column:
        return name

    inode = f"{record.inode:>{INODE_WIDTH}} " if settings.show_inodes else ""
    size = _size_column(record, settings)
    git = f"{_git_column(record, settings)}   " if show_git else ""
    modified = f"{format_timestamp(record.modified):<12}"

    if settings.detail_level is DetailLevel.STANDARD:
        permissions = f"{format_permissions(record.mode):<10}"
        if settings.omit_owner:
            return f"{inode}{permissions} {size}  {git}{modified} {name}"
        owner = truncate(record.owner, OWNER_WIDTH)
        padded_name = _pad(name, record.display_name(settings.indicators), NAME_WIDTH)
        return f"{inode}{permissions} {size}  {git}{modified} {padded_name}  {owner}"
    if settings.detail_level is DetailLevel.FULL:
        owner = "" if settings.omit_owner else f"{truncate(record.owner, OWNER_WIDTH):<{OWNER_WIDTH}} "
        group = "" if settings.omit_group else f"{truncate(record.group, OWNER_WIDTH):<{OWNER_WIDTH}} "
        return f"{inode}{format_octal_mode(record.mode):<7} {size}  {git}{owner}{group}{modified} {name}"
    return f"{inode}{size}  {git}{modified} {name}"


def render_normal(
    records: List[FileRecord],
    settings: Settings,
    *,
    branch: Optional[str] = None,
    show_git: bool = True,
) -> str:
    lines: List[str] = []
    if branch:
        lines.extend([f"Branch: {branch}", ""])
    if settings.show_legend:
        lines.extend([LEGEND, ""])
    if not settings.one_column:
        lines.extend(format_header(settings, show_git))

    previous_group = None
    for record in records:
        if settings.group_by_type:
            group = type_group(record)
            # Blank line between directories and each run of one extension
            if previous_group is not None and group != previous_group:
                lines.append("")
            previous_group = group
        lines.append(format_record(record, settings, show_git))
    return "\n".join(lines) + "\n"


def render_json(records: List[FileRecord]) -> str:
    payload = [
        {
            "name": record.name,
            "size": record.size,
            "mode": format_octal_mode(record.mode),
            "git": record.git_status,
            "type": record.kind,
        }
        for record in records
    ]
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def render_porcelain(records: List[FileRecord]) -> str:
    return "".join(
        f"{format_octal_mode(record.mode)} {record.size} {record.git_status} {record.name}\n"
        for record in records
    )


def render(
    records: List[FileRecord],
    settings: Settings,
    *,
    branch: Optional[str] = None,
    git_available: bool = True,
) -> str:
    """Render ``records`` in the format selected by ``settings``."""
    if settings.output_format is OutputFormat.JSON:
        return render_json(records)
    if settings.output_format is OutputFormat.PORCELAIN:
        return render_porcelain(records)
    return render_normal(records, settings, branch=branch, show_git=git_available)


__all__ = [
    "LEGEND",
    "format_header",
    "format_record",
    "render",
    "render_json",
    "render_normal",
    "render_porcelain",
]
