"""Directory enumeration and file records."""

from __future__ import annotations

import grp
import logging
import os
import pwd
import stat
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from lg.config import Settings
from lg.git_status import CLEAN, StatusContext, collect_git_status, lookup_status
from lg.modes import IndicatorStyle, SortOrder

logger = logging.getLogger(__name__)

CURRENT_DIR = "."


class ListingError(Exception):
    """Raised when the requested directory cannot be listed."""


def _get_owner_name(uid: int) -> str:
    """Convert UID to username, fallback to UID string."""
    try:
        return pwd.getpwuid(uid).pw_name
    except (KeyError, AttributeError):
        return str(uid)


def _get_group_name(gid: int) -> str:
    """Convert GID to group name, fallback to GID string."""
    try:
        return grp.getgrgid(gid).gr_name
    except (KeyError, AttributeError):
        return str(gid)


@dataclass
class FileRecord:
    name: str
    is_dir: bool = False
    is_symlink: bool = False
    is_executable: bool = False
    size: int = 0
    modified: datetime = datetime.fromtimestamp(0)
    mode: int = 0
    uid: int = 0
    gid: int = 0
    inode: int = 0
    owner: str = ""
    group: str = ""
    git_status: str = CLEAN

    @property
    def kind(self) -> str:
        """One of ``directory``, ``symlink``, ``executable`` or ``file``."""
        if self.is_symlink:
            return "symlink"
        if self.is_dir:
            return "directory"
        if self.is_executable:
            return "executable"
        return "file"

    @property
    def extension(self) -> str:
        """Final suffix including the dot; empty for directories and dotfiles."""
        if self.is_dir:
            return ""
        return os.path.splitext(self.name)[1]

    def display_name(self, indicators: IndicatorStyle = IndicatorStyle.NONE) -> str:
        """Name with an ``ls -F`` or ``ls -p`` style type suffix."""
        if indicators is IndicatorStyle.CLASSIFY:
            suffix = {"symlink": "@", "directory": "/", "executable": "*"}.get(self.kind, "")
        elif indicators is IndicatorStyle.SLASH and self.kind == "directory":
            suffix = "/"
        else:
            suffix = ""
        return f"{self.name}{suffix}"


def _record_from_stat(name: str, stat_info: os.stat_result) -> FileRecord:
    mode = stat_info.st_mode
    is_dir = stat.S_ISDIR(mode)
    return FileRecord(
        name=name,
        is_dir=is_dir,
        is_symlink=stat.S_ISLNK(mode),
        is_executable=not is_dir and bool(mode & stat.S_IXUSR),
        size=stat_info.st_size,
        modified=datetime.fromtimestamp(stat_info.st_mtime),
        mode=mode,
        uid=stat_info.st_uid,
        gid=stat_info.st_gid,
        inode=stat_info.st_ino,
        owner=_get_owner_name(stat_info.st_uid),
        group=_get_group_name(stat_info.st_gid),
    )


def build_record(entry: os.DirEntry) -> Optional[FileRecord]:
    """Construct a record from a directory entry without following symlinks."""
    try:
        stat_info = entry.stat(follow_symlinks=False)
    except OSError as err:
        logger.debug("Skipping %s: %s", entry.path, err)
        return None
    return _record_from_stat(entry.name, stat_info)


def _normalize(name: str) -> str:
    # macOS file systems hand out decomposed names, shells pass composed ones.
    return unicodedata.normalize("NFC", name)


def collect_entries(
    directory: Union[str, Path],
    *,
    show_all: bool = False,
    file_filters: Iterable[str] = (),
) -> List[FileRecord]:
    """Return a record for every entry of ``directory``.

    Hidden names (starting with ``.``) are left out unless ``show_all`` is set
    or the name is one of ``file_filters``.  When filters are given only the
    entries they name are kept; names are compared after Unicode
    normalization.  Entries that vanish or cannot be stat'ed while listing
    are skipped.
    """
    wanted = {_normalize(name) for name in file_filters}
    records: List[FileRecord] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if wanted:
                    if _normalize(entry.name) not in wanted:
                        continue
                elif not show_all and entry.name.startswith("."):
                    continue
                record = build_record(entry)
                if record is not None:
                    records.append(record)
    except FileNotFoundError as err:
        raise ListingError(f"Directory not found: {directory}") from err
    except NotADirectoryError as err:
        raise ListingError(f"Not a directory: {directory}") from err
    except PermissionError as err:
        raise ListingError(f"Permission denied reading directory: {directory}") from err
    except OSError as err:
        raise ListingError(f"Cannot read directory {directory}: {err}") from err
    return records


def directory_size(path: Union[str, Path]) -> int:
    """Total apparent size of the files below ``path``.

    Symlinks are counted as links and never followed.  Subdirectories that
    cannot be read are left out of the total.
    """
    total = 0
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        total += directory_size(entry.path)
                    else:
                        total += entry.stat(follow_symlinks=False).st_size
                except OSError as err:
                    logger.debug("Cannot stat %s: %s", entry.path, err)
    except OSError as err:
        logger.debug("Cannot read %s: %s", path, err)
    return total


def add_directory_sizes(records: List[FileRecord], directory: Union[str, Path]) -> None:
    """Replace the size of every directory record with the size of its contents."""
    for record in records:
        if record.is_dir:
            path = directory if record.name == CURRENT_DIR else os.path.join(directory, record.name)
            record.size = directory_size(path)


def current_directory_record(directory: Union[str, Path]) -> FileRecord:
    """Record standing for the listed directory itself, named ``.``."""
    try:
        stat_info = os.stat(directory)
    except OSError as err:
        raise ListingError(f"Cannot read directory {directory}: {err}") from err
    return _record_from_stat(CURRENT_DIR, stat_info)


def type_group(record: FileRecord) -> Tuple[bool, str]:
    """Group key used by ``--type``: directories first, then files by extension."""
    return (not record.is_dir, record.extension)


def _name_key(record: FileRecord) -> Tuple[str, str]:
    return (record.name.lower(), record.name)


def _extension_key(record: FileRecord):
    extension = os.path.splitext(record.name)[1]
    return (extension != "", extension, _name_key(record))


_SORT_KEYS = {
    SortOrder.TIME: lambda record: (record.modified, _name_key(record)),
    SortOrder.NAME: _name_key,
    SortOrder.SIZE: lambda record: (-record.size, _name_key(record)),
    SortOrder.EXTENSION: _extension_key,
}


def sort_records(
    records: List[FileRecord],
    order: SortOrder = SortOrder.TIME,
    reverse: bool = False,
    group_by_type: bool = False,
) -> List[FileRecord]:
    """Return ``records`` in display order.

    ``order`` is one of time (oldest first, newest last), name
    (case-insensitive), size (largest first), extension (names without an
    extension first) or none (directory order, never reversed).  With
    ``group_by_type`` directories come first and files are grouped by
    extension before ``order`` applies within each group.
    """
    if order is SortOrder.NONE:
        return list(records)

    key = _SORT_KEYS[order]
    if group_by_type:
        result = sorted(records, key=lambda record: (type_group(record), key(record)))
    else:
        result = sorted(records, key=key)
    if reverse:
        result.reverse()
    return result


def attach_git_status(records: List[FileRecord], context: Optional[StatusContext]) -> None:
    """Fill in ``git_status`` on every record from the status snapshot."""
    for record in records:
        if record.name == CURRENT_DIR:
            continue
        record.git_status = lookup_status(context, record.name, is_dir=record.is_dir)


def build_listing(settings: Settings) -> Tuple[List[FileRecord], Optional[StatusContext]]:
    """Enumerate, annotate and sort the directory named in ``settings``."""
    records = collect_entries(
        settings.directory,
        show_all=settings.show_all,
        file_filters=settings.file_filters,
    )
    if settings.dir_sizes:
        records.insert(0, current_directory_record(settings.directory))
        add_directory_sizes(records, settings.directory)

    context: Optional[StatusContext] = None
    if settings.git_enabled:
        context = collect_git_status(
            settings.directory,
            limit=settings.status_buffer_limit,
            timeout=settings.git_timeout,
        )
    attach_git_status(records, context)

    ordered = sort_records(
        records, settings.sort_order, settings.reverse, settings.group_by_type
    )
    return ordered, context


__all__ = [
    "CURRENT_DIR",
    "FileRecord",
    "ListingError",
    "add_directory_sizes",
    "attach_git_status",
    "build_listing",
    "build_record",
    "collect_entries",
    "current_directory_record",
    "directory_size",
    "sort_records",
    "type_group",
]
