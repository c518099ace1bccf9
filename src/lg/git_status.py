"""Batch git status collection and per-entry lookup.

The whole repository status is read once with ``git status --porcelain=v2``
and turned into a :class:`StatusContext`.  The directory listing then asks
the context for the status of each entry by bare name; the context adds the
path of the listing directory relative to the repository root before
matching.

Nothing in here raises for environment problems.  When git is missing, the
directory is not inside a repository, or a command fails, the caller simply
gets ``None`` back and lists files without status annotations.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from lg.runner import STATUS_BUFFER_LIMIT, run_command

logger = logging.getLogger(__name__)

ROOT_COMMAND = ("git", "rev-parse", "--show-toplevel")
STATUS_COMMAND = ("git", "status", "--porcelain=v2", "--untracked-files=normal")
BRANCH_COMMAND = ("git", "branch", "--show-current")

# Status reads must not take the index lock away from a concurrent git.
GIT_ENV = {"GIT_OPTIONAL_LOCKS": "0"}

CLEAN = " "
UNTRACKED = "?"
IGNORED = "!"

_NO_CHANGE = (".", " ")

# Number of space separated fields per record type, the path being the last.
#   1 XY sub mH mI mW hH hI path
#   2 XY sub mH mI mW hH hI Xscore path<TAB>origPath
#   u XY sub m1 m2 m3 mW h1 h2 h3 path
_FIELD_COUNTS = {"1": 9, "2": 10, "u": 11}

_SEPARATORS = {"/", os.sep}

_QUOTED_ESCAPE = re.compile(rb"\\([0-7]{3}|.)", re.DOTALL)
_C_ESCAPES = {
    b"a": b"\a",
    b"b": b"\b",
    b"t": b"\t",
    b"n": b"\n",
    b"v": b"\v",
    b"f": b"\f",
    b"r": b"\r",
}


@dataclass(frozen=True)
class StatusEntry:
    """One path reported by ``git status`` with its index/worktree codes."""

    path: str
    staged: str
    unstaged: str

    @property
    def display_status(self) -> str:
        """Collapse the code pair into a single character.

        A staged change wins and is returned as-is (uppercase).  Otherwise an
        unstaged change is returned lowercased.  With neither, the entry is
        clean.
        """
        if self.staged not in _NO_CHANGE:
            return self.staged
        if self.unstaged not in _NO_CHANGE:
            return self.unstaged.lower()
        return CLEAN


@dataclass(frozen=True)
class StatusContext:
    """Immutable snapshot of repository status for one listing directory."""

    entries: Tuple[StatusEntry, ...] = ()
    relative_prefix: str = ""
    _index: Dict[str, StatusEntry] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _untracked_dirs: Tuple[str, ...] = field(
        init=False, repr=False, compare=False, default=()
    )

    def __post_init__(self) -> None:
        index: Dict[str, StatusEntry] = {}
        for entry in self.entries:
            index.setdefault(entry.path, entry)
        untracked_dirs = tuple(
            path
            for path, entry in index.items()
            if path.endswith("/") and entry.staged == UNTRACKED
        )
        object.__setattr__(self, "entries", tuple(index.values()))
        object.__setattr__(self, "_index", index)
        object.__setattr__(self, "_untracked_dirs", untracked_dirs)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, path: str) -> Optional[StatusEntry]:
        """Return the entry stored under the repository-relative ``path``."""
        return self._index.get(path)

    def lookup(self, name: str, is_dir: bool = False) -> str:
        """Return the display status for ``name`` in the listing directory.

        Never fails: anything git did not report is clean (``" "``).
        """
        key = f"{self.relative_prefix}{name}"
        entry = self._index.get(key)
        if entry is None and is_dir:
            # git reports untracked directories with a trailing slash
            entry = self._index.get(f"{key}/")
        if entry is not None:
            return entry.display_status
        for directory in self._untracked_dirs:
            if key.startswith(directory):
                return UNTRACKED
        return CLEAN


def lookup_status(
    context: Optional[StatusContext], name: str, is_dir: bool = False
) -> str:
    """Like :meth:`StatusContext.lookup` but also accepts a missing context."""
    if context is None:
        return CLEAN
    return context.lookup(name, is_dir=is_dir)


def _unquote(path: str) -> str:
    """Undo git's C-style quoting of unusual path names."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    raw = path[1:-1].encode("utf-8", errors="surrogateescape")

    def replace(match: "re.Match[bytes]") -> bytes:
        token = match.group(1)
        if len(token) == 3:
            value = int(token, 8)
            if value > 0xFF:
                return match.group(0)
            return bytes([value])
        return _C_ESCAPES.get(token, token)

    return _QUOTED_ESCAPE.sub(replace, raw).decode("utf-8", errors="surrogateescape")


def _parse_tracked(line: str) -> Optional[StatusEntry]:
    marker = line[0]
    field_count = _FIELD_COUNTS[marker]
    # Renames and copies append "<TAB>origPath"; only the new path matters.
    record = line.split("\t", 1)[0] if marker == "2" else line
    fields = record.split(" ", field_count - 1)
    if len(fields) != field_count or fields[0] != marker or len(fields[1]) != 2:
        return None
    path = _unquote(fields[-1])
    if not path:
        return None
    return StatusEntry(path=path, staged=fields[1][0], unstaged=fields[1][1])


def _parse_untracked(line: str) -> Optional[StatusEntry]:
    marker = line[0]
    if len(line) < 3 or line[1] != " ":
        return None
    path = _unquote(line[2:])
    if not path:
        return None
    return StatusEntry(path=path, staged=marker, unstaged=marker)


def _parse_line(line: str) -> Optional[StatusEntry]:
    marker = line[0]
    if marker in _FIELD_COUNTS:
        return _parse_tracked(line)
    if marker in (UNTRACKED, IGNORED):
        return _parse_untracked(line)
    return None


def parse_status(raw: Union[bytes, str]) -> List[StatusEntry]:
    """Parse ``git status --porcelain=v2`` output.

    Lines that do not have the expected shape are skipped so that one bad
    record never costs the rest of the snapshot.  When the same path shows up
    more than once, the first record wins.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="surrogateescape")

    entries: List[StatusEntry] = []
    seen = set()
    for line in raw.split("\n"):
        line = line.rstrip("\r")
        if not line or line.startswith("#"):
            continue
        entry = _parse_line(line)
        if entry is None:
            logger.debug("Skipping malformed status line: %r", line)
            continue
        if entry.path in seen:
            continue
        seen.add(entry.path)
        entries.append(entry)
    return entries


def compute_prefix(repo_root: str, current_dir: str) -> str:
    """Return the path of ``current_dir`` relative to ``repo_root``.

    The result ends with ``/`` so it can be glued directly in front of an
    entry name, or is empty when ``current_dir`` is the root itself (or not
    inside it at all).  Both arguments must already be canonical absolute
    paths; no filesystem access happens here.

    >>> compute_prefix("/r", "/r/sub")
    'sub/'
    >>> compute_prefix("/r", "/r")
    ''
    """
    if not repo_root or len(current_dir) <= len(repo_root):
        return ""
    if not current_dir.startswith(repo_root):
        return ""
    remainder = current_dir[len(repo_root):]
    if repo_root[-1] not in _SEPARATORS:
        if remainder[0] not in _SEPARATORS:
            # a sibling such as /rx next to /r
            return ""
        remainder = remainder[1:]
    remainder = remainder.strip("".join(_SEPARATORS))
    if os.sep != "/":
        remainder = remainder.replace(os.sep, "/")
    return f"{remainder}/" if remainder else ""


def _decode_line(output: bytes) -> str:
    return output.decode("utf-8", errors="surrogateescape").rstrip("\r\n")


def collect_git_status(
    directory: Union[str, Path],
    *,
    limit: int = STATUS_BUFFER_LIMIT,
    timeout: Optional[float] = None,
) -> Optional[StatusContext]:
    """Read the status of the repository containing ``directory``.

    Returns ``None`` when ``directory`` cannot be resolved, is not inside a
    git repository, or git itself is unavailable or fails.
    """
    try:
        current = Path(directory).resolve(strict=True)
    except (OSError, RuntimeError) as err:
        logger.debug("Cannot resolve %s: %s", directory, err)
        return None

    root_result = run_command(ROOT_COMMAND, cwd=current, timeout=timeout)
    if not root_result.success:
        logger.debug("%s is not inside a git repository", current)
        return None
    try:
        repo_root = Path(_decode_line(root_result.output)).resolve(strict=True)
    except (OSError, RuntimeError) as err:
        logger.debug("Cannot resolve repository root: %s", err)
        return None

    prefix = compute_prefix(str(repo_root), str(current))

    # Run from the root so every reported path is repository-relative.
    status_result = run_command(
        STATUS_COMMAND, cwd=repo_root, limit=limit, timeout=timeout, env=GIT_ENV
    )
    if not status_result.success:
        logger.debug("git status failed in %s", repo_root)
        return None

    output = status_result.output
    if status_result.truncated:
        # the last line was most likely cut in half
        output = output[: output.rfind(b"\n") + 1]

    return StatusContext(entries=tuple(parse_status(output)), relative_prefix=prefix)


def current_branch(
    directory: Union[str, Path], *, timeout: Optional[float] = None
) -> Optional[str]:
    """Return the checked out branch name, or ``None`` (detached HEAD, no git)."""
    result = run_command(BRANCH_COMMAND, cwd=directory, timeout=timeout)
    if not result.success:
        return None
    return _decode_line(result.output).strip() or None


__all__ = [
    "CLEAN",
    "StatusContext",
    "StatusEntry",
    "collect_git_status",
    "compute_prefix",
    "current_branch",
    "lookup_status",
    "parse_status",
]
