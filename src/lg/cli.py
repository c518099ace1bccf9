"""Command-line entry point for lg.

The flow of a run is short and linear:

1. Read command line arguments and the optional ``~/.lg.toml`` file.
2. Fold both into one immutable :class:`lg.config.Settings`.
3. List the directory, annotating each entry with its git status.
4. Print the result, or log crash information if something unexpected
   happened.
"""

from __future__ import annotations

import argparse
import copy
import io
import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from lg import __version__
from lg import config
from lg.config import DEFAULT_CONFIG, ConfigError, build_settings, load_config
from lg.git_status import current_branch
from lg.listing import ListingError, build_listing
from lg.render import render

logger = logging.getLogger(__name__)

# Crash dump file location
CRASH_LOG_FILE = Path.home() / "lg.crash.txt"

# 128 + SIGPIPE, what a shell reports for a process killed by a closed pipe
EXIT_BROKEN_PIPE = 141


def write_crash_log(exception: BaseException) -> None:
    """Append a detailed crash report to :data:`CRASH_LOG_FILE`."""
    try:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        crash_info = f"""
================================================================================
lg Crash Report
================================================================================
Timestamp: {timestamp}
Version: {__version__}
Python: {sys.version}
Platform: {sys.platform}

Exception Type: {type(exception).__name__}
Exception Message: {str(exception)}

Traceback:
{traceback.format_exc()}
================================================================================
"""
        with open(CRASH_LOG_FILE, "a") as f:
            f.write(crash_info)

        print("lg crashed unexpectedly!", file=sys.stderr)
        print(f"   Crash details saved to: {CRASH_LOG_FILE}", file=sys.stderr)
    except OSError:
        # If we can't even write the crash log, just print to stderr
        print("lg crashed and could not write crash log!", file=sys.stderr)
        traceback.print_exc()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Turn the command-line text into structured information.

    Flags that can also be set in the configuration file default to ``None``
    so that "not given" can be told apart from "given".
    """
    parser = argparse.ArgumentParser(
        prog="lg",
        description="List directory contents with git status information.",
        epilog=(
            "Git status symbols: [●] staged  [○] unstaged  [?] untracked  [!] ignored"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version number and exit.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help=(
            "Directory to list (default: current directory), or the names of "
            "the entries to show, e.g. src/*.py."
        ),
    )
    parser.add_argument(
        "-a", "--all", action="store_true", default=None, help="Show hidden files."
    )
    sort_group = parser.add_mutually_exclusive_group()
    sort_group.add_argument(
        "-n",
        "--name",
        dest="sort",
        action="store_const",
        const="name",
        help="Sort alphabetically by name (default: by modification time).",
    )
    sort_group.add_argument(
        "-s",
        "--size",
        dest="sort",
        action="store_const",
        const="size",
        help="Sort by size, largest first.",
    )
    sort_group.add_argument(
        "-T",
        "--time",
        dest="sort",
        action="store_const",
        const="time",
        help="Sort by modification time, newest last.",
    )
    sort_group.add_argument(
        "-X",
        "--extension",
        dest="sort",
        action="store_const",
        const="extension",
        help="Sort by file extension.",
    )
    sort_group.add_argument(
        "-U",
        "--unsorted",
        dest="sort",
        action="store_const",
        const="none",
        help="Do not sort; list entries in directory order.",
    )
    parser.add_argument(
        "-r", "--reverse", action="store_true", help="Reverse the sort order."
    )
    parser.add_argument(
        "-t",
        "--type",
        dest="group_by_type",
        action="store_true",
        default=None,
        help="Group by type: directories first, then files by extension.",
    )
    parser.add_argument(
        "-d",
        "--dir-sizes",
        dest="dir_sizes",
        action="store_true",
        default=None,
        help="Show the size of directory contents (may be slow).",
    )
    parser.add_argument(
        "-i",
        "--inode",
        dest="inodes",
        action="store_true",
        default=None,
        help="Show inode numbers.",
    )
    parser.add_argument(
        "-l",
        dest="detail",
        action="count",
        default=0,
        help="Standard detail level (permissions, owner); -ll for full detail.",
    )
    parser.add_argument(
        "-o",
        dest="omit_group",
        action="store_true",
        default=None,
        help="Leave out the group column.",
    )
    parser.add_argument(
        "-g",
        dest="omit_owner",
        action="store_true",
        default=None,
        help="Leave out the owner column.",
    )
    indicator_group = parser.add_mutually_exclusive_group()
    indicator_group.add_argument(
        "-F",
        "--classify",
        dest="indicators",
        action="store_const",
        const="classify",
        help="Append type indicators (/ directories, * executables, @ symlinks).",
    )
    indicator_group.add_argument(
        "-p",
        dest="indicators",
        action="store_const",
        const="slash",
        help="Append / to directory names.",
    )
    parser.add_argument(
        "-1",
        dest="one_column",
        action="store_true",
        default=None,
        help="Print names only, one per line.",
    )

    format_group = parser.add_mutually_exclusive_group()
    format_group.add_argument(
        "--json",
        dest="output_format",
        action="store_const",
        const="json",
        help="Output in JSON format.",
    )
    format_group.add_argument(
        "--porcelain",
        dest="output_format",
        action="store_const",
        const="porcelain",
        help="Machine-readable output.",
    )
    parser.add_argument(
        "--branch", action="store_true", default=None, help="Show the current git branch."
    )
    parser.add_argument(
        "--legend", action="store_true", default=None, help="Show the git status legend."
    )
    parser.add_argument(
        "--no-git", action="store_true", help="Do not query git status."
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output."
    )
    parser.add_argument(
        "--git-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Give up on git after this many seconds (default: wait).",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Log diagnostics to stderr."
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Write a default configuration file and exit.",
    )
    return parser.parse_args(argv)


def _write_default_config() -> int:
    if config.create_default_config():
        print(f"Wrote default configuration to {config.CONFIG_FILE}")
        return 0
    if config.CONFIG_FILE.exists():
        print(f"Configuration already exists: {config.CONFIG_FILE}")
        return 0
    return 1


def _silence_stdout() -> None:
    """Point stdout at the null device so the flush at exit cannot fail again."""
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, sys.stdout.fileno())
    except (AttributeError, OSError, ValueError):
        logger.debug("stdout has no file descriptor to redirect")
    finally:
        os.close(devnull)


def _load_config() -> dict:
    try:
        return load_config()
    except ConfigError as err:
        print(f"Warning: {err}", file=sys.stderr)
        print("   Using default configuration instead", file=sys.stderr)
        return copy.deepcopy(DEFAULT_CONFIG)


def main(argv: Optional[List[str]] = None) -> int:
    """List a directory and return the process exit code."""
    try:
        args = parse_args(argv)

        if args.debug:
            logging.basicConfig(
                level=logging.DEBUG,
                stream=sys.stderr,
                format="%(name)s: %(message)s",
            )

        if args.write_config:
            return _write_default_config()

        settings = build_settings(
            args, _load_config(), stdout_is_tty=sys.stdout.isatty()
        )

        records, context = build_listing(settings)

        branch = None
        if settings.show_branch and context is not None:
            branch = current_branch(settings.directory, timeout=settings.git_timeout)

        if isinstance(sys.stdout, io.TextIOWrapper):
            # Undecodable file names are printed back as their original bytes.
            sys.stdout.reconfigure(errors="surrogateescape")
        sys.stdout.write(
            render(records, settings, branch=branch, git_available=context is not None)
        )
        sys.stdout.flush()
        return 0

    except (ListingError, ConfigError) as err:
        print(f"lg: {err}", file=sys.stderr)
        return 1
    except BrokenPipeError:
        # The reader went away early, e.g. `lg | head`
        _silence_stdout()
        return EXIT_BROKEN_PIPE
    except KeyboardInterrupt:
        # User pressed Ctrl+C - this is a normal exit, don't log as crash
        print("\nInterrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        # Unexpected exception - log it and exit
        write_crash_log(e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
