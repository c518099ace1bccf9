"""Configuration file management and the immutable run settings."""

from __future__ import annotations

import argparse
import copy
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore

import tomli_w

from lg.colors import GIT_COLORS
from lg.modes import DetailLevel, IndicatorStyle, OutputFormat, SortOrder
from lg.runner import STATUS_BUFFER_LIMIT

# Default configuration file location
CONFIG_FILE = Path(os.environ.get("LG_CONFIG", Path.home() / ".lg.toml"))

# Default configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    "display": {
        "detail_level": "minimal",
        "output_format": "normal",
        "show_all": False,
        "sort": "time",
        "group_by_type": False,
        "indicators": "none",
        "one_column": False,
        "show_inodes": False,
        "dir_sizes": False,
        "omit_owner": False,
        "omit_group": False,
        "show_branch": False,
        "show_legend": False,
        "color": True,
    },
    "git": {
        "enabled": True,
        "timeout": 0,
        "buffer_limit": STATUS_BUFFER_LIMIT,
    },
    "colors": {
        "git": {},
        # Format: {"git_staged_modified": 214}
    },
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or holds bad values."""


def load_config() -> Dict[str, Any]:
    """Load configuration from file or return defaults."""
    if not CONFIG_FILE.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(CONFIG_FILE, "rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as err:
        raise ConfigError(f"Cannot read configuration {CONFIG_FILE}: {err}") from err
    # Merge with defaults to ensure all keys exist
    return _merge_config(DEFAULT_CONFIG, config)


def save_config(config: Dict[str, Any]) -> None:
    """Save configuration to file."""
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "wb") as f:
            tomli_w.dump(config, f)
    except OSError as err:
        # Don't break the listing if config save fails, but inform the user
        print(f"Warning: Failed to save configuration to {CONFIG_FILE}: {err}", file=sys.stderr)


def _merge_config(default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """Merge user config with defaults, preserving user values."""
    result = copy.deepcopy(default)
    for key, value in user.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_config(result[key], value)
        else:
            result[key] = value
    return result


def create_default_config() -> bool:
    """Create default configuration file if it doesn't exist.

    Returns ``True`` when a new file was written.
    """
    if CONFIG_FILE.exists():
        return False

    save_config(DEFAULT_CONFIG)
    return CONFIG_FILE.exists()


@dataclass(frozen=True)
class Settings:
    """Everything one run needs, fixed before any work starts."""

    directory: Path = Path(".")
    file_filters: Tuple[str, ...] = ()
    detail_level: DetailLevel = DetailLevel.MINIMAL
    output_format: OutputFormat = OutputFormat.NORMAL
    show_all: bool = False
    sort_order: SortOrder = SortOrder.TIME
    reverse: bool = False
    group_by_type: bool = False
    indicators: IndicatorStyle = IndicatorStyle.NONE
    one_column: bool = False
    show_inodes: bool = False
    dir_sizes: bool = False
    omit_owner: bool = False
    omit_group: bool = False
    show_branch: bool = False
    show_legend: bool = False
    use_color: bool = True
    git_enabled: bool = True
    git_timeout: Optional[float] = None
    status_buffer_limit: int = STATUS_BUFFER_LIMIT
    color_overrides: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )


def _table(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"Invalid value for {name}: {value!r} (expected a table)")
    return value


def _enum_value(enum_cls, section: str, key: str, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(
            f"Invalid value for {section}.{key}: {value!r} (expected one of {choices})"
        ) from None


def _color_overrides(colors: Mapping[str, Any]) -> Mapping[str, int]:
    overrides: Dict[str, int] = {}
    for token, number in colors.items():
        if token not in GIT_COLORS:
            raise ConfigError(f"Unknown color token in colors.git: {token!r}")
        if isinstance(number, bool) or not isinstance(number, int) or not 0 <= number <= 255:
            raise ConfigError(f"colors.git.{token} must be a number between 0 and 255")
        overrides[token] = number
    return MappingProxyType(overrides)


def _pick(flag: Any, configured: Any) -> Any:
    """Command line flags win over configured values."""
    return configured if flag is None else flag


def resolve_targets(paths: Sequence[str]) -> Tuple[Path, Tuple[str, ...]]:
    """Split positional arguments into the directory to list and name filters.

    A single directory argument is listed.  Anything else names entries: when
    the first name carries a directory part (``lg src/*.py``) that directory
    is listed and only the base names are kept.  A single argument that does
    not exist at all is taken as the directory so the missing directory is
    reported.
    """
    if not paths:
        return Path("."), ()
    first = paths[0]
    if len(paths) == 1 and (os.path.isdir(first) or not os.path.lexists(first)):
        return Path(first).expanduser(), ()
    if "/" in first:
        directory = os.path.dirname(first) or "."
        return Path(directory).expanduser(), tuple(os.path.basename(path) for path in paths)
    return Path("."), tuple(paths)


def build_settings(
    args: argparse.Namespace,
    config: Mapping[str, Any],
    *,
    stdout_is_tty: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Combine parsed arguments and the loaded configuration into Settings."""
    environ = os.environ if environ is None else environ
    display = _table(config.get("display", {}), "display")
    git = _table(config.get("git", {}), "git")
    colors = _table(config.get("colors", {}), "colors")
    git_colors = _table(colors.get("git", {}), "colors.git")

    if args.detail:
        detail_level = DetailLevel.from_count(args.detail)
    else:
        detail_level = _enum_value(
            DetailLevel, "display", "detail_level", display.get("detail_level", "minimal")
        )
    output_format = _enum_value(
        OutputFormat,
        "display",
        "output_format",
        _pick(args.output_format, display.get("output_format", "normal")),
    )
    sort_order = _enum_value(
        SortOrder, "display", "sort", _pick(args.sort, display.get("sort", "time"))
    )
    indicators = _enum_value(
        IndicatorStyle,
        "display",
        "indicators",
        _pick(args.indicators, display.get("indicators", "none")),
    )

    timeout = _pick(args.git_timeout, git.get("timeout", 0))
    try:
        timeout = float(timeout) if timeout else None
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for git.timeout: {timeout!r}") from None

    buffer_limit = git.get("buffer_limit", STATUS_BUFFER_LIMIT)
    if isinstance(buffer_limit, bool) or not isinstance(buffer_limit, int) or buffer_limit <= 0:
        raise ConfigError(f"Invalid value for git.buffer_limit: {buffer_limit!r}")

    use_color = (
        not args.no_color
        and bool(display.get("color", True))
        and not environ.get("NO_COLOR")
        and stdout_is_tty
    )

    directory, file_filters = resolve_targets(args.paths)

    return Settings(
        directory=directory,
        file_filters=file_filters,
        detail_level=detail_level,
        output_format=output_format,
        show_all=bool(_pick(args.all, display.get("show_all", False))),
        sort_order=sort_order,
        reverse=bool(args.reverse),
        group_by_type=bool(_pick(args.group_by_type, display.get("group_by_type", False))),
        indicators=indicators,
        one_column=bool(_pick(args.one_column, display.get("one_column", False))),
        show_inodes=bool(_pick(args.inodes, display.get("show_inodes", False))),
        dir_sizes=bool(_pick(args.dir_sizes, display.get("dir_sizes", False))),
        omit_owner=bool(_pick(args.omit_owner, display.get("omit_owner", False))),
        omit_group=bool(_pick(args.omit_group, display.get("omit_group", False))),
        show_branch=bool(_pick(args.branch, display.get("show_branch", False))),
        show_legend=bool(_pick(args.legend, display.get("show_legend", False))),
        use_color=use_color,
        git_enabled=not args.no_git and bool(git.get("enabled", True)),
        git_timeout=timeout,
        status_buffer_limit=buffer_limit,
        color_overrides=_color_overrides(git_colors),
    )


__all__ = [
    "CONFIG_FILE",
    "ConfigError",
    "DEFAULT_CONFIG",
    "Settings",
    "build_settings",
    "create_default_config",
    "load_config",
    "resolve_targets",
    "save_config",
]
