"""Directory listing with per-file git status."""

from .colors import present
from .git_status import StatusContext, StatusEntry, collect_git_status, lookup_status

__version__ = "0.3.0"
__all__ = [
    "StatusContext",
    "StatusEntry",
    "__version__",
    "collect_git_status",
    "lookup_status",
    "present",
]
