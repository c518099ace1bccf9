"""Run external commands with a bounded stdout buffer.

Commands are always passed as an argument vector straight to process
creation; no shell is involved, so directory and file names can never be
interpreted as shell syntax.  Directory names only travel through ``cwd``.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Mapping, Optional, Sequence, Union, cast

logger = logging.getLogger(__name__)

# Ceiling for captured stdout.  Output past this point is read and discarded.
STATUS_BUFFER_LIMIT = 64 * 1024

_DRAIN_CHUNK = 8192


@dataclass(frozen=True)
class CommandResult:
    """Outcome of :func:`run_command`.

    ``output`` is empty whenever ``success`` is false.  ``truncated`` is set
    when the command wrote more than the buffer limit.
    """

    output: bytes
    success: bool
    truncated: bool = False


FAILED = CommandResult(output=b"", success=False)


def run_command(
    args: Sequence[str],
    cwd: Union[str, Path, None] = None,
    *,
    limit: int = STATUS_BUFFER_LIMIT,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``args`` and capture at most ``limit`` bytes of stdout.

    Args:
        args: Fixed argument vector, ``args[0]`` is looked up on ``PATH``.
        cwd: Working directory for the child.
        limit: Maximum number of stdout bytes kept.
        timeout: Optional deadline in seconds.  When it elapses the child is
            killed and the call reports failure.  Without a deadline a hung
            child blocks the caller.
        env: Extra environment variables layered over the current process
            environment.

    Returns:
        A :class:`CommandResult`.  Failure to start the process (for example
        a missing executable) is reported as an unsuccessful result rather
        than raised.
    """
    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)

    try:
        proc = subprocess.Popen(
            list(args),
            cwd=None if cwd is None else str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            env=child_env,
        )
    except OSError as err:
        logger.debug("Could not start %s: %s", args[0], err)
        return FAILED

    timer: Optional[threading.Timer] = None
    # Popen's context manager closes the pipe and reaps the child on every
    # exit path, including exceptions raised while reading.
    with proc:
        if timeout:
            timer = threading.Timer(timeout, proc.kill)
            timer.daemon = True
            timer.start()
        try:
            stdout = cast(IO[bytes], proc.stdout)
            output = stdout.read(max(limit, 0))
            truncated = False
            # Keep the pipe flowing so the child can exit, but drop the data.
            while stdout.read(_DRAIN_CHUNK):
                truncated = True
            returncode = proc.wait()
        finally:
            if timer is not None:
                timer.cancel()

    if returncode != 0:
        logger.debug("%s exited with status %s", " ".join(args), returncode)
        return FAILED
    if truncated:
        logger.debug(
            "%s wrote more than %d bytes; output truncated", " ".join(args), limit
        )
    return CommandResult(output=output, success=True, truncated=truncated)


__all__ = ["CommandResult", "STATUS_BUFFER_LIMIT", "run_command"]
