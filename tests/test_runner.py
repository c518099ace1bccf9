"""Tests for the bounded subprocess runner."""

import sys
import time
from pathlib import Path

from lg.runner import run_command


def _python(code: str) -> list:
    return [sys.executable, "-c", code]


def test_run_command_captures_stdout():
    result = run_command(_python("print('hello')"))
    assert result.success
    assert result.output.strip() == b"hello"
    assert not result.truncated


def test_run_command_uses_cwd(tmp_path: Path):
    result = run_command(_python("import os; print(os.getcwd())"), cwd=tmp_path)
    assert result.success
    assert Path(result.output.decode().strip()).resolve() == tmp_path.resolve()


def test_run_command_nonzero_exit_is_failure():
    result = run_command(_python("import sys; print('partial'); sys.exit(3)"))
    assert not result.success
    assert result.output == b""


def test_run_command_missing_executable_is_failure():
    result = run_command(["definitely-not-a-real-command-lg"])
    assert not result.success
    assert result.output == b""


def test_run_command_arguments_are_not_shell_interpreted(tmp_path: Path):
    marker = tmp_path / "pwned"
    result = run_command(
        _python("import sys; print(sys.argv[1])") + [f"x; touch {marker}"]
    )
    assert result.success
    assert result.output.strip() == f"x; touch {marker}".encode()
    assert not marker.exists()


def test_run_command_truncates_large_output():
    result = run_command(_python("import sys; sys.stdout.write('x' * 200000)"), limit=1024)
    assert result.success
    assert result.truncated
    assert result.output == b"x" * 1024


def test_run_command_output_exactly_at_limit_is_kept():
    result = run_command(_python("import sys; sys.stdout.write('y' * 64)"), limit=64)
    assert result.success
    assert result.output == b"y" * 64
    assert not result.truncated


def test_run_command_timeout_kills_child():
    start = time.monotonic()
    result = run_command(_python("import time; time.sleep(30)"), timeout=0.5)
    assert not result.success
    assert time.monotonic() - start < 20


def test_run_command_extra_environment():
    result = run_command(
        _python("import os; print(os.environ['LG_TEST_VALUE'])"),
        env={"LG_TEST_VALUE": "42"},
    )
    assert result.output.strip() == b"42"
