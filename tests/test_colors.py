"""Tests for status presentation and color helpers."""

from lg.colors import (
    GIT_COLORS,
    RESET,
    Presentation,
    ansi_for_token,
    colorize,
    get_file_color,
    present,
)
from lg.listing import FileRecord


def test_staged_codes_use_solid_glyph():
    for code in "MADRC":
        assert present(code).glyph == "●"


def test_unstaged_codes_use_hollow_glyph():
    for code in "madrc":
        assert present(code).glyph == "○"


def test_special_codes():
    assert present("?") == Presentation("git_untracked", "?")
    assert present("!") == Presentation("git_ignored", "!")


def test_clean_has_no_color_and_no_glyph():
    assert present(" ") == Presentation(None, "")


def test_every_code_has_a_distinct_token():
    tokens = [present(code).color_token for code in "MmAaDdRrCc?!"]
    assert len(set(tokens)) == len(tokens)
    assert all(token in GIT_COLORS for token in tokens)


def test_unknown_codes_follow_case_convention():
    assert present("U") == Presentation("git_staged_other", "●")
    assert present("t") == Presentation("git_unstaged_other", "○")
    assert present("#") == Presentation(None, "")
    assert present("") == Presentation(None, "")


def test_ansi_for_token():
    assert ansi_for_token("git_staged_modified") == "\x1b[38;5;214m"
    assert ansi_for_token("git_untracked") == "\x1b[38;5;245m"
    assert ansi_for_token(None) == ""
    assert ansi_for_token("no_such_token") == ""


def test_ansi_for_token_with_override():
    overrides = {"git_staged_modified": 202}
    assert ansi_for_token("git_staged_modified", overrides) == "\x1b[38;5;202m"
    assert ansi_for_token("git_staged_added", overrides) == "\x1b[38;5;34m"


def test_colorize():
    assert colorize("text", "") == "text"
    assert colorize("text", "\x1b[34m") == f"\x1b[34mtext{RESET}"


def test_get_file_color_by_kind():
    assert get_file_color(FileRecord(name="d", is_dir=True)) == "\x1b[34m"
    assert get_file_color(FileRecord(name="l", is_symlink=True)) == "\x1b[36m"
    assert get_file_color(FileRecord(name="x", is_executable=True)) == "\x1b[32m"
    assert get_file_color(FileRecord(name="f")) == ""
