"""Tests for the output renderers."""

import json
import stat
from datetime import datetime

from lg.config import Settings
from lg.listing import FileRecord
from lg.modes import DetailLevel, IndicatorStyle, OutputFormat
from lg.render import LEGEND, format_header, format_record, render

WHEN = datetime(2024, 3, 5, 9, 30)


def _records():
    return [
        FileRecord(
            name="src",
            is_dir=True,
            size=4096,
            modified=WHEN,
            mode=stat.S_IFDIR | 0o755,
            inode=1234,
            owner="alice",
            group="staff",
            git_status="?",
        ),
        FileRecord(
            name="main.c",
            size=1536,
            modified=WHEN,
            mode=stat.S_IFREG | 0o644,
            inode=99,
            owner="alice",
            group="staff",
            git_status="M",
        ),
        FileRecord(
            name="notes.txt",
            size=12,
            modified=WHEN,
            mode=stat.S_IFREG | 0o600,
            owner="bob",
            group="staff",
        ),
    ]


def test_minimal_record_without_color():
    settings = Settings(use_color=False)
    lines = [format_record(record, settings) for record in _records()]
    assert lines[0] == "      -   ?   Mar 05 09:30 src"
    assert lines[1] == "   1.5K   ●   Mar 05 09:30 main.c"
    assert lines[2] == "    12B" + " " * 7 + "Mar 05 09:30 notes.txt"


def test_minimal_record_without_git_column():
    settings = Settings(use_color=False)
    assert format_record(_records()[1], settings, show_git=False) == "   1.5K  Mar 05 09:30 main.c"


def test_type_indicators():
    directory = _records()[0]
    classify = Settings(use_color=False, indicators=IndicatorStyle.CLASSIFY)
    slash = Settings(use_color=False, indicators=IndicatorStyle.SLASH)
    assert format_record(directory, classify).endswith(" src/")
    assert format_record(directory, slash).endswith(" src/")

    script = FileRecord(name="run.sh", is_executable=True, modified=WHEN)
    assert format_record(script, classify).endswith(" run.sh*")
    assert format_record(script, slash).endswith(" run.sh")


def test_directory_sizes_replace_the_dash():
    directory = _records()[0]
    assert format_record(directory, Settings(use_color=False)).startswith("      -")
    assert format_record(directory, Settings(use_color=False, dir_sizes=True)).startswith("   4.0K")


def test_inode_column():
    settings = Settings(use_color=False, show_inodes=True)
    assert format_record(_records()[1], settings).startswith("       99    1.5K")
    header, _ = format_header(settings, show_git=True)
    assert header.startswith("    Inode    Size")


def test_one_column_prints_names_only():
    settings = Settings(use_color=False, one_column=True, indicators=IndicatorStyle.CLASSIFY)
    assert format_record(_records()[0], settings) == "src/"
    assert render(_records(), settings).splitlines() == ["src/", "main.c", "notes.txt"]


def test_standard_record():
    settings = Settings(use_color=False, detail_level=DetailLevel.STANDARD)
    line = format_record(_records()[1], settings)
    assert line.startswith("-rw-r--r--    1.5K   ●   Mar 05 09:30 main.c")
    assert line.endswith("  alice")
    assert line.index("alice") == line.index("main.c") + 32


def test_standard_record_without_owner():
    settings = Settings(use_color=False, detail_level=DetailLevel.STANDARD, omit_owner=True)
    assert format_record(_records()[1], settings).endswith("Mar 05 09:30 main.c")
    header, _ = format_header(settings, show_git=True)
    assert "Owner" not in header


def test_full_record():
    settings = Settings(use_color=False, detail_level=DetailLevel.FULL)
    line = format_record(_records()[0], settings)
    assert line.startswith("0755" + " " * 10 + "-   ?   alice")
    assert "staff" in line
    assert line.endswith("Mar 05 09:30 src")


def test_full_record_omits_owner_or_group():
    no_group = Settings(use_color=False, detail_level=DetailLevel.FULL, omit_group=True)
    line = format_record(_records()[1], no_group)
    assert "alice" in line and "staff" not in line
    header, _ = format_header(no_group, show_git=True)
    assert "Owner" in header and "Group" not in header

    no_owner = Settings(use_color=False, detail_level=DetailLevel.FULL, omit_owner=True)
    line = format_record(_records()[1], no_owner)
    assert "alice" not in line and "staff" in line

    neither = Settings(
        use_color=False, detail_level=DetailLevel.FULL, omit_owner=True, omit_group=True
    )
    assert format_record(_records()[1], neither).endswith("●   Mar 05 09:30 main.c")


def test_long_owner_and_group_are_cut_the_same_way():
    record = FileRecord(name="x", owner="a-very-long-user-name", group="a-very-long-group-name")
    standard = format_record(record, Settings(use_color=False, detail_level=DetailLevel.STANDARD))
    full = format_record(record, Settings(use_color=False, detail_level=DetailLevel.FULL))
    assert standard.endswith("a-very-long-use~")
    assert "a-very-long-use~ a-very-long-gro~ " in full


def test_colored_record_wraps_glyph_and_name():
    settings = Settings(use_color=True)
    line = format_record(_records()[1], settings)
    assert "\x1b[38;5;214m ●\x1b[0m" in line
    line = format_record(_records()[0], settings)
    assert "\x1b[34msrc\x1b[0m" in line


def test_colored_record_honours_overrides():
    settings = Settings(use_color=True, color_overrides={"git_staged_modified": 202})
    assert "\x1b[38;5;202m" in format_record(_records()[1], settings)


def test_padding_ignores_escape_sequences():
    directory = _records()[0]
    plain = format_record(directory, Settings(use_color=False, detail_level=DetailLevel.STANDARD))
    colored = format_record(directory, Settings(use_color=True, detail_level=DetailLevel.STANDARD))
    assert plain.endswith("  alice") and colored.endswith("  alice")
    plain_gap = plain.index("alice") - plain.index("src")
    colored_gap = colored.index("alice") - colored.index("src")
    assert colored_gap == plain_gap + len("\x1b[0m")


def test_header_variants():
    header, rule = format_header(Settings(), show_git=True)
    assert header == "   Size   Git  Modified     Name"
    assert set(rule) == {"─"}
    header, _ = format_header(Settings(detail_level=DetailLevel.FULL), show_git=False)
    assert header == "Mode       Size  Owner            Group            Modified     Name"
    header, _ = format_header(Settings(detail_level=DetailLevel.STANDARD), show_git=True)
    assert header.startswith("Permissions    Size   Git  Modified     Name ")
    assert header.index("Owner") == header.index("Name") + 32


def test_render_normal_with_branch_and_legend():
    settings = Settings(use_color=False, show_legend=True)
    output = render(_records(), settings, branch="main")
    lines = output.splitlines()
    assert lines[0] == "Branch: main"
    assert lines[1] == ""
    assert lines[2] == LEGEND
    assert lines[3] == ""
    assert "Git" in lines[4]
    assert len(lines) == 6 + len(_records())
    assert output.endswith("\n")


def test_render_groups_by_type_with_blank_lines():
    records = [
        FileRecord(name="docs", is_dir=True, modified=WHEN),
        FileRecord(name="src", is_dir=True, modified=WHEN),
        FileRecord(name="a.c", modified=WHEN),
        FileRecord(name="b.c", modified=WHEN),
        FileRecord(name="x.py", modified=WHEN),
    ]
    settings = Settings(use_color=False, one_column=True, group_by_type=True)
    assert render(records, settings).splitlines() == [
        "docs", "src", "", "a.c", "b.c", "", "x.py",
    ]


def test_render_json():
    settings = Settings(output_format=OutputFormat.JSON)
    payload = json.loads(render(_records(), settings))
    assert payload[1] == {"name": "main.c", "size": 1536, "mode": "0644", "git": "M", "type": "file"}
    assert payload[0]["type"] == "directory"
    assert payload[2]["git"] == " "


def test_render_json_empty():
    assert json.loads(render([], Settings(output_format=OutputFormat.JSON))) == []


def test_render_porcelain():
    settings = Settings(output_format=OutputFormat.PORCELAIN)
    assert render(_records(), settings).splitlines() == [
        "0755 4096 ? src",
        "0644 1536 M main.c",
        "0600 12   notes.txt",
    ]
