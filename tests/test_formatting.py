import stat
from datetime import datetime

from lg.formatting import (
    format_octal_mode,
    format_permissions,
    format_size,
    format_timestamp,
    truncate,
)


def test_format_size_scales_units():
    assert format_size(0) == "0B"
    assert format_size(512) == "512B"
    assert format_size(1024) == "1.0K"
    assert format_size(1536) == "1.5K"
    assert format_size(1048576) == "1.0M"
    assert format_size(3 * 1024 ** 3) == "3.0G"


def test_format_timestamp_short_format():
    timestamp = datetime(2024, 1, 2, 13, 45)
    assert format_timestamp(timestamp) == "Jan 02 13:45"


def test_format_permissions():
    assert format_permissions(stat.S_IFDIR | 0o755) == "drwxr-xr-x"
    assert format_permissions(stat.S_IFREG | 0o644) == "-rw-r--r--"
    assert format_permissions(stat.S_IFLNK | 0o777) == "lrwxrwxrwx"


def test_format_octal_mode():
    assert format_octal_mode(stat.S_IFREG | 0o644) == "0644"
    assert format_octal_mode(stat.S_IFDIR | 0o1777) == "1777"


def test_truncate():
    assert truncate("short", 16) == "short"
    assert truncate("averyveryverylongname", 10) == "averyvery~"
    assert truncate("anything", 0) == ""
