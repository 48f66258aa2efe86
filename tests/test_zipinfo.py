# Copyright 2025 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for ZipInfo helpers of build cache archive entries."""

from __future__ import annotations

import stat
import struct
import time
from zipfile import ZipInfo

from build_cache_libs.archive import LINK_MODE, MSDOS_CREATE_SYSTEM
from build_cache_libs.archive._zipinfo import (
    DOS_MAX_DATE_TIME,
    DOS_MIN_DATE_TIME,
    EXT_TIMESTAMP_EXTRA_ID,
    build_mtime_extra,
    entry_mtime_ms,
    entry_unix_mode,
    is_unix_symlink,
    make_zipinfo,
    parse_mtime_ms,
    to_dos_date_time,
)
from tests.conftest import SAMPLE_MTIME_MS


class TestMtimeExtraFields:
    def test_millisecond_precision(self):
        assert parse_mtime_ms(build_mtime_extra(SAMPLE_MTIME_MS)) == SAMPLE_MTIME_MS

    def test_before_unix_epoch(self):
        assert parse_mtime_ms(build_mtime_extra(-1_500)) == -1_500

    def test_ext_timestamp_only(self):
        """Fallback to Info-ZIP extended timestamp when NTFS field is absent."""
        _extra = struct.pack("<HHBi", EXT_TIMESTAMP_EXTRA_ID, 5, 0x01, 1_600_000_000)
        assert parse_mtime_ms(_extra) == 1_600_000_000_000

    def test_unknown_fields_skipped(self):
        _unknown = struct.pack("<HH", 0xCAFE, 3) + b"abc"
        _extra = _unknown + build_mtime_extra(SAMPLE_MTIME_MS)
        assert parse_mtime_ms(_extra) == SAMPLE_MTIME_MS

    def test_no_timestamp_field(self):
        assert parse_mtime_ms(b"") is None
        assert parse_mtime_ms(struct.pack("<HH", 0xCAFE, 0)) is None

    def test_dos_date_time_fallback(self):
        _zinfo = ZipInfo("a.txt", date_time=(2020, 1, 2, 3, 4, 6))
        _expected = int(time.mktime((2020, 1, 2, 3, 4, 6, 0, 0, -1))) * 1000
        assert entry_mtime_ms(_zinfo) == _expected


class TestDosDateTime:
    def test_in_range(self):
        _mtime_ms = SAMPLE_MTIME_MS
        assert to_dos_date_time(_mtime_ms) == time.localtime(_mtime_ms / 1000)[:6]

    def test_clamped(self):
        assert to_dos_date_time(0) == DOS_MIN_DATE_TIME
        assert to_dos_date_time(5_000_000_000_000) == DOS_MAX_DATE_TIME


class TestMakeZipInfo:
    def test_with_unix_mode(self):
        _zinfo = make_zipinfo(
            "sub/a.txt", mtime_ms=SAMPLE_MTIME_MS, unix_mode=stat.S_IFREG | 0o640
        )
        assert entry_unix_mode(_zinfo) == stat.S_IFREG | 0o640
        assert entry_mtime_ms(_zinfo) == SAMPLE_MTIME_MS
        assert not is_unix_symlink(_zinfo)

    def test_symlink(self):
        _zinfo = make_zipinfo("link", mtime_ms=SAMPLE_MTIME_MS, unix_mode=LINK_MODE)
        assert is_unix_symlink(_zinfo)

    def test_without_unix_mode(self):
        _zinfo = make_zipinfo("a.txt", mtime_ms=SAMPLE_MTIME_MS)
        assert _zinfo.create_system == MSDOS_CREATE_SYSTEM
        assert entry_unix_mode(_zinfo) is None
        assert not is_unix_symlink(_zinfo)
