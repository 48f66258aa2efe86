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
"""Helpers for building and inspecting ZipInfo of build cache archive entries.

See https://pkware.cachefly.net/webdocs/casestudies/APPNOTE.TXT chapter 4.5
    and Info-ZIP's proginfo/extrafld.txt for the extra fields layout.
"""

from __future__ import annotations

import stat
import struct
import time
from typing import Optional
from zipfile import ZIP_DEFLATED, ZipInfo

from build_cache_libs.archive import MSDOS_CREATE_SYSTEM, UNIX_CREATE_SYSTEM

# NTFS extra field(0x000a), 100ns ticks since 1601-01-01
NTFS_EXTRA_ID = 0x000A
NTFS_TIMES_TAG = 0x0001
NTFS_EPOCH_OFFSET = 116_444_736_000_000_000
NTFS_TICKS_PER_MS = 10_000

# Info-ZIP extended timestamp extra field(0x5455), seconds since unix epoch
EXT_TIMESTAMP_EXTRA_ID = 0x5455
EXT_TIMESTAMP_MTIME_FLAG = 0x01

DOS_MIN_DATE_TIME = (1980, 1, 1, 0, 0, 0)
DOS_MAX_DATE_TIME = (2107, 12, 31, 23, 59, 58)


def to_dos_date_time(mtime_ms: int) -> tuple[int, int, int, int, int, int]:
    """Convert epoch milliseconds to DOS datetime in local time, clamped into the DOS range."""
    _date_time = tuple(time.localtime(mtime_ms / 1000)[:6])
    if _date_time < DOS_MIN_DATE_TIME:
        return DOS_MIN_DATE_TIME
    if _date_time > DOS_MAX_DATE_TIME:
        return DOS_MAX_DATE_TIME
    return _date_time  # type: ignore


def build_mtime_extra(mtime_ms: int) -> bytes:
    _ntfs_mtime = max(mtime_ms * NTFS_TICKS_PER_MS + NTFS_EPOCH_OFFSET, 0)
    # fmt: off
    _ntfs = struct.pack(
        "<HHIHHQQQ",
        NTFS_EXTRA_ID, 32,
        0,  # reserved
        NTFS_TIMES_TAG, 24,
        _ntfs_mtime, _ntfs_mtime, _ntfs_mtime,  # mtime, atime, ctime
    )
    # fmt: on

    _mtime_s = max(min(mtime_ms // 1000, 2**31 - 1), -(2**31))
    _ext_timestamp = struct.pack(
        "<HHBi", EXT_TIMESTAMP_EXTRA_ID, 5, EXT_TIMESTAMP_MTIME_FLAG, _mtime_s
    )
    return _ntfs + _ext_timestamp


def _iter_extra_fields(extra: bytes):
    _offset = 0
    while _offset + 4 <= len(extra):
        _header_id, _size = struct.unpack_from("<HH", extra, _offset)
        _offset += 4
        yield _header_id, extra[_offset : _offset + _size]
        _offset += _size


def _parse_ntfs_mtime_ms(data: bytes) -> Optional[int]:
    _offset = 4  # skip reserved
    while _offset + 4 <= len(data):
        _tag, _size = struct.unpack_from("<HH", data, _offset)
        _offset += 4
        if _tag == NTFS_TIMES_TAG and _size >= 24 and _offset + 8 <= len(data):
            (_mtime,) = struct.unpack_from("<Q", data, _offset)
            return (_mtime - NTFS_EPOCH_OFFSET) // NTFS_TICKS_PER_MS
        _offset += _size


def parse_mtime_ms(extra: bytes) -> Optional[int]:
    """Get the mtime in epoch milliseconds from extra fields, NTFS field preferred."""
    _ext_timestamp_ms = None
    for _header_id, _data in _iter_extra_fields(extra):
        if _header_id == NTFS_EXTRA_ID:
            if (_res := _parse_ntfs_mtime_ms(_data)) is not None:
                return _res
        elif _header_id == EXT_TIMESTAMP_EXTRA_ID and len(_data) >= 5:
            if _data[0] & EXT_TIMESTAMP_MTIME_FLAG:
                (_mtime_s,) = struct.unpack_from("<i", _data, 1)
                _ext_timestamp_ms = _mtime_s * 1000
    return _ext_timestamp_ms


def entry_mtime_ms(zinfo: ZipInfo) -> int:
    if (_res := parse_mtime_ms(zinfo.extra)) is not None:
        return _res
    return int(time.mktime(zinfo.date_time + (0, 0, -1))) * 1000


def entry_unix_mode(zinfo: ZipInfo) -> Optional[int]:
    """Return the unix mode(with file type bits) of the entry, None if not recorded."""
    if zinfo.create_system != UNIX_CREATE_SYSTEM:
        return None
    return (zinfo.external_attr >> 16) or None


def is_unix_symlink(zinfo: ZipInfo) -> bool:
    _mode = entry_unix_mode(zinfo)
    return _mode is not None and stat.S_ISLNK(_mode)


def make_zipinfo(
    arcname: str,
    *,
    mtime_ms: int,
    unix_mode: Optional[int] = None,
    file_size: int = 0,
    compression: int = ZIP_DEFLATED,
) -> ZipInfo:
    _zipinfo = ZipInfo(filename=arcname, date_time=to_dos_date_time(mtime_ms))
    _zipinfo.compress_type = compression
    _zipinfo.file_size = file_size
    _zipinfo.extra = build_mtime_extra(mtime_ms)
    if unix_mode is None:
        # no unix mode recorded, mark the entry as created on MS-DOS
        _zipinfo.create_system = MSDOS_CREATE_SYSTEM
    else:
        _zipinfo.create_system = UNIX_CREATE_SYSTEM
        _zipinfo.external_attr = (unix_mode & 0xFFFF) << 16
    return _zipinfo
