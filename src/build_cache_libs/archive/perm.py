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
"""Conversion between POSIX permission bits set and 9-bit numeric unix mode."""

from __future__ import annotations

import os
from enum import Enum
from typing import Iterable

from build_cache_libs.common import StrOrPath

PERMISSION_BITS_MASK = 0o777


class PosixPermission(Enum):
    OWNER_READ = 0o400
    OWNER_WRITE = 0o200
    OWNER_EXECUTE = 0o100
    GROUP_READ = 0o040
    GROUP_WRITE = 0o020
    GROUP_EXECUTE = 0o010
    OTHERS_READ = 0o004
    OTHERS_WRITE = 0o002
    OTHERS_EXECUTE = 0o001


def to_unix_mode(permissions: Iterable[PosixPermission]) -> int:
    """Encode a set of permission bits into numeric unix mode.

    Items that are not PosixPermission are ignored.
    """
    mode = 0
    for permission in permissions:
        if isinstance(permission, PosixPermission):
            mode |= permission.value
    return mode


def from_unix_mode(mode: int) -> set[PosixPermission]:
    """Decode numeric unix mode into a set of permission bits.

    Bits outside of the 9 permission bits(file type, setuid, sticky, etc.) are ignored.
    """
    return {_perm for _perm in PosixPermission if mode & _perm.value}


def get_posix_permissions(fpath: StrOrPath) -> set[PosixPermission]:
    return from_unix_mode(os.lstat(fpath).st_mode)


def set_posix_permissions(
    fpath: StrOrPath, permissions: Iterable[PosixPermission]
) -> None:
    os.chmod(fpath, to_unix_mode(permissions))
