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
"""Read build cache archive without unpacking it."""

from __future__ import annotations

import os
import stat
from enum import Enum
from os import PathLike
from typing import IO, List, Optional, Union
from zipfile import ZipFile, ZipInfo

from pydantic import BaseModel
from typing_extensions import Self

from build_cache_libs.archive import DEFAULT_READ_SIZE
from build_cache_libs.archive._zipinfo import (
    entry_mtime_ms,
    entry_unix_mode,
    is_unix_symlink,
)
from build_cache_libs.archive.perm import PERMISSION_BITS_MASK


class EntryKind(str, Enum):
    file = "file"
    dir = "dir"
    symlink = "symlink"


class ArchiveEntry(BaseModel):
    """Metadata of one entry in the build cache archive."""

    name: str
    kind: EntryKind
    mode: Optional[int] = None
    """The 9 permission bits of the entry, None if not recorded."""
    mtime_ms: int
    size: int
    link_target: Optional[str] = None

    @classmethod
    def from_zipinfo(cls, zinfo: ZipInfo, *, link_target: Optional[str] = None) -> Self:
        if is_unix_symlink(zinfo):
            _kind = EntryKind.symlink
        elif zinfo.is_dir():
            _kind = EntryKind.dir
        else:
            _kind = EntryKind.file

        _mode = None
        if (_unix_mode := entry_unix_mode(zinfo)) is not None:
            _mode = _unix_mode & PERMISSION_BITS_MASK

        return cls(
            name=zinfo.filename,
            kind=_kind,
            mode=_mode,
            mtime_ms=entry_mtime_ms(zinfo),
            size=zinfo.file_size,
            link_target=link_target,
        )

    @property
    def filemode(self) -> str:
        """`ls -l` style representation of the entry's mode."""
        _type_bits = {
            EntryKind.file: stat.S_IFREG,
            EntryKind.dir: stat.S_IFDIR,
            EntryKind.symlink: stat.S_IFLNK,
        }[self.kind]
        return stat.filemode(_type_bits | (self.mode or 0))


class CacheArchiveReader:
    """Helper class for reading the build cache archive file.

    This class is NOT safe for multi-thread, create separated instance
        for each worker thread if used in multi-threaded environment.
    """

    def __init__(
        self,
        _f: Union[ZipFile, PathLike, str],
        *,
        read_chunk_size: int = DEFAULT_READ_SIZE,
        close_on_exit: bool = True,
    ) -> None:
        if isinstance(_f, ZipFile):
            self._f = _f
        else:
            self._f = ZipFile(_f, mode="r")

        self._close_on_exit = close_on_exit
        self._chunk_size = read_chunk_size

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._close_on_exit:
            self.close()
        return False

    def close(self) -> None:
        self._f.close()

    def is_empty(self) -> bool:
        return not self._f.infolist()

    def list_entries(self) -> List[ArchiveEntry]:
        """List all entries in stored order."""
        _res = []
        for zinfo in self._f.infolist():
            _link_target = None
            if is_unix_symlink(zinfo):
                _link_target = os.fsdecode(self._f.read(zinfo))
            _res.append(ArchiveEntry.from_zipinfo(zinfo, link_target=_link_target))
        return _res

    def open_entry(self, name: str) -> IO[bytes]:
        try:
            return self._f.open(name)
        except KeyError:
            raise FileNotFoundError(
                f"entry {name=} not found in the archive!"
            ) from None

    def read_entry(self, name: str) -> bytes:
        with self.open_entry(name) as _entry_reader:
            return _entry_reader.read()

    def stream_entry(self, name: str, *, read_size: Optional[int] = None):
        read_size = self._chunk_size if read_size is None else read_size
        with self.open_entry(name) as _entry_reader:
            while _chunk := _entry_reader.read(read_size):
                yield _chunk
