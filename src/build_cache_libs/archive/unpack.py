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
"""Unpack build cache archive to a directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from zipfile import ZipFile, ZipInfo

from build_cache_libs.archive import DEFAULT_READ_SIZE
from build_cache_libs.archive._zipinfo import (
    entry_mtime_ms,
    entry_unix_mode,
    is_unix_symlink,
)
from build_cache_libs.archive.perm import from_unix_mode, set_posix_permissions
from build_cache_libs.common import StrOrPath, is_posix_supported
from build_cache_libs.common.io import (
    remove_file,
    set_mtime_ms,
    write_file_from_stream,
)

logger = logging.getLogger(__name__)


class UnsafeArchiveEntry(Exception):
    """Entry of the archive will be written outside of the destination directory."""


def entry_path_on_dest(entry_name: str, dest_dir: StrOrPath) -> Path:
    """Return the path of <entry_name> joined to <dest_dir>.

    Both paths are normalized lexically, symlinks are not resolved.

    Raises:
        UnsafeArchiveEntry: if the normalized path escapes the <dest_dir>.
    """
    _dest = os.path.normpath(os.path.abspath(dest_dir))
    _candidate = os.path.normpath(os.path.join(_dest, entry_name))
    if _candidate != _dest and not _candidate.startswith(os.path.join(_dest, "")):
        raise UnsafeArchiveEntry(
            f"entry {entry_name!r} resolves to {_candidate}, outside of {_dest}"
        )
    return Path(_candidate)


def extract_symlink(zipf: ZipFile, zinfo: ZipInfo, _dst: Path) -> None:
    _target = os.fsdecode(zipf.read(zinfo))
    remove_file(_dst)
    os.symlink(_target, _dst)


def extract_file(
    zipf: ZipFile, zinfo: ZipInfo, _dst: Path, *, rw_chunk_size: int
) -> None:
    with zipf.open(zinfo) as src:
        write_file_from_stream(src, _dst, chunk_size=rw_chunk_size)


def extract_entry(
    zipf: ZipFile,
    zinfo: ZipInfo,
    dest_dir: Path,
    *,
    posix_supported: bool,
    rw_chunk_size: int = DEFAULT_READ_SIZE,
) -> Path:
    """Extract one entry of <zipf> into <dest_dir>.

    On platform without POSIX support, symlink entry will be extracted as a regular
        file with the link target as its content.
    """
    _dst = entry_path_on_dest(zinfo.filename, dest_dir)
    _is_symlink = is_unix_symlink(zinfo)

    # NOTE: only a directory entry may refer to <dest_dir> itself, otherwise
    #   <dest_dir> would be replaced by the file or symlink.
    if not zinfo.is_dir() and _dst == Path(os.path.abspath(dest_dir)):
        raise UnsafeArchiveEntry(
            f"non-directory entry {zinfo.filename!r} refers to {dest_dir} itself"
        )

    if zinfo.is_dir():
        _dst.mkdir(parents=True, exist_ok=True)
    else:
        _dst.parent.mkdir(parents=True, exist_ok=True)
        if _is_symlink and posix_supported:
            extract_symlink(zipf, zinfo, _dst)
        else:
            extract_file(zipf, zinfo, _dst, rw_chunk_size=rw_chunk_size)

    # NOTE: the mtime and mode of symlink are not restored, as setting them
    #   will resolve through the link to its target.
    if not _is_symlink:
        set_mtime_ms(_dst, entry_mtime_ms(zinfo))
        if posix_supported and (_unix_mode := entry_unix_mode(zinfo)) is not None:
            set_posix_permissions(_dst, from_unix_mode(_unix_mode))
    return _dst


def unpack_archive(
    archive: StrOrPath,
    dest_dir: StrOrPath,
    *,
    rw_chunk_size: int = DEFAULT_READ_SIZE,
) -> int:
    """Unpack all entries of <archive> into <dest_dir> in stored order.

    <dest_dir> will be created if not exists. Partially unpacked files are
        not cleaned up on failure.

    Returns:
        The number of entries unpacked.

    Raises:
        UnsafeArchiveEntry: if any entry escapes the <dest_dir>, the whole unpacking
            is aborted at this entry.
        OSError: if failed to create, write or set attributes of any file.
        zipfile.BadZipFile: if <archive> is not a valid ZIP archive.
    """
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    _posix_supported = is_posix_supported()

    _count = 0
    with ZipFile(archive, mode="r") as zipf:
        for zinfo in zipf.infolist():
            try:
                extract_entry(
                    zipf,
                    zinfo,
                    dest_dir,
                    posix_supported=_posix_supported,
                    rw_chunk_size=rw_chunk_size,
                )
            except UnsafeArchiveEntry as e:
                logger.error(f"abort unpacking {archive}: {e}")
                raise
            logger.debug(f"unpacked {zinfo.filename}")
            _count += 1
    logger.info(f"unpacked {_count} entries from {archive} into {dest_dir}")
    return _count
