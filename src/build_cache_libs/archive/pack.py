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
"""Pack a directory tree into build cache archive."""

from __future__ import annotations

import fnmatch
import logging
import os
import re
import shutil
import stat
from pathlib import Path
from typing import Callable, Generator, Optional
from zipfile import ZIP_DEFLATED, ZipFile

from build_cache_libs.archive import DEFAULT_READ_SIZE, LINK_MODE, MATCH_ALL
from build_cache_libs.archive._zipinfo import make_zipinfo
from build_cache_libs.archive.perm import get_posix_permissions, to_unix_mode
from build_cache_libs.common import StrOrPath, is_posix_supported

logger = logging.getLogger(__name__)

_BRACES_PATTERN = re.compile(r"\{([^{}]*)\}")


def _expand_braces(glob: str) -> list[str]:
    """Expand `{a,b}` alternatives in <glob>, i.e., `*.{c,h}` -> [`*.c`, `*.h`]."""
    if not (_ma := _BRACES_PATTERN.search(glob)):
        return [glob]

    _res = []
    _prefix, _suffix = glob[: _ma.start()], glob[_ma.end() :]
    for _alternative in _ma.group(1).split(","):
        _res.extend(_expand_braces(f"{_prefix}{_alternative}{_suffix}"))
    return _res


def compile_glob(glob: str) -> Optional[Callable[[str], bool]]:
    """Compile <glob> into a file name matcher.

    Returns:
        None if <glob> matches everything, otherwise a callable that takes
            the bare file name and returns whether it matches.
    """
    if glob == MATCH_ALL:
        return None

    _pattern = re.compile(
        "|".join(fnmatch.translate(_glob) for _glob in _expand_braces(glob))
    )
    return lambda fname: _pattern.match(fname) is not None


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def iter_tree(source_dir: Path) -> Generator[tuple[Path, os.stat_result]]:
    """Yield regular files and symlinks under <source_dir>, symlinks are not followed.

    Directories are traversed but not yielded, other file types(socket, fifo, device, etc.)
        are skipped.
    """
    for curdir, dirnames, fnames in os.walk(source_dir, onerror=_raise_walk_error):
        curdir = Path(curdir)
        dirnames.sort()

        # NOTE: os.walk puts symlinks to directories in the dirnames, these should be
        #   treated as files, and will not be descended into as we don't follow symlinks.
        _symlinked_dirs = [_d for _d in dirnames if (curdir / _d).is_symlink()]
        for _fname in sorted([*fnames, *_symlinked_dirs]):
            _fpath = curdir / _fname
            _stat = os.lstat(_fpath)
            if stat.S_ISLNK(_stat.st_mode) or stat.S_ISREG(_stat.st_mode):
                yield _fpath, _stat
            else:
                logger.debug(f"skip non-regular file {_fpath}")


def _mtime_ms(_stat: os.stat_result) -> int:
    return _stat.st_mtime_ns // 1_000_000


def add_symlink(
    zipf: ZipFile, fpath: Path, arcname: str, *, _stat: os.stat_result
) -> None:
    """Add a symlink to the archive, the link target is stored as entry payload."""
    _zipinfo = make_zipinfo(
        arcname,
        mtime_ms=_mtime_ms(_stat),
        unix_mode=LINK_MODE,
        compression=zipf.compression,
    )
    zipf.writestr(_zipinfo, os.fsencode(os.readlink(fpath)))


def add_file(
    zipf: ZipFile,
    fpath: Path,
    arcname: str,
    *,
    _stat: os.stat_result,
    posix_supported: bool,
    rw_chunk_size: int = DEFAULT_READ_SIZE,
) -> None:
    """Add a regular file to the archive."""
    _unix_mode = None
    if posix_supported:
        _unix_mode = stat.S_IFREG | to_unix_mode(get_posix_permissions(fpath))

    _zipinfo = make_zipinfo(
        arcname,
        mtime_ms=_mtime_ms(_stat),
        unix_mode=_unix_mode,
        file_size=_stat.st_size,
        compression=zipf.compression,
    )
    with open(fpath, "rb") as src, zipf.open(_zipinfo, "w") as dst:
        shutil.copyfileobj(src, dst, rw_chunk_size)


def pack_entries(
    zipf: ZipFile,
    source_dir: Path,
    *,
    glob: str = MATCH_ALL,
    exclude: Optional[Path] = None,
    rw_chunk_size: int = DEFAULT_READ_SIZE,
) -> int:
    """Add all files and symlinks under <source_dir> matching <glob> into <zipf>.

    <exclude>, if set, is skipped, i.e., the archive being written into <source_dir>.

    Returns:
        The number of entries added.
    """
    _matcher = compile_glob(glob)
    _posix_supported = is_posix_supported()

    _count = 0
    for _fpath, _stat in iter_tree(source_dir):
        if _matcher and not _matcher(_fpath.name):
            continue
        if exclude and Path(os.path.abspath(_fpath)) == exclude:
            logger.debug(f"skip the output archive {_fpath}")
            continue

        _arcname = _fpath.relative_to(source_dir).as_posix()
        if stat.S_ISLNK(_stat.st_mode):
            add_symlink(zipf, _fpath, _arcname, _stat=_stat)
        else:
            add_file(
                zipf,
                _fpath,
                _arcname,
                _stat=_stat,
                posix_supported=_posix_supported,
                rw_chunk_size=rw_chunk_size,
            )
        logger.debug(f"packed {_arcname}")
        _count += 1
    return _count


def pack_dir(
    source_dir: StrOrPath,
    dest_archive: StrOrPath,
    glob: str = MATCH_ALL,
    *,
    compression: int = ZIP_DEFLATED,
    rw_chunk_size: int = DEFAULT_READ_SIZE,
) -> bool:
    """Pack every file matching <glob> under <source_dir> into <dest_archive>.

    <glob> is applied to the bare file name only, `*` disables the filtering.
        Existing <dest_archive> will be overwritten. An archive with no entry
        is still created when nothing matches.

    Returns:
        True if at least one entry has been packed into the archive.

    Raises:
        OSError: if the source tree cannot be read or the archive cannot be written.
    """
    source_dir, dest_archive = Path(source_dir), Path(dest_archive)
    if not source_dir.is_dir():
        raise NotADirectoryError(f"{source_dir} is not a directory")

    with ZipFile(dest_archive, mode="w", compression=compression) as output_f:
        _count = pack_entries(
            output_f,
            source_dir,
            glob=glob,
            exclude=Path(os.path.abspath(dest_archive)),
            rw_chunk_size=rw_chunk_size,
        )
    logger.info(f"packed {_count} entries from {source_dir} into {dest_archive}")
    return _count > 0
