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
"""Common shared helper functions for IO."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_FILE_CHUNK_SIZE = 1024**2  # 1MiB


def remove_file(_fpath: Path) -> None:
    """Remove the file or symlink at <_fpath>, symlinks are never followed.

    A directory at <_fpath> is only removed when it is empty.

    Raises:
        OSError: if <_fpath> is a non-empty directory, or cannot be removed.
    """
    if _fpath.is_symlink() or not _fpath.is_dir():
        _fpath.unlink(missing_ok=True)
    else:
        _fpath.rmdir()


def write_file_from_stream(
    src, _dst: Path, *, chunk_size: int = DEFAULT_FILE_CHUNK_SIZE
) -> int:
    """Write all bytes from <src> stream into <_dst>, replacing any existing file.

    Returns:
        The number of bytes written.
    """
    # NOTE: unlink the existing file first, never write through an existing
    #   symlink at <_dst>, or fail on existing read-only file.
    if _dst.is_symlink() or _dst.is_file():
        _dst.unlink()

    _written = 0
    with open(_dst, "wb") as _dst_f:
        while _chunk := src.read(chunk_size):
            _written += _dst_f.write(_chunk)
    return _written


def set_mtime_ms(_fpath: Path, mtime_ms: int) -> None:
    """Set the last-modified time of <_fpath>, keeping its access time."""
    _atime_ns = os.stat(_fpath).st_atime_ns
    os.utime(_fpath, ns=(_atime_ns, mtime_ms * 1_000_000))
