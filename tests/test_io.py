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

import io
import os

import pytest

from build_cache_libs.common.io import (
    remove_file,
    set_mtime_ms,
    write_file_from_stream,
)
from tests.conftest import SAMPLE_MTIME_MS, requires_posix


class TestRemoveFile:
    def test_remove_file_regular_file(self, temp_dir):
        """Test removing a regular file."""
        test_file = temp_dir / "test.txt"
        test_file.write_text("content")
        assert test_file.exists()

        remove_file(test_file)
        assert not test_file.exists()

    def test_remove_file_empty_directory(self, temp_dir):
        """Test removing an empty directory."""
        test_dir = temp_dir / "test_dir"
        test_dir.mkdir()

        remove_file(test_dir)
        assert not test_dir.exists()

    def test_remove_file_non_empty_directory(self, temp_dir):
        """Non-empty directory is kept untouched and OSError is raised."""
        test_dir = temp_dir / "test_dir"
        test_dir.mkdir()
        (test_dir / "file.txt").write_text("content")

        with pytest.raises(OSError):
            remove_file(test_dir)
        assert (test_dir / "file.txt").read_text() == "content"

    def test_remove_file_not_exist(self, temp_dir):
        remove_file(temp_dir / "not_exist")

    @requires_posix
    def test_remove_symlink_not_followed(self, temp_dir):
        """Only the symlink is removed, its target is kept."""
        target_dir = temp_dir / "target_dir"
        target_dir.mkdir()
        (target_dir / "file.txt").write_text("content")
        link = temp_dir / "link"
        link.symlink_to(target_dir, target_is_directory=True)

        remove_file(link)
        assert not link.is_symlink()
        assert (target_dir / "file.txt").is_file()


class TestWriteFileFromStream:
    def test_write_new_file(self, temp_dir):
        dst = temp_dir / "out.bin"
        data = os.urandom(4096)

        assert write_file_from_stream(io.BytesIO(data), dst, chunk_size=1000) == 4096
        assert dst.read_bytes() == data

    def test_replace_existing_file(self, temp_dir):
        dst = temp_dir / "out.bin"
        dst.write_bytes(b"old content which is longer")

        write_file_from_stream(io.BytesIO(b"new"), dst)
        assert dst.read_bytes() == b"new"

    @requires_posix
    def test_replace_existing_symlink(self, temp_dir):
        target = temp_dir / "target.bin"
        target.write_bytes(b"target")
        dst = temp_dir / "out.bin"
        dst.symlink_to(target)

        write_file_from_stream(io.BytesIO(b"new"), dst)
        assert not dst.is_symlink()
        assert dst.read_bytes() == b"new"
        assert target.read_bytes() == b"target"

    def test_dst_is_dir(self, temp_dir):
        with pytest.raises(OSError):
            write_file_from_stream(io.BytesIO(b"new"), temp_dir)


def test_set_mtime_ms(temp_dir):
    test_file = temp_dir / "test.txt"
    test_file.write_text("content")
    _atime_ns = test_file.stat().st_atime_ns

    set_mtime_ms(test_file, SAMPLE_MTIME_MS)
    _stat = test_file.stat()
    assert _stat.st_mtime_ns == SAMPLE_MTIME_MS * 1_000_000
    assert _stat.st_atime_ns == _atime_ns
