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
"""Tests for build cache archive reader module."""

from __future__ import annotations

from pathlib import Path
from zipfile import ZipFile

import pytest

from build_cache_libs.archive.pack import pack_dir
from build_cache_libs.archive.reader import (
    ArchiveEntry,
    CacheArchiveReader,
    EntryKind,
)
from tests.conftest import SAMPLE_MTIME_MS, SYMLINK_TARGET, requires_posix


@pytest.fixture
def sample_archive(sample_tree: Path, temp_dir: Path) -> Path:
    _archive = temp_dir / "out.zip"
    pack_dir(sample_tree, _archive)
    return _archive


@pytest.fixture
def reader(sample_archive: Path):
    with CacheArchiveReader(sample_archive) as reader:
        yield reader


class TestListEntries:
    def test_entries_in_stored_order(
        self, reader: CacheArchiveReader, sample_archive: Path
    ):
        with ZipFile(sample_archive) as zipf:
            _stored_names = zipf.namelist()
        assert [_entry.name for _entry in reader.list_entries()] == _stored_names

    def test_regular_file_entry(self, reader: CacheArchiveReader):
        _entries = {_entry.name: _entry for _entry in reader.list_entries()}
        _entry = _entries["sub/c.txt"]
        assert _entry.kind == EntryKind.file
        assert _entry.size == len(b"\x00\x01binary\xff" * 100)
        assert _entry.mtime_ms == SAMPLE_MTIME_MS
        assert _entry.link_target is None

    @requires_posix
    def test_mode(self, reader: CacheArchiveReader):
        _entries = {_entry.name: _entry for _entry in reader.list_entries()}
        assert _entries["bin/run.sh"].mode == 0o754
        assert _entries["bin/run.sh"].filemode == "-rwxr-xr--"

    @requires_posix
    def test_symlink_entry(self, reader: CacheArchiveReader):
        _entries = {_entry.name: _entry for _entry in reader.list_entries()}
        _link = _entries["link"]
        assert _link.kind == EntryKind.symlink
        assert _link.link_target == SYMLINK_TARGET
        assert _link.filemode == "lrwxrwxrwx"

    def test_entry_model_dump(self, reader: CacheArchiveReader):
        for _entry in reader.list_entries():
            assert ArchiveEntry.model_validate_json(_entry.model_dump_json()) == _entry


class TestReadEntry:
    def test_read_entry(self, reader: CacheArchiveReader, sample_tree: Path):
        assert reader.read_entry("a.txt") == (sample_tree / "a.txt").read_bytes()

    def test_stream_entry(self, reader: CacheArchiveReader, sample_tree: Path):
        _data = b"".join(reader.stream_entry("sub/c.txt", read_size=7))
        assert _data == (sample_tree / "sub" / "c.txt").read_bytes()

    def test_entry_not_found(self, reader: CacheArchiveReader):
        with pytest.raises(FileNotFoundError, match="not found in the archive"):
            reader.read_entry("not_exist.txt")


class TestEmptyArchive:
    def test_is_empty(self, temp_dir: Path):
        _source = temp_dir / "empty"
        _source.mkdir()
        _archive = temp_dir / "empty.zip"
        pack_dir(_source, _archive)

        with CacheArchiveReader(_archive) as reader:
            assert reader.is_empty()
            assert reader.list_entries() == []

    def test_not_empty(self, reader: CacheArchiveReader):
        assert not reader.is_empty()


def test_reader_from_zipfile(sample_archive: Path):
    """Reader doesn't close the passed in ZipFile when close_on_exit is False."""
    with ZipFile(sample_archive) as zipf:
        with CacheArchiveReader(zipf, close_on_exit=False) as reader:
            assert reader.read_entry("b.log") == b"some log lines\n"
        assert zipf.read("b.log") == b"some log lines\n"
