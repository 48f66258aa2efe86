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
"""Shared test fixtures for build-cache-libs tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

requires_posix = pytest.mark.skipif(
    os.name != "posix", reason="requires POSIX permission bits and symlinks"
)

SAMPLE_MTIME_MS = 1_600_000_000_123
SYMLINK_TARGET = "target/path"


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a clean temporary directory."""
    return tmp_path


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a small directory tree to pack.

    source/
        a.txt
        b.log
        sub/c.txt
        bin/run.sh (0o754)
        link -> target/path (POSIX only)
    """
    root = tmp_path / "source"
    (root / "sub").mkdir(parents=True)
    (root / "bin").mkdir()

    (root / "a.txt").write_bytes(b"content of a")
    (root / "b.log").write_bytes(b"some log lines\n")
    (root / "sub" / "c.txt").write_bytes(b"\x00\x01binary\xff" * 100)

    run_sh = root / "bin" / "run.sh"
    run_sh.write_text("#!/bin/sh\necho hello\n")
    os.chmod(run_sh, 0o754)

    for _fpath in (root / "a.txt", root / "b.log", root / "sub" / "c.txt", run_sh):
        os.utime(_fpath, ns=(SAMPLE_MTIME_MS * 1_000_000,) * 2)

    if os.name == "posix":
        (root / "link").symlink_to(SYMLINK_TARGET)
    return root
