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
"""Source control info of the project to attach to build cache."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from typing_extensions import Self

from build_cache_libs.common import StrOrPath

GIT_DIR = ".git"
GIT_HEAD_FNAME = "HEAD"
GIT_HEAD_REF_PREFIX = "ref: "

MISSING_BRANCH = "<missing branch>"
MISSING_REVISION = "<missing revision>"

logger = logging.getLogger(__name__)


class ScmInfo(BaseModel):
    source_branch: Optional[str] = None
    revision: Optional[str] = None

    @classmethod
    def from_git_head(cls, git_dir: Path, head_line: str) -> Self:
        if not head_line.startswith(GIT_HEAD_REF_PREFIX):
            # detached HEAD, the HEAD file holds the revision directly
            return cls(source_branch=head_line, revision=head_line)

        _branch = head_line[len(GIT_HEAD_REF_PREFIX) :].strip()
        _ref_fpath = git_dir / _branch
        if not _ref_fpath.is_file():
            return cls(source_branch=_branch)
        _revision = read_first_line(_ref_fpath, MISSING_REVISION).strip()
        return cls(source_branch=_branch, revision=_revision)


def read_first_line(fpath: Path, default: str) -> str:
    with open(fpath, encoding="utf-8") as f:
        _line = f.readline()
    return _line.rstrip("\r\n") if _line else default


def read_git_info(project_root: StrOrPath) -> ScmInfo:
    """Read the current branch and revision from the git metadata dir of <project_root>.

    Packed refs are not looked up, revision will be left unset in such case.
    """
    _git_dir = Path(project_root) / GIT_DIR
    _head_fpath = _git_dir / GIT_HEAD_FNAME
    if not _git_dir.is_dir() or not _head_fpath.is_file():
        logger.debug(f"no git HEAD found under {project_root}")
        return ScmInfo()

    _head_line = read_first_line(_head_fpath, MISSING_BRANCH)
    return ScmInfo.from_git_head(_git_dir, _head_line)
