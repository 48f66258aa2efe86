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

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from build_cache_libs.scm import read_git_info
from build_cache_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def scm_info_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    scm_info_arg_parser = sub_arg_parser.add_parser(
        name="scm-info",
        help=(_help_txt := "Print the git branch and revision of a project"),
        description=_help_txt,
        parents=parent_parser,
    )
    scm_info_arg_parser.add_argument(
        "project_root",
        help="Root folder of the project, which contains the .git folder.",
    )
    scm_info_arg_parser.set_defaults(handler=scm_info_cmd)


def scm_info_cmd(args: Namespace) -> None:
    logger.debug(f"calling {scm_info_cmd.__name__} with {args}")
    project_root = Path(args.project_root)
    if not project_root.is_dir():
        exit_with_err_msg(f"{project_root} is not a directory.")

    try:
        _scm_info = read_git_info(project_root)
    except OSError as e:
        exit_with_err_msg(f"failed to read git info from {project_root}: {e!r}")
    print(_scm_info.model_dump_json(indent=2))
