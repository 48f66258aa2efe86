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

from build_cache_libs.archive import MATCH_ALL
from build_cache_libs.archive.pack import pack_dir
from build_cache_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def pack_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    pack_arg_parser = sub_arg_parser.add_parser(
        name="pack",
        help=(_help_txt := "Pack files under a directory into a build cache archive"),
        description=_help_txt,
        parents=parent_parser,
    )
    pack_arg_parser.add_argument(
        "--glob",
        default=MATCH_ALL,
        help="Only pack files whose name matches this glob pattern.",
    )
    pack_arg_parser.add_argument(
        "--keep-empty",
        action="store_true",
        help="Keep the output archive even if no file is packed.",
    )
    pack_arg_parser.add_argument(
        "source_dir",
        help="Folder to pack.",
    )
    pack_arg_parser.add_argument(
        "output",
        help="The output archive file, will be overwritten if exists.",
    )
    pack_arg_parser.set_defaults(handler=pack_cmd)


def pack_cmd(args: Namespace) -> None:
    logger.debug(f"calling {pack_cmd.__name__} with {args}")
    source_dir, output = Path(args.source_dir), Path(args.output)
    if not source_dir.is_dir():
        exit_with_err_msg(f"{source_dir} is not a directory.")

    try:
        _packed = pack_dir(source_dir, output, args.glob)
    except OSError as e:
        exit_with_err_msg(f"failed to pack {source_dir} into {output}: {e!r}")

    if not _packed:
        print(f"No file under {source_dir} matches {args.glob!r}.")
        if not args.keep_empty:
            output.unlink(missing_ok=True)
        return
    print(f"Build cache archive saved to {output}.")
