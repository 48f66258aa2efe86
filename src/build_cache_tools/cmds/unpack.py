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
from zipfile import BadZipFile

from build_cache_libs.archive.unpack import UnsafeArchiveEntry, unpack_archive
from build_cache_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def unpack_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    unpack_arg_parser = sub_arg_parser.add_parser(
        name="unpack",
        help=(_help_txt := "Unpack a build cache archive into a directory"),
        description=_help_txt,
        parents=parent_parser,
    )
    unpack_arg_parser.add_argument(
        "archive",
        help="The build cache archive file.",
    )
    unpack_arg_parser.add_argument(
        "dest_dir",
        help="Folder to unpack into, will be created if not exists.",
    )
    unpack_arg_parser.set_defaults(handler=unpack_cmd)


def unpack_cmd(args: Namespace) -> None:
    logger.debug(f"calling {unpack_cmd.__name__} with {args}")
    archive, dest_dir = Path(args.archive), Path(args.dest_dir)
    if not archive.is_file():
        exit_with_err_msg(f"{archive} not found.")

    try:
        _count = unpack_archive(archive, dest_dir)
    except UnsafeArchiveEntry as e:
        exit_with_err_msg(f"refuse to unpack malicious archive {archive}: {e}")
    except BadZipFile as e:
        exit_with_err_msg(f"{archive} is not a valid build cache archive: {e}")
    except OSError as e:
        exit_with_err_msg(f"failed to unpack {archive} into {dest_dir}: {e!r}")
    print(f"Unpacked {_count} entries into {dest_dir}.")
