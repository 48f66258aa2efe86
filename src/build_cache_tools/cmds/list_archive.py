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
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING
from zipfile import BadZipFile

from build_cache_libs.archive.reader import ArchiveEntry, CacheArchiveReader
from build_cache_libs.utils import debug_print_collection
from build_cache_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def list_archive_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    list_arg_parser = sub_arg_parser.add_parser(
        name="list",
        help=(_help_txt := "List entries of a build cache archive"),
        description=_help_txt,
        parents=parent_parser,
    )
    list_arg_parser.add_argument(
        "--json",
        action="store_true",
        help="Print out each entry as JSON.",
    )
    list_arg_parser.add_argument(
        "archive",
        help="The build cache archive file.",
    )
    list_arg_parser.set_defaults(handler=list_archive_cmd)


def _format_entry(entry: ArchiveEntry) -> str:
    _mtime = datetime.fromtimestamp(entry.mtime_ms / 1000, tz=timezone.utc)
    _line = f"{entry.filemode} {entry.size:>10} {_mtime.isoformat()} {entry.name}"
    if entry.link_target is not None:
        _line = f"{_line} -> {entry.link_target}"
    return _line


def list_archive_cmd(args: Namespace) -> None:
    logger.debug(f"calling {list_archive_cmd.__name__} with {args}")
    archive = Path(args.archive)
    if not archive.is_file():
        exit_with_err_msg(f"{archive} not found.")

    try:
        with CacheArchiveReader(archive) as reader:
            _entries = reader.list_entries()
    except BadZipFile as e:
        exit_with_err_msg(f"{archive} is not a valid build cache archive: {e}")

    debug_print_collection(logger, _entries, f"entries of {archive}", "entry")
    for _entry in _entries:
        print(_entry.model_dump_json() if args.json else _format_entry(_entry))
