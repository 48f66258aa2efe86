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
from typing import Collection, Optional

from build_cache_libs.common import StrOrPath

ARCHIVE_SUFFIXES = (".jar", ".zip", ".war", ".ear")


def is_archive(fpath: StrOrPath) -> bool:
    """Check if <fpath> is a non-hidden regular file with archive suffix."""
    fpath = Path(fpath)
    if not fpath.is_file() or fpath.name.startswith("."):
        return False
    return fpath.name.endswith(ARCHIVE_SUFFIXES)


def debug_print_collection(
    logger: logging.Logger,
    values: Optional[Collection],
    heading: str,
    element_caption: str,
) -> None:
    if not values or not logger.isEnabledFor(logging.DEBUG):
        return

    _size = len(values)
    logger.debug(f"{heading} (total {_size})")
    for _idx, _value in enumerate(values, start=1):
        logger.debug(f"{element_caption} {_idx} of {_size} : {_value}")
