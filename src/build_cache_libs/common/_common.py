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

import os
from functools import lru_cache
from pathlib import Path
from typing import Union

StrOrPath = Union[str, Path]


@lru_cache(maxsize=1)
def is_posix_supported() -> bool:
    """Whether the running platform supports POSIX permission bits and symlinks.

    Callers should query this once per operation and pass the result down,
        instead of checking it for every file.
    """
    return os.name == "posix"
