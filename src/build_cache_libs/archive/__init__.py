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
"""Libraries for packing and unpacking build cache archives.

A build cache archive is a plain ZIP archive with the following conventions:

1. only regular files and symlinks are stored as entries, directories are implied
    by the entry names, which are relative to the archived root and `/` separated.
2. the unix mode(file type bits and the 9 permission bits) of each entry is stored in the
    high 16 bits of the external attributes, with `create_system` set to unix.
3. symlinks are stored with a fixed link mode, and the link target text as entry payload.
4. the last-modified time of each entry is stored with millisecond precision via
    the NTFS extra field, together with the Info-ZIP extended timestamp and DOS datetime.
"""

import stat

MATCH_ALL = "*"
"""Glob pattern that disables file name filtering."""

MSDOS_CREATE_SYSTEM = 0
UNIX_CREATE_SYSTEM = 3
LINK_MODE = stat.S_IFLNK | 0o777
DEFAULT_READ_SIZE = 1024**2  # 1MiB
