# This file is part of the TileStore project.
# Copyright (C) 2026 The TileStore Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
File system related utility functions.
"""
import os
import random


def ensure_directory(file_name):
    """
    Create the parent directory of `file_name` if it does not exist.
    """
    dir_name = os.path.dirname(file_name)
    if dir_name:
        os.makedirs(dir_name, exist_ok=True)


def write_atomic(filename, data, mtime=None):
    """
    Write `data` to a temporary file in the directory of `filename` and
    rename it afterwards. Readers never see partially written files and
    concurrent writers do not interfere; the last rename wins.

    `mtime` (seconds since epoch) is set on the new file if given.
    New files get mode 0666 minus the umask.
    """
    path_tmp = '%s.tmp-%016x' % (filename, random.getrandbits(64))
    fd = os.open(path_tmp, os.O_EXCL | os.O_CREAT | os.O_WRONLY, 0o666)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        if mtime is not None:
            os.utime(path_tmp, (mtime, mtime))
        os.replace(path_tmp, filename)
    except OSError:
        try:
            os.unlink(path_tmp)
        except OSError:
            pass
        raise
