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
Tile formats.

A request can ask for several formats at once, so formats are a bit set.
Stored metatiles always hold a single format.
"""

from enum import IntFlag


class TileFormat(IntFlag):
    NONE = 0
    PNG = 1
    JPEG = 2
    GIF = 4
    JSON = 8
    ALL = PNG | JPEG | GIF | JSON


_file_types = {
    TileFormat.PNG: 'png',
    TileFormat.JPEG: 'jpg',
    TileFormat.GIF: 'gif',
    TileFormat.JSON: 'json',
}

_file_type_aliases = {
    'jpeg': TileFormat.JPEG,
}


def split_formats(fmt):
    """
    Return all single formats contained in `fmt`, in bit order.

    >>> split_formats(TileFormat.PNG | TileFormat.JSON)
    [<TileFormat.PNG: 1>, <TileFormat.JSON: 8>]
    >>> split_formats(TileFormat.NONE)
    []
    """
    fmt = TileFormat(fmt)
    return [f for f in _file_types if f & fmt]


def file_type_for(fmt):
    """
    Return the file extension for a single format.

    >>> file_type_for(TileFormat.JPEG)
    'jpg'
    >>> file_type_for(TileFormat.PNG | TileFormat.GIF)
    Traceback (most recent call last):
    ...
    ValueError: no file type for combined format 5
    """
    fmt = TileFormat(fmt)
    try:
        return _file_types[fmt]
    except KeyError:
        if fmt == TileFormat.NONE:
            raise ValueError('no file type for empty format')
        raise ValueError('no file type for combined format %d' % fmt)


def format_for_file_type(file_type):
    """
    >>> format_for_file_type('JPEG')
    <TileFormat.JPEG: 2>
    """
    file_type = file_type.lower().lstrip('.')
    if file_type in _file_type_aliases:
        return _file_type_aliases[file_type]
    for fmt, ext in _file_types.items():
        if ext == file_type:
            return fmt
    raise ValueError('unknown tile file type: %r' % file_type)
