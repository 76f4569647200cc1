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
Metatile addressing.

Tiles are rendered and stored in metatiles of ``METATILE`` x ``METATILE``
tiles. All tiles of one metatile share a single stored blob, addressed by
the coordinate of the top-left tile (the metatile origin).

All storage backends derive their keys with `storage_key`. Changing the key
format invalidates every stored metatile.
"""

from collections import namedtuple

from tilestore.formats import file_type_for

METATILE = 8


MetatileAddress = namedtuple('MetatileAddress', ['style', 'z', 'x', 'y', 'format'])


def metatile_origin(x, y, meta_size=METATILE):
    """
    Return the origin of the metatile that contains tile `x`, `y`.
    Negative coordinates are rounded towards negative infinity.

    >>> metatile_origin(13, 7)
    (8, 0)
    >>> metatile_origin(16, 23)
    (16, 16)
    >>> metatile_origin(-1, 3)
    (-8, 0)
    """
    return x - (x % meta_size), y - (y % meta_size)


def metatile_address(request):
    mx, my = metatile_origin(request.x, request.y)
    return MetatileAddress(request.style, request.z, mx, my, request.format)


def storage_key(style, z, x, y, fmt):
    """
    Return the storage key for the metatile containing tile `x`, `y`.
    The key looks like the usual tile path but contains the coordinates
    of the metatile origin.

    >>> storage_key('osm', 12, 2051, 1362, 1)
    '/osm/12/2048/1360.png'
    """
    if '/' in style:
        raise ValueError('style %r contains a slash' % style)
    mx, my = metatile_origin(x, y)
    return '/%s/%d/%d/%d.%s' % (style, z, mx, my, file_type_for(fmt))


def request_key(request):
    return storage_key(request.style, request.z, request.x, request.y, request.format)
