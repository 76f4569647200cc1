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
Reading and writing of packed metatile blobs.

Layout (all integers are little-endian int32)::

    'META' count x y z
    count * (offset size)
    tile data

`x`, `y` is the metatile origin, offsets are relative to the start of the
blob. The tile at `x`, `y` is stored at index
``(x % meta_size) * meta_size + (y % meta_size)``.
"""

import struct

from tilestore.meta import METATILE, metatile_origin

import logging
log = logging.getLogger(__name__)

MAGIC = b'META'
_header = struct.Struct('<4s4i')
_entry = struct.Struct('<2i')


class MetatileReader(object):
    """
    Extracts single tiles from a metatile blob.

    `get` returns ``b''`` for missing tiles and for corrupt blobs. Callers
    treat both as "not found". A blob with another metatile size or one
    that does not contain the requested tile counts as corrupt.
    """

    def __init__(self, data, fmt, meta_size=METATILE):
        self.data = data
        self.format = fmt
        self.meta_size = meta_size
        self.origin = None
        self._index = None

    def _read_index(self):
        if self._index is not None:
            return self._index

        self._index = []
        if len(self.data) < _header.size:
            log.debug('metatile too short for header (%d bytes)', len(self.data))
            return self._index
        magic, count, x, y, z = _header.unpack_from(self.data, 0)
        if magic != MAGIC:
            log.debug('invalid metatile header')
            return self._index
        if count != self.meta_size * self.meta_size:
            log.debug('metatile tile count %d does not match metatile size %d',
                      count, self.meta_size)
            return self._index
        if _header.size + count * _entry.size > len(self.data):
            log.debug('metatile index truncated')
            return self._index

        self.origin = (x, y, z)
        self._index = [
            _entry.unpack_from(self.data, _header.size + i * _entry.size)
            for i in range(count)
        ]
        return self._index

    def _slice(self, offset, size):
        if size <= 0 or offset < 0 or offset + size > len(self.data):
            return b''
        return self.data[offset:offset + size]

    def get(self, x, y):
        index = self._read_index()
        if not index:
            return b''
        n = self.meta_size
        if metatile_origin(x, y, n) != self.origin[:2]:
            log.debug('tile %d/%d not in metatile %d/%d', x, y, self.origin[0], self.origin[1])
            return b''
        offset, size = index[(x % n) * n + (y % n)]
        return self._slice(offset, size)

    def tiles(self):
        """
        Yield ``((x, y), data)`` for every non-empty tile of the metatile.
        """
        index = self._read_index()
        if not index:
            return
        n = self.meta_size
        origin_x, origin_y, _z = self.origin
        for i, (offset, size) in enumerate(index):
            data = self._slice(offset, size)
            if data:
                yield (origin_x + i // n, origin_y + i % n), data


class MetatileWriter(object):
    def __init__(self, x, y, z, meta_size=METATILE):
        self.meta_size = meta_size
        self.x, self.y = metatile_origin(x, y, meta_size)
        self.z = z
        self.tiles = {}

    def add_tile(self, x, y, data):
        mx, my = metatile_origin(x, y, self.meta_size)
        if (mx, my) != (self.x, self.y):
            raise ValueError('tile %d/%d/%d not in metatile %d/%d/%d' % (
                self.z, x, y, self.z, self.x, self.y))
        self.tiles[(x % self.meta_size, y % self.meta_size)] = data

    def to_bytes(self):
        n = self.meta_size
        count = n * n
        header = _header.pack(MAGIC, count, self.x, self.y, self.z)
        offset = _header.size + count * _entry.size
        entries = []
        chunks = []
        for dx in range(n):
            for dy in range(n):
                data = self.tiles.get((dx, dy), b'')
                entries.append(_entry.pack(offset, len(data)))
                chunks.append(data)
                offset += len(data)
        return header + b''.join(entries) + b''.join(chunks)


def write_metatile(x, y, z, tiles, meta_size=METATILE):
    """
    Pack `tiles` (a dict of ``(x, y) -> bytes``) into a metatile blob.
    """
    writer = MetatileWriter(x, y, z, meta_size=meta_size)
    for (tx, ty), data in tiles.items():
        writer.add_tile(tx, ty, data)
    return writer.to_bytes()
