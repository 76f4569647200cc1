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

import time
from abc import ABC, abstractmethod
from collections import namedtuple

from tilestore.meta import request_key
from tilestore.metatile import MetatileReader
from tilestore.storage.log import log_storage_op
from tilestore.util.times import timestamp_ms

import logging
log = logging.getLogger(__name__)


class StorageBackendError(Exception):
    pass


MetaBlob = namedtuple('MetaBlob', ['data', 'last_modified', 'expired'], defaults=(None, False))
MetaBlob.__doc__ = """
Raw metatile as returned by a backend. `last_modified` is in seconds since
epoch or ``None`` if the backend does not know it.
"""


class StorageHandle(object):
    """
    Result of a single `TileStorageBase.get` call.
    """
    __slots__ = ('_data', '_last_modified', '_expired')

    exists = True

    def __init__(self, data, last_modified=None, expired=False):
        self._data = data
        self._last_modified = last_modified
        self._expired = expired

    @property
    def data(self):
        return self._data

    @property
    def last_modified(self):
        return self._last_modified

    @property
    def expired(self):
        return self._expired

    def __repr__(self):
        return '<%s exists=%s last_modified=%r expired=%s size=%d>' % (
            self.__class__.__name__, self.exists, self._last_modified,
            self._expired, len(self._data))


class NullHandle(StorageHandle):
    """
    Handle for missing tiles. Used for unknown keys, unreachable backends
    and corrupt metatiles alike, all of them mean "render this tile".
    """
    __slots__ = ()

    exists = False

    def __init__(self):
        StorageHandle.__init__(self, b'')


class TileStorageBase(ABC):
    """
    Base implementation of a metatile storage.

    Subclasses implement `load_meta`, `store_meta` and `remove_meta`. These
    may raise; the public `get`, `get_meta`, `put_meta` and `expire` methods
    log every error and report it as a missing tile or a ``False`` result.
    Nothing is retried.
    """

    name = 'base'
    reader_class = MetatileReader

    def key(self, request):
        return request_key(request)

    @abstractmethod
    def load_meta(self, request, key):
        """
        Return a `MetaBlob` or ``None`` if the key is not stored.
        """

    @abstractmethod
    def store_meta(self, request, key, data, timestamp):
        """
        Store `data` at `key`. `timestamp` is the write time in milliseconds
        since epoch. Return ``True`` on success.
        """

    @abstractmethod
    def remove_meta(self, request, key):
        """
        Invalidate the metatile at `key`. Return ``True`` on success.
        """

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _request_key(self, request):
        try:
            return self.key(request)
        except ValueError as ex:
            log.warning('%s: no storage key for %r: %s', self.name, request, ex)
            return None

    def _load(self, request, key):
        try:
            return self.load_meta(request, key)
        except Exception as ex:
            log.error('%s: unable to load metatile %s: %s', self.name, key, ex)
            return None

    def _read_tile(self, request, blob):
        try:
            tile_data = self.reader_class(blob.data, request.format).get(request.x, request.y)
        except Exception as ex:
            log.error('%s: unable to read metatile (style=%s z=%d x=%d y=%d): %s', self.name,
                      request.style, request.z, request.x, request.y, ex)
            return b''
        if not tile_data:
            log.error('%s: metatile corrupt (style=%s z=%d x=%d y=%d)', self.name,
                      request.style, request.z, request.x, request.y)
        return tile_data

    def get(self, request):
        """
        Return a `StorageHandle` for the single tile of `request`.
        """
        log.debug('%s: get style=%s z=%d x=%d y=%d', self.name,
                  request.style, request.z, request.x, request.y)
        key = self._request_key(request)
        if key is None:
            return NullHandle()
        start = time.time()
        blob = self._load(request, key)
        if blob is None:
            log.debug('%s: tile not found', self.name)
            handle = NullHandle()
        else:
            tile_data = self._read_tile(request, blob)
            if tile_data:
                handle = StorageHandle(tile_data, last_modified=blob.last_modified,
                                       expired=blob.expired)
            else:
                handle = NullHandle()
        log_storage_op(self.name, 'get', key, handle.exists, size=len(handle.data),
                       duration=time.time() - start)
        return handle

    def get_meta(self, request):
        """
        Return the raw metatile for `request` or ``None``.
        """
        key = self._request_key(request)
        if key is None:
            return None
        start = time.time()
        blob = self._load(request, key)
        log_storage_op(self.name, 'get_meta', key, blob is not None,
                       size=len(blob.data) if blob is not None else None,
                       duration=time.time() - start)
        if blob is None:
            return None
        return blob.data

    def put_meta(self, request, data):
        key = self._request_key(request)
        if key is None:
            return False
        start = time.time()
        try:
            result = bool(self.store_meta(request, key, data, timestamp_ms()))
        except Exception as ex:
            log.error('%s: unable to store metatile %s: %s', self.name, key, ex)
            result = False
        log_storage_op(self.name, 'put_meta', key, result, size=len(data),
                       duration=time.time() - start)
        return result

    def expire(self, request):
        key = self._request_key(request)
        if key is None:
            return False
        start = time.time()
        try:
            result = bool(self.remove_meta(request, key))
        except Exception as ex:
            log.error('%s: unable to expire metatile %s: %s', self.name, key, ex)
            result = False
        log_storage_op(self.name, 'expire', key, result, duration=time.time() - start)
        return result
