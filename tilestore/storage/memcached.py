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
Metatile storage in memcached.

Metatiles are stored with the plain storage key. Memcached keeps no
modification time, so handles never have a `last_modified`. Expiring a
metatile deletes it; `expire` reports ``False`` if it was not stored.
"""

from tilestore.storage.base import TileStorageBase, MetaBlob, StorageBackendError

try:
    from pymemcache.client.hash import HashClient
except ImportError:
    HashClient = None

import logging
log = logging.getLogger(__name__)

DEFAULT_PORT = 11211


def parse_memcached_options(options):
    """
    Parse the servers from a libmemcached configuration string.
    Other options are ignored.

    >>> parse_memcached_options('--SERVER=localhost --SERVER=cache2:11222')
    [('localhost', 11211), ('cache2', 11222)]
    """
    servers = []
    for opt in options.split():
        name, _, value = opt.partition('=')
        if name.upper() != '--SERVER':
            log.debug('ignoring memcached option %s', opt)
            continue
        servers.append(parse_server(value))
    return servers


def parse_server(server):
    """
    >>> parse_server('127.0.0.1:11222/?2')
    ('127.0.0.1', 11222)
    >>> parse_server('cache')
    ('cache', 11211)
    """
    server = server.split('/', 1)[0]
    host, _, port = server.partition(':')
    if not host:
        raise ValueError('missing host in memcached server %r' % server)
    return host, int(port) if port else DEFAULT_PORT


def expire_seconds(expire_in_minutes):
    """
    Convert the configured expire time to seconds. Values outside of
    ``[0, 30 days]`` mean "no expiry" (0), as memcached interprets larger
    values as absolute timestamps.

    >>> expire_seconds(60)
    3600
    >>> expire_seconds(-5), expire_seconds(50000)
    (0, 0)
    """
    from tilestore.config import defaults

    if expire_in_minutes is None:
        return 0
    expire_in_minutes = int(expire_in_minutes)
    if expire_in_minutes < 0 or expire_in_minutes > defaults.max_expire_minutes:
        return 0
    return expire_in_minutes * 60


class MemcachedStorage(TileStorageBase):
    name = 'memcached'

    def __init__(self, servers, expire_in_minutes=0, connect_timeout=5, timeout=5, client=None):
        if not servers and client is None:
            raise StorageBackendError('no memcached servers configured')
        self.servers = servers
        self.ttl = expire_seconds(expire_in_minutes)
        log.info('Initializing memcached storage with expire=%d seconds, servers=%s',
                 self.ttl, ','.join('%s:%d' % s for s in servers))
        if client is None:
            if HashClient is None:
                raise ImportError("Memcached storage requires 'pymemcache' package.")
            client = HashClient(servers, use_pooling=True,
                                connect_timeout=connect_timeout, timeout=timeout)
        self.client = client

    def load_meta(self, request, key):
        data = self.client.get(key)
        if data is None:
            return None
        return MetaBlob(data)

    def store_meta(self, request, key, data, timestamp):
        return self.client.set(key, data, expire=self.ttl, noreply=False)

    def remove_meta(self, request, key):
        return self.client.delete(key, noreply=False)

    def close(self):
        self.client.close()


def create_memcached_storage(conf, context=None):
    from tilestore.config import defaults

    if 'servers' in conf:
        servers = [parse_server(s) for s in conf['servers']]
    else:
        servers = parse_memcached_options(conf.get('options', defaults.memcached['options']))
    return MemcachedStorage(
        servers,
        expire_in_minutes=conf.get('expire', defaults.memcached['expire']),
    )
