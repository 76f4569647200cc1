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
Metatile storage in Redis.

Keys are ``<prefix><storage key>``. Redis offers no consistency choice for
single keys; the last ``SET`` wins. Expiring deletes the key and succeeds
even if the key was already gone.
"""

from tilestore.storage.base import TileStorageBase, MetaBlob, StorageBackendError
from tilestore.storage.memcached import expire_seconds

try:
    import redis  # type: ignore
except ImportError:
    redis = None  # type: ignore

import logging
log = logging.getLogger(__name__)


class RedisStorage(TileStorageBase):
    name = 'redis'

    def __init__(self, host, port, prefix, expire_in_minutes=0, db=0, username=None,
                 password=None, socket_timeout=5):
        if redis is None:
            raise ImportError("Redis storage requires 'redis' package.")

        self.prefix = prefix
        self.ttl = expire_seconds(expire_in_minutes)
        log.info('Initializing redis storage with host=%s, port=%d, db=%d, prefix=%s, expire=%d seconds',
                 host, port, db, prefix, self.ttl)
        self.r = redis.StrictRedis(
            host=host,
            port=port,
            db=db,
            username=username,
            password=password,
            socket_timeout=socket_timeout,
        )
        try:
            self.r.ping()
        except redis.exceptions.RedisError as ex:
            self.r.close()
            raise StorageBackendError('unable to connect to redis %s:%d: %s' % (host, port, ex))

    def key(self, request):
        return self.prefix + TileStorageBase.key(self, request)

    def load_meta(self, request, key):
        data = self.r.get(key)
        if data is None:
            return None
        return MetaBlob(data)

    def store_meta(self, request, key, data, timestamp):
        return self.r.set(key, data, ex=self.ttl or None)

    def remove_meta(self, request, key):
        self.r.delete(key)
        return True

    def close(self):
        self.r.close()


def create_redis_storage(conf, context=None):
    from tilestore.config import defaults

    return RedisStorage(
        host=conf.get('host', defaults.redis['host']),
        port=conf.get('port', defaults.redis['port']),
        db=conf.get('db', defaults.redis['db']),
        prefix=conf.get('prefix', defaults.redis['prefix']),
        expire_in_minutes=conf.get('expire', defaults.redis['expire']),
        username=conf.get('username'),
        password=conf.get('password'),
    )
