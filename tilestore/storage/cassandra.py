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
Metatile storage in Cassandra.

Each style is stored in its own keyspace (``<keyspace_prefix><style>``) in a
table with the schema::

    CREATE TABLE tiles (key text PRIMARY KEY, tile blob)

All reads and writes use consistency level ONE. Writes carry an explicit
timestamp in milliseconds, so concurrent writes of the same metatile are
resolved by Cassandra (last write wins). The write time is returned as
`last_modified`.

Expiring is a no-op. Cassandra is never asked to delete metatiles, stale
tiles are detected by the caller with `last_modified`.
"""

import threading
import warnings

from tilestore.storage.base import TileStorageBase, MetaBlob, StorageBackendError

try:
    import cassandra
except ImportError:
    cassandra = None

if cassandra is not None:
    try:
        from cassandra import ConsistencyLevel
        from cassandra.cluster import Cluster
    except cassandra.DependencyException as ex:
        # driver installed but without a usable event loop implementation
        warnings.warn("cassandra-driver not usable: %s" % ex)
        cassandra = None

import logging
log = logging.getLogger(__name__)


class CassandraStorage(TileStorageBase):
    name = 'cassandra'

    def __init__(self, nodes, port=9042, keyspace_prefix='tiles_', table='tiles',
                 connect_timeout=10):
        if cassandra is None:
            raise ImportError("Cassandra storage requires 'cassandra-driver' package.")
        self.nodes = nodes
        self.port = int(port)
        self.keyspace_prefix = keyspace_prefix
        self.table = table
        self._lock = threading.Lock()
        self._statements = {}

        log.info('Initializing cassandra storage with nodes=%s, port=%d, keyspace_prefix=%s',
                 ','.join(nodes), self.port, keyspace_prefix)
        self.cluster = Cluster(nodes, port=self.port, connect_timeout=connect_timeout)
        try:
            self.session = self.cluster.connect()
        except Exception as ex:
            self.cluster.shutdown()
            raise StorageBackendError('unable to connect to cassandra %s: %s' % (','.join(nodes), ex))

    def keyspace(self, request):
        return self.keyspace_prefix + request.style

    def _prepared(self, keyspace):
        """
        Return the prepared (get, put) statements for `keyspace`.
        """
        statements = self._statements.get(keyspace)
        if statements is not None:
            return statements
        with self._lock:
            if keyspace not in self._statements:
                table = '"%s"."%s"' % (keyspace, self.table)
                get_stmt = self.session.prepare(
                    'SELECT tile, WRITETIME(tile) FROM %s WHERE key=?' % table)
                put_stmt = self.session.prepare(
                    'INSERT INTO %s (key, tile) VALUES (?, ?) USING TIMESTAMP ?' % table)
                for stmt in (get_stmt, put_stmt):
                    stmt.consistency_level = ConsistencyLevel.ONE
                self._statements[keyspace] = get_stmt, put_stmt
            return self._statements[keyspace]

    def load_meta(self, request, key):
        get_stmt, _ = self._prepared(self.keyspace(request))
        row = self.session.execute(get_stmt, [key]).one()
        if row is None:
            return None
        data, written = row[0], row[1]
        if data is None:
            return None
        last_modified = written / 1000.0 if written else None
        return MetaBlob(bytes(data), last_modified)

    def store_meta(self, request, key, data, timestamp):
        _, put_stmt = self._prepared(self.keyspace(request))
        self.session.execute(put_stmt, [key, data, timestamp])
        return True

    def remove_meta(self, request, key):
        return True

    def close(self):
        self.cluster.shutdown()


def create_cassandra_storage(conf, context=None):
    from tilestore.config import defaults

    server = conf.get('server', defaults.cassandra['server'])
    if isinstance(server, str):
        server = [server]
    return CassandraStorage(
        nodes=server,
        port=conf.get('port', defaults.cassandra['port']),
        keyspace_prefix=conf.get('keyspace_prefix', defaults.cassandra['keyspace_prefix']),
        table=conf.get('table', defaults.cassandra['table']),
    )
