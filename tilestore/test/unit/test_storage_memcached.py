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

import os

import pytest

try:
    from pymemcache.test.utils import MockMemcacheClient
except ImportError:
    MockMemcacheClient = None

from tilestore.formats import TileFormat
from tilestore.request import Command, TileRequest
from tilestore.storage.base import StorageBackendError
from tilestore.storage.memcached import (
    MemcachedStorage,
    create_memcached_storage,
    expire_seconds,
    parse_memcached_options,
    parse_server,
)
from tilestore.test.unit.test_storage import StorageTestBase


class RecordingClient(object):
    def __init__(self):
        self.calls = []

    def set(self, key, value, expire=0, noreply=None):
        self.calls.append(('set', key, expire))
        return True

    def close(self):
        pass


@pytest.mark.skipif(not MockMemcacheClient, reason="pymemcache required for memcached tests")
class TestMemcachedStorage(StorageTestBase):

    def setup_method(self):
        StorageTestBase.setup_method(self)
        self.storage = MemcachedStorage([('localhost', 11211)], client=MockMemcacheClient())

    def teardown_method(self):
        # mock client has nothing to close
        pass

    def test_keys(self):
        self.store(self.create_request())
        assert self.storage.client.get('/osm/12/2048/1360.png') is not None

    def test_expire_not_stored(self):
        assert not self.storage.expire(self.create_request())

    def test_expire_with_ttl_from_conf(self):
        storage = create_memcached_storage({'servers': ['localhost'], 'expire': 10})
        storage.client = MockMemcacheClient()
        req = self.create_request()
        assert storage.ttl == 600
        assert storage.put_meta(req, b'data')
        assert storage.expire(req)
        assert storage.get_meta(req) is None
        assert not storage.expire(req)


class TestMemcachedExpire(object):
    def test_expire_time_passed_to_server(self):
        client = RecordingClient()
        storage = MemcachedStorage([('localhost', 11211)], expire_in_minutes=5, client=client)
        req = TileRequest(Command.RENDER, 2051, 1362, 12, style='osm', format=TileFormat.PNG)
        assert storage.put_meta(req, b'data')
        assert client.calls == [('set', '/osm/12/2048/1360.png', 300)]

    def test_expire_seconds(self):
        assert expire_seconds(0) == 0
        assert expire_seconds(None) == 0
        assert expire_seconds(1) == 60
        assert expire_seconds(30 * 24 * 60) == 30 * 24 * 3600
        assert expire_seconds(30 * 24 * 60 + 1) == 0
        assert expire_seconds(-1) == 0


class TestMemcachedConfig(object):
    def test_parse_options(self):
        assert parse_memcached_options(
            '--SERVER=10.0.0.1:11212 --BINARY-PROTOCOL --server=cache') == [
            ('10.0.0.1', 11212), ('cache', 11211)]

    def test_parse_options_empty(self):
        assert parse_memcached_options('') == []

    def test_parse_server_invalid(self):
        with pytest.raises(ValueError):
            parse_server(':11211')
        with pytest.raises(ValueError):
            parse_server('cache:port')

    def test_no_servers(self):
        with pytest.raises(StorageBackendError):
            create_memcached_storage({'options': '--BINARY-PROTOCOL'})

    @pytest.mark.skipif(not MockMemcacheClient, reason="pymemcache required for memcached tests")
    def test_create_from_conf(self):
        storage = create_memcached_storage({'servers': ['10.0.0.1', '10.0.0.2:11212'],
                                            'expire': 10})
        assert storage.servers == [('10.0.0.1', 11211), ('10.0.0.2', 11212)]
        assert storage.ttl == 600


@pytest.mark.skipif(not MockMemcacheClient or not os.environ.get('TILESTORE_TEST_MEMCACHED'),
                    reason="pymemcache package and TILESTORE_TEST_MEMCACHED env required")
class TestMemcachedServerStorage(StorageTestBase):

    def setup_method(self):
        StorageTestBase.setup_method(self)
        self.storage = create_memcached_storage({
            'options': '--SERVER=%s' % os.environ['TILESTORE_TEST_MEMCACHED']})
        for style in ('osm', 'topo'):
            for fmt in ('png', 'jpg', 'json'):
                self.storage.client.delete('/%s/12/2048/1360.%s' % (style, fmt))
