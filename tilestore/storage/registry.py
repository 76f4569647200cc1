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
Process wide registry of storage factories.

A factory is called with the storage configuration (a dict) and an optional
context object shared by the process (e.g. a messaging context) and returns
a new `TileStorageBase` instance.

The registry is filled explicitly: call `register_builtin_storages` (and
`register_storage` for custom backends) once at process start, before the
first `create_storage`. `tilestore.config.loader.load_storage` does this.
"""

import threading

import logging
log = logging.getLogger(__name__)


class StorageRegistryError(Exception):
    pass


class UnknownStorageError(StorageRegistryError, KeyError):
    def __str__(self):
        return Exception.__str__(self)


_storage_factories = {}
_lock = threading.Lock()


def register_storage(name, factory, replace=False):
    """
    Register `factory` for the storage type `name`.

    Registering a name twice is a configuration error and raises
    `StorageRegistryError`, unless `replace` is true.
    """
    with _lock:
        if name in _storage_factories and not replace:
            raise StorageRegistryError('storage type %r already registered' % name)
        _storage_factories[name] = factory
    log.debug('registered storage type %s', name)


def unregister_storage(name):
    with _lock:
        _storage_factories.pop(name, None)


def registered_storages():
    with _lock:
        return sorted(_storage_factories)


def create_storage(name, conf=None, context=None):
    """
    Create a new storage of type `name` from `conf`.

    Raises `UnknownStorageError` for unregistered names. Errors of the
    factory (e.g. unreachable servers) are passed on, a process can not
    run without its storage.
    """
    with _lock:
        factory = _storage_factories.get(name)
    if factory is None:
        raise UnknownStorageError('unknown storage type %r (registered: %s)' % (
            name, ', '.join(registered_storages()) or 'none'))
    log.info('creating %s storage', name)
    return factory(conf or {}, context)


def _lazy_factory(module_name, factory_name):
    """
    Import the backend module on first use, so that missing optional client
    libraries only fail when the backend is actually configured.
    """
    def factory(conf, context=None):
        import importlib
        module = importlib.import_module(module_name)
        return getattr(module, factory_name)(conf, context)
    factory.__name__ = factory_name
    return factory


_builtin_storages = {
    'cassandra': ('tilestore.storage.cassandra', 'create_cassandra_storage'),
    'memcached': ('tilestore.storage.memcached', 'create_memcached_storage'),
    'redis': ('tilestore.storage.redis', 'create_redis_storage'),
    'file': ('tilestore.storage.file', 'create_file_storage'),
    's3': ('tilestore.storage.s3', 'create_s3_storage'),
    'null': ('tilestore.storage.null', 'create_null_storage'),
}


def register_builtin_storages():
    """
    Register all storage types shipped with TileStore. Names that are
    already registered are kept, so calling this more than once is safe.
    """
    for name, (module_name, factory_name) in _builtin_storages.items():
        with _lock:
            if name in _storage_factories:
                continue
            _storage_factories[name] = _lazy_factory(module_name, factory_name)
