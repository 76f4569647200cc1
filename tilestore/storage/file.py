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
Metatile storage in the local file system.

Each metatile is one file at ``<base_dir><storage key>``. Writes are atomic
renames, so concurrent writers race and the last rename wins. The file
modification time is set to the write timestamp and returned as
`last_modified`. Expiring removes the file.
"""

import errno
import os

from tilestore.storage.base import TileStorageBase, MetaBlob
from tilestore.util.fs import ensure_directory, write_atomic

import logging
log = logging.getLogger(__name__)


class FileStorage(TileStorageBase):
    name = 'file'

    def __init__(self, base_dir, file_permissions=None):
        """
        :param base_dir: the directory where metatiles are stored
        :param file_permissions: octal permission string (e.g. '644')
            for new files
        """
        self.base_dir = os.path.abspath(base_dir)
        self.file_permissions = file_permissions
        log.info('Initializing file storage in %s', self.base_dir)

    def key(self, request):
        key = TileStorageBase.key(self, request)
        if request.style in ('', '.', '..'):
            raise ValueError('invalid style for file storage: %r' % request.style)
        return key

    def location(self, key):
        """
        >>> FileStorage('/tmp/tiles').location('/osm/2/0/0.png')
        '/tmp/tiles/osm/2/0/0.png'
        """
        return os.path.join(self.base_dir, *key.lstrip('/').split('/'))

    def load_meta(self, request, key):
        location = self.location(key)
        try:
            with open(location, 'rb') as f:
                data = f.read()
                mtime = os.fstat(f.fileno()).st_mtime
        except OSError as ex:
            if ex.errno == errno.ENOENT:
                return None
            raise
        return MetaBlob(data, mtime)

    def store_meta(self, request, key, data, timestamp):
        location = self.location(key)
        ensure_directory(location)
        log.debug('writing metatile %s to %s', key, location)
        write_atomic(location, data, mtime=timestamp / 1000.0)
        if self.file_permissions:
            os.chmod(location, int(self.file_permissions, base=8))
        return True

    def remove_meta(self, request, key):
        try:
            os.remove(self.location(key))
        except OSError as ex:
            if ex.errno != errno.ENOENT:
                raise
        return True


def create_file_storage(conf, context=None):
    from tilestore.config import defaults

    return FileStorage(
        base_dir=conf.get('base_dir', defaults.file['base_dir']),
        file_permissions=conf.get('file_permissions'),
    )
