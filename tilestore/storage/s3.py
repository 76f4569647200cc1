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
Metatile storage in S3 compatible object stores.

Objects are stored at ``<base_path><storage key>``. S3 resolves concurrent
puts of the same key by last write. `last_modified` is the object's
LastModified time (one second resolution). Expiring deletes the object,
which S3 reports as success even for missing keys.
"""

import threading

from tilestore.storage.base import TileStorageBase, MetaBlob, StorageBackendError
from tilestore.util import times

try:
    import boto3
    import botocore
except ImportError:
    boto3 = None

import logging
log = logging.getLogger(__name__)


_s3_sessions_cache = threading.local()


def s3_session(profile_name=None):
    if not hasattr(_s3_sessions_cache, 'sessions'):
        _s3_sessions_cache.sessions = {}
    if profile_name not in _s3_sessions_cache.sessions:
        _s3_sessions_cache.sessions[profile_name] = boto3.session.Session(profile_name=profile_name)
    return _s3_sessions_cache.sessions[profile_name]


class S3Storage(TileStorageBase):
    name = 's3'

    def __init__(self, bucket_name, base_path='', profile_name=None, region_name=None,
                 endpoint_url=None):
        if boto3 is None:
            raise ImportError("S3 storage requires 'boto3' package.")
        self.bucket_name = bucket_name
        self.base_path = base_path.strip('/')
        self.profile_name = profile_name
        self.region_name = region_name
        self.endpoint_url = endpoint_url

        log.info('Initializing s3 storage with bucket=%s, base_path=%s', bucket_name, self.base_path)
        try:
            self.conn().head_bucket(Bucket=bucket_name)
        except botocore.exceptions.ClientError as e:
            code = e.response['Error']['Code']
            if code == '404':
                raise StorageBackendError('No such bucket: %s' % bucket_name)
            elif code == '403':
                raise StorageBackendError('Access denied. Check your credentials')
            raise StorageBackendError('Unknown error: %s' % e)

    def conn(self):
        return s3_session(self.profile_name).client(
            's3', region_name=self.region_name, endpoint_url=self.endpoint_url)

    def key(self, request):
        key = TileStorageBase.key(self, request).lstrip('/')
        if self.base_path:
            return self.base_path + '/' + key
        return key

    def load_meta(self, request, key):
        try:
            r = self.conn().get_object(Bucket=self.bucket_name, Key=key)
        except botocore.exceptions.ClientError as e:
            # moto get_object can return Error wrapped in Errors
            error = e.response.get('Errors', e.response)['Error']
            if error['Code'] in ('404', 'NoSuchKey'):
                return None
            raise
        last_modified = None
        if 'LastModified' in r:
            last_modified = times.timestamp(r['LastModified'])
        return MetaBlob(r['Body'].read(), last_modified)

    def store_meta(self, request, key, data, timestamp):
        self.conn().put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=data,
            Metadata={'write-timestamp': str(timestamp)},
        )
        return True

    def remove_meta(self, request, key):
        self.conn().delete_object(Bucket=self.bucket_name, Key=key)
        return True


def create_s3_storage(conf, context=None):
    from tilestore.config import defaults

    return S3Storage(
        bucket_name=conf.get('bucket_name', defaults.s3['bucket_name']),
        base_path=conf.get('base_path', defaults.s3['base_path']),
        profile_name=conf.get('profile_name'),
        region_name=conf.get('region_name'),
        endpoint_url=conf.get('endpoint_url'),
    )
