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

# memcached interprets expire times above 30 days as absolute timestamps
max_expire_minutes = 30 * 24 * 60

cassandra = dict(
    server = '127.0.0.1',
    port = 9042,
    keyspace_prefix = 'tiles_',
    table = 'tiles',
)

memcached = dict(
    options = '--SERVER=localhost',
    expire = 0,
)

redis = dict(
    host = '127.0.0.1',
    port = 6379,
    db = 0,
    prefix = 'tiles',
    expire = 0,
)

file = dict(
    base_dir = './tile_data',
)

s3 = dict(
    bucket_name = 'tiles',
    base_path = '',
)
