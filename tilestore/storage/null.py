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

from tilestore.storage.base import TileStorageBase


class NullStorage(TileStorageBase):
    """
    Storage that keeps nothing. Every tile is reported as missing and
    every write and expire succeeds.
    """
    name = 'null'

    def load_meta(self, request, key):
        return None

    def store_meta(self, request, key, data, timestamp):
        return True

    def remove_meta(self, request, key):
        return True


def create_null_storage(conf, context=None):
    return NullStorage()
