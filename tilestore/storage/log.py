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

import logging
logger = logging.getLogger('tilestore.storage.ops')


def log_storage_op(backend, op, key, result, size=None, duration=None):
    if not logger.isEnabledFor(logging.INFO):
        return

    if size:
        size = '%.1f' % (size/1024.0, )
    else:
        size = '-'
    if result is None:
        result = '-'
    elif result is True:
        result = 'ok'
    elif result is False:
        result = 'fail'
    duration = '%d' % (duration*1000) if duration else '-'
    logger.info('%s %s %s %s %s %s', backend, op.upper(), key, result, size, duration)
