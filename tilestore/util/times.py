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
Date and time utilities.
"""
import calendar
import datetime
import time


def timestamp_ms():
    """
    Current time in milliseconds since epoch.

    >>> abs(timestamp_ms() / 1000.0 - time.time()) < 1
    True
    """
    return int(time.time() * 1000)


def timestamp(date):
    """
    Convert a (naive UTC or aware) datetime to seconds since epoch.

    >>> timestamp(datetime.datetime(2012, 1, 1, 0, 0, 0))
    1325376000
    """
    if isinstance(date, datetime.datetime):
        if date.tzinfo is not None:
            date = date.astimezone(datetime.timezone.utc)
        return calendar.timegm(date.timetuple())
    return date
