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
Tile requests as exchanged between clients, brokers and workers.

Two requests are equal if they ask for the same tile(s) for the same client,
regardless of how they are handled (command and priority). Requests are
collapsed by `TileRequest.collapse_hash`, which only depends on style, zoom
level and metatile. Requests of different clients for different tiles of one
metatile are rendered as one unit of work.

On the wire a request is a JSON document::

    {"command": 1, "x": 2051, "y": 1362, "z": 12, "id": 42,
     "style": "osm", "format": 1, "priority": 100,
     "parameters": {"lang": "de"}, "image": "<base64>"}

`last_modified`/`request_last_modified` are only sent when non-zero,
`image` only when there is data. Parameters with empty values are not sent,
on the receiving side they are missing. `priority` is always the effective
priority.
"""

import base64
import binascii
import copy
import hashlib
import json
from enum import IntEnum

from tilestore.formats import TileFormat, split_formats, file_type_for
from tilestore.meta import metatile_origin
from tilestore.util.schema import load_validator, schema_path, get_error_messages

import logging
log = logging.getLogger(__name__)


class Command(IntEnum):
    IGNORE = 0
    RENDER = 1       # render with normal priority
    DIRTY = 2        # tile expired, re-render
    DONE = 3         # worker completed the command
    NOT_DONE = 4
    RENDER_PRIO = 5  # render with higher priority
    RENDER_BULK = 6  # render with lower priority, no response expected
    STATUS = 7       # request the status of a tile


PRIORITY_BULK = 0
PRIORITY_DIRTY = 50
PRIORITY_DEFAULT = 100
PRIORITY_HIGH = 150
MAX_PRIORITY = 2**31 - 1

_command_priorities = {
    Command.RENDER_BULK: PRIORITY_BULK,
    Command.DIRTY: PRIORITY_DIRTY,
    Command.RENDER_PRIO: PRIORITY_HIGH,
}


class TileRequestDecodeError(ValueError):
    pass


class TileRequest(object):
    """
    A request for one tile.

    :param priority: explicit priority, ``None`` to derive the priority
        from the command (see `effective_priority`)
    :param parameters: additional rendering parameters (str -> str)
    :param data: rendered tile/metatile data, set on responses
    """

    def __init__(self, command=Command.RENDER_PRIO, x=0, y=0, z=0, id=0, style='',
                 format=TileFormat.PNG, last_modified=0, request_last_modified=0,
                 priority=None, parameters=None, data=b''):
        self.command = Command(command)
        self.x = x
        self.y = y
        self.z = z
        self.id = id
        self.style = style
        self.format = TileFormat(format)
        self.last_modified = last_modified
        self.request_last_modified = request_last_modified
        self.priority = priority
        self.parameters = dict(parameters) if parameters else {}
        self.data = data

    @property
    def priority(self):
        return self._priority

    @priority.setter
    def priority(self, value):
        if value is not None:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError('priority must be an int or None, got %r' % (value, ))
            if not 0 <= value <= MAX_PRIORITY:
                raise ValueError('priority %d out of range [0, %d]' % (value, MAX_PRIORITY))
        self._priority = value

    @property
    def effective_priority(self):
        """
        The explicit priority if set, else the priority for the command:
        bulk < dirty < default < high priority.

        >>> TileRequest(Command.RENDER_BULK).effective_priority
        0
        >>> TileRequest(Command.RENDER_BULK, priority=42).effective_priority
        42
        """
        if self._priority is not None:
            return self._priority
        return _command_priorities.get(self.command, PRIORITY_DEFAULT)

    @property
    def coord(self):
        return self.x, self.y, self.z

    def collapse_key(self):
        """
        The part of the request that identifies the unit of work.
        Client id, format and the position inside the metatile are ignored.
        """
        mx, my = metatile_origin(self.x, self.y)
        return self.style, self.z, mx, my

    def collapse_hash(self):
        """
        Stable 64 bit hash of `collapse_key`, identical in all processes.
        Different metatiles may collide, use it for routing and sharding only.
        """
        style, z, mx, my = self.collapse_key()
        key = ('%d/%d/%d/%s' % (z, mx, my, style)).encode('utf-8')
        md5 = hashlib.new('md5', key, usedforsecurity=False)
        return int.from_bytes(md5.digest()[:8], 'big')

    def copy(self):
        return copy.deepcopy(self)

    def __eq__(self, other):
        if not isinstance(other, TileRequest):
            return NotImplemented
        return (
            self.x == other.x and self.y == other.y and self.z == other.z and
            self.id == other.id and self.style == other.style and
            self.parameters == other.parameters and self.format == other.format
        )

    def __ne__(self, other):
        eq = self.__eq__(other)
        if eq is NotImplemented:
            return eq
        return not eq

    def __hash__(self):
        # equal requests always share a collapse key
        return hash(self.collapse_key())

    def __repr__(self):
        parts = ['%d:%d:%d' % (self.z, self.x, self.y), 'command=%s' % self.command.name]
        parts.append('fmt=%s' % ','.join(file_type_for(f) for f in split_formats(self.format)))
        if self.last_modified:
            parts.append('last_modified=%s' % self.last_modified)
        if self.request_last_modified:
            parts.append('request_last_modified=%s' % self.request_last_modified)
        parts.append('id=%d' % self.id)
        parts.append('style=%s' % self.style)
        if self.parameters:
            parts.append('(parameters: %s)' % ' '.join(
                '%s=%s' % item for item in sorted(self.parameters.items())))
        parts.append('priority=%d' % self.effective_priority)
        parts.append('data=%d' % len(self.data))
        return '<TileRequest %s>' % ' '.join(parts)


_validator = load_validator(schema_path(__file__, 'tile-request-schema.json'))


def serialize(request):
    """
    Encode `request` for the wire.
    """
    message = {
        'command': int(request.command),
        'x': request.x,
        'y': request.y,
        'z': request.z,
        'id': request.id,
        'style': request.style,
        'format': int(request.format),
        'priority': request.effective_priority,
    }
    if request.last_modified:
        message['last_modified'] = request.last_modified
    if request.request_last_modified:
        message['request_last_modified'] = request.request_last_modified
    parameters = dict((k, v) for k, v in request.parameters.items() if v != '')
    if parameters:
        message['parameters'] = parameters
    if request.data:
        message['image'] = base64.b64encode(request.data).decode('ascii')
    return json.dumps(message, sort_keys=True, separators=(',', ':')).encode('utf-8')


def deserialize(buf):
    """
    Decode a request from the wire. Raises `TileRequestDecodeError` for
    anything that is not a valid request; such messages should be dropped.
    """
    try:
        if not isinstance(buf, str):
            buf = bytes(buf).decode('utf-8')
        message = json.loads(buf)
    except (TypeError, ValueError, RecursionError) as ex:
        raise TileRequestDecodeError('invalid tile request: %s' % ex)

    errors = get_error_messages(_validator.iter_errors(message))
    if errors:
        raise TileRequestDecodeError('invalid tile request: %s' % '; '.join(errors))

    try:
        data = base64.b64decode(message.get('image', ''), validate=True)
    except (binascii.Error, ValueError) as ex:
        raise TileRequestDecodeError('invalid tile data: %s' % ex)

    return TileRequest(
        command=int(message['command']),
        x=int(message['x']),
        y=int(message['y']),
        z=int(message['z']),
        id=int(message['id']),
        style=message['style'],
        format=int(message['format']),
        last_modified=message.get('last_modified', 0),
        request_last_modified=message.get('request_last_modified', 0),
        priority=int(message['priority']) if 'priority' in message else None,
        parameters=message.get('parameters'),
        data=data,
    )
