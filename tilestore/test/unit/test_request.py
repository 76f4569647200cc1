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

import json

import pytest

from tilestore.formats import TileFormat
from tilestore.request import (
    Command,
    TileRequest,
    TileRequestDecodeError,
    serialize,
    deserialize,
    PRIORITY_BULK,
    PRIORITY_DIRTY,
    PRIORITY_DEFAULT,
    PRIORITY_HIGH,
)


def create_request(**kw):
    args = dict(command=Command.RENDER, x=2051, y=1362, z=12, id=42, style='osm',
                format=TileFormat.PNG)
    args.update(kw)
    return TileRequest(**args)


class TestEquality(object):
    def test_equal(self):
        assert create_request() == create_request()

    def test_ignores_command_and_priority(self):
        a = create_request(command=Command.RENDER_BULK)
        b = create_request(command=Command.DONE, priority=7)
        assert a == b
        assert not a != b

    @pytest.mark.parametrize('changes', [
        {'x': 2052},
        {'y': 1363},
        {'z': 13},
        {'id': 43},
        {'style': 'topo'},
        {'format': TileFormat.JPEG},
        {'parameters': {'lang': 'de'}},
    ])
    def test_differs(self, changes):
        assert create_request() != create_request(**changes)

    def test_parameters_unordered(self):
        a = create_request(parameters={'a': '1', 'b': '2'})
        b = create_request(parameters={'b': '2', 'a': '1'})
        assert a == b

    def test_data_ignored(self):
        assert create_request(data=b'foo') == create_request()

    def test_other_types(self):
        assert create_request() != (2051, 1362, 12)

    def test_usable_in_sets(self):
        requests = set([create_request(), create_request(), create_request(id=1)])
        assert len(requests) == 2


class TestCollapseHash(object):
    def test_ignores_id_and_position_in_metatile(self):
        a = create_request(id=1, x=2048, y=1360)
        b = create_request(id=2, x=2055, y=1367)
        assert a.collapse_key() == b.collapse_key() == ('osm', 12, 2048, 1360)
        assert a.collapse_hash() == b.collapse_hash()

    def test_ignores_format(self):
        a = create_request(format=TileFormat.PNG)
        b = create_request(format=TileFormat.JPEG | TileFormat.JSON)
        assert a.collapse_hash() == b.collapse_hash()

    def test_different_metatile(self):
        a = create_request(x=2047)
        b = create_request(x=2048)
        assert a.collapse_hash() != b.collapse_hash()

    def test_different_zoom(self):
        assert create_request(z=12).collapse_hash() != create_request(z=13).collapse_hash()

    def test_styles_do_not_collide(self):
        hashes = set(create_request(style='style%d' % i).collapse_hash() for i in range(1000))
        assert len(hashes) == 1000

    def test_stable(self):
        # identical in every process, independent of PYTHONHASHSEED
        assert create_request().collapse_hash() == create_request().collapse_hash()
        assert 0 <= create_request().collapse_hash() < 2**64

    def test_python_hash_consistent_with_eq(self):
        a = create_request(command=Command.RENDER_BULK)
        b = create_request(command=Command.RENDER_PRIO)
        assert a == b
        assert hash(a) == hash(b)


class TestPriority(object):
    def test_bands(self):
        assert create_request(command=Command.RENDER_BULK).effective_priority == PRIORITY_BULK
        assert create_request(command=Command.DIRTY).effective_priority == PRIORITY_DIRTY
        assert create_request(command=Command.RENDER).effective_priority == PRIORITY_DEFAULT
        assert create_request(command=Command.STATUS).effective_priority == PRIORITY_DEFAULT
        assert create_request(command=Command.RENDER_PRIO).effective_priority == PRIORITY_HIGH
        assert PRIORITY_BULK < PRIORITY_DIRTY < PRIORITY_DEFAULT < PRIORITY_HIGH

    @pytest.mark.parametrize('command', list(Command))
    def test_explicit_overrides(self, command):
        req = create_request(command=command, priority=42)
        assert req.priority == 42
        assert req.effective_priority == 42

    def test_explicit_zero(self):
        assert create_request(command=Command.RENDER_PRIO, priority=0).effective_priority == 0

    def test_unset_by_default(self):
        req = TileRequest(Command.RENDER, 1, 2, 3, 4, 'osm', TileFormat.PNG, 0, 0)
        assert req.priority is None
        assert req.effective_priority == PRIORITY_DEFAULT

    def test_default_command(self):
        req = TileRequest()
        assert req.command == Command.RENDER_PRIO
        assert req.effective_priority == PRIORITY_HIGH

    def test_invalid(self):
        with pytest.raises(ValueError):
            create_request(priority=-1)
        with pytest.raises(ValueError):
            create_request(priority=2**31)
        with pytest.raises(TypeError):
            create_request(priority='10')
        with pytest.raises(TypeError):
            create_request(priority=True)

    def test_reset(self):
        req = create_request(command=Command.DIRTY, priority=10)
        req.priority = None
        assert req.effective_priority == PRIORITY_DIRTY


class TestSerialize(object):
    def test_round_trip(self):
        req = create_request(last_modified=1325376000, request_last_modified=1325376100,
                             parameters={'lang': 'de', 'scale': '2'}, data=b'\x89PNG\x00')
        result = deserialize(serialize(req))
        assert result == req
        assert result.command == Command.RENDER
        assert result.last_modified == 1325376000
        assert result.request_last_modified == 1325376100
        assert result.data == b'\x89PNG\x00'
        assert result.parameters == {'lang': 'de', 'scale': '2'}

    def test_round_trip_defaults(self):
        req = TileRequest()
        result = deserialize(serialize(req))
        assert result == req
        assert result.last_modified == 0
        assert result.request_last_modified == 0
        assert result.parameters == {}
        assert result.data == b''

    def test_empty_parameter_values_are_dropped(self):
        req = create_request(parameters={'lang': '', 'scale': '2'})
        result = deserialize(serialize(req))
        assert result.parameters == {'scale': '2'}
        # empty and missing values are the same on the wire
        assert result != req
        assert result == create_request(parameters={'scale': '2'})

    def test_zero_timestamps_not_sent(self):
        message = json.loads(serialize(create_request()))
        assert 'last_modified' not in message
        assert 'request_last_modified' not in message
        assert 'image' not in message
        assert 'parameters' not in message

    def test_effective_priority_sent(self):
        message = json.loads(serialize(create_request(command=Command.DIRTY)))
        assert message['priority'] == PRIORITY_DIRTY
        result = deserialize(serialize(create_request(command=Command.DIRTY)))
        assert result.priority == PRIORITY_DIRTY

    def test_explicit_priority_sent(self):
        result = deserialize(serialize(create_request(command=Command.RENDER_BULK, priority=42)))
        assert result.priority == 42
        assert result.effective_priority == 42

    def test_missing_priority_is_unset(self):
        message = json.loads(serialize(create_request(command=Command.RENDER_BULK)))
        del message['priority']
        result = deserialize(json.dumps(message).encode('utf-8'))
        assert result.priority is None
        assert result.effective_priority == PRIORITY_BULK

    def test_multiple_formats(self):
        req = create_request(format=TileFormat.PNG | TileFormat.JSON)
        assert deserialize(serialize(req)).format == TileFormat.PNG | TileFormat.JSON

    def test_accepts_str_and_bytearray(self):
        buf = serialize(create_request())
        assert deserialize(buf.decode('utf-8')) == create_request()
        assert deserialize(bytearray(buf)) == create_request()

    @pytest.mark.parametrize('buf', [
        b'',
        b'\xff\xfe\x00garbage',
        b'not json',
        b'[1, 2, 3]',
        b'{}',
        b'{"command": 1, "x": 1, "y": 2, "z": 3, "id": 4, "style": "osm"}',
        b'{"command": 99, "x": 1, "y": 2, "z": 3, "id": 4, "style": "osm", "format": 1}',
        b'{"command": 1, "x": "1", "y": 2, "z": 3, "id": 4, "style": "osm", "format": 1}',
        b'{"command": 1, "x": 1, "y": 2, "z": 3, "id": 4, "style": "osm", "format": 32}',
        b'{"command": 1, "x": 1, "y": 2, "z": 3, "id": 4, "style": "osm", "format": 1, "priority": -1}',
        b'{"command": 1, "x": 1, "y": 2, "z": 3, "id": 4, "style": "osm", "format": 1, "parameters": {"a": 1}}',
        b'{"command": 1, "x": 1, "y": 2, "z": 3, "id": 4, "style": "osm", "format": 1, "image": "!!"}',
        b'[' * 100000 + b']' * 100000,
        b'{"a": ' * 100000 + b'1' + b'}' * 100000,
    ])
    def test_decode_errors(self, buf):
        with pytest.raises(TileRequestDecodeError):
            deserialize(buf)

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            deserialize(b'garbage')


def test_repr():
    req = create_request(format=TileFormat.PNG | TileFormat.JPEG, parameters={'lang': 'de'},
                         last_modified=10)
    assert repr(req) == ('<TileRequest 12:2051:1362 command=RENDER fmt=png,jpg last_modified=10'
                         ' id=42 style=osm (parameters: lang=de) priority=100 data=0>')


def test_copy():
    req = create_request(parameters={'lang': 'de'})
    other = req.copy()
    other.parameters['lang'] = 'en'
    assert req.parameters == {'lang': 'de'}
