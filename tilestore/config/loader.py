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
Configuration loading.

A configuration is a YAML file with a ``storage`` section::

    storage:
      type: cassandra
      server: [10.0.0.1, 10.0.0.2]
      keyspace_prefix: tiles_

The ``type`` selects the storage from the registry, all other keys are
passed to the storage factory. Unknown keys are ignored.
"""

import os

from tilestore.storage.registry import register_builtin_storages, create_storage
from tilestore.util.schema import load_validator, schema_path, get_error_messages
from tilestore.util.yaml import load_yaml_file, YAMLError

import logging
log = logging.getLogger('tilestore.config')


class ConfigurationError(Exception):
    pass


_validator = load_validator(schema_path(__file__, 'config-schema.json'))


def validate(conf_dict):
    """
    Validate `conf_dict` against the configuration schema.
    Returns a list of error messages, empty if the configuration is valid.
    """
    return get_error_messages(_validator.iter_errors(conf_dict))


def _check(conf_dict):
    errors = validate(conf_dict)
    if errors:
        for error in errors:
            log.error(error)
        raise ConfigurationError('invalid configuration: %s' % '; '.join(errors))


def load_storage_config(conf_file):
    """
    Load and validate the configuration from `conf_file`.

    A relative ``base_dir`` of a file storage is interpreted relative to
    the directory of `conf_file`.
    """
    try:
        conf_dict = load_yaml_file(conf_file)
    except YAMLError as ex:
        raise ConfigurationError(ex)
    except OSError as ex:
        raise ConfigurationError('unable to read configuration %s: %s' % (conf_file, ex))
    _check(conf_dict)

    storage_conf = conf_dict['storage']
    base_dir = storage_conf.get('base_dir')
    if base_dir and isinstance(conf_file, str) and not os.path.isabs(base_dir):
        storage_conf['base_dir'] = os.path.join(
            os.path.dirname(os.path.abspath(conf_file)), base_dir)
    return conf_dict


def load_storage(conf, context=None):
    """
    Create the configured storage.

    :param conf: configuration dict or configuration file
    :param context: optional object shared with the storage factory

    Errors while creating the storage are not caught. A process should not
    start without its storage.
    """
    if isinstance(conf, dict):
        _check(conf)
    else:
        conf = load_storage_config(conf)

    storage_conf = dict(conf['storage'])
    storage_type = storage_conf.pop('type')

    register_builtin_storages()
    return create_storage(storage_type, storage_conf, context)
