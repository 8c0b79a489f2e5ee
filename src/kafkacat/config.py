#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2026 Confluent Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
from confluent_kafka import OFFSET_BEGINNING, OFFSET_END, OFFSET_STORED

from .consumer import offset_tail
from .error import UsageError

CONFIGURATION_URL = 'https://github.com/confluentinc/librdkafka/blob/master/CONFIGURATION.md'

_NAMED_OFFSETS = {
    'beginning': OFFSET_BEGINNING,
    'end': OFFSET_END,
    'stored': OFFSET_STORED,
}


def parse_offset(value):
    """
    Parse a start offset: ``beginning``, ``end``, ``stored``, an absolute
    offset, or ``-N`` for the last N messages.

    Raises:
        UsageError: if ``value`` is none of the above.
    """
    if value in _NAMED_OFFSETS:
        return _NAMED_OFFSETS[value]

    try:
        offset = int(value)
    except ValueError:
        raise UsageError("Invalid offset: {}".format(value))

    if offset < 0:
        return offset_tail(-offset)
    return offset


class ClientConfig(object):
    """
    Client configuration assembled from the command line.

    Global and topic properties are kept apart for dumping, but are
    passed to the client as a single dict. Properties given with a
    ``topic.`` prefix are topic properties.
    """

    TOPIC_PREFIX = 'topic.'

    def __init__(self):
        self.global_conf = {}
        self.topic_conf = {}

    def set(self, name, value):
        if name.startswith(self.TOPIC_PREFIX):
            self.topic_conf[name[len(self.TOPIC_PREFIX):]] = value
        else:
            self.global_conf[name] = value

    def set_property(self, prop):
        """
        Set a ``name=value`` property.

        Raises:
            UsageError: if ``prop`` has no ``=``.
        """
        name, sep, value = prop.partition('=')
        if not sep or not name:
            raise UsageError("Expected -X property=value, not {}, "
                             "see {} for available properties".format(prop, CONFIGURATION_URL))
        self.set(name, value)

    def as_dict(self):
        conf = dict(self.global_conf)
        conf.update(self.topic_conf)
        return conf

    def dump(self, fp):
        """Write the configured properties to the text stream ``fp``."""
        for title, conf in (('Global config', self.global_conf),
                            ('Topic config', self.topic_conf)):
            fp.write("# {}\n".format(title))
            for name, value in sorted(conf.items()):
                if callable(value) or name == 'logger':
                    continue
                fp.write("{} = {}\n".format(name, value))
            fp.write("\n")
