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

from io import StringIO

import pytest
from confluent_kafka import OFFSET_BEGINNING, OFFSET_END, OFFSET_STORED

from kafkacat.config import ClientConfig, parse_offset
from kafkacat.error import UsageError


@pytest.mark.parametrize("value, expected", [
    ('beginning', OFFSET_BEGINNING),
    ('end', OFFSET_END),
    ('stored', OFFSET_STORED),
    ('0', 0),
    ('1234', 1234),
    ('-10', -2010),
])
def test_parse_offset(value, expected):
    assert parse_offset(value) == expected


def test_parse_offset_invalid():
    with pytest.raises(UsageError, match='Invalid offset: latest'):
        parse_offset('latest')


def test_topic_properties_are_separated():
    conf = ClientConfig()
    conf.set_property('queue.buffering.max.ms=10')
    conf.set_property('topic.acks=all')
    conf.set_property('sasl.password=a=b')

    assert conf.global_conf == {'queue.buffering.max.ms': '10', 'sasl.password': 'a=b'}
    assert conf.topic_conf == {'acks': 'all'}
    assert conf.as_dict() == {'queue.buffering.max.ms': '10', 'sasl.password': 'a=b', 'acks': 'all'}


@pytest.mark.parametrize("prop", ['novalue', '=value'])
def test_malformed_property(prop):
    with pytest.raises(UsageError, match='Expected -X property=value'):
        ClientConfig().set_property(prop)


def test_dump():
    conf = ClientConfig()
    conf.set('bootstrap.servers', 'localhost:9092')
    conf.set('error_cb', print)
    conf.set('topic.acks', '1')

    out = StringIO()
    conf.dump(out)

    assert out.getvalue() == ("# Global config\n"
                              "bootstrap.servers = localhost:9092\n"
                              "\n"
                              "# Topic config\n"
                              "acks = 1\n"
                              "\n")
