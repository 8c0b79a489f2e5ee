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

from confluent_kafka import KafkaError
from confluent_kafka.admin import ClusterMetadata, PartitionMetadata, TopicMetadata


class FakeMessage(object):
    """
    Stand-in for :py:class:`confluent_kafka.Message` with the accessors
    the pipeline uses.
    """

    def __init__(self, topic='test', partition=0, offset=0, key=None, value=None, error=None):
        self._topic = topic
        self._partition = partition
        self._offset = offset
        self._key = key
        self._value = value
        self._error = error

    def topic(self):
        return self._topic

    def partition(self):
        return self._partition

    def offset(self):
        return self._offset

    def key(self):
        return self._key

    def value(self):
        return self._value

    def error(self):
        return self._error


def eof_message(partition, offset, topic='test'):
    return FakeMessage(topic=topic, partition=partition, offset=offset,
                       error=KafkaError(KafkaError._PARTITION_EOF))


class ChunkedReader(object):
    """Binary stream returning at most ``chunk`` bytes per read."""

    def __init__(self, data, chunk=3):
        self._data = data
        self._chunk = chunk
        self._pos = 0

    def read(self, size=-1):
        n = self._chunk if size < 0 else min(size, self._chunk)
        out = self._data[self._pos:self._pos + n]
        self._pos += len(out)
        return out


def cluster_metadata(topic='test', partitions=3, error=None):
    """ClusterMetadata for a single topic with ``partitions`` partitions."""
    md = ClusterMetadata()
    t = TopicMetadata()
    t.topic = topic
    t.error = error
    for i in range(partitions):
        p = PartitionMetadata()
        p.id = i
        t.partitions[i] = p
    md.topics[topic] = t
    return md
