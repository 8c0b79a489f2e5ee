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
import json

from confluent_kafka import KafkaError, KafkaException, Producer

from .error import FatalError, error_string

METADATA_TIMEOUT = 5.0


def _ids(ids):
    return ",".join(str(i) for i in ids)


def metadata_print(md, topic, fp):
    """
    Print cluster metadata as text.

    Args:
        md (ClusterMetadata): Metadata returned by ``list_topics()``.

        topic (str): The queried topic, or None for all topics.

        fp (TextIO): Output stream.
    """
    fp.write("Metadata for {} (from broker {}: {}):\n".format(
        topic or "all topics", md.orig_broker_id, md.orig_broker_name))

    fp.write(" {} brokers:\n".format(len(md.brokers)))
    for b in md.brokers.values():
        fp.write("  broker {} at {}:{}\n".format(b.id, b.host, b.port))

    fp.write(" {} topics:\n".format(len(md.topics)))
    for t in md.topics.values():
        errstr = ""
        if t.error is not None:
            errstr = " {}".format(t.error.str())
            if t.error.code() == KafkaError.LEADER_NOT_AVAILABLE:
                errstr += " (try again)"
        fp.write("  topic \"{}\" with {} partitions:{}\n".format(t.topic, len(t.partitions), errstr))

        for p in sorted(t.partitions.values(), key=lambda p: p.id):
            line = "    partition {}, leader {}, replicas: {}, isrs: {}".format(
                p.id, p.leader, _ids(p.replicas), _ids(p.isrs))
            if p.error is not None:
                line += ", {}".format(p.error.str())
            fp.write(line + "\n")


def metadata_dict(md):
    """Cluster metadata as a JSON serializable dict."""
    def _err(error):
        return None if error is None else error.str()

    return {
        'originating_broker': {'id': md.orig_broker_id, 'name': md.orig_broker_name},
        'brokers': [{'id': b.id, 'name': "{}:{}".format(b.host, b.port)}
                    for b in md.brokers.values()],
        'topics': [{'topic': t.topic,
                    'error': _err(t.error),
                    'partitions': [{'partition': p.id,
                                    'leader': p.leader,
                                    'replicas': list(p.replicas),
                                    'isrs': list(p.isrs),
                                    'error': _err(p.error)}
                                   for p in sorted(t.partitions.values(), key=lambda p: p.id)]}
                   for t in md.topics.values()],
    }


def metadata_list(conf, fp, topic=None, json_output=False):
    """
    Fetch and print metadata for ``topic``, or for all topics.

    Raises:
        FatalError: if the client can not be created or the request fails.
    """
    try:
        producer = Producer(conf)
    except KafkaException as e:
        raise FatalError("Failed to create producer: {}".format(error_string(e)))

    try:
        md = producer.list_topics(topic, timeout=METADATA_TIMEOUT)
    except KafkaException as e:
        raise FatalError("Failed to acquire metadata: {}".format(error_string(e)))

    if json_output:
        fp.write(json.dumps(metadata_dict(md)) + "\n")
    else:
        metadata_print(md, topic, fp)

    return md
