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
import logging
from enum import Enum

from confluent_kafka import (OFFSET_BEGINNING, Consumer, KafkaError,
                             KafkaException, TopicPartition)

from .error import FatalError, error_string
from .producer import PARTITION_UA

logger = logging.getLogger(__name__)

# Maximum number of messages per consume() call and its timeout (seconds).
CONSUME_BATCH_SIZE = 100
CONSUME_TIMEOUT = 0.1

METADATA_TIMEOUT = 5.0

# librdkafka logical offset base for "N messages from the end".
OFFSET_TAIL_BASE = -2000


def offset_tail(cnt):
    """Logical offset for the last ``cnt`` messages of a partition."""
    return OFFSET_TAIL_BASE - cnt


def eof_stored_offset(offset):
    """
    Offset to store for an end-of-partition signal at ``offset``.

    An empty partition at offset 0 stores 0, the offset of the first
    message to come.
    """
    return 0 if offset == 0 else offset - 1


class PartitionState(Enum):
    CONSUMING = 'consuming'
    AT_EOF = 'at_eof'
    STOPPED = 'stopped'


class PartitionEofTable(object):
    """
    Tracks which partitions have reached their end.

    When a partition reaches EOF, its consumption is stopped through
    ``stop_cb`` and the number of partitions at EOF is incremented. Once
    that number reaches ``threshold`` the run flag is cleared.

    Args:
        ctx (RunContext): Run state.

        partitions (list(int)): Partition ids of the topic.

        threshold (int): Number of partitions at EOF that ends the run.

        stop_cb (callable(int)): Stops consuming a partition.
    """

    def __init__(self, ctx, partitions, threshold, stop_cb):
        self.ctx = ctx
        self.states = {p: PartitionState.CONSUMING for p in partitions}
        self.eof_cnt = 0
        self.threshold = threshold
        self._stop_cb = stop_cb

    def at_eof(self, partition):
        """
        Handle an end-of-partition signal.

        Returns:
            bool: True if the partition was newly stopped.
        """
        if self.states.get(partition) is not PartitionState.CONSUMING:
            return False

        self.states[partition] = PartitionState.AT_EOF
        self.stop(partition)
        self.eof_cnt += 1

        if self.eof_cnt >= self.threshold:
            self.ctx.stop()
        return True

    def stop(self, partition):
        """Stop consuming ``partition``. Stopping twice is a no-op."""
        if self.states.get(partition) is PartitionState.STOPPED:
            return
        self._stop_cb(partition)
        self.states[partition] = PartitionState.STOPPED


class ConsumePipeline(object):
    """
    Consumes one topic and writes rendered messages to ``fp``.

    Args:
        ctx (RunContext): Run state.

        consumer (confluent_kafka.Consumer): Client handle.

        topic (str): Topic to consume.

        renderer (OutputRenderer): Message renderer.

        fp (BinaryIO): Output stream.

        partition (int): Single partition to consume, or
            :py:data:`PARTITION_UA` for all partitions.

        exit_eof (bool): Stop once all consumed partitions reached EOF.

        unbuffered (bool): Flush ``fp`` after every message.
    """

    def __init__(self, ctx, consumer, topic, renderer, fp, partition=PARTITION_UA,
                 exit_eof=False, unbuffered=False):
        self.ctx = ctx
        self.consumer = consumer
        self.topic = topic
        self.renderer = renderer
        self.fp = fp
        self.partition = partition
        self.exit_eof = exit_eof
        self.unbuffered = unbuffered
        self.offsets = {}
        self.eof_table = None

    def partitions(self):
        """
        Query the topic's partitions.

        Raises:
            FatalError: if the metadata request fails, the topic does not
                exist, reports an error or has no partitions.
        """
        try:
            md = self.consumer.list_topics(self.topic, timeout=METADATA_TIMEOUT)
        except KafkaException as e:
            raise FatalError("Failed to query metadata for topic {}: {}".format(self.topic, error_string(e)))

        t = md.topics.get(self.topic)
        if t is None:
            raise FatalError("No such topic in cluster: {}".format(self.topic))

        if t.error is not None:
            raise FatalError("Topic {} error: {}".format(self.topic, t.error.str()), t.error)

        if len(t.partitions) == 0:
            raise FatalError("Topic {} has no partitions".format(self.topic))

        return sorted(t.partitions)

    def start(self, offset=OFFSET_BEGINNING):
        """
        Start consuming the wanted partitions from ``offset``.

        Returns:
            list(int): the partitions being consumed.
        """
        partitions = self.partitions()

        if self.partition != PARTITION_UA:
            if self.partition not in partitions:
                raise FatalError("Topic {} (with partitions 0..{}): partition {} does not exist".format(
                    self.topic, len(partitions) - 1, self.partition))
            wanted = [self.partition]
            threshold = 1
        else:
            wanted = partitions
            threshold = len(partitions)

        self.eof_table = PartitionEofTable(self.ctx, partitions, threshold, self._stop_partition)

        try:
            self.consumer.assign([TopicPartition(self.topic, p, offset) for p in wanted])
        except KafkaException as e:
            raise FatalError("Failed to start consuming topic {}: {}".format(self.topic, error_string(e)))

        return wanted

    def _stop_partition(self, partition):
        self.consumer.incremental_unassign([TopicPartition(self.topic, partition)])

    def store_offset(self, msg, offset):
        """
        Record ``offset`` as the last processed offset of the message's
        partition and persist the position to resume from.

        Data messages persist the offset following them; end-of-partition
        signals already carry the next offset to be read.
        """
        self.offsets[msg.partition()] = offset
        if msg.error() is None:
            self.consumer.store_offsets(message=msg)
        else:
            self.consumer.store_offsets(offsets=[TopicPartition(self.topic, msg.partition(), msg.offset())])

    def handle(self, msg):
        """
        Process a single consumed message or end-of-partition signal.

        Messages for partitions that were already stopped are dropped.

        Raises:
            FatalError: for any message error other than end-of-partition.
        """
        if not self.ctx.run:
            return

        if self.eof_table.states.get(msg.partition()) is PartitionState.STOPPED:
            return

        err = msg.error()
        if err is not None:
            if err.code() == KafkaError._PARTITION_EOF:
                self.store_offset(msg, eof_stored_offset(msg.offset()))

                if self.exit_eof:
                    self.eof_table.at_eof(msg.partition())
                    logger.info("Reached end of topic %s [%d] at offset %d%s",
                                msg.topic(), msg.partition(), msg.offset(),
                                "" if self.ctx.run else ": exiting")
                return

            raise FatalError("Topic {} [{}] error: {}".format(msg.topic(), msg.partition(), err.str()), err)

        try:
            self.renderer.write(self.fp, msg)
            if self.unbuffered:
                self.fp.flush()
        except BrokenPipeError:
            logger.debug("Output closed: terminating")
            self.ctx.stop()
            return

        self.store_offset(msg, msg.offset())

        self.ctx.stats.rx += 1
        if self.ctx.count_reached(self.ctx.stats.rx):
            self.ctx.stop()

    def run(self):
        """Consume until the run flag is cleared."""
        while self.ctx.run:
            for msg in self.consumer.consume(num_messages=CONSUME_BATCH_SIZE, timeout=CONSUME_TIMEOUT):
                self.handle(msg)

    def stop(self):
        """Stop all partitions that are still being consumed."""
        if self.eof_table is None:
            return
        for partition in list(self.eof_table.states):
            if self.partition != PARTITION_UA and partition != self.partition:
                continue
            self.eof_table.stop(partition)


def consumer_run(ctx, conf, topic, renderer, fp, partition=PARTITION_UA,
                 offset=OFFSET_BEGINNING, exit_eof=False, unbuffered=False):
    """
    Run the consumer, writing rendered messages to ``fp``.

    The client configuration is amended to emit end-of-partition
    signals and to only store offsets explicitly.

    Raises:
        FatalError: on unrecoverable client, metadata or message errors.
    """
    conf = dict(conf)
    conf.setdefault('group.id', 'kafkacat')
    conf['enable.partition.eof'] = True
    conf['enable.auto.offset.store'] = False

    try:
        consumer = Consumer(conf)
    except KafkaException as e:
        raise FatalError("Failed to create consumer: {}".format(error_string(e)))

    pipeline = ConsumePipeline(ctx, consumer, topic, renderer, fp, partition=partition,
                               exit_eof=exit_eof, unbuffered=unbuffered)
    try:
        pipeline.start(offset)
        pipeline.run()
        pipeline.stop()
    finally:
        consumer.close()

    return pipeline
