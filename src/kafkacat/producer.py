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
import mmap
import os
from collections import deque

from confluent_kafka import KafkaException, Producer

from .error import FatalError, error_string
from .framing import ownership_for

logger = logging.getLogger(__name__)

#: Partition value letting the configured partitioner choose.
PARTITION_UA = -1

# Seconds to let the client drain its queue before retrying a send
# that failed with a full local queue.
QUEUE_FULL_WAIT = 0.005

# Poll interval while waiting for outstanding deliveries.
FLUSH_POLL_INTERVAL = 0.05


class DeliveryTracker(object):
    """
    Tallies per-message delivery reports.

    The tracker is passed as ``on_delivery`` to
    :py:func:`confluent_kafka.Producer.produce`. Reports are queued by the
    callback and applied to the run counters by :py:meth:`poll`, so
    counters only change during an explicit poll of the client.

    Args:
        stats (Stats): Run counters to update.
    """

    def __init__(self, stats):
        self._stats = stats
        self._reports = deque()

    def __call__(self, err, msg):
        self._reports.append((err, msg))

    def __len__(self):
        return len(self._reports)

    def drain(self):
        """
        Apply all queued delivery reports.

        Returns:
            int: number of reports processed.
        """
        cnt = 0
        while self._reports:
            err, msg = self._reports.popleft()
            cnt += 1
            if err is not None:
                logger.info("Delivery failed for message: %s", err.str())
                self._stats.tx_err_dr += 1
                continue

            logger.debug("Message delivered to partition %d (offset %d)",
                         msg.partition(), msg.offset())
            self._stats.tx_delivered += 1
        return cnt

    def poll(self, producer, timeout=0):
        """
        Let the client make progress for up to ``timeout`` seconds, then
        apply the delivery reports it served.
        """
        producer.poll(timeout)
        return self.drain()


class ProducePipeline(object):
    """
    Sends framed records and whole files to a single topic.

    Args:
        ctx (RunContext): Run state.

        producer (confluent_kafka.Producer): Client handle.

        topic (str): Topic to produce to.

        partition (int): Partition to produce to, or
            :py:data:`PARTITION_UA` to use the configured partitioner.
    """

    def __init__(self, ctx, producer, topic, partition=PARTITION_UA):
        self.ctx = ctx
        self.producer = producer
        self.topic = topic
        self.partition = partition
        self.tracker = DeliveryTracker(ctx.stats)

    def produce(self, value, key=None):
        """
        Send a single message, retrying while the local queue is full.

        Raises:
            FatalError: if the run is terminated while retrying, or the
                client rejects the message for any other reason.
        """
        size = 0 if value is None else len(value)

        while True:
            if not self.ctx.run:
                raise FatalError("Program terminated while producing message of {} bytes".format(size))

            try:
                self.producer.produce(self.topic, value=value, key=key,
                                      partition=self.partition,
                                      on_delivery=self.tracker)
                self.ctx.stats.tx += 1
                break

            except BufferError:
                # Local queue full: give the client time to deliver or
                # time out queued messages before trying again.
                self.ctx.stats.tx_err_q += 1
                self.tracker.poll(self.producer, QUEUE_FULL_WAIT)

            except KafkaException as e:
                raise FatalError("Failed to produce message ({} bytes): {}".format(size, error_string(e)),
                                 e.args[0] if e.args else None)

        self.tracker.poll(self.producer, 0)

    def produce_file(self, path):
        """
        Produce the contents of ``path`` as a single message.

        Returns:
            int: the file size, 0 for a skipped empty file, or -1 if the
            file could not be read.
        """
        try:
            with open(path, 'rb') as f:
                size = os.fstat(f.fileno()).st_size
                if size == 0:
                    logger.debug("Skipping empty file %s", path)
                    return 0

                with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as mm:
                    logger.debug("Producing file %s (%d bytes)", path, size)
                    # The mapping is released on return, copy the payload.
                    self.produce(mm[:])

        except (OSError, ValueError) as e:
            logger.info("Failed to read %s: %s", path, getattr(e, 'strerror', None) or e)
            return -1

        return size

    def produce_files(self, paths):
        """
        Produce each file in ``paths`` as its own message.

        The run exit code is set to 1 if no file could be produced.
        """
        good = 0
        for path in paths:
            if self.produce_file(path) != -1:
                good += 1

        if not good:
            self.ctx.exitcode = 1
        elif good < len(paths):
            logger.info("Failed to produce from %d/%d files", len(paths) - good, len(paths))

    def produce_records(self, framer, tee=None):
        """
        Produce every record yielded by ``framer``.

        Args:
            framer (InputFramer): Record source.

            tee (BinaryIO, optional): Stream each original record,
                delimiter included, is also written to.
        """
        for record in framer:
            ownership = ownership_for(record, tee=tee is not None)
            original = record.original() if tee is not None else None

            value, key = record.payload(ownership)
            self.produce(value, key)

            if tee is not None:
                try:
                    tee.write(original)
                except OSError as e:
                    raise FatalError("Tee write error for message of {} bytes: {}".format(
                        len(original), e.strerror or e))

            if self.ctx.count_reached(self.ctx.stats.tx):
                self.ctx.stop()

            if not self.ctx.run:
                break

    def wait_delivery(self):
        """
        Wait for all outstanding messages to be delivered or fail.

        The run flag is re-armed so that a new termination signal aborts
        the wait.
        """
        self.ctx.run = True
        while self.ctx.run and len(self.producer) > 0:
            self.tracker.poll(self.producer, FLUSH_POLL_INTERVAL)
        self.tracker.drain()


def producer_run(ctx, conf, topic, partition=PARTITION_UA, framer=None, paths=None, tee=None):
    """
    Run the producer: produce ``paths`` as one message each, or the
    records of ``framer``, then wait for delivery.

    Args:
        ctx (RunContext): Run state.

        conf (dict): Client configuration.

        topic (str): Topic to produce to.

        partition (int): Target partition.

        framer (InputFramer, optional): Record source, used when no
            ``paths`` are given.

        paths (list(str), optional): Files to send as whole messages.

        tee (BinaryIO, optional): Echo produced records to this stream.

    Raises:
        FatalError: on unrecoverable client or input errors.
    """
    try:
        producer = Producer(conf)
    except KafkaException as e:
        raise FatalError("Failed to create producer: {}".format(error_string(e)))

    pipeline = ProducePipeline(ctx, producer, topic, partition)

    if paths:
        pipeline.produce_files(paths)
    else:
        pipeline.produce_records(framer, tee=tee)

    pipeline.wait_delivery()

    if ctx.stats.tx_err_dr:
        ctx.exitcode = 1

    return pipeline
