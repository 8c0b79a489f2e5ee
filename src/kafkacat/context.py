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

logger = logging.getLogger(__name__)


class Stats(object):
    """
    Process lifetime counters. Never reset.

    :ivar int tx: Messages handed to the producer.
    :ivar int tx_err_q: Send attempts rejected because the local queue was full.
    :ivar int tx_err_dr: Messages that permanently failed delivery.
    :ivar int tx_delivered: Messages acknowledged by the broker.
    :ivar int rx: Messages consumed and written to the output.
    """

    __slots__ = ['tx', 'tx_err_q', 'tx_err_dr', 'tx_delivered', 'rx']

    def __init__(self):
        self.tx = 0
        self.tx_err_q = 0
        self.tx_err_dr = 0
        self.tx_delivered = 0
        self.rx = 0

    def __repr__(self):
        return "Stats(tx={}, tx_err_q={}, tx_err_dr={}, tx_delivered={}, rx={})".format(
            self.tx, self.tx_err_q, self.tx_err_dr, self.tx_delivered, self.rx)


class RunContext(object):
    """
    State shared by the pipeline components of a single run.

    The run flag is cleared by signal delivery or when a message count
    or end-of-partition threshold is reached; every loop checks it once
    per iteration.

    Args:
        msg_cnt (int, optional): Stop after this many messages have been
            produced or consumed.
    """

    def __init__(self, msg_cnt=None):
        self.run = True
        self.exitcode = 0
        self.msg_cnt = msg_cnt
        self.stats = Stats()

    def stop(self):
        self.run = False

    def terminate(self, signum, frame):
        logger.debug("Signal %d received: terminating", signum)
        self.run = False

    def count_reached(self, count):
        return self.msg_cnt is not None and count == self.msg_cnt
