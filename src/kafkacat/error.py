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
from confluent_kafka import KafkaError, KafkaException


class KafkacatError(KafkaException):
    """
    Base class for all errors raised by the kafkacat pipeline.

    Args:
        reason (str): Human readable description of the failure.

        error (KafkaError, optional): The client error that caused the
            failure, if any.

    """
    def __init__(self, reason, error=None):
        if error is None:
            error = KafkaError(KafkaError._FAIL, reason)
        super(KafkacatError, self).__init__(error)
        self.reason = reason
        self.error = error

    def __str__(self):
        return self.reason


class FatalError(KafkacatError):
    """
    Unrecoverable error: the current run is aborted and the process
    exits with a non-zero exit code.

    Raised for client creation failures, send failures other than a full
    local queue, input read errors, unknown topics or partitions and
    metadata failures.
    """
    pass


class UsageError(KafkacatError):
    """
    Invalid command line usage.
    """
    pass


def error_string(exc):
    """
    Short description of a client exception.

    ``KafkaException`` wraps a ``KafkaError`` whose ``str()`` is the
    human readable reason; anything else falls back to ``str(exc)``.
    """
    err = exc.args[0] if exc.args else None
    if isinstance(err, KafkaError):
        return err.str()
    return str(exc)
