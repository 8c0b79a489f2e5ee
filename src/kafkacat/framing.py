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
from typing import BinaryIO, Iterator, Optional

from .error import FatalError

logger = logging.getLogger(__name__)

# Un-split payloads larger than this are handed over to the send path
# without being duplicated.
TRANSFER_THRESHOLD = 1024

DEFAULT_CHUNK_SIZE = 64 * 1024


class Ownership(Enum):
    """
    Who owns a record's value buffer once it is handed to the send path.
    """
    #: The send path takes the buffer; the framer must not reuse it.
    TRANSFER = 'transfer'
    #: The send path duplicates the buffer; the caller keeps it.
    COPY = 'copy'


class Record(object):
    """
    A single framed input record.

    ``key`` and ``value`` are views into ``raw``, the record bytes without
    the trailing delimiter. Either may be None (null), which is distinct
    from an empty view.

    :ivar bytes raw: Record bytes, delimiter excluded.
    :ivar bytes delim: The trailing delimiter, or ``b''`` for a final
        record that ended at end-of-stream.
    :ivar bool split: True if the record was split into key and value.
    """

    __slots__ = ['raw', 'delim', 'key', 'value', 'split']

    def __init__(self, raw, delim=b'', key=None, value=None, split=False):
        self.raw = raw
        self.delim = delim
        self.split = split
        self.key = key
        self.value = memoryview(raw) if value is None and not split else value

    def __len__(self):
        return 0 if self.value is None else len(self.value)

    def __repr__(self):
        return "Record(key={!r}, value={!r})".format(
            None if self.key is None else bytes(self.key),
            None if self.value is None else bytes(self.value))

    def original(self):
        """Record bytes as they appeared in the input, delimiter included."""
        return self.raw + self.delim

    def payload(self, ownership):
        """
        Materialize the value for the send path.

        With :py:attr:`Ownership.TRANSFER` the record's own buffer is
        returned and the record gives it up: ``raw`` and ``value`` are
        cleared. With :py:attr:`Ownership.COPY` a duplicate is returned
        and the record is left intact.

        Returns:
            (bytes, bytes): value and key, each possibly None.
        """
        key = None if self.key is None else bytes(self.key)

        if ownership is Ownership.TRANSFER:
            if self.split:
                raise ValueError("Split records can not transfer their buffer")
            value = self.raw
            self.raw = None
            self.value = None
            return value, key

        value = None if self.value is None else bytes(self.value)
        return value, key


def ownership_for(record, tee=False):
    """
    Decide whether the send path may take ``record``'s buffer.

    A record produced by a key/value split always requires a copy, since
    its value starts in the middle of the framed buffer. Otherwise large
    values are transferred, unless tee mode still needs the buffer after
    the handoff.

    Args:
        record (Record): Candidate record.

        tee (bool): True if the record is also written to the tee output.

    Returns:
        Ownership: the ownership tag.
    """
    if record.split:
        return Ownership.COPY
    if len(record) > TRANSFER_THRESHOLD and not tee:
        return Ownership.TRANSFER
    return Ownership.COPY


class InputFramer(object):
    """
    Splits a binary stream into delimited records.

    Iterating the framer reads ``fp`` lazily until end-of-stream. Empty
    records are skipped. A final record without trailing delimiter is
    still yielded. If ``key_delim`` is set, each record is split at the
    first occurrence of that byte into key and value.

    Args:
        fp (BinaryIO): Stream to read from.

        delim (int): Record delimiter byte value.

        key_delim (int, optional): Key/value delimiter byte value.

        null (bool): Report zero-length keys and values produced by a
            split as None instead of empty.

        chunk_size (int): Maximum number of bytes per read.

    Raises:
        FatalError: If reading from ``fp`` fails.
    """

    def __init__(self, fp: BinaryIO, delim: int = ord('\n'), key_delim: Optional[int] = None,
                 null: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._fp = fp
        self._delim = bytes((delim,))
        self._key_delim = None if key_delim is None else bytes((key_delim,))
        self._null = null
        self._chunk_size = chunk_size
        # read1() returns what is available without waiting for a full chunk
        self._read = getattr(fp, 'read1', fp.read)

    def __iter__(self) -> Iterator[Record]:
        for raw, delim in self._frames():
            if len(raw) == 0:
                continue
            yield self._split(raw, delim)

    def _frames(self):
        buf = bytearray()
        scan = 0

        while True:
            idx = buf.find(self._delim, scan)
            if idx != -1:
                raw = bytes(buf[:idx])
                del buf[:idx + 1]
                scan = 0
                yield raw, self._delim
                continue

            scan = len(buf)
            try:
                chunk = self._read(self._chunk_size)
            except OSError as e:
                raise FatalError("Unable to read message: {}".format(e.strerror or e))

            if not chunk:
                if buf:
                    yield bytes(buf), b''
                return

            buf += chunk

    def _split(self, raw: bytes, delim: bytes) -> Record:
        if self._key_delim is None:
            return Record(raw, delim)

        idx = raw.find(self._key_delim)
        if idx == -1:
            return Record(raw, delim)

        view = memoryview(raw)
        key = view[:idx]
        value = view[idx + 1:]

        if self._null:
            if len(value) == 0:
                value = None
            if len(key) == 0:
                key = None

        return Record(raw, delim, key=key, value=value, split=True)
