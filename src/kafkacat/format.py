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
import os
from enum import Enum
from typing import List, NamedTuple, Optional, Union


class Field(Enum):
    """
    Message fields that can be referenced from a format string.
    """
    PAYLOAD = 's'
    PAYLOAD_LEN = 'S'
    KEY = 'k'
    KEY_LEN = 'K'
    TOPIC = 't'
    PARTITION = 'p'
    OFFSET = 'o'


_FIELDS = {ord(f.value): f for f in Field}

_ESCAPES = {
    ord('n'): b'\n',
    ord('r'): b'\r',
    ord('t'): b'\t',
}

_HEXDIGITS = frozenset(b'0123456789abcdefABCDEF')

_BACKSLASH = ord('\\')
_PERCENT = ord('%')


class Instruction(NamedTuple):
    """
    A single output step: either literal bytes or a message field.
    """
    literal: Optional[bytes] = None
    field: Optional[Field] = None


class FormatProgram(tuple):
    """
    Immutable sequence of :py:class:`Instruction`, replayed once per
    consumed message.
    """

    def literal(self):
        """The program's output, ignoring any message fields."""
        return b''.join(i.literal for i in self if i.field is None)


def compile_format(template: Union[str, bytes]) -> FormatProgram:
    """
    Parse a printf-like output format.

    Supported tokens:

    ======== ==========================================
    ``%s``   message payload
    ``%S``   payload length, ``-1`` for null
    ``%k``   message key
    ``%K``   key length, ``-1`` for null
    ``%t``   topic
    ``%p``   partition
    ``%o``   offset
    ``\\n``  newline (also ``\\r``, ``\\t``)
    ``\\xNN`` byte given by up to three hex digits
    ======== ==========================================

    Unknown ``%`` and ``\\`` escapes are kept as literal text.

    Args:
        template (str or bytes): The format string. ``str`` templates are
            encoded with the filesystem encoding, as command line
            arguments are decoded with it.

    Returns:
        FormatProgram: the compiled program.
    """
    if isinstance(template, str):
        template = os.fsencode(template)

    out: List[Instruction] = []
    lit = bytearray()

    def flush_literal():
        if lit:
            out.append(Instruction(literal=bytes(lit)))
            lit.clear()

    i = 0
    end = len(template)
    while i < end:
        c = template[i]

        if c == _PERCENT and i + 1 < end and template[i + 1] in _FIELDS:
            flush_literal()
            out.append(Instruction(field=_FIELDS[template[i + 1]]))
            i += 2
            continue

        if c == _BACKSLASH and i + 1 < end:
            nxt = template[i + 1]
            if nxt in _ESCAPES:
                lit += _ESCAPES[nxt]
                i += 2
                continue
            if nxt == ord('x'):
                j = i + 2
                while j < end and j < i + 5 and template[j] in _HEXDIGITS:
                    j += 1
                if j > i + 2:
                    lit.append(int(template[i + 2:j], 16) & 0xff)
                    i = j
                    continue

        lit.append(c)
        i += 1

    flush_literal()
    return FormatProgram(out)


class OutputRenderer(object):
    """
    Renders consumed messages through a compiled :py:class:`FormatProgram`.

    Args:
        program (FormatProgram): Compiled output format.

        null_str (bytes, optional): Text written for a null key or payload.
            If None, null fields are written as nothing.
    """

    def __init__(self, program, null_str=None):
        self.program = program
        self.null_str = null_str

    def _data(self, data):
        if data is None:
            return self.null_str or b''
        if isinstance(data, str):
            return data.encode('utf-8')
        return data

    @staticmethod
    def _length(data):
        return b'-1' if data is None else str(len(data)).encode('ascii')

    def render(self, msg):
        """
        Render a single message.

        Args:
            msg (Message): Consumed message.

        Returns:
            bytes: the formatted output.
        """
        parts = []
        for instr in self.program:
            field = instr.field
            if field is None:
                parts.append(instr.literal)
            elif field is Field.PAYLOAD:
                parts.append(self._data(msg.value()))
            elif field is Field.PAYLOAD_LEN:
                parts.append(self._length(msg.value()))
            elif field is Field.KEY:
                parts.append(self._data(msg.key()))
            elif field is Field.KEY_LEN:
                parts.append(self._length(msg.key()))
            elif field is Field.TOPIC:
                parts.append(msg.topic().encode('utf-8'))
            elif field is Field.PARTITION:
                parts.append(str(msg.partition()).encode('ascii'))
            elif field is Field.OFFSET:
                parts.append(str(msg.offset()).encode('ascii'))
        return b''.join(parts)

    def write(self, fp, msg):
        fp.write(self.render(msg))


class JSONRenderer(object):
    """
    Renders each message as a JSON envelope followed by ``delim``.

    Keys and payloads are decoded as UTF-8, replacing invalid sequences;
    null keys and payloads become JSON ``null``.
    """

    def __init__(self, delim=b'\n'):
        self.delim = delim

    @staticmethod
    def _text(data):
        if data is None or isinstance(data, str):
            return data
        return bytes(data).decode('utf-8', 'replace')

    def render(self, msg):
        envelope = {
            'topic': msg.topic(),
            'partition': msg.partition(),
            'offset': msg.offset(),
            'key': self._text(msg.key()),
            'payload': self._text(msg.value()),
        }
        return json.dumps(envelope).encode('utf-8') + self.delim

    def write(self, fp, msg):
        fp.write(self.render(msg))
