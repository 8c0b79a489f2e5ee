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
import re

_HEX_PREFIX = re.compile(r'[0-9a-fA-F]*')


def parse_delim(token):
    """
    Convert a command line delimiter token to a single byte value.

    Accepted forms are ``\\xNN`` (hexadecimal), ``\\n``, ``\\t`` and any
    literal character, of which only the first byte is used. Every input
    yields a byte; an empty token or ``\\x`` without digits yields ``0``.

    Args:
        token (str): Delimiter as typed by the user.

    Returns:
        int: Delimiter byte value (0-255).
    """
    if token.startswith('\\x'):
        digits = _HEX_PREFIX.match(token, 2).group(0)
        return int(digits, 16) & 0xff if digits else 0
    if token == '\\n':
        return ord('\n')
    if token == '\\t':
        return ord('\t')

    raw = token.encode('utf-8', 'surrogateescape')
    return raw[0] & 0xff if raw else 0
