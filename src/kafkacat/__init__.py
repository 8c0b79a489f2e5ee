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

__version__ = '1.0.0'

from .context import RunContext, Stats  # noqa: E402
from .delimiter import parse_delim  # noqa: E402
from .error import FatalError, KafkacatError, UsageError  # noqa: E402
from .format import (Field, FormatProgram, JSONRenderer,  # noqa: E402
                     OutputRenderer, compile_format)
from .framing import InputFramer, Ownership, Record, ownership_for  # noqa: E402

__all__ = [
    "Field",
    "FatalError",
    "FormatProgram",
    "InputFramer",
    "JSONRenderer",
    "KafkacatError",
    "OutputRenderer",
    "Ownership",
    "Record",
    "RunContext",
    "Stats",
    "UsageError",
    "compile_format",
    "ownership_for",
    "parse_delim",
]
