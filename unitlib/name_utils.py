#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Unit naming convention and file role classification."""

import enum
import logging
from typing import List, Tuple

from .constants import HEADER_SUFFIXES, SOURCE_SUFFIXES, TEMPLATE_HEADER_SUFFIXES, TEST_SOURCE_SUFFIXES, UNIT_NAME_DELIMITER

logger = logging.getLogger(__name__)


class FileRole(enum.IntEnum):
    """Role of a file inside a compilation unit.

    Attributes:
        UNKNOWN: Not part of any unit (skipped)
        HEADER: Plain header (.h)
        TEMPLATE: Template implementation header (-inl.h)
        SOURCE: Translation unit (.cpp, .cc)
        TEST: Test translation unit (FooTest.cpp, foo_test.cc)
    """

    UNKNOWN = 0
    HEADER = 1
    TEMPLATE = 2
    SOURCE = 3
    TEST = 4

    @property
    def is_header(self) -> bool:
        return self in (FileRole.HEADER, FileRole.TEMPLATE)

    @property
    def is_source(self) -> bool:
        return self in (FileRole.SOURCE, FileRole.TEST)


class CharType(enum.Enum):
    DELIM = "delim"
    UPPER = "upper"
    LOWER = "lower"
    OTHER = "other"


# Priority order matters: "test.cpp" before ".cpp", "-inl.h" before ".h"
ROLE_SUFFIXES: List[Tuple[str, FileRole]] = (
    [(suffix, FileRole.TEST) for suffix in TEST_SOURCE_SUFFIXES]
    + [(suffix, FileRole.SOURCE) for suffix in SOURCE_SUFFIXES]
    + [(suffix, FileRole.TEMPLATE) for suffix in TEMPLATE_HEADER_SUFFIXES]
    + [(suffix, FileRole.HEADER) for suffix in HEADER_SUFFIXES]
)


def get_char_type(char: str) -> CharType:
    if char == UNIT_NAME_DELIMITER:
        return CharType.DELIM
    if "a" <= char <= "z":
        return CharType.LOWER
    if "A" <= char <= "Z":
        return CharType.UPPER
    return CharType.OTHER


def camel_to_snake(name: str) -> str:
    """Convert a C++ style identifier to the unit naming convention.

    Word boundaries are placed before an uppercase letter that follows a
    lowercase letter or another non-delimiter character, and before the last
    letter of an uppercase run that is followed by a lowercase letter. Runs
    shorter than two letters are never split, so all-caps words stay whole.

    Examples:
        >>> camel_to_snake("FooBar")
        'foo_bar'
        >>> camel_to_snake("HTTPServer")
        'http_server'
        >>> camel_to_snake("already_snake")
        'already_snake'

    Args:
        name: Identifier such as a file base name

    Returns:
        Lowercase, '_'-delimited name. Applying the function again is a no-op.
    """
    pieces: List[str] = []
    word_start = 0
    prev_type = CharType.DELIM

    for i, char in enumerate(name):
        curr_type = get_char_type(char)

        if curr_type is CharType.DELIM:
            pieces.append(name[word_start:i].lower())
            pieces.append(char)
            word_start = i + 1
        elif prev_type in (CharType.LOWER, CharType.OTHER) and curr_type is CharType.UPPER:
            pieces.append(name[word_start:i].lower())
            pieces.append(UNIT_NAME_DELIMITER)
            word_start = i
        elif prev_type is CharType.UPPER and curr_type is CharType.LOWER and word_start < i - 1:
            pieces.append(name[word_start : i - 1].lower())
            pieces.append(UNIT_NAME_DELIMITER)
            word_start = i - 1

        prev_type = curr_type

    pieces.append(name[word_start:].lower())
    return "".join(pieces)


def strip_suffix(name: str, suffixes: Tuple[str, ...]) -> str:
    """Remove the first matching suffix from name (at most one)."""
    for suffix in suffixes:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def classify_file_name(file_name: str) -> Tuple[str, FileRole]:
    """Classify a file by suffix and derive the name of its owning unit.

    Args:
        file_name: Bare file name (no directories), e.g. "FooBarTest.cpp"

    Returns:
        Tuple of (unit_base_name, role). For unknown files the file name is
        returned unchanged with FileRole.UNKNOWN.
    """
    for suffix, role in ROLE_SUFFIXES:
        if file_name.endswith(suffix) and len(file_name) > len(suffix):
            base = file_name[: -len(suffix)]
            if role is FileRole.TEST:
                # "widget_test.cpp" and "WidgetTest.cpp" both belong to "widget"
                base = base.rstrip(UNIT_NAME_DELIMITER) or base
            return camel_to_snake(base), role

    return file_name, FileRole.UNKNOWN
