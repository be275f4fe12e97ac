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
"""Resolve #include directives into compilation unit keys.

Every include line is taken literally; conditional and macro-generated includes
are not evaluated.
"""

import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import HEADER_SUFFIXES, INCLUDE_DELIMITERS, PATH_SEPARATOR, TEMPLATE_HEADER_SUFFIXES, IncludeSyntaxError
from .name_utils import camel_to_snake, strip_suffix
from .node_store import UnitKey

logger = logging.getLogger(__name__)

# "#include", "  #include", "#  include"
INCLUDE_DIRECTIVE = re.compile(r"^\s*#\s*include\b")


class ScopeTag(enum.Enum):
    """Whether an include target belongs to the library under analysis."""

    LIBRARY = "library"
    EXTERNAL = "external"


@dataclass(frozen=True)
class IncludeTarget:
    """A parsed include directive.

    Attributes:
        path: Raw path between the delimiters, e.g. "folly/io/IOBuf.h"
        scope_root: First path segment, e.g. "folly"
        scope: LIBRARY if the target becomes a unit edge, EXTERNAL otherwise
        key: Unit key of the target (None for external includes)
    """

    path: str
    scope_root: str
    scope: ScopeTag
    key: Optional[UnitKey] = None

    @property
    def in_scope(self) -> bool:
        return self.scope is ScopeTag.LIBRARY


def extract_include_path(line: str) -> Optional[Tuple[str, str]]:
    """Extract the raw path of an include directive.

    Args:
        line: One source line

    Returns:
        Tuple of (path, opening_delimiter), or None if the line is not an
        include directive or names its target through a macro.

    Raises:
        IncludeSyntaxError: If an opening delimiter has no matching close
    """
    match = INCLUDE_DIRECTIVE.match(line)
    if not match:
        return None

    rest = line[match.end() :]
    openers = [(rest.find(opener), opener) for opener in INCLUDE_DELIMITERS if opener in rest]
    if not openers:
        logger.debug("Unexpected include: %s", line.strip())
        return None

    start, opener = min(openers)
    end = rest.find(INCLUDE_DELIMITERS[opener], start + 1)
    if end == -1:
        raise IncludeSyntaxError(line)

    return rest[start + 1 : end].strip(), opener


def include_path_to_key(path: str, root_dir: Optional[str] = None) -> UnitKey:
    """Turn an include path into the key of the unit that owns the header.

    Template suffixes are stripped before plain header suffixes so that
    "Foo-inl.h" and "Foo.h" land in the same unit.

    Args:
        path: Include path such as "folly/FooBar-inl.h"
        root_dir: Directory to use instead of the path's own directory part

    Returns:
        UnitKey with normalized name
    """
    stem = strip_suffix(strip_suffix(path, TEMPLATE_HEADER_SUFFIXES), HEADER_SUFFIXES)
    directory, _, base = stem.rpartition(PATH_SEPARATOR)
    return UnitKey(name=camel_to_snake(base), root_dir=directory if root_dir is None else root_dir)


def resolve_include(line: str, library: str, current_dir: Optional[str] = None) -> Optional[IncludeTarget]:
    """Resolve one source line into an include target.

    Examples:
        "#include <folly/FooBar.h>" with library "folly"
            -> key ("foo_bar", "folly"), LIBRARY
        "#include <vector>"
            -> no key, EXTERNAL
        '#include "FooBar-inl.h"' with current_dir "folly"
            -> key ("foo_bar", "folly"), LIBRARY

    Args:
        line: One source line
        library: Scope root of the library under analysis (e.g. "folly")
        current_dir: root_dir of the including file, used for sibling includes

    Returns:
        IncludeTarget, or None if the line is not a usable include directive

    Raises:
        IncludeSyntaxError: For unbalanced delimiters
    """
    extracted = extract_include_path(line)
    if extracted is None:
        return None

    path, opener = extracted

    scope_root, separator, _ = path.partition(PATH_SEPARATOR)

    if not separator:
        if opener == '"' and current_dir is not None:
            return IncludeTarget(path, library, ScopeTag.LIBRARY, include_path_to_key(path, current_dir))
        return IncludeTarget(path, scope_root, ScopeTag.EXTERNAL)

    if scope_root != library:
        return IncludeTarget(path, scope_root, ScopeTag.EXTERNAL)

    return IncludeTarget(path, scope_root, ScopeTag.LIBRARY, include_path_to_key(path))
