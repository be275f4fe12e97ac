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
"""Shared pytest fixtures for buildCheckUnits tests.

Fixture Complexity Levels:
- simple: 2-4 units, fast execution
- medium: a small library tree with sub-directories and one include cycle

Fixture Scopes:
- function: Default, recreated for each test (all fixtures here mutate state)
"""

import sys
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from unitlib.node_store import UnitKey, UnitStore
from unitlib.unit_graph import add_dependency


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    Use for: File I/O operations that need isolation
    """
    tmpdir = tempfile.mkdtemp(prefix="buildunits_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def make_tree(temp_dir: str) -> Callable[[str, Dict[str, str]], Path]:
    """Factory writing a source tree below temp_dir.

    Usage:
        root = make_tree("lib", {"Foo.h": "...", "io/Bar.cpp": "..."})

    Returns the library root directory (temp_dir/<library>).
    """

    def _make_tree(library: str, files: Dict[str, str]) -> Path:
        root = Path(temp_dir) / library
        root.mkdir(parents=True, exist_ok=True)
        for rel_path, content in files.items():
            file_path = root / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        return root

    return _make_tree


@pytest.fixture
def foo_bar_tree(make_tree: Callable[[str, Dict[str, str]], Path]) -> Path:
    """Foo.h, Foo.cpp and Bar.h where Bar.h includes Foo.h.

    Structure:
        lib/
        ├── Foo.h
        ├── Foo.cpp   (includes <lib/Foo.h>)
        └── Bar.h     (includes <lib/Foo.h>, <vector>)
    """
    return make_tree(
        "lib",
        {
            "Foo.h": "#pragma once\nint foo();\n",
            "Foo.cpp": "#include <lib/Foo.h>\n\nint foo() { return 1; }\n",
            "Bar.h": "#pragma once\n#include <lib/Foo.h>\n#include <vector>\n",
        },
    )


@pytest.fixture
def cyclic_library_tree(make_tree: Callable[[str, Dict[str, str]], Path]) -> Path:
    """Medium library tree with one cross-directory include cycle.

    Structure:
        folly/
        ├── Base.h             (no includes)
        ├── Conv.h             (includes io/IOBuf.h, Base.h)
        ├── Conv-inl.h         (includes Conv.h)
        ├── Conv.cpp           (includes Conv.h)
        ├── test/ConvTest.cpp  (includes Conv.h, <gtest/gtest.h>)
        ├── README.md
        └── io/
            ├── IOBuf.h        (includes Cursor.h)
            ├── Cursor.h       (includes folly/Conv.h)  -> cycle Conv -> IOBuf -> Cursor -> Conv
            └── Util.h         (includes IOBuf.h)
    """
    return make_tree(
        "folly",
        {
            "Base.h": "#pragma once\n",
            "Conv.h": "#pragma once\n#include <folly/io/IOBuf.h>\n#include <folly/Base.h>\n#include <string>\n",
            "Conv-inl.h": '#include "Conv.h"\n',
            "Conv.cpp": "#include <folly/Conv.h>\n",
            "test/ConvTest.cpp": "#include <folly/Conv.h>\n#include <gtest/gtest.h>\n",
            "README.md": "# folly\n",
            "io/IOBuf.h": "#pragma once\n#include <folly/io/Cursor.h>\n",
            "io/Cursor.h": "#pragma once\n#include <folly/Conv.h>\n",
            "io/Util.h": "#pragma once\n#include <folly/io/IOBuf.h>\n",
        },
    )


@pytest.fixture
def three_cycle_store() -> UnitStore:
    """Synthetic store with cycle A -> B -> C -> A and D -> A.

    Each unit owns one header named after it.
    """
    store = UnitStore()
    a, b, c, d = (store.get_or_create(UnitKey(name, "lib")) for name in ("a", "b", "c", "d"))
    for node, header in ((a, "A.h"), (b, "B.h"), (c, "C.h"), (d, "D.h")):
        node.info.headers.append(header)

    add_dependency(a, b)
    add_dependency(b, c)
    add_dependency(c, a)
    add_dependency(d, a)
    return store
