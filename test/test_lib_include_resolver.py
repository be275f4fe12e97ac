#!/usr/bin/env python3
"""Tests for unitlib/include_resolver.py"""

import logging
import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from unitlib.constants import IncludeSyntaxError
from unitlib.include_resolver import ScopeTag, extract_include_path, include_path_to_key, resolve_include
from unitlib.node_store import UnitKey


class TestExtractIncludePath:
    """Tests for raw include path extraction."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("#include <folly/Foo.h>\n", ("folly/Foo.h", "<")),
            ('#include "Foo.h"\n', ("Foo.h", '"')),
            ("  #  include <vector>  // comment\n", ("vector", "<")),
            ('#include "folly/Foo.h" // see <bar>\n', ("folly/Foo.h", '"')),
        ],
    )
    def test_directives(self, line: str, expected: tuple) -> None:
        assert extract_include_path(line) == expected

    @pytest.mark.parametrize("line", ["int x = 0;\n", "// #include <foo.h>\n", "#pragma once\n", "#includes <x>\n", ""])
    def test_non_include_lines(self, line: str) -> None:
        assert extract_include_path(line) is None

    def test_macro_include_skipped(self) -> None:
        """An include naming its target through a macro has no delimiter."""
        assert extract_include_path("#include FOLLY_CONFIG_HEADER\n") is None

    def test_macro_include_logged_at_debug_only(self, caplog: Any) -> None:
        with caplog.at_level(logging.INFO, logger="unitlib.include_resolver"):
            extract_include_path("#include FOLLY_CONFIG_HEADER\n")
        assert not caplog.records

        with caplog.at_level(logging.DEBUG, logger="unitlib.include_resolver"):
            extract_include_path("#include FOLLY_CONFIG_HEADER\n")
        assert "Unexpected include: #include FOLLY_CONFIG_HEADER" in caplog.text

    @pytest.mark.parametrize("line", ["#include <folly/Foo.h\n", '#include "folly/Foo.h\n'])
    def test_unbalanced_delimiters_raise(self, line: str) -> None:
        with pytest.raises(IncludeSyntaxError, match="Bad include!"):
            extract_include_path(line)


class TestIncludePathToKey:
    def test_header(self) -> None:
        assert include_path_to_key("folly/io/IOBuf.h") == UnitKey("io_buf", "folly/io")

    def test_template_header_shares_unit(self) -> None:
        assert include_path_to_key("folly/FooBar-inl.h") == include_path_to_key("folly/FooBar.h")

    def test_root_dir_override(self) -> None:
        assert include_path_to_key("Foo.h", "folly/io") == UnitKey("foo", "folly/io")


class TestResolveInclude:
    """Tests for scope decisions on include lines."""

    def test_library_include(self) -> None:
        target = resolve_include("#include <folly/FooBar.h>\n", "folly")

        assert target is not None
        assert target.in_scope
        assert target.scope is ScopeTag.LIBRARY
        assert target.key == UnitKey("foo_bar", "folly")

    def test_nested_library_include(self) -> None:
        target = resolve_include('#include "folly/io/async/EventBase.h"\n', "folly")

        assert target is not None
        assert target.key == UnitKey("event_base", "folly/io/async")

    def test_system_include_is_external(self) -> None:
        target = resolve_include("#include <vector>\n", "folly")

        assert target is not None
        assert not target.in_scope
        assert target.key is None
        assert target.scope_root == "vector"

    def test_other_library_is_external(self) -> None:
        target = resolve_include("#include <boost/optional.hpp>\n", "folly")

        assert target is not None
        assert target.scope is ScopeTag.EXTERNAL
        assert target.scope_root == "boost"
        assert target.key is None

    def test_sibling_include_resolves_in_current_dir(self) -> None:
        target = resolve_include('#include "FooBar-inl.h"\n', "folly", current_dir="folly")

        assert target is not None
        assert target.in_scope
        assert target.key == UnitKey("foo_bar", "folly")

    def test_sibling_angle_include_is_external(self) -> None:
        """Only quoted includes without a directory are treated as siblings."""
        target = resolve_include("#include <FooBar.h>\n", "folly", current_dir="folly")

        assert target is not None
        assert not target.in_scope

    def test_quoted_without_current_dir_is_external(self) -> None:
        target = resolve_include('#include "FooBar.h"\n', "folly")

        assert target is not None
        assert not target.in_scope

    def test_non_include_line(self) -> None:
        assert resolve_include("int main() { return 0; }\n", "folly") is None

    def test_malformed_raises(self) -> None:
        with pytest.raises(IncludeSyntaxError) as exc_info:
            resolve_include("#include <folly/Foo.h\n", "folly")

        assert exc_info.value.line == "#include <folly/Foo.h\n"
