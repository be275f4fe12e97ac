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
"""Integration tests for buildCheckUnits.py"""
import os
import sys
import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

# Import the module to test
sys.path.insert(0, str(Path(__file__).parent.parent))
import buildCheckUnits
from unitlib.constants import EXIT_HIERARCHY_FAILED, EXIT_INVALID_ARGS, EXIT_POPULATION_FAILED, EXIT_SUCCESS, HierarchyError


class TestArguments:
    """Argument parsing and validation."""

    def test_defaults(self) -> None:
        args = buildCheckUnits.parse_arguments(["some/dir"])

        assert args.source_dir == "some/dir"
        assert args.library is None
        assert args.export is None
        assert not args.verbose

    @pytest.mark.parametrize("library", ["", "folly/io"])
    def test_invalid_library(self, foo_bar_tree: Path, library: str) -> None:
        args = buildCheckUnits.parse_arguments([str(foo_bar_tree), "--library", library])

        with pytest.raises(buildCheckUnits.ValidationError):
            buildCheckUnits.validate_arguments(args)

    def test_source_dir_required(self) -> None:
        assert buildCheckUnits.run(["--no-color"]) == EXIT_INVALID_ARGS

    def test_check_packages(self, capsys: Any) -> None:
        assert buildCheckUnits.run(["--check-packages", "--no-color"]) == EXIT_SUCCESS
        assert "networkx" in capsys.readouterr().out

    def test_negative_top(self, foo_bar_tree: Path) -> None:
        args = buildCheckUnits.parse_arguments([str(foo_bar_tree), "--top", "-1"])

        with pytest.raises(buildCheckUnits.ValidationError):
            buildCheckUnits.validate_arguments(args)


class TestBuildCheckUnitsEndToEnd:
    """End-to-end tests running the full pipeline."""

    def test_success(self, foo_bar_tree: Path, capsys: Any) -> None:
        exit_code = buildCheckUnits.run([str(foo_bar_tree), "--no-color"])

        assert exit_code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "COMPILATION UNITS: lib" in out
        assert "No include cycles found" in out
        assert "2 compilation units ready for emission" in out

    def test_cycles_reported(self, cyclic_library_tree: Path, capsys: Any) -> None:
        exit_code = buildCheckUnits.run([str(cyclic_library_tree), "--no-color"])

        assert exit_code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Collapsed 1 cycles (3 units)" in out
        assert "folly/io/cursor" in out
        assert "4 compilation units ready for emission" in out

    def test_missing_source_dir(self, temp_dir: str, capsys: Any) -> None:
        exit_code = buildCheckUnits.run([os.path.join(temp_dir, "nope"), "--no-color"])

        assert exit_code == EXIT_INVALID_ARGS
        assert "Source directory not found" in capsys.readouterr().err

    def test_malformed_include(self, make_tree: Callable[[str, Dict[str, str]], Path], capsys: Any) -> None:
        root = make_tree("lib", {"Bad.h": "#include <lib/Foo.h\n"})

        exit_code = buildCheckUnits.run([str(root), "--no-color"])

        assert exit_code == EXIT_POPULATION_FAILED
        assert "Bad include!" in capsys.readouterr().err

    def test_export(self, cyclic_library_tree: Path, temp_dir: str) -> None:
        output = os.path.join(temp_dir, "units.json")

        exit_code = buildCheckUnits.run([str(cyclic_library_tree), "--no-color", "--export", output])

        assert exit_code == EXIT_SUCCESS
        with open(output, encoding="utf-8") as f:
            data = json.load(f)
        assert data["library"] == "folly"
        assert len(data["units"]) == 4

    def test_export_graph(self, foo_bar_tree: Path, temp_dir: str) -> None:
        output = os.path.join(temp_dir, "units.graphml")

        exit_code = buildCheckUnits.run([str(foo_bar_tree), "--no-color", "--export-graph", output])

        assert exit_code == EXIT_SUCCESS
        assert os.path.exists(output)

    def test_export_graph_unsupported_format(self, foo_bar_tree: Path, temp_dir: str, capsys: Any) -> None:
        """A bad graph extension is rejected before any analysis runs."""
        output = os.path.join(temp_dir, "units.dot")

        exit_code = buildCheckUnits.run([str(foo_bar_tree), "--no-color", "--export-graph", output])

        assert exit_code == EXIT_INVALID_ARGS
        captured = capsys.readouterr()
        assert "Unsupported graph format" in captured.err
        assert "COMPILATION UNITS" not in captured.out

    @pytest.mark.parametrize("option,name", [("--export", "units.json"), ("--export-graph", "units.graphml")])
    def test_export_unwritable_path(self, foo_bar_tree: Path, temp_dir: str, capsys: Any, option: str, name: str) -> None:
        output = os.path.join(temp_dir, "missing", "dir", name)

        exit_code = buildCheckUnits.run([str(foo_bar_tree), "--no-color", option, output])

        assert exit_code == EXIT_HIERARCHY_FAILED
        assert "Cannot write" in capsys.readouterr().err

    def test_library_differs_from_directory_name(self, make_tree: Callable[[str, Dict[str, str]], Path], temp_dir: str) -> None:
        root = make_tree("folly-checkout", {"Foo.h": "", "Bar.h": "#include <folly/Foo.h>\n"})
        output = os.path.join(temp_dir, "units.json")

        exit_code = buildCheckUnits.run([str(root), "--no-color", "--library", "folly", "--export", output])

        assert exit_code == EXIT_SUCCESS
        with open(output, encoding="utf-8") as f:
            data = json.load(f)
        assert len(data["units"]) == 2

    def test_phase_error_maps_to_exit_code(self, foo_bar_tree: Path, monkeypatch: Any) -> None:
        def failing_hierarchy(store: Any) -> Any:
            raise HierarchyError("boom")

        monkeypatch.setattr(buildCheckUnits, "build_hierarchy", failing_hierarchy)

        assert buildCheckUnits.run([str(foo_bar_tree), "--no-color"]) == EXIT_HIERARCHY_FAILED

    def test_keyboard_interrupt(self, foo_bar_tree: Path, monkeypatch: Any) -> None:
        def interrupted(*args: Any, **kwargs: Any) -> Any:
            raise KeyboardInterrupt

        monkeypatch.setattr(buildCheckUnits, "populate_units", interrupted)

        assert buildCheckUnits.run([str(foo_bar_tree), "--no-color"]) == buildCheckUnits.EXIT_KEYBOARD_INTERRUPT
