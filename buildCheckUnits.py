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
"""Derive minimal compilation units and their dependency DAG from a C++ source tree.

Version: 1.0.0

PURPOSE:
    Groups the headers, template headers, sources and tests of a library into
    compilation units, resolves #include lines into unit dependencies, folds
    include cycles into composite units and orders the result for emission of
    build-system target files.

WHAT IT DOES:
    - Walks the source tree and classifies files by suffix (Foo.h, Foo-inl.h,
      Foo.cpp, FooTest.cpp all belong to unit "foo")
    - Turns every in-scope #include into a unit dependency edge
    - Collapses strongly connected components (mutually including headers)
      into single composite units so the unit graph is a DAG
    - Builds a directory hierarchy and dependency-first emission layers

USE CASES:
    - "Which files must be built together as one target?"
    - "Which headers include each other and cannot be split into targets?"
    - Preparing input for a build-file generator

METHOD:
    Reads #include lines literally (no preprocessing). Includes whose first path
    segment is the library name (e.g. <folly/io/IOBuf.h>) and quoted sibling
    includes ("Foo.h") become edges; everything else is recorded as external.

OUTPUT:
    1. Population summary (files, units, includes, external scopes)
    2. Collapsed cycles and their members
    3. Units per directory and emission layers
    4. Optional JSON hand-off file and graph export

REQUIREMENTS:
    - Python 3.8+
    - networkx: pip install networkx
    - colorama: pip install colorama
    - packaging: pip install packaging

EXAMPLES:
    # Analyze folly (library name defaults to the directory name)
    ./buildCheckUnits.py ~/src/folly/folly

    # Explicit library scope, export data for the emitter
    ./buildCheckUnits.py ~/src/folly/folly --library folly --export units.json

    # Export the collapsed unit graph for visualization
    ./buildCheckUnits.py ~/src/folly/folly --export-graph units.graphml
"""
import os
import sys
import argparse
import logging
from typing import List, Optional

from unitlib.color_utils import Colors, print_error, print_info, print_section, print_success, print_warning, should_use_color
from unitlib.constants import (
    DEFAULT_TOP_N,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    MAX_CYCLE_MEMBERS_DISPLAY,
    BuildUnitsError,
    ValidationError,
)
from unitlib.cycle_collapse import CollapseResult, collapse_cycles
from unitlib.export_utils import export_unit_graph, export_units_json, graph_format
from unitlib.hierarchy import UnitTrie, build_hierarchy, compute_emission_layers
from unitlib.node_store import UnitKey
from unitlib.package_verification import check_all_packages, require_package
from unitlib.unit_graph import AnalysisContext, populate_units

# Export for tests
__all__ = ["EXIT_SUCCESS", "main", "run"]


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Derive minimal compilation units and their dependency DAG from a C++ source tree.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/src/folly/folly
  %(prog)s ~/src/folly/folly --library folly --export units.json
  %(prog)s ~/src/folly/folly --export-graph units.graphml
  %(prog)s --check-packages
        """,
    )

    parser.add_argument("source_dir", metavar="SOURCE_DIR", nargs="?", help="Top-level directory of the library to analyze (e.g. folly/folly)")
    parser.add_argument("--library", metavar="NAME", help="Include scope of the library (default: name of SOURCE_DIR)")
    parser.add_argument("--export", metavar="FILE", help="Write units, hierarchy and emission layers to a JSON file")
    parser.add_argument("--export-graph", metavar="FILE", help="Export the collapsed unit graph (.graphml, .gexf or .json)")
    parser.add_argument("--top", type=int, default=DEFAULT_TOP_N, help=f"Number of directories to list (default: {DEFAULT_TOP_N})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log skipped files and every discovered dependency")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--check-packages", action="store_true", help="Verify installed runtime packages and exit")

    return parser.parse_args(argv)


def validate_arguments(args: argparse.Namespace) -> str:
    """Validate arguments and return the absolute source directory.

    Raises:
        ValidationError: For a missing source directory or bad option values
    """
    if not args.source_dir:
        raise ValidationError("SOURCE_DIR is required")

    source_dir = os.path.abspath(args.source_dir)
    if not os.path.isdir(source_dir):
        raise ValidationError(f"Source directory not found: '{args.source_dir}'")

    if args.top < 0:
        raise ValidationError("--top must not be negative")

    if args.library is not None and (not args.library or "/" in args.library):
        raise ValidationError(f"Invalid library name '{args.library}': must be a single path segment")

    if args.export_graph:
        graph_format(args.export_graph)

    return source_dir


def print_population_summary(context: AnalysisContext) -> None:
    stats = context.stats
    print_section(f"COMPILATION UNITS: {context.library}")
    print(f"  Files added:        {Colors.CYAN}{stats.files_added}{Colors.RESET}")
    print(f"  Files skipped:      {Colors.CYAN}{stats.files_skipped}{Colors.RESET}")
    print(f"  Units:              {Colors.CYAN}{len(context.store)}{Colors.RESET}")
    print(f"  In-scope includes:  {Colors.CYAN}{stats.in_scope_includes}{Colors.RESET}")
    print(f"  External includes:  {Colors.CYAN}{stats.external_includes}{Colors.RESET}")

    if stats.external_scopes:
        top_scopes = ", ".join(f"{scope} ({count})" for scope, count in stats.external_scopes.most_common(5))
        print(f"  {Colors.DIM}Top external scopes: {top_scopes}{Colors.RESET}")


def print_collapse_summary(result: CollapseResult) -> None:
    print_section("INCLUDE CYCLES")

    if not result.composites:
        print(f"\n{Colors.GREEN}✓ No include cycles found{Colors.RESET}")
    else:
        print(f"\n{Colors.RED}Collapsed {len(result.composites)} cycles ({result.merged_units} units):{Colors.RESET}\n")
        for i, composite in enumerate(result.composites, 1):
            members = composite.info.merged_from
            print(f"{Colors.RED}Cycle {i} -> {composite.key} ({len(members)} units):{Colors.RESET}")
            for key in members[:MAX_CYCLE_MEMBERS_DISPLAY]:
                print(f"  • {key}")
            if len(members) > MAX_CYCLE_MEMBERS_DISPLAY:
                print(f"  {Colors.DIM}... and {len(members) - MAX_CYCLE_MEMBERS_DISPLAY} more{Colors.RESET}")

    if result.self_loops:
        print_warning(f"Removed {len(result.self_loops)} self-dependencies", prefix=False)

    print(f"\n  Units: {Colors.CYAN}{result.units_before}{Colors.RESET} → {Colors.CYAN}{result.units_after}{Colors.RESET}")


def print_hierarchy_summary(hierarchy: UnitTrie, layers: List[List[UnitKey]], top: int) -> None:
    print_section("TARGET HIERARCHY")

    levels = [level for level in hierarchy.walk() if level.units]
    levels.sort(key=lambda level: len(level.units), reverse=True)

    print(f"\n{Colors.BRIGHT}Directories with units ({len(levels)}):{Colors.RESET}")
    for level in levels[:top]:
        print(f"  {level.path or '.':<60} {Colors.CYAN}{len(level.units):>5}{Colors.RESET} units")
    if len(levels) > top:
        print(f"  {Colors.DIM}... and {len(levels) - top} more{Colors.RESET}")

    print(f"\n{Colors.BRIGHT}Emission layers: {len(layers)}{Colors.RESET}")
    if layers:
        widest = max(len(layer) for layer in layers)
        print(f"  {Colors.DIM}Widest layer: {widest} units (build parallelism){Colors.RESET}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the compilation unit analysis tool.

    Returns:
        Exit code (0 for success, non-zero for errors)

    Raises:
        BuildUnitsError: Propagated with the exit code of the failing phase
    """
    args = parse_arguments(argv)

    if args.debug:
        log_level = logging.DEBUG
    elif args.verbose:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    if not should_use_color(no_color=args.no_color):
        Colors.disable()

    if args.check_packages:
        return EXIT_SUCCESS if check_all_packages() else EXIT_RUNTIME_ERROR

    require_package("networkx", "unit graph analysis")

    source_dir = validate_arguments(args)

    print_info(f"Analyzing {source_dir}...")
    context = populate_units(source_dir, args.library)
    print_population_summary(context)

    result = collapse_cycles(context.store)
    print_collapse_summary(result)

    hierarchy = build_hierarchy(context.store)
    layers = compute_emission_layers(context.store)
    print_hierarchy_summary(hierarchy, layers, args.top)

    if args.export:
        export_units_json(args.export, context.store, hierarchy, context.library, layers)

    if args.export_graph:
        export_unit_graph(args.export_graph, context.store)

    print_success(f"\n✓ {len(context.store)} compilation units ready for emission")
    return EXIT_SUCCESS


def run(argv: Optional[List[str]] = None) -> int:
    """Run main() and map errors to exit codes."""
    try:
        return main(argv)
    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user", prefix=False)
        return EXIT_KEYBOARD_INTERRUPT
    except BuildUnitsError as e:
        print_error(str(e))
        return e.exit_code
    except Exception as e:
        logging.error("Unexpected error: %s", e)
        if logging.getLogger().level == logging.DEBUG:
            import traceback

            traceback.print_exc()
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(run())
