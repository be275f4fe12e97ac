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
"""Shared constants for the buildCheckUnits tool.

This module provides centralized constants used across the unit analysis
pipeline (population, cycle collapsing, hierarchy) to ensure consistency and
make it easy to adjust suffix rules and defaults.
"""

from typing import Tuple

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_POPULATION_FAILED = 3  # Tree walk or include parsing failed
EXIT_COLLAPSE_FAILED = 4  # Cycle collapsing left the graph inconsistent
EXIT_HIERARCHY_FAILED = 5  # Hierarchy or emission ordering failed
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# File Role Suffixes
# =============================================================================

# Checked in this order: some suffixes are suffixes of others ("FooTest.cpp" also ends in ".cpp")
TEST_SOURCE_SUFFIXES: Tuple[str, ...] = ("_test.cpp", "_test.cc", "Test.cpp", "Test.cc")
SOURCE_SUFFIXES: Tuple[str, ...] = (".cpp", ".cc")
TEMPLATE_HEADER_SUFFIXES: Tuple[str, ...] = ("-inl.h",)
HEADER_SUFFIXES: Tuple[str, ...] = (".h",)

# =============================================================================
# Naming / Include Constants
# =============================================================================

UNIT_NAME_DELIMITER = "_"  # Separator used by the unit naming convention
PATH_SEPARATOR = "/"  # Include paths and unit root_dir values always use '/'
COMPOSITE_NAME_JOINER = "__"  # Joins member names when a composite needs a unique name

# Opening delimiter -> closing delimiter
INCLUDE_DELIMITERS = {"<": ">", '"': '"'}

# =============================================================================
# Display Limits
# =============================================================================

DEFAULT_TOP_N = 20  # Default number of units to list in the summary
MAX_CYCLE_MEMBERS_DISPLAY = 10  # Maximum members printed per collapsed cycle

# =============================================================================
# Export Constants
# =============================================================================

SUPPORTED_GRAPH_FORMATS = [".graphml", ".gexf", ".json"]
UNITS_SCHEMA_VERSION = "1.0"

# =============================================================================
# Exception Classes
# =============================================================================


class BuildUnitsError(Exception):
    """Base exception for all buildCheckUnits errors.

    Every exception carries an exit_code attribute naming the exit code the
    program should use when the error reaches the main entry point. The code
    identifies which pipeline phase failed.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ValidationError(BuildUnitsError):
    """Raised when input validation fails (arguments, paths, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class PackageRequirementError(BuildUnitsError):
    """Raised when a required package is missing or too old."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_RUNTIME_ERROR)


# Population phase (EXIT_POPULATION_FAILED)
class PopulationError(BuildUnitsError):
    """Raised when the initial compilation units cannot be populated."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_POPULATION_FAILED)


class SourceTreeError(PopulationError):
    """Raised when a file or directory of the source tree cannot be read."""

    def __init__(self, message: str, path: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class IncludeSyntaxError(PopulationError):
    """Raised for an include directive with unbalanced <> or "" delimiters."""

    def __init__(self, line: str, location: str = ""):
        where = f"{location}: " if location else ""
        super().__init__(f"{where}Bad include! {line.strip()}")
        self.line = line
        self.location = location


class GraphBuildError(PopulationError):
    """Raised when the unit store would hold two nodes for one key."""


# Collapse phase (EXIT_COLLAPSE_FAILED)
class CollapseError(BuildUnitsError):
    """Raised when collapsing cycles does not produce a consistent DAG.

    This indicates a resolver or merge defect rather than bad input.
    """

    def __init__(self, message: str):
        super().__init__(message, EXIT_COLLAPSE_FAILED)


# Hierarchy / emission phase (EXIT_HIERARCHY_FAILED)
class HierarchyError(BuildUnitsError):
    """Raised when units cannot be arranged for emission."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_HIERARCHY_FAILED)


class EmissionError(HierarchyError):
    """Raised when emitter data or graph files cannot be written."""
