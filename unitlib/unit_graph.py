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
"""Populate the compilation unit graph from a C++ source tree.

The walk classifies every file, merges it into its unit and turns every
in-scope include into a mirrored pair of edges:

    current.deps         += {dependency}
    dependency.reverse_deps += {current}

Both insertions always happen together in add_dependency(), so the mirrored
edge invariant holds after every step of the walk.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, List, Optional, Tuple, Union

import networkx as nx

from .constants import IncludeSyntaxError, SourceTreeError
from .include_resolver import resolve_include
from .name_utils import FileRole, classify_file_name
from .node_store import UnitKey, UnitNode, UnitStore

logger = logging.getLogger(__name__)


@dataclass
class PopulationStats:
    """Counters collected while walking the source tree.

    Attributes:
        files_added: Files merged into a unit
        files_skipped: Files with an unknown role
        in_scope_includes: Include lines that produced (or re-confirmed) an edge
        self_includes: Include lines naming the including file's own unit
        external_scopes: External include count per scope root
        skipped_files: Paths of skipped files
    """

    files_added: int = 0
    files_skipped: int = 0
    in_scope_includes: int = 0
    self_includes: int = 0
    external_scopes: Counter = field(default_factory=Counter)
    skipped_files: List[str] = field(default_factory=list)

    @property
    def external_includes(self) -> int:
        return sum(self.external_scopes.values())


@dataclass
class AnalysisContext:
    """State of one analysis run, threaded through the walk.

    Attributes:
        root: Directory being analyzed (the library's top-level directory)
        library: Scope root that marks an include as in-scope (e.g. "folly")
        store: Unit store populated by the walk
        stats: Population counters
    """

    root: Path
    library: str
    store: UnitStore = field(default_factory=UnitStore)
    stats: PopulationStats = field(default_factory=PopulationStats)

    def root_dir_of(self, directory: Path) -> str:
        """Unit root_dir for a directory inside the tree.

        Paths start with the library scope followed by the directory relative to
        the analyzed root, matching how the library's own headers are included
        ("folly/io/IOBuf.h" -> "folly/io") whatever the checkout is called.
        """
        try:
            relative = directory.relative_to(self.root)
        except ValueError as e:
            raise SourceTreeError("Path is outside the analyzed tree", str(directory)) from e
        return PurePosixPath(self.library, *relative.parts).as_posix()


def add_dependency(node: UnitNode, dependency: UnitNode) -> None:
    """Add the edge node -> dependency together with its mirror."""
    node.info.deps.add(dependency)
    dependency.info.reverse_deps.add(node)


def remove_dependency(node: UnitNode, dependency: UnitNode) -> None:
    """Remove the edge node -> dependency together with its mirror."""
    node.info.deps.discard(dependency)
    dependency.info.reverse_deps.discard(node)


def add_file(context: AnalysisContext, file_path: Path) -> Optional[UnitNode]:
    """Classify one file and merge it into its unit.

    Args:
        context: Analysis context
        file_path: Path of a regular file inside context.root

    Returns:
        The owning unit, or None if the file has an unknown role
    """
    file_name = file_path.name
    unit_name, role = classify_file_name(file_name)

    if role is FileRole.UNKNOWN:
        logger.info("Ignoring file: %s", file_path)
        context.stats.files_skipped += 1
        context.stats.skipped_files.append(str(file_path))
        return None

    key = UnitKey(name=unit_name, root_dir=context.root_dir_of(file_path.parent))
    node = context.store.get_or_create(key)
    if role.is_header:
        node.info.headers.append(file_name)
    else:
        node.info.srcs.append(file_name)

    context.stats.files_added += 1
    logger.debug("Path %s -> unit %s (%s)", file_path, key, role.name)
    return node


def scan_includes(context: AnalysisContext, file_path: Path, node: UnitNode) -> None:
    """Read a file line by line and add an edge for every in-scope include.

    Raises:
        SourceTreeError: If the file cannot be read
        IncludeSyntaxError: For a malformed include; the run must stop
    """
    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            for line_no, line in enumerate(f, 1):
                if "\ufffd" in line:
                    logger.warning("Undecodable bytes replaced in %s:%d", file_path, line_no)
                try:
                    target = resolve_include(line, context.library, node.key.root_dir)
                except IncludeSyntaxError as e:
                    raise IncludeSyntaxError(line, location=f"{file_path}:{line_no}") from e

                if target is None:
                    continue

                if not target.in_scope or target.key is None:
                    node.info.external_includes.add(target.path)
                    context.stats.external_scopes[target.scope_root] += 1
                    logger.debug("External include %s in %s", target.path, file_path)
                    continue

                if target.key == node.key:
                    context.stats.self_includes += 1
                    continue

                dependency = context.store.get_or_create(target.key)
                add_dependency(node, dependency)
                context.stats.in_scope_includes += 1
                logger.info("%s -> %s", node.key, dependency.key)
    except OSError as e:
        raise SourceTreeError(f"Cannot read file ({e.strerror})", str(file_path)) from e


def add_initial_subtree(file_path: Path, context: AnalysisContext) -> None:
    """Recursively add a file or directory to the unit graph.

    Directory entries are visited in sorted order; symlinked directories are
    not followed. Order only affects diagnostics and the order of file names
    inside a unit; node identity is keyed, not positional.

    Raises:
        SourceTreeError: For unreadable files or directories
        IncludeSyntaxError: For malformed include directives
    """
    if file_path.is_dir() and not file_path.is_symlink():
        try:
            children = sorted(file_path.iterdir())
        except OSError as e:
            raise SourceTreeError(f"Cannot list directory ({e.strerror})", str(file_path)) from e
        for child in children:
            add_initial_subtree(child, context)
        return

    if not file_path.is_file():
        logger.info("Ignoring non-regular file: %s", file_path)
        context.stats.files_skipped += 1
        context.stats.skipped_files.append(str(file_path))
        return

    node = add_file(context, file_path)
    if node is not None:
        scan_includes(context, file_path, node)


def populate_units(root: Union[str, Path], library: Optional[str] = None) -> AnalysisContext:
    """Build the initial (possibly cyclic) unit graph for a source tree.

    Args:
        root: Top-level directory of the library (e.g. ".../folly/folly")
        library: Include scope root of the library; defaults to root's name

    Returns:
        AnalysisContext holding the populated store and statistics

    Raises:
        SourceTreeError: If root is not a readable directory
        IncludeSyntaxError: For malformed include directives
    """
    # Default scope comes from the name as given so a symlinked checkout keeps its name
    library = library or Path(root).name
    root_path = Path(root).resolve()
    if not root_path.is_dir():
        raise SourceTreeError("Source root is not a directory", str(root_path))

    context = AnalysisContext(root=root_path, library=library or root_path.name)
    logger.info("Populating units for library '%s' from %s", context.library, root_path)

    add_initial_subtree(root_path, context)

    missing = [node.key for node in context.store if not node.info.headers and not node.info.srcs]
    if missing:
        logger.warning("%d units are included but have no files in the tree", len(missing))
        for key in sorted(missing, key=UnitKey.sort_key):
            logger.debug("Unit without files: %s", key)

    logger.info(
        "Populated %d units from %d files (%d skipped, %d in-scope includes, %d external includes)",
        len(context.store),
        context.stats.files_added,
        context.stats.files_skipped,
        context.stats.in_scope_includes,
        context.stats.external_includes,
    )
    return context


def check_mirrored_edges(store: UnitStore) -> List[Tuple[UnitKey, UnitKey, str]]:
    """Verify B in A.deps <=> A in B.reverse_deps for every unit pair.

    Returns:
        List of (unit, other, problem) violations; empty when consistent
    """
    violations: List[Tuple[UnitKey, UnitKey, str]] = []

    for node in store.sorted_nodes():
        for dep in node.info.deps:
            if node not in dep.info.reverse_deps:
                violations.append((node.key, dep.key, "missing reverse edge"))
            if dep.key not in store or store[dep.key] is not dep:
                violations.append((node.key, dep.key, "dependency is not a registered unit"))
        for user in node.info.reverse_deps:
            if node not in user.info.deps:
                violations.append((node.key, user.key, "missing forward edge"))
            if user.key not in store or store[user.key] is not user:
                violations.append((node.key, user.key, "reverse dependency is not a registered unit"))

    return violations


def build_unit_digraph(store: UnitStore) -> "nx.DiGraph[Any]":
    """Build a NetworkX view of the unit graph (edge: unit -> dependency).

    Args:
        store: Unit store

    Returns:
        DiGraph over UnitKey nodes
    """
    graph: nx.DiGraph[UnitKey] = nx.DiGraph()
    graph.add_nodes_from(store.keys())

    edges = [(node.key, dep.key) for node in store for dep in node.info.deps]
    graph.add_edges_from(edges)

    logger.debug("Built unit graph with %s nodes and %s edges", graph.number_of_nodes(), graph.number_of_edges())
    return graph
