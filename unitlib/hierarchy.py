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
"""Directory hierarchy and emission order of compilation units.

The hierarchy is a trie keyed by root_dir segments. A build-file emitter walks
it to decide target grouping (for example one target file per directory); it
carries no graph semantics and never changes deps/reverse_deps.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import networkx as nx

from .constants import PATH_SEPARATOR, HierarchyError
from .node_store import UnitKey, UnitNode, UnitStore
from .unit_graph import build_unit_digraph

logger = logging.getLogger(__name__)


@dataclass
class UnitTrie:
    """One directory level of the unit hierarchy.

    Attributes:
        segment: Directory name of this level ("" for the root)
        path: Full '/'-joined directory path of this level
        units: Units whose root_dir ends at this level, sorted by key
        children: Sub-directory levels by segment
    """

    segment: str = ""
    path: str = ""
    units: List[UnitNode] = field(default_factory=list)
    children: Dict[str, "UnitTrie"] = field(default_factory=dict)

    def child(self, segment: str) -> "UnitTrie":
        """Return the child level for segment, creating it if needed."""
        node = self.children.get(segment)
        if node is None:
            path = f"{self.path}{PATH_SEPARATOR}{segment}" if self.path else segment
            node = UnitTrie(segment=segment, path=path)
            self.children[segment] = node
        return node

    def find(self, path: str) -> Optional["UnitTrie"]:
        """Return the level for a '/'-joined directory path, or None."""
        node: Optional[UnitTrie] = self
        for segment in split_root_dir(path):
            if node is None:
                return None
            node = node.children.get(segment)
        return node

    def walk(self) -> Iterator["UnitTrie"]:
        """Yield this level and all levels below it (pre-order, sorted)."""
        yield self
        for segment in sorted(self.children):
            yield from self.children[segment].walk()

    def iter_units(self) -> Iterator[UnitNode]:
        for level in self.walk():
            yield from level.units

    def unit_count(self) -> int:
        return sum(len(level.units) for level in self.walk())


def split_root_dir(root_dir: str) -> List[str]:
    """Split a unit root_dir into trie segments.

    Raises:
        HierarchyError: For absolute paths, empty segments or '.'/'..'
    """
    if not root_dir:
        return []
    if root_dir.startswith(PATH_SEPARATOR):
        raise HierarchyError(f"Unit root_dir must be relative: '{root_dir}'")

    segments = root_dir.split(PATH_SEPARATOR)
    for segment in segments:
        if segment in ("", ".", ".."):
            raise HierarchyError(f"Malformed unit root_dir: '{root_dir}'")
    return segments


def build_hierarchy(store: UnitStore) -> UnitTrie:
    """Arrange the units of a (collapsed) store into a directory trie.

    Each unit is placed at the level of its full root_dir. Intermediate levels
    are created even when they hold no units of their own.

    Args:
        store: Unit store, normally after collapse_cycles()

    Returns:
        Root level of the trie

    Raises:
        HierarchyError: For malformed root_dir values
    """
    root = UnitTrie()
    placed = 0

    for node in store.sorted_nodes():
        level = root
        for segment in split_root_dir(node.key.root_dir):
            level = level.child(segment)
        level.units.append(node)
        placed += 1

    logger.info("Built hierarchy with %d units in %d directories", placed, sum(1 for _ in root.walk()))
    return root


def compute_emission_layers(store: UnitStore) -> List[List[UnitKey]]:
    """Order units so that every unit comes after all of its dependencies.

    Uses NetworkX topological generations on the dependency graph reversed, so
    layer 0 holds units without dependencies.

    Args:
        store: Collapsed unit store

    Returns:
        List of layers, each sorted by (root_dir, name)

    Raises:
        HierarchyError: If the unit graph still contains a cycle
    """
    graph: "nx.DiGraph[Any]" = build_unit_digraph(store).reverse(copy=False)

    try:
        generations = list(nx.topological_generations(graph))
    except nx.NetworkXUnfeasible as e:
        raise HierarchyError("Unit graph contains cycles - cannot order units for emission") from e

    layers = [sorted(generation, key=UnitKey.sort_key) for generation in generations]
    logger.debug("Computed %d emission layers", len(layers))
    return layers
