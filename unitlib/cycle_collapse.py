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
"""Collapse include cycles into composite compilation units.

Headers that include each other cannot be built as separate targets. Every
strongly connected component of the unit graph with more than one member is
folded into one composite unit, which turns the graph into a DAG.

Merge order is deterministic: members are sorted by (root_dir, name), and the
composite's file lists are the members' lists concatenated in that order.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Set, Tuple

import networkx as nx

from .constants import COMPOSITE_NAME_JOINER, PATH_SEPARATOR, CollapseError
from .node_store import UnitKey, UnitNode, UnitStore
from .unit_graph import add_dependency, build_unit_digraph, check_mirrored_edges, remove_dependency

logger = logging.getLogger(__name__)


@dataclass
class CollapseResult:
    """Outcome of collapsing the cycles of a unit graph.

    Attributes:
        composites: Composite units created, in creation order
        self_loops: Units whose self-dependency was removed
        units_before: Unit count before collapsing
        units_after: Unit count after collapsing
    """

    composites: List[UnitNode] = field(default_factory=list)
    self_loops: List[UnitKey] = field(default_factory=list)
    units_before: int = 0
    units_after: int = 0

    @property
    def merged_units(self) -> int:
        return sum(len(node.info.merged_from) for node in self.composites)


def find_unit_cycles(graph: "nx.DiGraph[Any]") -> Tuple[List[Set[UnitKey]], List[UnitKey]]:
    """Find strongly connected components (cycles) and self-loops.

    Args:
        graph: Unit graph view from build_unit_digraph()

    Returns:
        Tuple of (cycles, self_loops) where:
        - cycles: Member sets of components with more than one unit, ordered
          by their smallest member
        - self_loops: Units that depend on themselves
    """
    cycles: List[Set[UnitKey]] = []
    self_loops: List[UnitKey] = []

    for scc in nx.strongly_connected_components(graph):
        if len(scc) > 1:
            cycles.append(set(scc))
        else:
            key = next(iter(scc))
            if graph.has_edge(key, key):
                self_loops.append(key)

    cycles.sort(key=lambda members: min(key.sort_key() for key in members))
    self_loops.sort(key=UnitKey.sort_key)
    return cycles, self_loops


def common_root_dir(root_dirs: Iterable[str]) -> str:
    """Deepest directory shared by all root_dirs ("" if they share none)."""
    split_dirs = [root_dir.split(PATH_SEPARATOR) if root_dir else [] for root_dir in root_dirs]
    if not split_dirs:
        return ""

    common: List[str] = []
    for segments in zip(*split_dirs):
        if any(segment != segments[0] for segment in segments):
            break
        common.append(segments[0])
    return PATH_SEPARATOR.join(common)


def rebase_file_name(file_name: str, member_root: str, composite_root: str) -> str:
    """Express a member's file name relative to the composite's root_dir."""
    if member_root == composite_root:
        return file_name
    return posixpath.relpath(posixpath.join(member_root, file_name), composite_root or ".")


def choose_composite_key(store: UnitStore, members: List[UnitNode]) -> UnitKey:
    """Pick the key of the composite built from sorted members.

    The composite takes the first member's name at the members' common
    directory. If a unit outside the component already owns that key, the
    member names are joined instead.

    Raises:
        CollapseError: If no unused key can be found
    """
    member_keys = {member.key for member in members}
    root_dir = common_root_dir(member.key.root_dir for member in members)

    candidates = [
        UnitKey(members[0].key.name, root_dir),
        UnitKey(COMPOSITE_NAME_JOINER.join(member.key.name for member in members), root_dir),
    ]
    for candidate in candidates:
        if candidate in member_keys or candidate not in store:
            return candidate

    raise CollapseError(f"No free unit name for cycle {', '.join(str(key) for key in sorted(member_keys, key=UnitKey.sort_key))}")


def merge_units(store: UnitStore, member_keys: Iterable[UnitKey]) -> UnitNode:
    """Fold the members of one strongly connected component into a composite.

    Edges between members are dropped. Edges from and to units outside the
    component are retargeted at the composite, so no unit is left pointing at a
    removed member.

    Args:
        store: Unit store, rewritten in place
        member_keys: Keys of the component's members (at least two)

    Returns:
        The composite node registered in the store
    """
    members = [store[key] for key in sorted(member_keys, key=UnitKey.sort_key)]
    member_set = set(members)
    composite_key = choose_composite_key(store, members)

    external_deps: Set[UnitNode] = set()
    external_users: Set[UnitNode] = set()
    for member in members:
        external_deps.update(dep for dep in member.info.deps if dep not in member_set)
        external_users.update(user for user in member.info.reverse_deps if user not in member_set)

    # Detach every member completely before the composite exists, since the
    # composite may reuse a member's key
    for member in members:
        for dep in list(member.info.deps):
            remove_dependency(member, dep)
        for user in list(member.info.reverse_deps):
            remove_dependency(user, member)
        store.remove(member.key)

    composite = store.get_or_create(composite_key)
    info = composite.info
    for member in members:
        info.headers.extend(rebase_file_name(name, member.key.root_dir, composite_key.root_dir) for name in member.info.headers)
        info.srcs.extend(rebase_file_name(name, member.key.root_dir, composite_key.root_dir) for name in member.info.srcs)
        info.external_includes.update(member.info.external_includes)
        info.merged_from.extend(member.info.merged_from or [member.key])

    for dep in external_deps:
        add_dependency(composite, store[dep.key])
    for user in external_users:
        add_dependency(store[user.key], composite)

    logger.info("Merged cycle of %d units into %s", len(members), composite_key)
    for member in members:
        logger.debug("  member %s", member.key)
    return composite


def remove_self_loop(store: UnitStore, key: UnitKey) -> None:
    node = store[key]
    remove_dependency(node, node)
    logger.info("Removed self-dependency of %s", key)


def verify_collapsed(store: UnitStore) -> None:
    """Check that the collapsed graph is a consistent DAG.

    Raises:
        CollapseError: If edges are not mirrored or a cycle survived
    """
    violations = check_mirrored_edges(store)
    if violations:
        unit, other, problem = violations[0]
        raise CollapseError(f"Unit graph inconsistent after collapsing ({len(violations)} violations), first: {unit} / {other}: {problem}")

    graph = build_unit_digraph(store)
    if not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph, orientation="original")
        path = " -> ".join(str(edge[0]) for edge in cycle)
        raise CollapseError(f"Cycle survived collapsing: {path}")


def collapse_cycles(store: UnitStore) -> CollapseResult:
    """Collapse every cycle of the unit graph so that it becomes a DAG.

    Components of a single unit without a self-dependency are left untouched.

    Args:
        store: Unit store, rewritten in place

    Returns:
        CollapseResult describing the changes

    Raises:
        CollapseError: If the result is not a consistent DAG
    """
    result = CollapseResult(units_before=len(store))

    graph = build_unit_digraph(store)
    cycles, self_loops = find_unit_cycles(graph)
    logger.info("Found %d cycles and %d self-loops among %d units", len(cycles), len(self_loops), len(store))

    for key in self_loops:
        remove_self_loop(store, key)
    result.self_loops = self_loops

    for members in cycles:
        result.composites.append(merge_units(store, members))

    verify_collapsed(store)

    result.units_after = len(store)
    logger.info("Collapsed %d units into %d", result.units_before, result.units_after)
    return result
