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
"""Shared node storage for the compilation unit graph.

A unit graph is built by many edges pointing at, and mutating, the same node.
Nodes are therefore plain shared objects: every ``deps``/``reverse_deps`` set
holds a reference to the one ``UnitNode`` registered for a key, and payload
changes made through any reference are visible through all of them.

Identity rules:
    - ``UnitKey`` equality and hashing are structural over (name, root_dir).
    - ``UnitNode`` equality and hashing delegate to its key, so a set of node
      handles behaves like a set of unit identities while the payload stays
      mutable.
    - ``UnitStore`` maps each key to exactly one node. ``get_or_create`` is the
      only way new nodes come into existence during population, and ``add``
      refuses a second node for a key that is already registered.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, KeysView, List, Optional, Set, Union

from .constants import GraphBuildError, PATH_SEPARATOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitKey:
    """Identity of a compilation unit.

    Attributes:
        name: Normalized (snake_case) base name, e.g. "foo_bar"
        root_dir: '/'-separated directory of the unit, e.g. "folly/io"
    """

    name: str
    root_dir: str

    def sort_key(self) -> tuple:
        """Ordering used wherever iteration must be deterministic."""
        return (self.root_dir, self.name)

    def __str__(self) -> str:
        if not self.root_dir:
            return self.name
        return f"{self.root_dir}{PATH_SEPARATOR}{self.name}"


@dataclass(eq=False)
class UnitInfo:
    """Mutable payload of a compilation unit.

    Attributes:
        headers: Header and template file names, in discovery order
        srcs: Source and test file names, in discovery order
        deps: Units this unit's files directly include
        reverse_deps: Units that include this unit
        external_includes: Include paths outside the analyzed library
        merged_from: Original unit keys folded into this unit (composites only)
    """

    headers: List[str] = field(default_factory=list)
    srcs: List[str] = field(default_factory=list)
    deps: Set["UnitNode"] = field(default_factory=set)
    reverse_deps: Set["UnitNode"] = field(default_factory=set)
    external_includes: Set[str] = field(default_factory=set)
    merged_from: List[UnitKey] = field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return bool(self.merged_from)


class UnitNode:
    """A (UnitKey, UnitInfo) pair shared by every edge that refers to the unit."""

    __slots__ = ("key", "info")

    def __init__(self, key: UnitKey, info: Optional[UnitInfo] = None):
        self.key = key
        self.info = info if info is not None else UnitInfo()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnitNode):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"UnitNode({self.key!s}, headers={len(self.info.headers)}, srcs={len(self.info.srcs)}, deps={len(self.info.deps)})"

    @property
    def dep_keys(self) -> List[UnitKey]:
        """Dependency keys in deterministic order."""
        return sorted((dep.key for dep in self.info.deps), key=UnitKey.sort_key)

    @property
    def reverse_dep_keys(self) -> List[UnitKey]:
        """Reverse dependency keys in deterministic order."""
        return sorted((user.key for user in self.info.reverse_deps), key=UnitKey.sort_key)


class UnitStore:
    """Key-deduplicated store of shared unit nodes.

    The store owns node creation. Edge sets hold references to the same node
    objects, so a node stays alive as long as any holder references it, even
    after the collapser has removed it from the store.
    """

    def __init__(self) -> None:
        self._nodes: Dict[UnitKey, UnitNode] = {}

    def get_or_create(self, key: UnitKey) -> UnitNode:
        """Return the node registered for key, creating an empty one if needed.

        Args:
            key: Unit identity

        Returns:
            The single node registered for key
        """
        node = self._nodes.get(key)
        if node is None:
            node = UnitNode(key)
            self._nodes[key] = node
            logger.debug("Created unit %s", key)
        return node

    def add(self, node: UnitNode) -> UnitNode:
        """Register an already constructed node.

        Raises:
            GraphBuildError: If a node with the same key is already registered
        """
        existing = self._nodes.get(node.key)
        if existing is not None:
            if existing is node:
                return node
            raise GraphBuildError(f"Unit {node.key} is already registered")
        self._nodes[node.key] = node
        return node

    def remove(self, key: UnitKey) -> UnitNode:
        """Unregister and return the node for key (used when merging units)."""
        return self._nodes.pop(key)

    def get(self, key: UnitKey) -> Optional[UnitNode]:
        return self._nodes.get(key)

    def keys(self) -> KeysView[UnitKey]:
        return self._nodes.keys()

    def sorted_nodes(self) -> List[UnitNode]:
        """All nodes ordered by (root_dir, name)."""
        return [self._nodes[key] for key in sorted(self._nodes, key=UnitKey.sort_key)]

    def __getitem__(self, key: UnitKey) -> UnitNode:
        return self._nodes[key]

    def __contains__(self, item: Union[UnitKey, UnitNode]) -> bool:
        if isinstance(item, UnitNode):
            return self._nodes.get(item.key) is item
        return item in self._nodes

    def __iter__(self) -> Iterator[UnitNode]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)
