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
"""Export utilities for handing the unit DAG to a build-file emitter."""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import networkx as nx
from networkx.readwrite import json_graph

from .color_utils import print_success
from .constants import SUPPORTED_GRAPH_FORMATS, UNITS_SCHEMA_VERSION, EmissionError, ValidationError
from .hierarchy import UnitTrie, compute_emission_layers
from .node_store import UnitKey, UnitNode, UnitStore
from .unit_graph import build_unit_digraph

logger = logging.getLogger(__name__)


def key_to_dict(key: UnitKey) -> Dict[str, str]:
    return {"name": key.name, "root_dir": key.root_dir}


def unit_to_dict(node: UnitNode) -> Dict[str, Any]:
    """Serialize one unit with deterministic ordering of all collections."""
    info = node.info
    return {
        "name": node.key.name,
        "root_dir": node.key.root_dir,
        "headers": list(info.headers),
        "srcs": list(info.srcs),
        "deps": [str(key) for key in node.dep_keys],
        "reverse_deps": [str(key) for key in node.reverse_dep_keys],
        "external_includes": sorted(info.external_includes),
        "merged_from": [key_to_dict(key) for key in info.merged_from],
    }


def hierarchy_to_dict(level: UnitTrie) -> Dict[str, Any]:
    """Serialize a hierarchy level and everything below it."""
    return {
        "segment": level.segment,
        "path": level.path,
        "units": [str(node.key) for node in level.units],
        "children": [hierarchy_to_dict(level.children[segment]) for segment in sorted(level.children)],
    }


def units_to_dict(store: UnitStore, hierarchy: UnitTrie, library: str, layers: Optional[List[List[UnitKey]]] = None) -> Dict[str, Any]:
    """Build the data an emitter needs: units, edges, hierarchy and order.

    Args:
        store: Collapsed unit store
        hierarchy: Trie from build_hierarchy()
        library: Library scope name
        layers: Emission layers; computed when not given

    Returns:
        JSON-serializable dictionary
    """
    if layers is None:
        layers = compute_emission_layers(store)

    return {
        "schema_version": UNITS_SCHEMA_VERSION,
        "library": library,
        "units": [unit_to_dict(node) for node in store.sorted_nodes()],
        "hierarchy": hierarchy_to_dict(hierarchy),
        "layers": [[str(key) for key in layer] for layer in layers],
    }


def export_units_json(filename: str, store: UnitStore, hierarchy: UnitTrie, library: str, layers: Optional[List[List[UnitKey]]] = None) -> None:
    """Write the emitter data to a JSON file.

    Raises:
        EmissionError: If the file cannot be written
    """
    data = units_to_dict(store, hierarchy, library, layers)
    try:
        with open(filename, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
    except OSError as e:
        raise EmissionError(f"Cannot write {filename}: {e.strerror}") from e

    logger.info("Exported %d units to %s", len(data["units"]), filename)
    print_success(f"Exported {len(data['units'])} units to {filename}")


def build_export_graph(store: UnitStore) -> "nx.DiGraph[Any]":
    """Unit graph with string node ids and scalar attributes for file formats.

    Node attributes:
        - name, root_dir: Unit key
        - headers, srcs: Counts of files
        - files: ';'-joined file names
        - composite: Whether the unit is a collapsed cycle
        - fan_in, fan_out: Direct reverse dependency / dependency counts
    """
    key_graph = build_unit_digraph(store)
    G: nx.DiGraph[str] = nx.DiGraph()

    for node in store.sorted_nodes():
        info = node.info
        G.add_node(
            str(node.key),
            name=node.key.name,
            root_dir=node.key.root_dir,
            headers=len(info.headers),
            srcs=len(info.srcs),
            files=";".join(info.headers + info.srcs),
            composite=info.is_composite,
            fan_in=len(info.reverse_deps),
            fan_out=len(info.deps),
        )

    G.add_edges_from((str(source), str(target)) for source, target in key_graph.edges())
    return G


def graph_format(filename: str) -> str:
    """Graph file format for an export filename, taken from its extension.

    Raises:
        ValidationError: If the extension is not a supported graph format
    """
    ext = os.path.splitext(filename)[1].lower()
    if ext not in SUPPORTED_GRAPH_FORMATS:
        raise ValidationError(f"Unsupported graph format '{ext}'. Supported: {', '.join(SUPPORTED_GRAPH_FORMATS)}")
    return ext


def export_unit_graph(filename: str, store: UnitStore) -> None:
    """Export the unit graph to GraphML (.graphml), GEXF (.gexf) or JSON (.json).

    Args:
        filename: Output filename (extension determines format)
        store: Unit store

    Raises:
        ValidationError: For an unsupported extension
        EmissionError: If the file cannot be written
    """
    ext = graph_format(filename)

    G = build_export_graph(store)
    try:
        if ext == ".graphml":
            nx.write_graphml(G, filename)
        elif ext == ".gexf":
            nx.write_gexf(G, filename)
        else:
            data = json_graph.node_link_data(G)
            with open(filename, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
    except OSError as e:
        raise EmissionError(f"Cannot write {filename}: {e.strerror}") from e

    logger.info("Exported unit graph to %s", filename)
    print_success(f"Exported unit graph to {filename}")
