#!/usr/bin/env python3
"""Tests for unitlib/node_store.py"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from unitlib.constants import GraphBuildError
from unitlib.node_store import UnitKey, UnitNode, UnitStore


class TestUnitKey:
    """Tests for UnitKey identity and formatting."""

    def test_structural_equality(self) -> None:
        """Keys built from equal parts are equal and hash alike."""
        assert UnitKey("foo", "lib") == UnitKey("foo", "lib")
        assert hash(UnitKey("foo", "lib")) == hash(UnitKey("foo", "lib"))
        assert UnitKey("foo", "lib") != UnitKey("foo", "lib/io")

    def test_str(self) -> None:
        assert str(UnitKey("io_buf", "folly/io")) == "folly/io/io_buf"
        assert str(UnitKey("top", "")) == "top"

    def test_sort_key_orders_by_directory_first(self) -> None:
        keys = [UnitKey("a", "lib/z"), UnitKey("z", "lib"), UnitKey("b", "lib")]

        ordered = sorted(keys, key=UnitKey.sort_key)

        assert ordered == [UnitKey("b", "lib"), UnitKey("z", "lib"), UnitKey("a", "lib/z")]


class TestUnitStore:
    """Tests for the key-deduplicated node store."""

    def test_get_or_create_deduplicates(self) -> None:
        """Two lookups of one key return the same node object."""
        store = UnitStore()

        first = store.get_or_create(UnitKey("foo", "lib"))
        second = store.get_or_create(UnitKey("foo", "lib"))

        assert first is second
        assert len(store) == 1

    def test_mutation_visible_through_all_handles(self) -> None:
        """Payload changes through one reference are seen by every holder."""
        store = UnitStore()
        node = store.get_or_create(UnitKey("foo", "lib"))
        holder = {node}

        store.get_or_create(UnitKey("foo", "lib")).info.headers.append("Foo.h")

        assert next(iter(holder)).info.headers == ["Foo.h"]

    def test_add_rejects_second_node_for_key(self) -> None:
        store = UnitStore()
        store.add(UnitNode(UnitKey("foo", "lib")))

        with pytest.raises(GraphBuildError, match="already registered"):
            store.add(UnitNode(UnitKey("foo", "lib")))

    def test_add_same_node_twice_is_allowed(self) -> None:
        store = UnitStore()
        node = UnitNode(UnitKey("foo", "lib"))

        assert store.add(node) is node
        assert store.add(node) is node
        assert len(store) == 1

    def test_contains_checks_node_identity(self) -> None:
        """A detached node with a registered key is not a member."""
        store = UnitStore()
        registered = store.get_or_create(UnitKey("foo", "lib"))
        stray = UnitNode(UnitKey("foo", "lib"))

        assert UnitKey("foo", "lib") in store
        assert registered in store
        assert stray not in store

    def test_remove(self) -> None:
        store = UnitStore()
        node = store.get_or_create(UnitKey("foo", "lib"))

        assert store.remove(node.key) is node
        assert node.key not in store
        assert store.get(node.key) is None

    def test_sorted_nodes(self) -> None:
        store = UnitStore()
        for name, root_dir in (("b", "lib/io"), ("z", "lib"), ("a", "lib")):
            store.get_or_create(UnitKey(name, root_dir))

        assert [str(node.key) for node in store.sorted_nodes()] == ["lib/a", "lib/z", "lib/io/b"]

    def test_iteration_tolerates_removal(self) -> None:
        """Iterating while removing nodes does not fail."""
        store = UnitStore()
        for name in ("a", "b", "c"):
            store.get_or_create(UnitKey(name, "lib"))

        for node in store:
            store.remove(node.key)

        assert len(store) == 0


class TestUnitNode:
    """Tests for node equality and dependency views."""

    def test_equality_delegates_to_key(self) -> None:
        assert UnitNode(UnitKey("foo", "lib")) == UnitNode(UnitKey("foo", "lib"))
        assert len({UnitNode(UnitKey("foo", "lib")), UnitNode(UnitKey("foo", "lib"))}) == 1

    def test_dep_keys_sorted(self) -> None:
        node = UnitNode(UnitKey("foo", "lib"))
        node.info.deps.update({UnitNode(UnitKey("z", "lib")), UnitNode(UnitKey("a", "lib/io")), UnitNode(UnitKey("b", "lib"))})

        assert node.dep_keys == [UnitKey("b", "lib"), UnitKey("z", "lib"), UnitKey("a", "lib/io")]

    def test_is_composite(self) -> None:
        node = UnitNode(UnitKey("foo", "lib"))
        assert not node.info.is_composite

        node.info.merged_from.append(UnitKey("bar", "lib"))
        assert node.info.is_composite
