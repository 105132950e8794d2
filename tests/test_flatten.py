"""Tests for the producer/consumer flatten pipeline."""

from __future__ import annotations

import threading
import time

import pytest

from unflattened.config.policies import FlattenPolicy
from unflattened.errors import (
    ChildAccessError,
    FlattenCancelledError,
    FlattenTimeoutError,
    UnflattenedError,
)
from unflattened.flatten import flatten_uf, iter_flatten


def test_flatten_emits_scenario_in_preorder(scenario_tree, scenario_preorder) -> None:
    flat = flatten_uf(scenario_tree)

    assert [entity.key() for entity in flat] == scenario_preorder
    assert flat[0] is scenario_tree


def test_flatten_emits_every_node_once_and_detaches(scenario_tree) -> None:
    flat = flatten_uf(scenario_tree)

    assert len(flat) == 10
    assert len({id(entity) for entity in flat}) == 10
    assert all(entity.get_children() == [] for entity in flat)


def test_flatten_single_node(node_cls) -> None:
    leaf = node_cls("only")

    assert flatten_uf(leaf) == [leaf]


def test_flatten_respects_backpressure_with_tiny_buffer(build_tree) -> None:
    root = build_tree(("root", [(f"child-{i}", [(f"leaf-{i}", [])]) for i in range(300)]))

    flat = flatten_uf(root, policy=FlattenPolicy(buffer_size=1))

    assert len(flat) == 601
    assert flat[1].key() == "child-0"
    assert flat[2].key() == "leaf-0"


def test_flatten_handles_deep_chains(node_cls) -> None:
    root = node_cls("n0")
    cursor = root
    for index in range(1, 5000):
        child = node_cls(f"n{index}", cursor.key())
        cursor.children.append(child)
        cursor = child

    flat = flatten_uf(root)

    assert len(flat) == 5000
    assert flat[-1].key() == "n4999"


def test_children_failure_in_subtree_aborts_walk(build_tree, node_cls) -> None:
    class Broken(node_cls):
        def get_children(self):
            raise RuntimeError("storage offline")

    root = build_tree(("a", [("b", []), ("c", [])]))
    root.children.insert(1, Broken("x", "a"))

    with pytest.raises(ChildAccessError) as excinfo:
        flatten_uf(root)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert [entity.key() for entity in excinfo.value.partial] == ["a", "b", "x"]
    # the walk stopped before the root's children were severed
    assert root.get_children() != []


def test_unlink_failure_is_reported(node_cls) -> None:
    class Sticky(node_cls):
        def unlink_children(self):
            raise PermissionError("read-only")

    root = Sticky("a")
    root.children.append(node_cls("b", "a"))

    with pytest.raises(ChildAccessError):
        flatten_uf(root)


def test_flatten_times_out_on_slow_traversal(node_cls) -> None:
    class Slow(node_cls):
        def get_children(self):
            time.sleep(0.5)
            return super().get_children()

    with pytest.raises(FlattenTimeoutError) as excinfo:
        flatten_uf(Slow("slow"), policy=FlattenPolicy(timeout_seconds=0.05))

    assert [entity.key() for entity in excinfo.value.partial] == ["slow"]


def test_closing_stream_early_stops_walker(build_tree) -> None:
    root = build_tree(("root", [(f"c{i}", []) for i in range(100)]))
    stream = iter_flatten(root, policy=FlattenPolicy(buffer_size=1, poll_interval_seconds=0.01))

    iterator = iter(stream)
    assert next(iterator) is root
    iterator.close()

    assert stream.cancelled
    stream._thread.join(timeout=2)
    assert not stream._thread.is_alive()
    assert stream.emitted < 100
    assert len(root.get_children()) == 100


def test_cancel_before_iteration_raises(scenario_tree) -> None:
    stream = iter_flatten(scenario_tree)
    stream.cancel()

    with pytest.raises(FlattenCancelledError):
        list(stream)
    assert scenario_tree.get_children() != []


def test_stream_is_single_use(scenario_tree, scenario_preorder) -> None:
    stream = iter_flatten(scenario_tree)

    assert [entity.key() for entity in stream] == scenario_preorder
    with pytest.raises(UnflattenedError):
        iter(stream)


def test_flatten_policy_rejects_empty_buffer() -> None:
    with pytest.raises(ValueError):
        FlattenPolicy(buffer_size=0)


def test_cancel_while_reading_children_leaves_nodes_linked(node_cls) -> None:
    entered = threading.Event()
    release = threading.Event()
    unlinked = []

    class Tracked(node_cls):
        def unlink_children(self):
            unlinked.append(self.key())
            super().unlink_children()

    class Blocking(Tracked):
        def get_children(self):
            entered.set()
            release.wait(timeout=5)
            return super().get_children()

    root = Tracked("r")
    root.children.extend([Blocking("a", "r"), Tracked("b", "r")])
    stream = iter_flatten(root, policy=FlattenPolicy(buffer_size=1, poll_interval_seconds=0.01))

    iterator = iter(stream)
    assert next(iterator) is root
    assert next(iterator).key() == "a"
    assert entered.wait(timeout=5)
    stream.cancel()
    iterator.close()
    release.set()

    stream._thread.join(timeout=2)
    assert not stream._thread.is_alive()
    assert unlinked == []
    assert [child.key() for child in root.get_children()] == ["a", "b"]
