"""Shared fixtures: a minimal entity type implementing both contracts."""

from __future__ import annotations

from typing import Callable, List, Sequence, Set, Tuple

import pytest
from loguru import logger

TreeSpec = Tuple[str, Sequence["TreeSpec"]]


class Node:
    def __init__(self, key: str, parent_key: str = "") -> None:
        self._key = key
        self._parent_key = parent_key
        self.children: List["Node"] = []

    def __repr__(self) -> str:
        return f"Node({self._key!r})"

    def key(self) -> str:
        return self._key

    def parent_key(self) -> str:
        return self._parent_key

    def append_child(self, child: "Node") -> None:
        if child is None:
            raise ValueError("nil argument")
        self.children.append(child)

    def get_children(self) -> List["Node"]:
        return list(self.children)

    def unlink_children(self) -> None:
        self.children = []


def _build(spec: TreeSpec, parent_key: str = "") -> Node:
    key, children = spec
    node = Node(key, parent_key)
    for child in children:
        node.children.append(_build(child, key))
    return node


def _edges(root: Node) -> Set[Tuple[str, str]]:
    found: Set[Tuple[str, str]] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.children:
            found.add((node.key(), child.key()))
            stack.append(child)
    return found


SCENARIO: TreeSpec = (
    "a",
    [
        ("b1", [("c11", []), ("c12", []), ("c13", [("d131", [])])]),
        ("b2", [("c21", []), ("c22", [])]),
        ("b3", []),
    ],
)

SCENARIO_PREORDER = ["a", "b1", "c11", "c12", "c13", "d131", "b2", "c21", "c22", "b3"]


@pytest.fixture
def node_cls() -> type:
    return Node


@pytest.fixture
def build_tree() -> Callable[[TreeSpec], Node]:
    return _build


@pytest.fixture
def edges() -> Callable[[Node], Set[Tuple[str, str]]]:
    return _edges


@pytest.fixture
def scenario_tree() -> Node:
    return _build(SCENARIO)


@pytest.fixture
def scenario_preorder() -> List[str]:
    return list(SCENARIO_PREORDER)


@pytest.fixture
def scenario_edges() -> Set[Tuple[str, str]]:
    return _edges(_build(SCENARIO))


@pytest.fixture(autouse=True)
def _drop_cli_log_sinks():
    """CLI commands bind loguru to the runner's temporary streams; drop them afterwards."""

    yield
    logger.remove()
