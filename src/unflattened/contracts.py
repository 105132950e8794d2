"""Capability contracts that entities implement to take part in flattening."""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Flattenable(Protocol):
    """Traversal contract: expose the current children and drop them."""

    def get_children(self) -> Sequence["Flattenable"]:
        ...

    def unlink_children(self) -> None:
        ...


@runtime_checkable
class Linkable(Protocol):
    """Identity contract: own key, parent key and a way to attach a child."""

    def key(self) -> str:
        ...

    def parent_key(self) -> str:
        ...

    def append_child(self, child: "Linkable") -> None:
        ...


@runtime_checkable
class UnFlattenable(Flattenable, Linkable, Protocol):
    """Entities satisfying both contracts can make the full round trip."""


Flattener = Callable[[Any], UnFlattenable]

TRAVERSAL_OPERATIONS = ("get_children", "unlink_children")
IDENTITY_OPERATIONS = ("key", "parent_key", "append_child")


def missing_operations(value: Any, operations: Sequence[str]) -> list[str]:
    """Return the names in ``operations`` that ``value`` does not provide as callables."""

    return [name for name in operations if not callable(getattr(value, name, None))]


__all__ = [
    "Flattenable",
    "Linkable",
    "UnFlattenable",
    "Flattener",
    "TRAVERSAL_OPERATIONS",
    "IDENTITY_OPERATIONS",
    "missing_operations",
]
