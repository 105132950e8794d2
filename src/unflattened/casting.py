"""Entry points for loosely-typed input.

Values are checked against the capability contracts before anything is
mutated; the tree work itself is delegated to the typed pipelines.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from .config.policies import FlattenPolicy, UnflattenPolicy
from .contracts import (
    IDENTITY_OPERATIONS,
    TRAVERSAL_OPERATIONS,
    Flattenable,
    Flattener,
    UnFlattenable,
    missing_operations,
)
from .errors import CapabilityMismatchError, UnflattenedError
from .flatten import flatten_uf
from .unflatten import unflatten_uf


def ensure_flattenable(value: Any) -> Flattenable:
    """Return ``value`` if it implements the traversal contract, else raise."""

    missing = missing_operations(value, TRAVERSAL_OPERATIONS)
    if missing:
        raise CapabilityMismatchError(value, "Flattenable", missing)
    return value


def ensure_unflattenable(value: Any) -> UnFlattenable:
    """Return ``value`` if it implements both contracts, else raise."""

    missing = missing_operations(value, TRAVERSAL_OPERATIONS + IDENTITY_OPERATIONS)
    if missing:
        raise CapabilityMismatchError(value, "UnFlattenable", missing)
    return value


def flatten(obj: Any, *, policy: FlattenPolicy | None = None) -> List[Any]:
    """Flatten any object implementing the traversal contract."""

    return flatten_uf(ensure_flattenable(obj), policy=policy)


def unflatten(
    values: Iterable[Any],
    *,
    policy: UnflattenPolicy | None = None,
    converter: Flattener | None = None,
) -> List[UnFlattenable]:
    """Unflatten loosely-typed values, optionally lifting each one with ``converter``.

    Every value is checked before the first entity is touched, so a mismatch
    leaves the input unchanged.
    """

    entities: List[UnFlattenable] = []
    for value in values:
        if converter is not None:
            try:
                value = converter(value)
            except UnflattenedError:
                raise
            except (TypeError, ValueError) as exc:
                raise CapabilityMismatchError(value, "UnFlattenable", ["conversion"]) from exc
        entities.append(ensure_unflattenable(value))
    return unflatten_uf(entities, policy=policy)


__all__ = [
    "ensure_flattenable",
    "ensure_unflattenable",
    "flatten",
    "unflatten",
]
