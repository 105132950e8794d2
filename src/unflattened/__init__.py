"""Flatten trees of arbitrary objects into keyed records and rebuild them."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("unflattened")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.1.0"

from .casting import ensure_flattenable, ensure_unflattenable, flatten, unflatten
from .config.policies import FlattenPolicy, UnflattenPolicy
from .contracts import Flattenable, Flattener, Linkable, UnFlattenable
from .errors import (
    CapabilityMismatchError,
    ChildAccessError,
    ChildLinkError,
    CycleDetectedError,
    DuplicateKeyError,
    EmptyInputError,
    FlattenCancelledError,
    FlattenTimeoutError,
    UnflattenedError,
)
from .flatten import FlattenStream, flatten_uf, iter_flatten
from .unflatten import unflatten_map_uf, unflatten_uf

__all__ = [
    "__version__",
    "Flattenable",
    "Linkable",
    "UnFlattenable",
    "Flattener",
    "FlattenPolicy",
    "UnflattenPolicy",
    "flatten",
    "unflatten",
    "flatten_uf",
    "iter_flatten",
    "FlattenStream",
    "unflatten_uf",
    "unflatten_map_uf",
    "ensure_flattenable",
    "ensure_unflattenable",
    "UnflattenedError",
    "EmptyInputError",
    "CapabilityMismatchError",
    "ChildLinkError",
    "ChildAccessError",
    "CycleDetectedError",
    "DuplicateKeyError",
    "FlattenTimeoutError",
    "FlattenCancelledError",
]
