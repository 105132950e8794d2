"""Unflatten pipeline: re-link keyed entities into trees by parent key."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, MutableMapping, Sequence, Set

from .config.policies import UnflattenPolicy
from .contracts import UnFlattenable
from .errors import (
    ChildLinkError,
    CycleDetectedError,
    DuplicateKeyError,
    EmptyInputError,
)
from .utils.logging import get_logger

_LOGGER = get_logger(module=__name__)

_IN_PROGRESS = 1
_RESOLVED = 2


def build_index(
    entities: Iterable[UnFlattenable],
    *,
    policy: UnflattenPolicy | None = None,
) -> Dict[str, UnFlattenable]:
    """Map every entity's key to the entity; later duplicates overwrite earlier ones."""

    cfg = policy or UnflattenPolicy()
    index: Dict[str, UnFlattenable] = {}
    for entity in entities:
        key = entity.key()
        existing = index.get(key)
        if existing is not None and existing is not entity:
            if cfg.duplicate_keys == "error":
                _LOGGER.warning("Rejecting duplicate entity key", key=key)
                raise DuplicateKeyError(key)
            _LOGGER.debug("Duplicate entity key, keeping the later entity", key=key)
        index[key] = entity
    return index


def find_cycle(index: Mapping[str, UnFlattenable]) -> List[str] | None:
    """Return the keys of one parent-key cycle in ``index``, or ``None``.

    The returned path starts and ends with the same key, e.g. ``["a", "b", "a"]``.
    """

    state: MutableMapping[str, int] = {}
    for start in index:
        if start in state:
            continue
        path: List[str] = []
        key = start
        while key in index and key not in state:
            state[key] = _IN_PROGRESS
            path.append(key)
            key = index[key].parent_key()
        if key in index and state.get(key) == _IN_PROGRESS:
            return path[path.index(key) :] + [key]
        for visited in path:
            state[visited] = _RESOLVED
    return None


def _link(
    entities: Iterable[UnFlattenable],
    index: Mapping[str, UnFlattenable],
    policy: UnflattenPolicy,
) -> List[UnFlattenable]:
    if policy.detect_cycles:
        cycle = find_cycle(index)
        if cycle is not None:
            _LOGGER.warning("Parent keys form a cycle", keys=cycle)
            raise CycleDetectedError(cycle)

    roots: List[UnFlattenable] = []
    attached: Dict[str, Set[str]] = defaultdict(set)
    for entity in entities:
        parent_key = entity.parent_key()
        parent = index.get(parent_key)
        if parent is None:
            roots.append(entity)
            continue

        child_key = entity.key()
        if policy.dedupe_children:
            if child_key in attached[parent_key]:
                _LOGGER.debug("Skipping repeated child", parent=parent_key, child=child_key)
                continue
            attached[parent_key].add(child_key)

        try:
            parent.append_child(entity)
        except ChildLinkError:
            _LOGGER.warning("Attaching child failed", parent=parent_key, child=child_key)
            raise
        except Exception as exc:
            _LOGGER.warning("Attaching child failed", parent=parent_key, child=child_key)
            raise ChildLinkError(
                f"attaching '{child_key}' to '{parent_key}' failed: {exc}"
            ) from exc
    return roots


def unflatten_uf(
    entities: Sequence[UnFlattenable],
    *,
    policy: UnflattenPolicy | None = None,
) -> List[UnFlattenable]:
    """Re-link ``entities`` by parent key and return the roots in input order.

    An entity is a root when its parent key does not resolve to any entity of
    the input. Entities are mutated in place; after a failure the ones already
    re-linked stay that way.
    """

    if len(entities) == 0:
        raise EmptyInputError("unflatten got an empty input sequence")

    cfg = policy or UnflattenPolicy()
    index = build_index(entities, policy=cfg)
    roots = _link(entities, index, cfg)
    _LOGGER.debug(
        "Unflatten finished",
        entities=len(entities),
        indexed=len(index),
        roots=len(roots),
    )
    return roots


def unflatten_map_uf(
    index: Mapping[str, UnFlattenable],
    *,
    policy: UnflattenPolicy | None = None,
) -> List[UnFlattenable]:
    """Re-link the entities of a prepared ``key -> entity`` mapping.

    Parents are looked up in ``index`` itself; roots come back in the mapping's
    iteration order.
    """

    if len(index) == 0:
        raise EmptyInputError("unflatten got an empty input mapping")

    cfg = policy or UnflattenPolicy()
    roots = _link(list(index.values()), index, cfg)
    _LOGGER.debug("Unflatten finished", entities=len(index), roots=len(roots))
    return roots


__all__ = ["build_index", "find_cycle", "unflatten_uf", "unflatten_map_uf"]
