"""Key factories used when parsing documents into keyed nodes."""

from __future__ import annotations

import itertools
import random
import string
from typing import Protocol, Set

from ..config.policies import MarkupPolicy

KEY_ALPHABET = string.ascii_letters


class KeyFactory(Protocol):
    """Callable returning a fresh key on every call."""

    def __call__(self) -> str:
        ...


class RandomKeyFactory:
    """Random letter keys that never repeat within one factory."""

    def __init__(self, length: int = 5, *, seed: int | None = None, max_attempts: int = 1000) -> None:
        if length < 1:
            raise ValueError("key length must be positive")
        self._length = length
        self._rng = random.Random(seed)
        self._max_attempts = max_attempts
        self._issued: Set[str] = set()

    def __call__(self) -> str:
        for _ in range(self._max_attempts):
            key = "".join(self._rng.choice(KEY_ALPHABET) for _ in range(self._length))
            if key not in self._issued:
                self._issued.add(key)
                return key
        raise RuntimeError(
            f"no unused {self._length}-letter key found after {self._max_attempts} attempts"
        )


class SequenceKeyFactory:
    """Deterministic ``<prefix><n>`` keys."""

    def __init__(self, prefix: str = "n", *, start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self._prefix}{next(self._counter)}"


def build_key_factory(policy: MarkupPolicy | None = None) -> KeyFactory:
    """Select the key factory configured by ``policy``."""

    cfg = policy or MarkupPolicy()
    if cfg.key_strategy == "sequence":
        return SequenceKeyFactory(cfg.key_prefix)
    return RandomKeyFactory(cfg.key_length, seed=cfg.seed)


__all__ = ["KeyFactory", "RandomKeyFactory", "SequenceKeyFactory", "build_key_factory"]
