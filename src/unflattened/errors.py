"""Exception hierarchy raised by the flatten and unflatten pipelines."""

from __future__ import annotations

from typing import Any, List, Sequence


class UnflattenedError(Exception):
    """Base exception for flatten/unflatten failures.

    ``partial`` holds whatever output was produced before the failure, when the
    raising operation has any. It is informational only and must not be treated
    as a complete result.
    """

    def __init__(self, message: str, *, partial: Sequence[Any] | None = None) -> None:
        super().__init__(message)
        self.partial: List[Any] | None = list(partial) if partial is not None else None


class EmptyInputError(UnflattenedError):
    """Raised when unflatten receives no entities."""


class CapabilityMismatchError(UnflattenedError, TypeError):
    """Raised when a value does not implement a required contract."""

    def __init__(self, value: Any, contract: str, missing: Sequence[str]) -> None:
        self.value = value
        self.contract = contract
        self.missing = list(missing)
        super().__init__(
            f"{type(value).__name__} does not satisfy {contract}: missing {', '.join(self.missing)}"
        )


class ChildLinkError(UnflattenedError):
    """Raised when attaching a child to its parent fails."""


class ChildAccessError(UnflattenedError):
    """Raised when reading or unlinking an entity's children fails."""


class CycleDetectedError(UnflattenedError):
    """Raised when parent keys form a cycle and cycle detection is enabled."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = list(keys)
        super().__init__(f"parent keys form a cycle: {' -> '.join(self.keys)}")


class DuplicateKeyError(UnflattenedError):
    """Raised when two entities share a key and duplicates are rejected."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"duplicate entity key '{key}'")


class FlattenTimeoutError(UnflattenedError, TimeoutError):
    """Raised when a flatten traversal exceeds its configured time budget."""


class FlattenCancelledError(UnflattenedError):
    """Raised when a flatten stream is consumed after being cancelled."""


__all__ = [
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
