"""Flatten and unflatten pipeline policy models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class FlattenPolicy(BaseModel):
    """Tunables for the producer/consumer flatten traversal."""

    buffer_size: int = Field(
        default=128,
        ge=1,
        description="Capacity of the bounded channel between the walker and the collector.",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Upper bound for a whole traversal; unbounded when unset.",
    )
    poll_interval_seconds: float = Field(
        default=0.05,
        gt=0,
        description="How often a blocked walker re-checks for cancellation.",
    )


class UnflattenPolicy(BaseModel):
    """Strictness switches for re-linking entities by parent key.

    Every switch defaults to the permissive behaviour: cycles are not checked,
    repeated attachments are forwarded and the last entity with a given key wins.
    """

    detect_cycles: bool = Field(
        default=False,
        description="Reject inputs whose parent keys form a cycle before mutating anything.",
    )
    dedupe_children: bool = Field(
        default=False,
        description="Attach a given child key to the same parent at most once per call.",
    )
    duplicate_keys: Literal["last_wins", "error"] = Field(
        default="last_wins",
        description="Whether duplicate entity keys overwrite earlier ones or raise.",
    )
