"""Markup document policy models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class MarkupPolicy(BaseModel):
    """Configuration for parsing markup documents into keyed nodes."""

    key_strategy: Literal["random", "sequence"] = Field(
        default="random",
        description="How fresh node keys are produced while parsing.",
    )
    key_length: int = Field(default=5, ge=1, le=64)
    key_prefix: str = Field(default="n", min_length=1)
    seed: int | None = Field(
        default=None,
        description="Seed for random keys; leave unset for non-reproducible keys.",
    )
    indent: str = Field(default="    ")

    @field_validator("indent")
    @classmethod
    def _whitespace_only(cls, value: str) -> str:
        if value.strip():
            raise ValueError("indent must only contain whitespace")
        return value
