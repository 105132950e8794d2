"""Configuration utilities for the unflattened library."""

from .policies import (
    FlattenPolicy,
    MarkupPolicy,
    Policies,
    UnflattenPolicy,
    load_policies,
)
from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "Policies",
    "load_policies",
    "FlattenPolicy",
    "UnflattenPolicy",
    "MarkupPolicy",
]
