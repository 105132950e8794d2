"""Markup document entities used to exercise the flatten/unflatten round trip."""

from .keys import KeyFactory, RandomKeyFactory, SequenceKeyFactory, build_key_factory
from .markup import MarkupNode, parse_markup, render_markup

__all__ = [
    "MarkupNode",
    "parse_markup",
    "render_markup",
    "KeyFactory",
    "RandomKeyFactory",
    "SequenceKeyFactory",
    "build_key_factory",
]
