"""I/O utilities for flattened records and markup documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .entities.keys import KeyFactory
from .entities.markup import MarkupNode, parse_markup, render_markup
from .utils.helpers import ensure_directory
from .utils.logging import get_logger

_LOGGER = get_logger(module=__name__)


def read_records(path_like: str | Path) -> List[Dict[str, Any]]:
    """Read one JSON object per non-blank line."""

    path = Path(path_like)
    if not path.exists():
        raise FileNotFoundError(f"record file not found: {path}")
    records: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            payload = json.loads(line)
            if not isinstance(payload, dict):
                raise ValueError(f"{path}:{line_number} is not a JSON object")
            records.append(payload)
    _LOGGER.info("Loaded records", total=len(records), path=str(path))
    return records


def write_records(records: Iterable[Dict[str, Any]], path_like: str | Path) -> Path:
    """Write records as JSON Lines, one object per line."""

    path = Path(path_like)
    ensure_directory(path.parent)
    count = 0
    with path.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")
            count += 1
    _LOGGER.info("Wrote records", total=count, path=str(path))
    return path.resolve()


def load_markup(path_like: str | Path, *, key_factory: KeyFactory | None = None) -> MarkupNode:
    path = Path(path_like)
    if not path.exists():
        raise FileNotFoundError(f"markup file not found: {path}")
    return parse_markup(path.read_text(encoding="utf-8"), key_factory=key_factory)


def write_markup(nodes: Iterable[MarkupNode], path_like: str | Path, *, indent: str = "    ") -> Path:
    """Write each root as its own document, separated by blank lines."""

    path = Path(path_like)
    ensure_directory(path.parent)
    documents = [render_markup(node, indent=indent) for node in nodes]
    path.write_text("\n\n".join(documents) + "\n", encoding="utf-8")
    _LOGGER.info("Wrote markup", documents=len(documents), path=str(path))
    return path.resolve()


__all__ = ["read_records", "write_records", "load_markup", "write_markup"]
