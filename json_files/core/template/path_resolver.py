from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


_MISSING = object()


def resolve_path(record: Any, path: str, default: Any = None) -> Any:
    """Read a dotted field path (``data.author.name``) out of a nested record.

    Each segment looks up a mapping key, a sequence index (numeric segment) or
    an attribute. Any missing segment yields ``default``.
    """

    current = record
    for segment in path.split("."):
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current


def _step(value: Any, segment: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(segment, _MISSING)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if not segment.isdigit():
            return _MISSING
        idx = int(segment)
        return value[idx] if idx < len(value) else _MISSING
    if value is None or segment.startswith("_"):
        return _MISSING
    return getattr(value, segment, _MISSING)
