from __future__ import annotations

import re


_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(value: str, *, separator: str = "-") -> str:
    """Lower-case ``value`` and collapse every non-alphanumeric run into ``separator``."""
    value = _NON_ALNUM_RE.sub(" ", value.lower()).strip()
    return value.replace(" ", separator)
