"""Filename templates.

A template is a path-like string holding colon-prefixed parameter tokens,
e.g. ``:collection/:data.slug``. Each token names a dotted path into the
composed record; resolved values are slugified before substitution.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

from json_files.core.errors import TemplateResolutionError
from json_files.core.model import DEFAULT_EXTENSION
from json_files.core.template.path_resolver import resolve_path
from json_files.core.template.slugify import slugify


logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r":(\w+(?:\.\w+)*)", re.ASCII)

FALLBACK_STEM = "not_found"


def get_params(pattern: str) -> list[str]:
    """Return the token names found in ``pattern``, in order of appearance."""
    return [m.group(1) for m in TOKEN_RE.finditer(pattern)]


def build_filename(
    filename_pattern: Optional[str],
    record: dict[str, Any],
    extension: Optional[str] = None,
) -> str:
    """Build the output filename for ``record`` from ``filename_pattern``.

    Every token whose value is present and truthy is replaced by its slug.
    If any token is left over the template cannot be completed and
    TemplateResolutionError is raised. A missing pattern yields
    ``not_found<extension>``.
    """

    extension = extension or DEFAULT_EXTENSION
    if not filename_pattern:
        logger.debug("No filename pattern, falling back to %s%s", FALLBACK_STEM, extension)
        return FALLBACK_STEM + extension

    logger.debug("Building filename from: %s", filename_pattern)

    def _substitute(m: re.Match[str]) -> str:
        value = resolve_path(record, m.group(1))
        if not _is_present(value):
            return m.group(0)
        return slugify(_to_text(value))

    pattern = TOKEN_RE.sub(_substitute, filename_pattern)

    leftover = get_params(pattern)
    if leftover:
        raise TemplateResolutionError(
            code="E_TEMPLATE_UNRESOLVED",
            message=(
                f"couldn't build filename from: {pattern} "
                f"(unresolved: {', '.join(':' + p for p in leftover)})"
            ),
            path="filename_pattern",
        )

    if record.get("as_permalink"):
        return f"{pattern}/index{extension}"
    return pattern + extension


def _is_present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    return True


def _to_text(value: Any) -> str:
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
