from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


DIRECTIVE_KEY = "json_files"

# Directive fields stripped from generated records unless overridden.
DIRECTIVE_FIELDS: tuple[str, ...] = ("source_file", "filename_pattern", "as_permalink")

DEFAULT_EXTENSION = ".html"


@dataclass(frozen=True)
class ExpandOptions:
    source_path: str
    properties_to_remove: Optional[list[str]] = None
    workers: Optional[int] = None

    def removed_properties(self) -> list[str]:
        if self.properties_to_remove is None:
            return list(DIRECTIVE_FIELDS)
        return list(self.properties_to_remove)


@dataclass(frozen=True)
class ExpandedFile:
    filename: str
    record: dict[str, Any]


@dataclass(frozen=True)
class DirectiveResult:
    """Output of one directive, committed to the files map as a unit."""

    file: str
    is_template: bool
    generated: list[ExpandedFile]
