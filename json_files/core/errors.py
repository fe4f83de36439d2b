from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExpandError(Exception):
    """Base error envelope shared by validation, loading and filename building."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<files>"
        return f"{loc}: {self.code}: {self.message}"


class ConfigValidationError(ExpandError):
    pass


class DirectiveValidationError(ExpandError):
    pass


class TemplateResolutionError(ExpandError):
    pass


class DataLoadError(ExpandError):
    pass


class ManifestLoadError(ExpandError):
    pass


class OutputWriteError(ExpandError):
    pass
