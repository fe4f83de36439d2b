from __future__ import annotations

import hashlib
import importlib.util
import itertools
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from json_files.core.errors import DataLoadError


logger = logging.getLogger(__name__)

MODULE_SUFFIX = ".py"
STATIC_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")
EXPORT_NAME = "data"

_module_ids = itertools.count()


@dataclass(frozen=True)
class LoadAttempt:
    """Result of one loading strategy. ``found`` is False only when no file exists."""

    found: bool
    value: Any = None
    source: Optional[Path] = None


def load_data(source_path: str | Path) -> list[Any]:
    """Load the ordered records behind a logical source path.

    A Python module at ``<source_path>.py`` wins over a static document at
    ``<source_path>.json`` / ``.yaml`` / ``.yml``. The module's ``data``
    attribute is used, called with no arguments when it is callable. Only a
    missing file falls through to the next strategy; a broken source raises.
    """

    base = Path(source_path)

    attempt = _load_direct(base)
    if not attempt.found:
        attempt = _load_module(base.with_name(base.name + MODULE_SUFFIX))
    for suffix in STATIC_SUFFIXES:
        if attempt.found:
            break
        attempt = _load_document(base.with_name(base.name + suffix))

    if not attempt.found:
        raise DataLoadError(
            code="E_DATA_NOT_FOUND",
            message=f"no data source found (tried {MODULE_SUFFIX}, {', '.join(STATIC_SUFFIXES)})",
            file=str(base),
        )

    logger.debug("Loaded data from %s", attempt.source)

    value = attempt.value
    if not isinstance(value, (list, tuple)):
        raise DataLoadError(
            code="E_DATA_NOT_SEQUENCE",
            message=f"data source must produce a list of records, got {type(value).__name__}",
            file=str(attempt.source),
        )
    return list(value)


def _load_direct(path: Path) -> LoadAttempt:
    """Load ``path`` as-is when it already names a supported file."""
    suffix = path.suffix.lower()
    if suffix == MODULE_SUFFIX:
        return _load_module(path)
    if suffix in STATIC_SUFFIXES:
        return _load_document(path)
    return LoadAttempt(found=False)


def _load_module(path: Path) -> LoadAttempt:
    if not path.is_file():
        return LoadAttempt(found=False)

    # Unique module name per load so concurrent loads never share a sys.modules slot.
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    module_name = f"_json_files_source_{digest}_{next(_module_ids)}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise DataLoadError(
            code="E_DATA_MODULE_ERROR",
            message="could not create a module loader",
            file=str(path),
        )

    module = importlib.util.module_from_spec(spec)
    # dataclasses and typing resolve names through sys.modules while the module runs.
    sys.modules[module_name] = module
    try:
        exported = _run_module(module, spec.loader, path)
    finally:
        sys.modules.pop(module_name, None)

    return LoadAttempt(found=True, value=exported, source=path)


def _run_module(module: Any, loader: Any, path: Path) -> Any:
    try:
        loader.exec_module(module)
    except Exception as e:
        raise DataLoadError(code="E_DATA_MODULE_ERROR", message=str(e), file=str(path)) from e

    if not hasattr(module, EXPORT_NAME):
        raise DataLoadError(
            code="E_DATA_NO_EXPORT",
            message=f"module does not define '{EXPORT_NAME}'",
            file=str(path),
        )

    exported = getattr(module, EXPORT_NAME)
    if callable(exported):
        producer: Callable[[], Any] = exported
        try:
            exported = producer()
        except Exception as e:
            raise DataLoadError(code="E_DATA_MODULE_ERROR", message=str(e), file=str(path)) from e

    return exported


def _load_document(path: Path) -> LoadAttempt:
    if not path.is_file():
        return LoadAttempt(found=False)

    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise DataLoadError(code="E_DATA_READ", message=str(e), file=str(path)) from e

    try:
        if path.suffix.lower() == ".json":
            value = json.loads(raw_text)
        else:
            value = yaml.safe_load(raw_text)
    except Exception as e:
        raise DataLoadError(code="E_DATA_PARSE", message=str(e), file=str(path)) from e

    return LoadAttempt(found=True, value=value, source=path)


def load_document(path: str | Path) -> Any:
    """Parse one static JSON/YAML document, whatever its top-level shape."""
    attempt = _load_document(Path(path))
    if not attempt.found:
        raise DataLoadError(code="E_DATA_NOT_FOUND", message="file does not exist", file=str(path))
    return attempt.value
