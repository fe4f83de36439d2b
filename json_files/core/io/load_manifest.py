from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from json_files.core.errors import ManifestLoadError, OutputWriteError


def load_manifest(path: str) -> dict[str, Any]:
    """Load a YAML/JSON files manifest (a mapping of file path -> entry).

    Entries are returned as-is; directive shape checking belongs to the
    validator.
    """

    p = Path(path)
    if not p.exists():
        raise ManifestLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except Exception as e:  # pragma: no cover
        raise ManifestLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise ManifestLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except ManifestLoadError:
        raise
    except Exception as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise ManifestLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise ManifestLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping of file path -> entry",
            file=str(p),
        )

    files: dict[str, Any] = {}
    for key, entry in data.items():
        if not isinstance(entry, dict):
            raise ManifestLoadError(
                code="E_INVALID_ENTRY",
                message="file entry must be a mapping/object",
                file=str(p),
                path=str(key),
            )
        files[str(key)] = dict(entry)
    return files


def dump_files(files: dict[str, Any], path: str) -> None:
    """Write a files map as JSON when ``path`` ends in .json, YAML otherwise.

    The map is serialized before the file is opened, so a value that cannot
    be represented raises OutputWriteError without leaving a partial file.
    """
    p = Path(path)
    try:
        if p.suffix.lower() == ".json":
            text = json.dumps(files, indent=2, sort_keys=True, default=str) + "\n"
        else:
            text = yaml.safe_dump(files, sort_keys=False, default_flow_style=False, allow_unicode=True)
    except (yaml.YAMLError, TypeError, ValueError) as e:
        raise OutputWriteError(code="E_OUTPUT_SERIALIZE", message=str(e), file=str(p)) from e

    try:
        if str(p.parent) not in (".", ""):
            p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(code="E_OUTPUT_WRITE", message=str(e), file=str(p)) from e
