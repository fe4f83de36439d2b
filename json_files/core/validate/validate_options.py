from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from json_files.core.errors import ConfigValidationError, DirectiveValidationError
from json_files.core.model import DIRECTIVE_KEY, ExpandOptions


REQUIRED_DIRECTIVE_FIELDS: tuple[str, ...] = ("source_file", "filename_pattern")


def _is_list_of_str(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def validate_options(options: Any) -> list[ConfigValidationError]:
    """Check the plugin options shape. Unknown keys are rejected."""

    errors: list[ConfigValidationError] = []
    if not isinstance(options, Mapping):
        return [
            ConfigValidationError(
                code="E_CONFIG_INVALID",
                message="options must be a mapping",
                path="options",
            )
        ]

    source_path = options.get("source_path")
    if not isinstance(source_path, str) or not source_path:
        errors.append(
            ConfigValidationError(
                code="E_CONFIG_INVALID",
                message="source_path is required and must be a non-empty string",
                path="options.source_path",
            )
        )

    remove = options.get("properties_to_remove")
    if remove is not None and not _is_list_of_str(remove):
        errors.append(
            ConfigValidationError(
                code="E_CONFIG_INVALID",
                message="properties_to_remove must be an array of strings",
                path="options.properties_to_remove",
            )
        )

    workers = options.get("workers")
    if workers is not None and (isinstance(workers, bool) or not isinstance(workers, int) or workers < 1):
        errors.append(
            ConfigValidationError(
                code="E_CONFIG_INVALID",
                message="workers must be a positive integer",
                path="options.workers",
            )
        )

    for key in sorted(set(options) - {"source_path", "properties_to_remove", "workers"}):
        errors.append(
            ConfigValidationError(
                code="E_CONFIG_INVALID",
                message=f"unknown option: {key}",
                path=f"options.{key}",
            )
        )

    return errors


def expand_options(options: Mapping[str, Any] | ExpandOptions) -> ExpandOptions:
    """Validate raw options and return them as ExpandOptions.

    Raises the first ConfigValidationError when the shape is wrong.
    """

    if isinstance(options, ExpandOptions):
        options = {
            "source_path": options.source_path,
            "properties_to_remove": options.properties_to_remove,
            "workers": options.workers,
        }
    errors = validate_options(options)
    if errors:
        raise errors[0]

    remove = options.get("properties_to_remove")
    return ExpandOptions(
        source_path=options["source_path"],
        properties_to_remove=list(remove) if remove is not None else None,
        workers=options.get("workers"),
    )


def validate_directive(directive: Any, *, file: Optional[str] = None) -> list[DirectiveValidationError]:
    """Validate one ``json_files`` directive. Extra fields are allowed and pass through."""

    errors: list[DirectiveValidationError] = []
    if not isinstance(directive, Mapping):
        return [
            DirectiveValidationError(
                code="E_INVALID_TYPE",
                message=f"{DIRECTIVE_KEY} must be an object",
                file=file,
                path=DIRECTIVE_KEY,
            )
        ]

    for name in REQUIRED_DIRECTIVE_FIELDS:
        value = directive.get(name)
        if not isinstance(value, str) or not value:
            errors.append(
                DirectiveValidationError(
                    code="E_REQUIRED_FIELD",
                    message=f"{name} is required and must be a non-empty string",
                    file=file,
                    path=f"{DIRECTIVE_KEY}.{name}",
                )
            )

    if "as_permalink" in directive and not isinstance(directive["as_permalink"], bool):
        errors.append(
            DirectiveValidationError(
                code="E_INVALID_TYPE",
                message="as_permalink must be a boolean",
                file=file,
                path=f"{DIRECTIVE_KEY}.as_permalink",
            )
        )

    extension = directive.get("extension")
    if extension is not None and not isinstance(extension, str):
        errors.append(
            DirectiveValidationError(
                code="E_INVALID_TYPE",
                message="extension must be a string",
                file=file,
                path=f"{DIRECTIVE_KEY}.extension",
            )
        )

    return errors


def has_directive(entry: Any) -> bool:
    """True when a file entry carries a json_files directive."""
    if not isinstance(entry, Mapping):
        return False
    directive = entry.get(DIRECTIVE_KEY)
    return directive is not None and directive is not False and directive not in ("", 0)


def validate_files(files: Mapping[str, Any]) -> list[DirectiveValidationError]:
    """Validate every directive in a files map; files without one are ignored."""

    errors: list[DirectiveValidationError] = []
    for name, entry in files.items():
        if not has_directive(entry):
            continue
        errors.extend(validate_directive(entry[DIRECTIVE_KEY], file=name))
    return _sorted(errors)


def _sorted(errors: list[DirectiveValidationError]) -> list[DirectiveValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
