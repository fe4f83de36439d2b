from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from json_files.core.errors import (
    DataLoadError,
    ExpandError,
    ManifestLoadError,
    OutputWriteError,
    TemplateResolutionError,
)
from json_files.core.expand.expand_files import expand_files
from json_files.core.io.load_data import load_document
from json_files.core.io.load_manifest import dump_files, load_manifest
from json_files.core.template.filename import build_filename
from json_files.core.validate.validate_options import has_directive, validate_files

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """json-files: expand data-driven directive files into one file per record."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@app.command("expand")
def expand(
    manifest: str = typer.Argument(..., help="Files manifest (.yaml/.yml/.json): path -> entry"),
    source_path: str = typer.Option(..., "--source-path", help="Directory holding the data sources"),
    out: str = typer.Option(..., "--out", help="Where to write the expanded files map"),
    base_dir: Optional[str] = typer.Option(
        None, "--base-dir", help="Base directory for --source-path (default: manifest directory)"
    ),
    remove_property: Optional[list[str]] = typer.Option(
        None,
        "--remove-property",
        help="Property to strip from generated entries. Repeatable; replaces the defaults.",
    ),
    workers: Optional[int] = typer.Option(None, "--workers", help="Max directives loaded at once"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Expand every json_files directive in a manifest and write the result."""
    _check_format(format, "expand")

    try:
        files = load_manifest(manifest)
    except ManifestLoadError as e:
        _fail(format, "expand", [e], exit_code=1)

    options: dict[str, Any] = {"source_path": source_path}
    if remove_property:
        options["properties_to_remove"] = list(remove_property)
    if workers is not None:
        options["workers"] = workers

    before = dict(files)
    root = base_dir if base_dir is not None else str(Path(manifest).parent)

    try:
        expand_files(files, options, base_dir=root)
    except DataLoadError as e:
        _fail(format, "expand", [e], exit_code=1)
    except ExpandError as e:
        _fail(format, "expand", [e], exit_code=2)

    try:
        dump_files(files, out)
    except OutputWriteError as e:
        _fail(format, "expand", [e], exit_code=1)

    written = sorted(name for name, entry in files.items() if before.get(name) is not entry)
    if format == "json":
        _emit_json("expand", ok=True, errors=[], extra={"out": out, "written": written, "files": sorted(files)})
        return

    table = Table(title="json-files expand")
    table.add_column("File")
    table.add_column("Status")
    for name in written:
        table.add_row(name, "replaced" if name in before else "new")
    console.print(table)
    typer.echo(f"OK: wrote {len(files)} files to {out}")


@app.command("check")
def check(
    manifest: str = typer.Argument(..., help="Files manifest (.yaml/.yml/.json): path -> entry"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate every json_files directive in a manifest."""
    _check_format(format, "check")

    try:
        files = load_manifest(manifest)
    except ManifestLoadError as e:
        _fail(format, "check", [e], exit_code=1)

    errors = validate_files(files)
    if errors:
        _fail(format, "check", errors, exit_code=2)

    directives = sorted(name for name, entry in files.items() if has_directive(entry))
    if format == "json":
        _emit_json("check", ok=True, errors=[], extra={"directives": directives})
        return
    typer.echo(f"OK: {len(directives)} directive(s) valid")


@app.command("filename")
def filename(
    pattern: str = typer.Argument(..., help="Filename template, e.g. people/:data.slug"),
    record: str = typer.Option(..., "--record", help="JSON/YAML file holding one data record"),
    extension: Optional[str] = typer.Option(None, "--extension", help="File extension (default .html)"),
    permalink: bool = typer.Option(False, "--permalink", help="Use the <name>/index<ext> form"),
) -> None:
    """Print the filename a template resolves to for one record."""
    try:
        data = load_document(record)
    except DataLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    composed: dict[str, Any] = {"filename_pattern": pattern, "as_permalink": permalink, "data": data}
    try:
        typer.echo(build_filename(pattern, composed, extension))
    except TemplateResolutionError as e:
        _print_errors([e])
        raise typer.Exit(code=2)


def _check_format(format: str, command: str) -> None:
    if format not in ("text", "json"):
        err = ExpandError(
            code=f"E_{command.upper()}_UNKNOWN_FORMAT",
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _to_item(e: ExpandError) -> dict[str, Any]:
    if isinstance(e, (ManifestLoadError, DataLoadError)):
        source = "load"
    elif isinstance(e, OutputWriteError):
        source = "write"
    else:
        source = "expand"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _emit_json(command: str, *, ok: bool, errors: list[ExpandError], extra: dict[str, Any]) -> None:
    payload = {
        "tool": "json-files",
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in errors],
        **extra,
    }
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


def _fail(format: str, command: str, errors: list[Any], *, exit_code: int) -> NoReturn:
    if format == "json":
        _emit_json(command, ok=False, errors=errors, extra={})
    else:
        _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[Any]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="json-files")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
