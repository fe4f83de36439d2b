from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Mapping, MutableMapping, Optional, Union

from json_files.core.errors import DirectiveValidationError, ExpandError
from json_files.core.io.load_data import load_data
from json_files.core.model import DIRECTIVE_KEY, DirectiveResult, ExpandedFile, ExpandOptions
from json_files.core.template.filename import build_filename
from json_files.core.validate.validate_options import expand_options, has_directive, validate_files


logger = logging.getLogger(__name__)

DoneFn = Callable[[Optional[BaseException]], None]
PluginFn = Callable[[MutableMapping[str, Any], Union[str, Path], DoneFn], None]


class ExpansionCancelled(Exception):
    """Raised inside a task that stopped because another directive failed."""


def expand_files(
    files: MutableMapping[str, Any],
    options: Mapping[str, Any] | ExpandOptions,
    *,
    base_dir: str | Path = ".",
) -> None:
    """Expand every directive-bearing entry of ``files`` in place.

    - Files without a ``json_files`` directive are left untouched.
    - Every directive is validated before any data is loaded; the first
      DirectiveValidationError aborts the whole run.
    - Directives run concurrently, records within a directive in source order.
    - Results are committed in the order of ``files``: a template entry is
      removed, then its generated entries are written. A later directive
      overwrites an earlier entry with the same filename.
    - On the first failure, remaining tasks stop, the error is raised and
      ``files`` is left unmodified.
    """

    opts = expand_options(options)

    errors: list[DirectiveValidationError] = validate_files(files)
    if errors:
        for e in errors:
            logger.error("%s", e)
        raise errors[0]

    jobs: list[tuple[str, dict[str, Any]]] = []
    for name, entry in files.items():
        if not has_directive(entry):
            logger.debug("No %s metadata for %s", DIRECTIVE_KEY, name)
            continue
        jobs.append((name, entry))

    if not jobs:
        return

    cancel = threading.Event()
    source_root = Path(base_dir) / opts.source_path
    remove = opts.removed_properties()

    def _run(name: str, entry: dict[str, Any]) -> DirectiveResult:
        try:
            return expand_directive(name, entry, source_root=source_root, remove=remove, cancel=cancel)
        except Exception:
            cancel.set()
            raise

    results: list[DirectiveResult] = []
    failure: Optional[Exception] = None
    with ThreadPoolExecutor(max_workers=opts.workers or len(jobs)) as ex:
        futures = [ex.submit(_run, name, entry) for name, entry in jobs]
        for f in futures:
            try:
                results.append(f.result())
            except ExpansionCancelled:
                continue
            except Exception as e:
                if failure is None:
                    failure = e

    if failure is not None:
        raise failure

    _commit(files, results)


def expand_directive(
    name: str,
    entry: Mapping[str, Any],
    *,
    source_root: Path,
    remove: list[str],
    cancel: Optional[threading.Event] = None,
) -> DirectiveResult:
    """Load the data behind one directive and build its output entries.

    Does not touch the files map. Raises DataLoadError (pointing at the data
    source) or TemplateResolutionError (pointing at ``name``).
    """

    directive: dict[str, Any] = dict(entry[DIRECTIVE_KEY])
    is_template = bool(directive.get("is_template"))

    if cancel is not None and cancel.is_set():
        raise ExpansionCancelled(name)

    records = load_data(source_root / directive["source_file"])

    generated: list[ExpandedFile] = []
    for element in records:
        if cancel is not None and cancel.is_set():
            raise ExpansionCancelled(name)

        record: dict[str, Any] = {"contents": entry.get("contents", "") if is_template else ""}
        record.update(directive)
        record["data"] = element

        try:
            filename = build_filename(record.get("filename_pattern"), record, record.get("extension"))
        except ExpandError as e:
            raise _with_file(e, name) from e

        for prop in remove:
            record.pop(prop, None)

        generated.append(ExpandedFile(filename=filename, record=record))

    logger.info("Expanded %s into %d file(s)", name, len(generated))
    return DirectiveResult(file=name, is_template=is_template, generated=generated)


def json_files_plugin(options: Mapping[str, Any]) -> PluginFn:
    """Return a pipeline step ``step(files, base_dir, done)``.

    ``done`` is called exactly once: with None on success, with the
    ExpandError otherwise.
    """

    logger.debug("Options: %r", dict(options) if isinstance(options, Mapping) else options)

    def step(files: MutableMapping[str, Any], base_dir: str | Path, done: DoneFn) -> None:
        try:
            expand_files(files, options, base_dir=base_dir)
        except ExpandError as e:
            done(e)
            return
        done(None)

    return step


def _commit(files: MutableMapping[str, Any], results: list[DirectiveResult]) -> None:
    for result in results:
        if result.is_template:
            files.pop(result.file, None)
        for item in result.generated:
            if item.filename in files:
                logger.debug("Overwriting %s (from %s)", item.filename, result.file)
            files[item.filename] = item.record


def _with_file(e: ExpandError, name: str) -> ExpandError:
    return type(e)(code=e.code, message=e.message, file=name, path=e.path)
