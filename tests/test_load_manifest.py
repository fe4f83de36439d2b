import json
from pathlib import Path

import yaml

from json_files.core.errors import ManifestLoadError, OutputWriteError
from json_files.core.io.load_manifest import dump_files, load_manifest


def test_load_yaml_manifest():
    files = load_manifest("examples/site/files.yaml")
    assert set(files) == {"index.html", "people.html", "projects.html"}
    assert files["people.html"]["json_files"]["source_file"] == "people"


def test_load_missing_manifest():
    try:
        load_manifest("examples/does-not-exist.yaml")
        assert False, "expected ManifestLoadError"
    except ManifestLoadError as e:
        assert e.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path: Path):
    p = tmp_path / "files.txt"
    p.write_text("hello", encoding="utf-8")
    try:
        load_manifest(str(p))
        assert False, "expected ManifestLoadError"
    except ManifestLoadError as e:
        assert e.code == "E_UNSUPPORTED_FORMAT"


def test_load_invalid_top_level_and_entry(tmp_path: Path):
    p = tmp_path / "files.json"
    p.write_text(json.dumps(["a.html"]), encoding="utf-8")
    try:
        load_manifest(str(p))
        assert False, "expected ManifestLoadError"
    except ManifestLoadError as e:
        assert e.code == "E_INVALID_TOP_LEVEL"

    p.write_text(json.dumps({"a.html": "contents"}), encoding="utf-8")
    try:
        load_manifest(str(p))
        assert False, "expected ManifestLoadError"
    except ManifestLoadError as e:
        assert e.code == "E_INVALID_ENTRY"
        assert e.path == "a.html"


def test_dump_files_yaml_and_json(tmp_path: Path):
    files = {"a.html": {"contents": "", "data": {"n": 1}}}

    y = tmp_path / "nested" / "out.yaml"
    dump_files(files, str(y))
    assert yaml.safe_load(y.read_text(encoding="utf-8")) == files

    j = tmp_path / "out.json"
    dump_files(files, str(j))
    assert json.loads(j.read_text(encoding="utf-8")) == files


class _Opaque:
    pass


def test_dump_files_unrepresentable_value(tmp_path: Path):
    out = tmp_path / "out.yaml"
    try:
        dump_files({"a.html": {"data": _Opaque()}}, str(out))
        assert False, "expected OutputWriteError"
    except OutputWriteError as e:
        assert e.code == "E_OUTPUT_SERIALIZE"
        assert e.file == str(out)
    assert not out.exists()

    # JSON output stringifies unknown objects.
    j = tmp_path / "out.json"
    dump_files({"a.html": {"data": _Opaque()}}, str(j))
    assert "_Opaque" in json.loads(j.read_text(encoding="utf-8"))["a.html"]["data"]
