import json
import sys
from pathlib import Path

from json_files.core.errors import DataLoadError
from json_files.core.io.load_data import load_data, load_document


def _write(p: Path, text: str) -> Path:
    p.write_text(text, encoding="utf-8")
    return p


def test_load_json_document(tmp_path: Path):
    _write(tmp_path / "people.json", json.dumps([{"slug": "a"}, {"slug": "b"}]))
    assert load_data(tmp_path / "people") == [{"slug": "a"}, {"slug": "b"}]


def test_load_yaml_document(tmp_path: Path):
    _write(tmp_path / "people.yaml", "- slug: a\n- slug: b\n")
    assert load_data(str(tmp_path / "people")) == [{"slug": "a"}, {"slug": "b"}]


def test_load_module_value(tmp_path: Path):
    _write(tmp_path / "items.py", "data = [{'n': 1}, {'n': 2}]\n")
    assert load_data(tmp_path / "items") == [{"n": 1}, {"n": 2}]


def test_load_module_producer_is_called(tmp_path: Path):
    _write(tmp_path / "items.py", "def data():\n    return [{'n': i} for i in range(3)]\n")
    assert load_data(tmp_path / "items") == [{"n": 0}, {"n": 1}, {"n": 2}]


def test_module_wins_over_static_document(tmp_path: Path):
    _write(tmp_path / "items.py", "data = [{'from': 'module'}]\n")
    _write(tmp_path / "items.json", json.dumps([{"from": "json"}]))
    assert load_data(tmp_path / "items") == [{"from": "module"}]


def test_json_wins_over_yaml(tmp_path: Path):
    _write(tmp_path / "items.json", json.dumps([{"from": "json"}]))
    _write(tmp_path / "items.yml", "- from: yaml\n")
    assert load_data(tmp_path / "items") == [{"from": "json"}]


def test_explicit_suffix_is_loaded_directly(tmp_path: Path):
    _write(tmp_path / "items.json", json.dumps([{"from": "json"}]))
    _write(tmp_path / "items.py", "data = [{'from': 'module'}]\n")
    assert load_data(tmp_path / "items.json") == [{"from": "json"}]


def test_same_stem_in_two_directories_does_not_collide(tmp_path: Path):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    _write(tmp_path / "a" / "items.py", "data = ['a']\n")
    _write(tmp_path / "b" / "items.py", "data = ['b']\n")
    assert load_data(tmp_path / "a" / "items") == ["a"]
    assert load_data(tmp_path / "b" / "items") == ["b"]


def test_missing_source(tmp_path: Path):
    try:
        load_data(tmp_path / "nothing")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_NOT_FOUND"


def test_broken_module_does_not_fall_back(tmp_path: Path):
    _write(tmp_path / "items.py", "raise RuntimeError('boom')\n")
    _write(tmp_path / "items.json", json.dumps([{"from": "json"}]))
    try:
        load_data(tmp_path / "items")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_MODULE_ERROR"
        assert "boom" in e.message
        assert e.file is not None and e.file.endswith("items.py")


def test_failing_producer(tmp_path: Path):
    _write(tmp_path / "items.py", "def data():\n    raise ValueError('nope')\n")
    try:
        load_data(tmp_path / "items")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_MODULE_ERROR"


def test_module_without_export(tmp_path: Path):
    _write(tmp_path / "items.py", "records = []\n")
    try:
        load_data(tmp_path / "items")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_NO_EXPORT"


def test_invalid_json(tmp_path: Path):
    _write(tmp_path / "items.json", "[{")
    try:
        load_data(tmp_path / "items")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_PARSE"


def test_non_sequence_value(tmp_path: Path):
    _write(tmp_path / "items.json", json.dumps({"slug": "a"}))
    try:
        load_data(tmp_path / "items")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_NOT_SEQUENCE"


def test_load_document_any_shape(tmp_path: Path):
    p = _write(tmp_path / "record.json", json.dumps({"slug": "a"}))
    assert load_document(p) == {"slug": "a"}
    try:
        load_document(tmp_path / "missing.json")
        assert False, "expected DataLoadError"
    except DataLoadError as e:
        assert e.code == "E_DATA_NOT_FOUND"


def test_module_defining_dataclass_with_postponed_annotations(tmp_path: Path):
    _write(
        tmp_path / "items.py",
        "from __future__ import annotations\n"
        "\n"
        "from dataclasses import asdict, dataclass\n"
        "\n"
        "\n"
        "@dataclass\n"
        "class Item:\n"
        "    slug: str\n"
        "\n"
        "\n"
        "def data():\n"
        "    return [asdict(Item('a')), asdict(Item('b'))]\n",
    )
    assert load_data(tmp_path / "items") == [{"slug": "a"}, {"slug": "b"}]
    # Loading again works and leaves no module behind.
    assert load_data(tmp_path / "items") == [{"slug": "a"}, {"slug": "b"}]
    assert not [name for name in sys.modules if name.startswith("_json_files_source_")]
