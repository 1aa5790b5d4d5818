"""Tests for focuscore/fileio.py."""

import json

from focuscore.fileio import locked, read_json, read_yaml, write_json_atomic, write_yaml_atomic


def test_missing_and_blank_files_read_as_empty(tmp_path):
    assert read_json(tmp_path / "missing.json") == {}
    blank = tmp_path / "blank.json"
    blank.write_text("  \n", encoding="utf-8")
    assert read_json(blank) == {}
    assert read_yaml(tmp_path / "missing.yaml") == {}


def test_read_json_returns_document_as_stored(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert read_json(path) == [1, 2]


def test_read_yaml_ignores_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    assert read_yaml(path) == {}


def test_atomic_writes_replace_whole_file(tmp_path):
    path = tmp_path / "data" / "doc.json"
    write_json_atomic(path, {"sessions": [1]})
    write_json_atomic(path, {"sessions": []})
    assert json.loads(path.read_text(encoding="utf-8")) == {"sessions": []}

    yaml_path = tmp_path / "doc.yaml"
    write_yaml_atomic(yaml_path, {"challenges": [{"id": "meditate", "name": "Méditer"}]})
    assert read_yaml(yaml_path)["challenges"][0]["name"] == "Méditer"

    assert list(tmp_path.rglob("*.part")) == []


def test_locked_creates_sidecar_and_can_be_reacquired(tmp_path):
    path = tmp_path / "data" / "entries.json"
    with locked(path):
        write_json_atomic(path, {"entries": []})
    with locked(path):
        assert read_json(path) == {"entries": []}
    assert (tmp_path / "data" / ".entries.json.lock").exists()
