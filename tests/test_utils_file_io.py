from pathlib import Path

from inkmix.utils import file_io


def test_write_creates_parent(tmp_path: Path):
    target = tmp_path / "nested" / "inks.json"
    file_io.write_json({"inks": []}, target)
    assert target.exists()


def test_write_read_json_roundtrip(tmp_path: Path):
    data = {"a": 1, "b": {"c": [1, 2]}, "name": "먹 (black)"}
    path = tmp_path / "data.json"
    file_io.write_json(data, path)
    loaded = file_io.read_json(path)
    assert loaded == data


def test_read_missing_returns_empty(tmp_path: Path):
    assert file_io.read_json(tmp_path / "missing.json") == {}
