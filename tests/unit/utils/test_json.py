"""Unit tests for the JSON helpers."""

from pathlib import Path

from kgb.utils import load_json, load_json_file


class TestLoadJson:
    def test_parses_object(self) -> None:
        assert load_json('{"a": 1}') == {"a": 1}

    def test_parses_bytes_array(self) -> None:
        assert load_json(b"[1, 2]") == [1, 2]

    def test_invalid_json_returns_none(self) -> None:
        assert load_json("{not json") is None


class TestLoadJsonFile:
    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        _ = path.write_text('{"containerPath": "/x/App.xcodeproj"}')

        assert load_json_file(path) == {"containerPath": "/x/App.xcodeproj"}

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert load_json_file(tmp_path / "missing.json") is None
