"""
Unit tests for ReportGenerator (JSON report).

Tests:
- Field names and order
- "duplicates" omitted when empty
- Report never mutates the forest
- Unwritable destination raises OutputError
"""

import json
from pathlib import Path

import pytest

from dedupe_music.exceptions import OutputError
from dedupe_music.models import FileRecord
from dedupe_music.report_generator import ReportGenerator


@pytest.fixture
def forest():
    root = FileRecord(
        name="song.mp3",
        path=Path("/path/to/song.mp3"),
        hash="abc123",
        size=12345,
        children=[
            FileRecord(name="song (1).mp3", path=Path("/path/to/song (1).mp3"), hash="abc123", size=12345),
        ],
    )
    lonely = FileRecord(name="solo.wav", path=Path("/path/solo.wav"), hash="def456", size=999)
    return [root, lonely]


class TestDocument:
    def test_fields(self, forest):
        document = ReportGenerator().to_document(forest)

        assert document[0] == {
            "name": "song.mp3",
            "path": str(Path("/path/to/song.mp3")),
            "hash": "abc123",
            "size": 12345,
            "duplicates": [
                {
                    "name": "song (1).mp3",
                    "path": str(Path("/path/to/song (1).mp3")),
                    "hash": "abc123",
                    "size": 12345,
                }
            ],
        }

    def test_duplicates_omitted_when_empty(self, forest):
        document = ReportGenerator().to_document(forest)

        assert "duplicates" not in document[1]

    def test_empty_forest(self):
        assert ReportGenerator().generate_json_string([]) == "[]\n"

    def test_does_not_mutate(self, forest):
        before = [root.model_dump() for root in forest]

        ReportGenerator().generate_json_string(forest)

        assert [root.model_dump() for root in forest] == before


class TestWriteFile:
    def test_write_and_read_back(self, forest, tmp_path):
        output = tmp_path / "reports" / "dedupe-music.json"

        written = ReportGenerator().generate_json(forest, output)

        assert written == output
        decoded = json.loads(output.read_text(encoding="utf-8"))
        assert len(decoded) == 2
        assert decoded[0]["name"] == "song.mp3"
        assert decoded[0]["duplicates"][0]["name"] == "song (1).mp3"

    def test_unicode_names_preserved(self, tmp_path):
        record = FileRecord(name="café.mp3", path=Path("/m/café.mp3"), hash="h", size=1)
        output = tmp_path / "report.json"

        ReportGenerator().generate_json([record], output)

        assert "café.mp3" in output.read_text(encoding="utf-8")

    def test_unwritable_destination(self, forest, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file")

        with pytest.raises(OutputError):
            ReportGenerator().generate_json(forest, blocker / "report.json")
