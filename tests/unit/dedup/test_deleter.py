"""
Unit tests for SourceDeleter.

Tests:
- all mode removes roots and duplicates
- duplicates mode never removes a root
- Idempotent: already-deleted files are not errors
- Per-file failures collected without stopping
- Protected paths kept
- send2trash integration (mocked)
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from dedupe_music.deleter import SourceDeleter, paths_to_delete
from dedupe_music.models import DeleteMode, FileRecord


@pytest.fixture
def forest(write_file):
    """Two roots: parent with two duplicates, and a unique file."""
    parent = write_file("music/parent.mp3", b"p" * 10)
    dup1 = write_file("music/dup1.mp3", b"p" * 10)
    dup2 = write_file("music/dup2.mp3", b"p" * 10)
    unique = write_file("music/unique.mp3", b"u" * 20)

    def _rec(path: Path) -> FileRecord:
        return FileRecord(name=path.name, path=path, hash="h", size=path.stat().st_size)

    root = _rec(parent)
    root.children.extend([_rec(dup1), _rec(dup2)])
    return [root, _rec(unique)]


class TestPathSelection:
    def test_all_mode(self, forest):
        names = [p.name for p in paths_to_delete(forest, DeleteMode.all)]
        assert names == ["parent.mp3", "dup1.mp3", "dup2.mp3", "unique.mp3"]

    def test_duplicates_mode(self, forest):
        names = [p.name for p in paths_to_delete(forest, DeleteMode.duplicates)]
        assert names == ["dup1.mp3", "dup2.mp3"]

    def test_none_mode(self, forest):
        assert paths_to_delete(forest, DeleteMode.none) == []

    def test_duplicates_mode_never_selects_a_root_path(self, forest):
        root = forest[0]
        root.children.append(root.model_copy(update={"children": []}))

        targets = paths_to_delete(forest, DeleteMode.duplicates)

        assert root.path not in targets
        assert [p.name for p in targets] == ["dup1.mp3", "dup2.mp3"]


class TestDeletion:
    def test_delete_all(self, forest):
        result = SourceDeleter().delete(forest, DeleteMode.all)

        assert len(result.deleted) == 4
        assert result.errors == []
        assert result.space_reclaimed_bytes == 10 * 3 + 20
        for root in forest:
            for path in root.iter_paths():
                assert not path.exists()

    def test_delete_duplicates_keeps_roots(self, forest):
        result = SourceDeleter().delete(forest, DeleteMode.duplicates)

        assert len(result.deleted) == 2
        for root in forest:
            assert root.path.exists()
            for child in root.children:
                assert not child.path.exists()

    def test_none_mode_deletes_nothing(self, forest):
        result = SourceDeleter().delete(forest, DeleteMode.none)

        assert result.total_to_delete == 0
        assert all(root.path.exists() for root in forest)

    def test_idempotent(self, forest):
        SourceDeleter().delete(forest, DeleteMode.all)
        result = SourceDeleter().delete(forest, DeleteMode.all)

        assert result.deleted == []
        assert len(result.already_absent) == 4
        assert result.errors == []

    def test_failures_collected_and_deletion_continues(self, forest):
        real_unlink = Path.unlink
        failing = {forest[0].path, forest[0].children[1].path}

        def _unlink(self, *args, **kwargs):
            if self in failing:
                raise PermissionError(13, "Permission denied", str(self))
            return real_unlink(self, *args, **kwargs)

        with patch.object(Path, "unlink", _unlink):
            result = SourceDeleter().delete(forest, DeleteMode.all)

        assert sorted(path for path, _ in result.errors) == sorted(str(p) for p in failing)
        assert len(result.deleted) == 2
        assert not forest[1].path.exists()

    def test_protected_paths_kept(self, forest):
        protected = {str(forest[1].path)}

        result = SourceDeleter().delete(forest, DeleteMode.all, protected=protected)

        assert forest[1].path.exists()
        assert result.protected == [str(forest[1].path)]
        assert len(result.deleted) == 3


class TestTrash:
    @patch("send2trash.send2trash")
    def test_send2trash_used(self, mock_s2t, forest):
        result = SourceDeleter(use_trash=True).delete(forest, DeleteMode.duplicates)

        assert mock_s2t.call_count == 2
        assert len(result.deleted) == 2

    def test_send2trash_failure(self, forest):
        with patch("send2trash.send2trash", side_effect=OSError("trash unavailable")):
            result = SourceDeleter(use_trash=True).delete(forest, DeleteMode.duplicates)

        assert result.deleted == []
        assert len(result.errors) == 2
        assert result.errors[0][1] == "trash unavailable"

    def test_progress_callback(self, forest):
        calls = []
        deleter = SourceDeleter(progress_callback=lambda r: calls.append(len(r.deleted)))

        deleter.delete(forest, DeleteMode.duplicates)

        assert calls == [1, 2]
