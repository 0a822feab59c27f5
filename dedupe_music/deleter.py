"""
Delete source files after the report is written.

Modes:
- all: every file in the forest, roots and duplicates alike
- duplicates: only child records; every root is kept

Deletion is idempotent (a file already gone counts as done) and never
stops at the first failure: every per-file error is collected.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

import structlog

from dedupe_music.models import DeleteMode, DeletionResult, FileRecord

logger = structlog.get_logger(__name__)


def paths_to_delete(roots: Sequence[FileRecord], mode: DeleteMode) -> list[Path]:
    """Paths selected by a delete mode, roots before their children."""
    if mode is DeleteMode.all:
        return [path for root in roots for path in root.iter_paths()]
    if mode is DeleteMode.duplicates:
        # A child that is also some root's file is the kept copy
        root_paths = {str(root.path) for root in roots}
        return [
            child.path
            for root in roots
            for child in root.children
            if str(child.path) not in root_paths
        ]
    return []


class SourceDeleter:
    """
    Batch file deleter.

    Files are unlinked, or sent to the trash (send2trash) when use_trash
    is set so the deletion can be undone from the desktop.
    """

    def __init__(
        self,
        use_trash: bool = False,
        progress_callback: Optional[Callable[[DeletionResult], None]] = None,
    ):
        self.use_trash = use_trash
        self.progress_callback = progress_callback

    def delete(
        self,
        roots: Sequence[FileRecord],
        mode: DeleteMode,
        protected: Iterable[str] = (),
    ) -> DeletionResult:
        """
        Delete the files selected by mode.

        Args:
            roots: Final root records
            mode: Which files to delete
            protected: Paths never to delete (e.g. roots whose copy failed)

        Returns:
            DeletionResult with per-file outcomes
        """
        result = DeletionResult()
        if mode is DeleteMode.none:
            return result

        protected_paths = set(protected)
        targets = paths_to_delete(roots, mode)
        result.total_to_delete = len(targets)

        logger.info(
            "dedup_deletion_started",
            mode=mode.value,
            total_to_delete=result.total_to_delete,
            use_trash=self.use_trash,
        )

        for path in targets:
            path_str = str(path)
            if path_str in protected_paths:
                result.protected.append(path_str)
                logger.warning("dedup_delete_skipped_protected", path=path_str)
                continue

            try:
                size = path.stat().st_size
                self._remove(path)
            except FileNotFoundError:
                result.already_absent.append(path_str)
                logger.debug("dedup_delete_already_absent", path=path_str)
                continue
            except OSError as e:
                result.errors.append((path_str, str(e)))
                logger.warning("dedup_delete_failed", path=path_str, error=str(e))
                continue

            result.deleted.append(path_str)
            result.space_reclaimed_bytes += size
            logger.debug("dedup_file_deleted", path=path_str, size_bytes=size)

            if self.progress_callback:
                self.progress_callback(result)

        logger.info(
            "dedup_deletion_completed",
            deleted=len(result.deleted),
            already_absent=len(result.already_absent),
            protected=len(result.protected),
            errors=len(result.errors),
            space_reclaimed_mb=result.space_reclaimed_mb,
        )

        return result

    def _remove(self, path: Path) -> None:
        if self.use_trash:
            import send2trash as _send2trash

            _send2trash.send2trash(str(path))
        else:
            path.unlink()
