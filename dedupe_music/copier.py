"""
Copy unique (root) files into a flat consolidation directory.

Name collisions get "(1)", "(2)", ... inserted before the extension.
File mode and access/modification times are replicated from the source.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Sequence

import structlog

from dedupe_music.models import CopyResult, FileRecord

logger = structlog.get_logger(__name__)


def next_free_path(target_dir: Path, filename: str) -> Path:
    """First of name.ext, name(1).ext, name(2).ext, ... not present in target_dir."""
    candidate = target_dir / filename
    stem, suffix = Path(filename).stem, Path(filename).suffix
    i = 1
    while candidate.exists():
        candidate = target_dir / f"{stem}({i}){suffix}"
        i += 1
    return candidate


class UniqueFileCopier:
    """Copies root records only; children (duplicates) are never copied."""

    def __init__(self, chunk_size: int = 1024 * 1024):
        self.chunk_size = chunk_size

    def copy_file(self, source: Path, target_dir: Path) -> Path:
        """
        Copy one file into target_dir without overwriting anything.

        Returns:
            Destination path

        Raises:
            OSError: On any read/write/metadata failure
        """
        with open(source, "rb") as src:
            while True:
                destination = next_free_path(target_dir, source.name)
                try:
                    # "x": fail instead of clobbering a file created since the check
                    dst = open(destination, "xb")
                except FileExistsError:
                    continue
                try:
                    with dst:
                        shutil.copyfileobj(src, dst, self.chunk_size)
                except OSError:
                    # A truncated copy must not hold the name for the next root
                    destination.unlink(missing_ok=True)
                    raise
                break

        shutil.copystat(source, destination)
        return destination

    def copy_roots(self, roots: Sequence[FileRecord], target_dir: Path) -> CopyResult:
        """
        Copy every root file into target_dir.

        Per-file failures are logged and collected; the remaining files
        are still copied.
        """
        result = CopyResult()

        logger.info("dedup_copy_started", target_dir=str(target_dir), files=len(roots))

        for root in roots:
            try:
                destination = self.copy_file(root.path, target_dir)
            except OSError as e:
                result.errors.append((str(root.path), str(e)))
                logger.warning("dedup_copy_failed", path=str(root.path), error=str(e))
                continue

            result.copied.append((str(root.path), str(destination)))
            logger.debug("dedup_file_copied", path=str(root.path), destination=str(destination))

        logger.info(
            "dedup_copy_completed",
            copied=len(result.copied),
            errors=len(result.errors),
        )

        return result
