"""
End-to-end run: scan -> report -> copy -> delete.

Structural failures (target directory cannot be created, report cannot be
written) end the run before anything is copied or deleted. Copy and delete
failures are per file: they are collected in the summary and the run
still completes.
"""

from __future__ import annotations

from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field

from dedupe_music.copier import UniqueFileCopier
from dedupe_music.deleter import SourceDeleter
from dedupe_music.engine import DedupEngine
from dedupe_music.exceptions import OutputError
from dedupe_music.models import (
    CopyResult,
    DedupConfig,
    DeleteMode,
    DeletionResult,
    ScanResult,
    ScanStats,
)
from dedupe_music.report_generator import ReportGenerator

logger = structlog.get_logger(__name__)


class RunSummary(BaseModel):
    """Everything a run produced."""

    scan: ScanResult
    report_path: str
    copy_result: Optional[CopyResult] = None
    deletion_result: Optional[DeletionResult] = None
    errors: list[tuple[str, str]] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


async def run_dedup(
    config: DedupConfig,
    engine: Optional[DedupEngine] = None,
    progress_callback: Optional[Callable[[ScanStats], None]] = None,
) -> RunSummary:
    """
    Run the whole pipeline for one configuration.

    Args:
        config: Immutable run configuration
        engine: Pre-built engine (lets a caller keep a handle for cancel())
        progress_callback: Forwarded to the engine when it is built here

    Returns:
        RunSummary with scan, copy and deletion outcomes

    Raises:
        DirectoryWalkError, ScanCancelledError: from the engine
        OutputError: target directory or report file cannot be written
    """
    if config.target_dir is not None:
        try:
            config.target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"error creating output directory {config.target_dir}: {e}") from e
        logger.info("dedup_target_dir_ready", target_dir=str(config.target_dir))

    engine = engine or DedupEngine(config, progress_callback=progress_callback)
    scan = await engine.run()

    report_path = ReportGenerator().generate_json(scan.roots, config.output_path)
    summary = RunSummary(scan=scan, report_path=str(report_path))

    if config.target_dir is not None:
        summary.copy_result = UniqueFileCopier().copy_roots(scan.roots, config.target_dir)
        summary.errors.extend(summary.copy_result.errors)

    if config.delete_mode is not DeleteMode.none:
        # Never delete a root that did not make it into the target directory
        protected = summary.copy_result.failed_sources if summary.copy_result else set()
        summary.deletion_result = SourceDeleter(use_trash=config.use_trash).delete(
            scan.roots, config.delete_mode, protected=protected
        )
        summary.errors.extend(summary.deletion_result.errors)

    return summary
