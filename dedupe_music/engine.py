"""
Duplicate-detection engine.

Pipeline:
1. Walk each source directory (CandidateFilter) and feed a bounded queue,
   each resolved path once
2. `workers` asyncio tasks drain the queue; each hands its path to a
   dedicated thread pool that stats, hashes (outside the lock) and
   registers the record in the DeduplicationIndex (inside the lock)
3. Barrier: all workers joined
4. Single near-duplicate merge pass over the roots
5. Return the root forest

Per-file failures are logged and collected, never raised. Directory walk
failures are raised as one DirectoryWalkError after every directory was
attempted. cancel() stops feeding, lets in-flight files finish and raises
ScanCancelledError instead of returning a partial result.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import time
from pathlib import Path
from typing import Callable, Optional

import structlog

from dedupe_music.candidates import CandidateFilter
from dedupe_music.exceptions import DirectoryWalkError, ScanCancelledError
from dedupe_music.fingerprint import fingerprint_file
from dedupe_music.index import DeduplicationIndex
from dedupe_music.models import (
    DedupConfig,
    FileRecord,
    ScanResult,
    ScanStats,
    UpsertOutcome,
)
from dedupe_music.similarity import merge_near_duplicates

logger = structlog.get_logger(__name__)

_STOP = object()


class DedupEngine:
    """
    Concurrent fingerprinting + grouping engine.

    Features:
    - Bounded producer/consumer queue between the walk and the workers
    - Fixed-size thread pool for blocking stat/read/hash
    - Single exclusive lock around index mutation
    - Barrier-synchronized near-duplicate merge, run exactly once
    """

    def __init__(
        self,
        config: DedupConfig,
        progress_callback: Optional[Callable[[ScanStats], None]] = None,
    ):
        """
        Initialize engine.

        Args:
            config: Run configuration
            progress_callback: Optional callback invoked as files are fingerprinted
        """
        self.config = config
        self.progress_callback = progress_callback
        self.index = DeduplicationIndex(config.key_policy)
        self.candidate_filter = CandidateFilter(config.extensions, config.min_size_bytes)
        self.stats = ScanStats()
        self.errors: list[tuple[str, str]] = []
        self._cancelled = False
        self._already_scanned: set[str] = set()

    def cancel(self) -> None:
        """Cancel the scan."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def run(self) -> ScanResult:
        """
        Main entry point.

        Returns:
            ScanResult with the final root records

        Raises:
            DirectoryWalkError: A source directory could not be walked
            ScanCancelledError: cancel() was called during the run
        """
        start_time = time.time()
        self._cancelled = False
        self._already_scanned.clear()

        logger.info(
            "dedup_scan_started",
            source_dirs=[str(d) for d in self.config.source_dirs],
            workers=self.config.workers,
            key_policy=self.config.key_policy.value,
            min_size_bytes=self.config.min_size_bytes,
        )

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.queue_size)
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.workers,
            thread_name_prefix="dedup-worker",
        )
        workers = [
            asyncio.create_task(self._worker(queue, executor))
            for _ in range(self.config.workers)
        ]

        walk_failures: list[tuple[str, str]] = []
        try:
            for source_dir in self.config.source_dirs:
                if self._cancelled:
                    break
                try:
                    await self._feed_directory(source_dir, queue)
                except DirectoryWalkError as e:
                    walk_failures.extend(e.failures)
                    logger.error(
                        "dedup_directory_walk_failed",
                        directory=str(source_dir),
                        error=str(e),
                    )

            for _ in workers:
                await queue.put(_STOP)
            # Barrier: no worker may still be mutating the index past this point
            await asyncio.gather(*workers)
        except BaseException:
            # Interrupted (task cancellation or unexpected error): stop the workers
            self._cancelled = True
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise
        finally:
            executor.shutdown(wait=True)

        if self._cancelled:
            logger.info(
                "dedup_scan_cancelled",
                fingerprinted=self.stats.total_fingerprinted,
            )
            raise ScanCancelledError(
                f"scan cancelled after {self.stats.total_fingerprinted} files"
            )

        if walk_failures:
            raise DirectoryWalkError(walk_failures)

        if self.config.near_duplicates:
            self.stats.near_duplicates_merged = merge_near_duplicates(
                self.index, self.config.similarity_threshold
            )

        roots = self.index.snapshot()
        result = ScanResult(roots=roots, stats=self.stats, errors=list(self.errors))

        logger.info(
            "dedup_scan_completed",
            total_candidates=self.stats.total_candidates,
            total_fingerprinted=self.stats.total_fingerprinted,
            unique_files=result.unique_count,
            total_duplicates=result.duplicate_count,
            near_duplicates_merged=self.stats.near_duplicates_merged,
            errors=self.stats.total_errors,
            elapsed_seconds=round(time.time() - start_time, 2),
        )

        return result

    async def _feed_directory(self, source_dir: Path, queue: asyncio.Queue) -> None:
        """Walk one source directory and enqueue its candidates."""
        logger.info("dedup_directory_scan_started", directory=str(source_dir))
        self.stats.current_directory = str(source_dir)

        for path in self.candidate_filter.iter_candidates(source_dir):
            if self._cancelled:
                return

            # Overlapping or repeated source dirs: one record per file
            resolved_key = str(path.resolve())
            if resolved_key in self._already_scanned:
                logger.debug("dedup_path_already_scanned", path=str(path))
                continue
            self._already_scanned.add(resolved_key)

            self.stats.total_candidates += 1
            await queue.put(path)
            # The walk is blocking; let finished workers pick up the next file
            await asyncio.sleep(0)

    async def _worker(
        self,
        queue: asyncio.Queue,
        executor: concurrent.futures.ThreadPoolExecutor,
    ) -> None:
        """Drain the queue until the stop marker, one file at a time."""
        loop = asyncio.get_running_loop()
        while True:
            path = await queue.get()
            if path is _STOP:
                return
            if self._cancelled:
                continue

            try:
                record, outcome = await loop.run_in_executor(
                    executor, self._fingerprint_and_register, path
                )
            except OSError as e:
                self.stats.total_errors += 1
                self.errors.append((str(path), str(e)))
                logger.warning("dedup_fingerprint_failed", path=str(path), error=str(e))
                continue

            self.stats.total_fingerprinted += 1
            if outcome is UpsertOutcome.attached:
                self.stats.total_duplicates += 1

            logger.debug(
                "dedup_file_hashed",
                path=str(path),
                size=record.size,
                hash=record.hash,
                outcome=outcome.value,
            )

            if self.progress_callback:
                self.progress_callback(self.stats)

    def _fingerprint_and_register(self, path: Path) -> tuple[FileRecord, UpsertOutcome]:
        """Runs in a pool thread: hash outside the lock, upsert under it."""
        record = fingerprint_file(path, self.config.chunk_size)
        return record, self.index.register(record)
