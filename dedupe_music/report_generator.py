"""
JSON report generator for dedup results.

Document shape (top-level array, one element per unique file):

    [
     {
      "name": "a.mp3",
      "path": "/music/a.mp3",
      "hash": "5eb63bbbe01eeed093cb22bb8f5acdc3",
      "size": 11534336,
      "duplicates": [ {same fields, no nested duplicates} ]
     }
    ]

"duplicates" is omitted when a file has none. Root order follows the
index and is not sorted.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import structlog

from dedupe_music.exceptions import OutputError
from dedupe_music.models import FileRecord

logger = structlog.get_logger(__name__)

RECORD_FIELDS = ("name", "path", "hash", "size")


class ReportGenerator:
    """Serialize the root forest. Never mutates the records it is given."""

    def __init__(self, indent: int = 1):
        self.indent = indent

    @staticmethod
    def _fields(record: FileRecord) -> dict[str, Any]:
        dumped = record.model_dump(mode="json", include=set(RECORD_FIELDS))
        return {field: dumped[field] for field in RECORD_FIELDS}

    def record_to_dict(self, record: FileRecord) -> dict[str, Any]:
        """One record and its direct children as plain JSON-ready data."""
        entry = self._fields(record)
        if record.children:
            entry["duplicates"] = [self._fields(child) for child in record.children]
        return entry

    def to_document(self, roots: Sequence[FileRecord]) -> list[dict[str, Any]]:
        return [self.record_to_dict(root) for root in roots]

    def generate_json_string(self, roots: Sequence[FileRecord]) -> str:
        """Report content as a string."""
        return json.dumps(self.to_document(roots), indent=self.indent, ensure_ascii=False) + "\n"

    def generate_json(self, roots: Sequence[FileRecord], output_path: Path) -> Path:
        """
        Write the report file.

        Args:
            roots: Final root records (after the merge pass)
            output_path: Where to save the JSON file

        Returns:
            Path to the written report

        Raises:
            OutputError: If the report file cannot be written
        """
        content = self.generate_json_string(roots)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputError(f"cannot write report {output_path}: {e}") from e

        logger.info(
            "dedup_report_generated",
            output_path=str(output_path),
            unique_files=len(roots),
            duplicates=sum(len(root.children) for root in roots),
        )

        return output_path
