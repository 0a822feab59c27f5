#!/usr/bin/env python3
"""
dedupe-music: find and manage duplicate audio files.

Usage:
    dedupe-music -s ~/Music -s ~/Downloads --key-policy hash
    dedupe-music -s ~/Music --key-policy name+hash -t ~/deduped --size 5
    dedupe-music --config dedupe.yaml --delete-duplicates

Configuration file (YAML, optional) uses the DedupConfig field names:

    source_dirs: [~/Music, ~/Downloads]
    key_policy: hash
    min_size_bytes: 5242880
    workers: 8

Command-line flags override file values.

Running with no arguments prints the help and exits 0.

Exit codes: 0 success, 1 run failure or per-file copy/delete errors,
2 configuration error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import structlog
import yaml
from pydantic import ValidationError

from dedupe_music.exceptions import ConfigurationError, DedupeMusicError
from dedupe_music.logging_config import configure_logging
from dedupe_music.models import DEFAULT_EXTENSIONS, MEGABYTE, MP4_EXTENSION, DedupConfig, DeleteMode
from dedupe_music.workflow import RunSummary, run_dedup

logger = structlog.get_logger(__name__)

CONFIRMATION_PHRASE = "permanent"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dedupe-music",
        description="Dedupe Music: find and manage duplicate audio files",
    )
    parser.add_argument(
        "-s",
        "--source-dir",
        dest="source_dirs",
        action="append",
        type=Path,
        help="Directory to scan. Can be used multiple times. (Required)",
    )
    parser.add_argument(
        "-t",
        "--target-dir",
        type=Path,
        help="Directory to copy unique files to",
    )
    parser.add_argument(
        "--size",
        type=float,
        help="Minimum file size in megabytes (MB) to consider (default: 10)",
    )
    parser.add_argument(
        "--key-policy",
        choices=["hash", "name+hash"],
        help="hash: same content is a duplicate whatever the name; "
        "name+hash: name and content must both match (Required)",
    )
    parser.add_argument("--workers", type=int, help="Concurrent fingerprint workers (default: CPU count)")
    parser.add_argument(
        "--threshold",
        type=float,
        help="Filename similarity for the near-duplicate merge (default: 0.5)",
    )
    parser.add_argument(
        "--no-near-duplicates",
        action="store_true",
        help="Skip merging same-size files with similar names",
    )
    parser.add_argument("--include-mp4", action="store_true", help="Also consider .mp4 files")
    parser.add_argument("-o", "--output", type=Path, help="Report file (default: dedupe-music.json)")

    delete_group = parser.add_mutually_exclusive_group()
    delete_group.add_argument(
        "--delete-source-files",
        action="store_true",
        help="Delete every scanned file (unique and duplicates) after processing. "
        "WARNING: this deletes files!",
    )
    delete_group.add_argument(
        "--delete-duplicates",
        action="store_true",
        help="Delete only duplicate files after processing, keeping one copy of each",
    )
    parser.add_argument("--trash", action="store_true", help="Send deleted files to the trash")

    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")
    parser.add_argument("-l", "--logs", action="store_true", help="Enable detailed logging")
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        default="console",
        help="Log output format (default: console)",
    )
    return parser


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into a dict of DedupConfig fields."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    return data


def build_config(args: argparse.Namespace) -> DedupConfig:
    """
    Merge config file values and command-line flags into one DedupConfig.

    Raises:
        ConfigurationError: Missing source directories, missing key policy,
            or any value DedupConfig rejects
    """
    values: dict[str, Any] = load_config_file(args.config) if args.config else {}

    if args.source_dirs:
        values["source_dirs"] = args.source_dirs
    if args.target_dir is not None:
        values["target_dir"] = args.target_dir
    if args.size is not None:
        values["min_size_bytes"] = int(args.size * MEGABYTE)
    if args.key_policy is not None:
        values["key_policy"] = args.key_policy
    if args.workers is not None:
        values["workers"] = args.workers
    if args.threshold is not None:
        values["similarity_threshold"] = args.threshold
    if args.no_near_duplicates:
        values["near_duplicates"] = False
    if args.include_mp4:
        values["extensions"] = set(values.get("extensions", DEFAULT_EXTENSIONS)) | {MP4_EXTENSION}
    if args.output is not None:
        values["output_path"] = args.output
    if args.delete_source_files:
        values["delete_mode"] = DeleteMode.all
    elif args.delete_duplicates:
        values["delete_mode"] = DeleteMode.duplicates
    if args.trash:
        values["use_trash"] = True

    if not values.get("source_dirs"):
        raise ConfigurationError("source (-s or --source-dir) directories are required")
    if not values.get("key_policy"):
        raise ConfigurationError("a grouping key policy (--key-policy hash|name+hash) is required")

    values["source_dirs"] = [Path(d).expanduser() for d in values["source_dirs"]]
    for field in ("target_dir", "output_path"):
        if values.get(field) is not None:
            values[field] = Path(values[field]).expanduser()

    try:
        return DedupConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def confirm_deletion(input_fn: Callable[[str], str] = input) -> bool:
    """Ask the user to type the confirmation phrase."""
    try:
        answer = input_fn(f"Enter the word '{CONFIRMATION_PHRASE}' and hit enter to confirm: ")
    except EOFError:
        return False
    return answer.strip() == CONFIRMATION_PHRASE


def print_summary(summary: RunSummary, config: DedupConfig) -> None:
    scan = summary.scan
    print(
        f"Scanned {scan.stats.total_fingerprinted} files: "
        f"{scan.unique_count} unique, {scan.duplicate_count} duplicates "
        f"({scan.stats.near_duplicates_merged} merged by name/size)"
    )
    print(f"Results written to {summary.report_path}")
    if summary.copy_result is not None:
        print(f"Files copied to {config.target_dir} ({len(summary.copy_result.copied)} copied)")
    if summary.deletion_result is not None:
        print(
            f"Deleted {len(summary.deletion_result.deleted)} files "
            f"({summary.deletion_result.space_reclaimed_mb} MB)"
        )
    for path, error in scan.errors + summary.errors:
        print(f"Error: {path}: {error}", file=sys.stderr)


def main(argv: Optional[list[str]] = None, input_fn: Callable[[str], str] = input) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        parser.print_help()
        return EXIT_OK
    args = parser.parse_args(argv)

    configure_logging(
        level="DEBUG" if args.logs else "WARNING",
        json_format=args.log_format == "json",
        enable_colors=args.log_format == "console" and sys.stderr.isatty(),
    )

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_CONFIG

    if config.delete_mode is not DeleteMode.none and not confirm_deletion(input_fn):
        print("Error: Deletion not confirmed. Exiting.", file=sys.stderr)
        return EXIT_FAILURE

    try:
        summary = asyncio.run(run_dedup(config))
    except KeyboardInterrupt:
        print("Error: interrupted, no report written.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except DedupeMusicError as e:
        logger.error("dedup_run_failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print_summary(summary, config)
    return EXIT_FAILURE if summary.has_errors else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
