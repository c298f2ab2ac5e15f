"""Aggregate a directory of review CSV files into a ranked top-N report."""
from __future__ import annotations

import argparse
import logging
import os
import re
import sys
import time
from pathlib import Path

from review_stats.aggregations import PipelineConfig, rank, run_pipeline
from review_stats.errors import InvalidInputPath, WorkerPoolError
from review_stats.reporting import REPORT_KEY_STYLES, write_report_json, write_report_tables
from review_stats.settings import BATCH_SIZE, REPORTS_DIR, THREADS_PER_CPU

EXIT_FAILURE = 1
_POSITIVE_INT = re.compile(r"[0-9]+")


def max_thread_count() -> int:
    return (os.cpu_count() or 1) * THREADS_PER_CPU


def _parse_positive_int(value: str, label: str) -> int:
    if not _POSITIVE_INT.fullmatch(value) or int(value) < 1:
        raise argparse.ArgumentTypeError(f"{label} must be a positive integer, got {value!r}")
    return int(value)


def parse_batch_size(value: str) -> int:
    return _parse_positive_int(value, "batch size")


def parse_thread_count(value: str) -> int:
    """argparse type for the worker count: a positive integer up to 10x the CPU count."""
    threads = _parse_positive_int(value, "thread count")
    limit = max_thread_count()
    if threads > limit:
        raise argparse.ArgumentTypeError(
            f"too many threads requested: {threads}. This machine has {os.cpu_count() or 1} logical CPUs, "
            f"so the maximum is {limit} ({THREADS_PER_CPU}x)"
        )
    return threads


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a top-N review report from a directory of CSV files.")
    parser.add_argument("input_dir", type=Path, help="Directory containing the review CSV files.")
    parser.add_argument("threads", type=parse_thread_count, help="Number of worker threads.")
    parser.add_argument("output_name", help="Report file name ('.json' is appended when missing).")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=REPORTS_DIR,
        help="Destination directory for the report (default: ./output under the project root).",
    )
    parser.add_argument(
        "--batch-size",
        type=parse_batch_size,
        default=BATCH_SIZE,
        help=f"Records per batch handed to a worker (default: {BATCH_SIZE:,}).",
    )
    parser.add_argument(
        "--key-style",
        choices=sorted(REPORT_KEY_STYLES),
        default="generic",
        help="JSON field names: generic (entity/category/text/weight) or reviews (game/language/review/votes).",
    )
    parser.add_argument(
        "--tables",
        action="store_true",
        help="Also write the report as parquet tables next to the JSON file.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )
    logger = logging.getLogger(__name__)

    logger.info("Starting report build")
    logger.info(f"Input directory: {args.input_dir}")
    logger.info(f"Worker threads: {args.threads}")
    logger.info(f"Batch size: {args.batch_size:,} records")

    start_time = time.time()
    try:
        result = run_pipeline(args.input_dir, args.threads, config=PipelineConfig(batch_size=args.batch_size))
    except (InvalidInputPath, WorkerPoolError) as e:
        logger.error(f"Report build aborted: {e}")
        return EXIT_FAILURE

    report = rank(result.stats)
    if report.is_empty:
        logger.warning("No valid records found, writing an empty report")

    output_path = write_report_json(report, args.output_name, args.output_dir, keys=REPORT_KEY_STYLES[args.key_style])
    if args.tables:
        write_report_tables(report, args.output_dir)

    elapsed = time.time() - start_time
    logger.info(
        f"Report completed in {elapsed:.1f} seconds: {result.scan.rows_kept:,} records kept, "
        f"{result.scan.rows_dropped:,} dropped"
    )
    logger.info(f"Statistics saved to {output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
