"""CLI helper to generate synthetic review CSV files into ``data/input``."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from review_stats.generation import ReviewDataGenerator
from review_stats.settings import DEFAULT_INPUT_DIR, ensure_directories


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate raw review CSV files.")
    parser.add_argument("--rows", type=int, default=1000, help="Number of rows per file")
    parser.add_argument("--files", type=int, default=4, help="Number of files to generate")
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_INPUT_DIR,
        help="Destination directory",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    parser.add_argument(
        "--malformed-rate",
        type=float,
        default=0.01,
        help="Share of rows with an unparseable vote count (default: 0.01).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    ensure_directories()

    logger.info(f"Starting data generation: {args.files} files x {args.rows} rows")
    logger.info(f"Output directory: {args.output}")

    generator = ReviewDataGenerator(seed=args.seed, malformed_rate=args.malformed_rate)
    paths = generator.generate_directory(args.output, num_files=args.files, rows_per_file=args.rows)

    logger.info(f"Data generation completed successfully: {len(paths)} files")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
