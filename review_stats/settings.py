"""Project-wide configuration helpers, directory constants and pipeline limits."""
from __future__ import annotations

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_INPUT_DIR = DATA_DIR / "input"
REPORTS_DIR = PROJECT_ROOT / "output"

# Rows per batch handed to a worker.
BATCH_SIZE = 100_000

TOP_RECORDS_LIMIT = 10
TOP_ENTITIES_LIMIT = 3
TOP_ENTITY_CATEGORIES_LIMIT = 3
TOP_CATEGORIES_LIMIT = 3

# Weights are unsigned 32-bit vote counts.
WEIGHT_MAX = 4_294_967_295

INPUT_EXTENSION = ".csv"
REPORT_EXTENSION = ".json"

# Upper bound for the worker count, relative to the logical CPU count.
THREADS_PER_CPU = 10


def ensure_directories() -> None:
    """Create the expected data directories if they do not already exist."""
    for directory in (DEFAULT_INPUT_DIR, REPORTS_DIR):
        directory.mkdir(parents=True, exist_ok=True)
