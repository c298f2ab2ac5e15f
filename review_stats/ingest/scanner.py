"""Directory scanning that turns review CSV exports into fixed-size record batches."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator
import logging
import stat
import time

import pandas as pd

from review_stats.errors import InvalidInputPath
from review_stats.ingest.records import RecordSchema, decode_frame
from review_stats.settings import BATCH_SIZE, INPUT_EXTENSION

_READ_ERRORS = (OSError, UnicodeDecodeError, pd.errors.ParserError)


@dataclass
class ScanSummary:
    """Counters collected while scanning an input directory."""

    files_seen: int = 0
    files_skipped: int = 0
    entries_skipped: int = 0
    rows_read: int = 0
    rows_kept: int = 0
    batches_published: int = 0

    @property
    def rows_dropped(self) -> int:
        return self.rows_read - self.rows_kept


def validate_input_dir(path: Path) -> Path:
    """Return ``path`` if it is an existing directory, otherwise raise :class:`InvalidInputPath`."""
    path = Path(path)
    if not path.exists() or not path.is_dir():
        raise InvalidInputPath(f"Input path is not a valid directory: {path}")
    return path


def iter_input_files(directory: Path, extension: str = INPUT_EXTENSION, summary: ScanSummary | None = None) -> Iterator[Path]:
    """Yield regular files directly inside ``directory`` whose suffix is ``extension``.

    Entries that cannot be stat'ed are logged and skipped. The listing is not
    recursive.
    """
    logger = logging.getLogger(__name__)
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise InvalidInputPath(f"Cannot list input directory {directory}: {exc}") from exc

    for entry in entries:
        try:
            mode = entry.stat().st_mode
        except OSError as exc:
            logger.warning(f"Skipping unreadable directory entry {entry}: {exc}")
            if summary is not None:
                summary.entries_skipped += 1
            continue
        if stat.S_ISREG(mode) and entry.suffix == extension:
            yield entry


def iter_file_batches(
    path: Path,
    *,
    batch_size: int = BATCH_SIZE,
    schema: RecordSchema | None = None,
    summary: ScanSummary | None = None,
) -> Iterator[pd.DataFrame]:
    """Stream one CSV file and yield decoded batches of exactly ``batch_size`` rows.

    The last batch of the file may be shorter; batches never span files. A file
    that cannot be opened or lacks a schema column is logged and skipped. A read
    error part-way through keeps the rows decoded before it.
    """
    logger = logging.getLogger(__name__)
    schema = schema or RecordSchema()
    summary = summary if summary is not None else ScanSummary()

    try:
        header = pd.read_csv(path, nrows=0, encoding_errors="surrogateescape").columns
    except pd.errors.EmptyDataError:
        logger.warning(f"Skipping empty file {path}")
        summary.files_skipped += 1
        return
    except _READ_ERRORS as exc:
        logger.warning(f"Skipping file {path}: {exc}")
        summary.files_skipped += 1
        return

    missing = schema.missing_columns(header)
    if missing:
        logger.warning(f"Skipping file {path}: missing columns {missing}")
        summary.files_skipped += 1
        return

    pending: list[pd.DataFrame] = []
    pending_rows = 0
    try:
        reader = pd.read_csv(
            path,
            usecols=schema.columns,
            dtype=str,
            keep_default_na=False,
            chunksize=batch_size,
            on_bad_lines="skip",
            encoding_errors="surrogateescape",
        )
        with reader:
            for chunk in reader:
                summary.rows_read += len(chunk)
                decoded = decode_frame(chunk, schema)
                summary.rows_kept += len(decoded)
                if decoded.empty:
                    continue

                pending.append(decoded)
                pending_rows += len(decoded)
                while pending_rows >= batch_size:
                    combined = pd.concat(pending, ignore_index=True)
                    yield combined.iloc[:batch_size].reset_index(drop=True)
                    rest = combined.iloc[batch_size:].reset_index(drop=True)
                    pending = [rest] if not rest.empty else []
                    pending_rows = len(rest)
    except _READ_ERRORS as exc:
        logger.warning(f"Stopped reading {path} after {summary.rows_read:,} rows: {exc}")

    if pending_rows:
        yield pd.concat(pending, ignore_index=True)


def scan_directory(
    directory: Path,
    publish: Callable[[pd.DataFrame], None],
    *,
    batch_size: int = BATCH_SIZE,
    extension: str = INPUT_EXTENSION,
    schema: RecordSchema | None = None,
) -> ScanSummary:
    """Decode every eligible file in ``directory`` and hand each batch to ``publish``.

    Raises :class:`InvalidInputPath` when ``directory`` is not a directory.
    Everything else (unreadable entries, unopenable files, malformed rows) is
    logged and skipped.
    """
    logger = logging.getLogger(__name__)
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    directory = validate_input_dir(directory)
    schema = schema or RecordSchema()
    summary = ScanSummary()
    start_time = time.time()

    logger.info(f"Scanning {directory} for *{extension} files (batch size {batch_size:,})")
    for path in iter_input_files(directory, extension, summary):
        summary.files_seen += 1
        logger.debug(f"Reading {path}")
        for batch in iter_file_batches(path, batch_size=batch_size, schema=schema, summary=summary):
            publish(batch)
            summary.batches_published += 1
            if summary.batches_published % 10 == 0:
                logger.info(f"  Progress: {summary.batches_published:,} batches, {summary.rows_kept:,} records published")

    elapsed = time.time() - start_time
    logger.info(
        f"Scan complete: {summary.files_seen} files ({summary.files_skipped} skipped), "
        f"{summary.rows_read:,} rows read, {summary.rows_kept:,} kept, "
        f"{summary.batches_published:,} batches in {elapsed:.1f}s"
    )
    return summary
