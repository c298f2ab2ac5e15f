"""Concurrent aggregation pipeline: scanner thread, worker pool and single-owner merge."""
from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Set
import logging
import queue
import threading
import time

import pandas as pd

from review_stats.aggregations.batch import aggregate_batch
from review_stats.aggregations.merge import merge_into
from review_stats.aggregations.ranking import Report, rank
from review_stats.aggregations.stats import StatsAccumulator
from review_stats.errors import WorkerPoolError
from review_stats.ingest.records import RecordSchema
from review_stats.ingest.scanner import ScanSummary, scan_directory, validate_input_dir
from review_stats.settings import BATCH_SIZE, INPUT_EXTENSION

_END_OF_BATCHES = object()
_PUT_POLL_SECONDS = 0.1


class _ScanCancelled(Exception):
    """Raised inside the producer when the consumer side has given up."""


@dataclass
class PipelineConfig:
    """Tuning knobs for a pipeline run."""

    batch_size: int = BATCH_SIZE
    # Decoded batches allowed to wait between the scanner and the pool.
    queue_size: int = 4
    # Batches in flight inside the pool; never fewer than the worker count.
    window: int = 0
    extension: str = INPUT_EXTENSION
    schema: RecordSchema = field(default_factory=RecordSchema)

    def effective_window(self, workers: int) -> int:
        return max(self.window, workers)


@dataclass
class PipelineResult:
    stats: StatsAccumulator
    scan: ScanSummary
    batches_merged: int = 0


def _make_pool(workers: int) -> ThreadPoolExecutor:
    if workers < 1:
        raise WorkerPoolError(f"Worker pool requires at least one worker, got {workers}")
    try:
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="review-stats")
    except (ValueError, RuntimeError) as exc:
        raise WorkerPoolError(f"Could not create a pool of {workers} workers: {exc}") from exc


def _start_producer(
    directory: Path,
    batches: "queue.Queue[Any]",
    cancel: threading.Event,
    config: PipelineConfig,
    outcome: Dict[str, Any],
) -> threading.Thread:
    def publish(batch: pd.DataFrame) -> None:
        while not cancel.is_set():
            try:
                batches.put(batch, timeout=_PUT_POLL_SECONDS)
                return
            except queue.Full:
                continue
        raise _ScanCancelled()

    def produce() -> None:
        try:
            outcome["scan"] = scan_directory(
                directory,
                publish,
                batch_size=config.batch_size,
                extension=config.extension,
                schema=config.schema,
            )
        except _ScanCancelled:
            return
        except Exception as exc:  # re-raised by the consuming thread
            outcome["error"] = exc
        # Sentinel only on normal or failed completion; a cancelled scan has no reader left.
        while not cancel.is_set():
            try:
                batches.put(_END_OF_BATCHES, timeout=_PUT_POLL_SECONDS)
                return
            except queue.Full:
                continue

    producer = threading.Thread(target=produce, name="review-stats-scanner", daemon=True)
    producer.start()
    return producer


def _iter_batches(batches: "queue.Queue[Any]") -> Iterator[pd.DataFrame]:
    while True:
        item = batches.get()
        if item is _END_OF_BATCHES:
            return
        yield item


def _merge_completed(
    pending: Set[Future],
    destination: StatsAccumulator,
    *,
    block: bool,
) -> tuple[Set[Future], int]:
    if not pending:
        return pending, 0
    done, still_pending = wait(pending, timeout=None if block else 0.0, return_when=FIRST_COMPLETED)
    for future in done:
        merge_into(future.result(), destination)
    return set(still_pending), len(done)


def run_pipeline(
    input_dir: Path,
    workers: int,
    *,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """Aggregate every record under ``input_dir`` using ``workers`` threads.

    One producer thread scans and decodes files into a bounded queue; the
    calling thread submits batches to the pool and is the only thread that
    merges partial results into the global accumulator. Partials are merged in
    completion order, which cannot change the result because every selection
    uses a total order.

    Raises :class:`~review_stats.errors.InvalidInputPath` and
    :class:`~review_stats.errors.WorkerPoolError` before any work starts.
    """
    logger = logging.getLogger(__name__)
    cfg = config or PipelineConfig()
    directory = validate_input_dir(input_dir)
    pool = _make_pool(workers)

    window = cfg.effective_window(workers)
    batches: "queue.Queue[Any]" = queue.Queue(maxsize=max(cfg.queue_size, 1))
    cancel = threading.Event()
    outcome: Dict[str, Any] = {}
    stats = StatsAccumulator()
    merged = 0
    start_time = time.time()

    logger.info(f"Starting pipeline on {directory} with {workers} workers (window {window})")
    producer = _start_producer(directory, batches, cancel, cfg, outcome)
    finished = False
    try:
        with pool:
            pending: Set[Future] = set()
            for batch in _iter_batches(batches):
                pending.add(pool.submit(aggregate_batch, batch))
                if len(pending) >= window:
                    pending, done = _merge_completed(pending, stats, block=True)
                    merged += done
                else:
                    pending, done = _merge_completed(pending, stats, block=False)
                    merged += done

            while pending:
                pending, done = _merge_completed(pending, stats, block=True)
                merged += done
        finished = True
    finally:
        if not finished:
            cancel.set()
        producer.join()

    if "error" in outcome:
        raise outcome["error"]

    scan = outcome.get("scan", ScanSummary())
    elapsed = time.time() - start_time
    logger.info(
        f"Merged {merged:,} batches: {stats.record_count:,} records, {len(stats.entities):,} entities, "
        f"{len(stats.categories):,} categories in {elapsed:.1f}s"
    )
    return PipelineResult(stats=stats, scan=scan, batches_merged=merged)


def build_report(
    input_dir: Path,
    workers: int,
    *,
    config: PipelineConfig | None = None,
) -> Report:
    """Run the pipeline and rank the merged statistics."""
    return rank(run_pipeline(input_dir, workers, config=config).stats)
