"""End-to-end tests for the concurrent aggregation pipeline."""

from pathlib import Path

import pandas as pd
import pytest

from review_stats.aggregations import pipeline
from review_stats.aggregations.pipeline import PipelineConfig, build_report, run_pipeline
from review_stats.aggregations.ranking import RankedRecord
from review_stats.errors import InvalidInputPath, WorkerPoolError
from review_stats.generation import ReviewDataGenerator


def write_reviews(path: Path, rows) -> Path:
    frame = pd.DataFrame(rows, columns=["app_name", "language", "review", "votes_helpful"])
    frame.to_csv(path, index=False)
    return path


@pytest.fixture
def two_file_dataset(tmp_path):
    write_reviews(
        tmp_path / "first.csv",
        [
            ["EntityA", "en", "great", "5"],
            ["EntityA", "en", "ok", "9"],
            ["EntityB", "es", "bien", "1"],
        ],
    )
    write_reviews(
        tmp_path / "second.csv",
        [
            ["EntityA", "en", "meh", "2"],
            ["EntityB", "es", "excelente", "7"],
        ],
    )
    return tmp_path


@pytest.fixture(scope="module")
def generated_dataset(tmp_path_factory):
    directory = tmp_path_factory.mktemp("generated")
    generator = ReviewDataGenerator(seed=1234, malformed_rate=0.05)
    generator.generate_directory(directory, num_files=5, rows_per_file=3000)
    return directory


def test_two_file_example(two_file_dataset):
    report = build_report(two_file_dataset, 2, config=PipelineConfig(batch_size=2))

    entity_a, entity_b = report.top_entities
    assert (entity_a.entity, entity_a.record_count) == ("EntityA", 3)
    assert entity_a.categories[0].category == "en"
    assert entity_a.categories[0].top_record == RankedRecord("ok", 9)
    assert (entity_b.entity, entity_b.record_count) == ("EntityB", 2)
    assert entity_b.categories[0].top_record == RankedRecord("excelente", 7)

    english = report.top_categories[0]
    assert (english.category, english.record_count) == ("en", 3)
    assert english.top_records == (RankedRecord("ok", 9), RankedRecord("great", 5), RankedRecord("meh", 2))


def test_non_numeric_weight_is_excluded_everywhere(two_file_dataset):
    write_reviews(two_file_dataset / "third.csv", [["EntityA", "en", "spam", "lots"], ["EntityC", "fr", "x", ""]])

    result = run_pipeline(two_file_dataset, 3)
    report = build_report(two_file_dataset, 3)

    assert result.stats.record_count == 5
    assert "EntityC" not in result.stats.entities
    assert "fr" not in result.stats.categories
    assert result.scan.rows_dropped == 2
    texts = {r.text for c in report.top_categories for r in c.top_records}
    texts |= {h.top_record.text for e in report.top_entities for h in e.categories}
    assert "spam" not in texts


def test_count_conservation_matches_valid_rows(generated_dataset):
    valid_rows = 0
    for path in generated_dataset.glob("*.csv"):
        votes = pd.read_csv(path, dtype=str, keep_default_na=False)["votes_helpful"]
        # Generated vote counts are small; the only long digit string is the overflow sample
        valid_rows += int((votes.str.fullmatch(r"[0-9]+") & (votes.str.len() <= 10)).sum())

    result = run_pipeline(generated_dataset, 4, config=PipelineConfig(batch_size=1000))

    assert result.stats.record_count == valid_rows
    assert result.scan.rows_kept == valid_rows
    assert result.batches_merged == result.scan.batches_published
    result.stats.check_invariants()


def test_report_is_identical_across_worker_counts(generated_dataset):
    config = PipelineConfig(batch_size=700)
    reports = {workers: build_report(generated_dataset, workers, config=config) for workers in (1, 4, 8, 16)}

    baseline = reports[1]
    assert not baseline.is_empty
    for workers, report in reports.items():
        assert report == baseline, f"report differs with {workers} workers"


@pytest.mark.parametrize("batch_size", [1_000, 2_999, 100_000])
def test_report_is_identical_across_batch_sizes(generated_dataset, batch_size):
    baseline = build_report(generated_dataset, 1, config=PipelineConfig(batch_size=100_000))

    assert build_report(generated_dataset, 6, config=PipelineConfig(batch_size=batch_size)) == baseline


def test_repeated_runs_give_identical_reports(generated_dataset):
    config = PipelineConfig(batch_size=500, queue_size=1)

    first = build_report(generated_dataset, 8, config=config)
    second = build_report(generated_dataset, 8, config=config)

    assert first == second


def test_empty_directory_gives_empty_report(tmp_path):
    report = build_report(tmp_path, 2)

    assert report.is_empty


def test_invalid_input_path_is_fatal(tmp_path):
    with pytest.raises(InvalidInputPath):
        run_pipeline(tmp_path / "nope", 2)


@pytest.mark.parametrize("workers", [0, -3])
def test_invalid_worker_count_is_fatal(two_file_dataset, workers):
    with pytest.raises(WorkerPoolError):
        run_pipeline(two_file_dataset, workers)


def test_worker_failure_is_raised_and_scanner_stops(two_file_dataset, monkeypatch):
    def explode(batch):
        raise RuntimeError("worker blew up")

    monkeypatch.setattr(pipeline, "aggregate_batch", explode)

    with pytest.raises(RuntimeError, match="worker blew up"):
        run_pipeline(two_file_dataset, 2, config=PipelineConfig(batch_size=1, queue_size=1))


def test_scanner_failure_is_raised_in_caller(two_file_dataset, monkeypatch):
    def broken_scan(*args, **kwargs):
        raise OSError("disk vanished")

    monkeypatch.setattr(pipeline, "scan_directory", broken_scan)

    with pytest.raises(OSError, match="disk vanished"):
        run_pipeline(two_file_dataset, 2)
