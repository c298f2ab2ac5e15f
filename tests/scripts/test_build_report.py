import argparse
import importlib
import json

import pandas as pd
import pytest

build_report = importlib.import_module("scripts.build_report")


def write_reviews(path, rows):
    frame = pd.DataFrame(rows, columns=["app_name", "language", "review", "votes_helpful"])
    frame.to_csv(path, index=False)
    return path


class TestParseThreadCount:

    def test_accepts_positive_counts(self):
        assert build_report.parse_thread_count("4") == 4

    @pytest.mark.parametrize("value", ["0", "-2", "four", "1.5", "", "4_0", " 4", "4 ", "+4"])
    def test_rejects_non_positive_or_non_integer(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            build_report.parse_thread_count(value)

    def test_rejects_more_than_ten_per_cpu(self, monkeypatch):
        monkeypatch.setattr(build_report.os, "cpu_count", lambda: 2)

        assert build_report.parse_thread_count("20") == 20
        with pytest.raises(argparse.ArgumentTypeError, match="maximum is 20"):
            build_report.parse_thread_count("21")


class TestParseBatchSize:

    def test_accepts_positive_sizes(self):
        assert build_report.parse_batch_size("1000") == 1000

    @pytest.mark.parametrize("value", ["0", "-5", "1e3", "10_000", ""])
    def test_rejects_invalid_sizes(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            build_report.parse_batch_size(value)

    def test_main_rejects_zero_batch_size_before_running(self, tmp_path):
        with pytest.raises(SystemExit):
            build_report.main([str(tmp_path), "1", "summary", "--batch-size", "0"])


def test_main_writes_json_report(tmp_path):
    input_dir = tmp_path / "input"
    input_dir.mkdir()
    write_reviews(input_dir / "reviews.csv", [["Hades", "english", "superb", "12"], ["Hades", "english", "fine", "3"]])
    output_dir = tmp_path / "output"

    exit_code = build_report.main([str(input_dir), "2", "summary", "--output-dir", str(output_dir), "--tables"])

    assert exit_code == 0
    payload = json.loads((output_dir / "summary.json").read_text(encoding="utf-8"))
    assert payload["top_entities"][0]["entity"] == "Hades"
    assert payload["top_entities"][0]["record_count"] == 2
    assert payload["top_categories"][0]["top_records"][0] == {"text": "superb", "weight": 12}
    assert (output_dir / "top_entities.parquet").exists()


def test_main_fails_on_invalid_input_dir(tmp_path):
    output_dir = tmp_path / "output"

    exit_code = build_report.main([str(tmp_path / "missing"), "1", "summary.json", "--output-dir", str(output_dir)])

    assert exit_code == build_report.EXIT_FAILURE
    assert not output_dir.exists()


def test_main_rejects_bad_thread_count(tmp_path):
    with pytest.raises(SystemExit):
        build_report.main([str(tmp_path), "0", "summary"])


def test_main_writes_review_key_style(tmp_path):
    input_dir = tmp_path / "input"
    input_dir.mkdir()
    write_reviews(input_dir / "reviews.csv", [["Hades", "english", "superb", "12"]])
    output_dir = tmp_path / "output"

    exit_code = build_report.main(
        [str(input_dir), "1", "summary", "--output-dir", str(output_dir), "--key-style", "reviews"]
    )

    assert exit_code == 0
    payload = json.loads((output_dir / "summary.json").read_text(encoding="utf-8"))
    assert payload["top_games"][0]["game"] == "Hades"
    assert payload["top_languages"][0]["top_reviews"] == [{"review": "superb", "votes": 12}]
