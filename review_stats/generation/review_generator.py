"""Synthetic review CSV generation for local runs and benchmarks."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List
import csv
import logging
import random

from review_stats.ingest.records import RecordSchema

from .constants import GAMES, LANGUAGE_WEIGHTS, MALFORMED_VOTES, MAX_VOTES, REVIEW_PHRASES


class ReviewDataGenerator:
    """Generate review rows in the raw CSV layout described by a :class:`RecordSchema`.

    ``malformed_rate`` is the share of rows whose vote count will not parse;
    those rows are expected to be dropped by the decoder.
    """

    def __init__(self, seed: int | None = None, *, malformed_rate: float = 0.01, schema: RecordSchema | None = None):
        self.random = random.Random(seed)
        self.malformed_rate = malformed_rate
        self.schema = schema or RecordSchema()
        self.languages = list(LANGUAGE_WEIGHTS)
        self.language_weights = list(LANGUAGE_WEIGHTS.values())
        self.review_counter = 0

    def generate_votes(self) -> str:
        if self.random.random() < self.malformed_rate:
            return self.random.choice(MALFORMED_VOTES)
        if self.random.random() < 0.8:
            # Long tail: most reviews get a handful of votes
            return str(min(int(self.random.paretovariate(1.5)) - 1, MAX_VOTES))
        return str(self.random.randint(0, MAX_VOTES))

    def generate_review(self) -> str:
        self.review_counter += 1
        phrase = self.random.choice(REVIEW_PHRASES)
        return f"{phrase} #{self.review_counter}"

    def generate_row(self) -> Dict[str, str]:
        language = self.random.choices(self.languages, weights=self.language_weights)[0]
        return {
            self.schema.entity: self.random.choice(GAMES),
            self.schema.category: language,
            self.schema.text: self.generate_review(),
            self.schema.weight: self.generate_votes(),
        }

    def generate_csv(self, filename: Path, num_rows: int = 1000) -> Path:
        logger = logging.getLogger(__name__)
        filename = Path(filename)
        filename.parent.mkdir(parents=True, exist_ok=True)

        with filename.open("w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=self.schema.columns)
            writer.writeheader()
            for _ in range(num_rows):
                writer.writerow(self.generate_row())

        logger.info(f"Generated {num_rows:,} review rows in '{filename}'")
        return filename

    def generate_directory(self, directory: Path, *, num_files: int = 4, rows_per_file: int = 1000) -> List[Path]:
        directory = Path(directory)
        return [
            self.generate_csv(directory / f"reviews_{index:03d}.csv", rows_per_file)
            for index in range(num_files)
        ]
