"""Persist ranked reports as JSON documents and flat parquet tables."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping
import json
import logging

import pandas as pd

from review_stats.aggregations.ranking import Report
from review_stats.settings import REPORT_EXTENSION, REPORTS_DIR

_EMPTY_SCHEMAS: Mapping[str, list[str]] = {
    "top_entities": [
        "rank",
        "entity",
        "entity_record_count",
        "category_rank",
        "category",
        "category_record_count",
        "top_text",
        "top_weight",
    ],
    "top_categories": [
        "rank",
        "category",
        "category_record_count",
        "record_rank",
        "text",
        "weight",
    ],
}


@dataclass(frozen=True)
class ReportKeys:
    """Key names used in the JSON report."""

    top_entities: str = "top_entities"
    entity: str = "entity"
    record_count: str = "record_count"
    categories: str = "categories"
    category: str = "category"
    top_text: str = "top_text"
    top_weight: str = "top_weight"
    top_categories: str = "top_categories"
    top_records: str = "top_records"
    text: str = "text"
    weight: str = "weight"


# Field names for reports over the default review columns (games, languages, helpful votes).
REVIEW_REPORT_KEYS = ReportKeys(
    top_entities="top_games",
    entity="game",
    record_count="review_count",
    categories="languages",
    category="language",
    top_text="top_review",
    top_weight="top_review_votes",
    top_categories="top_languages",
    top_records="top_reviews",
    text="review",
    weight="votes",
)

REPORT_KEY_STYLES: Mapping[str, ReportKeys] = {
    "generic": ReportKeys(),
    "reviews": REVIEW_REPORT_KEYS,
}


def report_to_dict(report: Report, keys: ReportKeys | None = None) -> Dict[str, Any]:
    """Return the JSON-ready structure of ``report`` using ``keys`` for every field name."""
    k = keys or ReportKeys()
    return {
        k.top_entities: [
            {
                k.entity: summary.entity,
                k.record_count: summary.record_count,
                k.categories: [
                    {
                        k.category: highlight.category,
                        k.record_count: highlight.record_count,
                        k.top_text: highlight.top_record.text,
                        k.top_weight: highlight.top_record.weight,
                    }
                    for highlight in summary.categories
                ],
            }
            for summary in report.top_entities
        ],
        k.top_categories: [
            {
                k.category: summary.category,
                k.record_count: summary.record_count,
                k.top_records: [{k.text: record.text, k.weight: record.weight} for record in summary.top_records],
            }
            for summary in report.top_categories
        ],
    }


def resolve_report_path(name: str, output_dir: Path | None = None) -> Path:
    """Place ``name`` under the report directory, adding the ``.json`` extension if missing."""
    if not name.endswith(REPORT_EXTENSION):
        name = f"{name}{REPORT_EXTENSION}"
    return (output_dir or REPORTS_DIR) / name


def write_report_json(
    report: Report,
    name: str,
    output_dir: Path | None = None,
    *,
    keys: ReportKeys | None = None,
) -> Path:
    logger = logging.getLogger(__name__)
    destination = resolve_report_path(name, output_dir)
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(report_to_dict(report, keys), indent=2, ensure_ascii=False)
    destination.write_text(payload + "\n", encoding="utf-8")
    logger.info(f"Report saved to {destination}")
    return destination


def _entity_rows(report: Report) -> List[Dict[str, Any]]:
    rows = []
    for rank, summary in enumerate(report.top_entities, 1):
        for category_rank, highlight in enumerate(summary.categories, 1):
            rows.append({
                "rank": rank,
                "entity": summary.entity,
                "entity_record_count": summary.record_count,
                "category_rank": category_rank,
                "category": highlight.category,
                "category_record_count": highlight.record_count,
                "top_text": highlight.top_record.text,
                "top_weight": highlight.top_record.weight,
            })
    return rows


def _category_rows(report: Report) -> List[Dict[str, Any]]:
    rows = []
    for rank, summary in enumerate(report.top_categories, 1):
        for record_rank, record in enumerate(summary.top_records, 1):
            rows.append({
                "rank": rank,
                "category": summary.category,
                "category_record_count": summary.record_count,
                "record_rank": record_rank,
                "text": record.text,
                "weight": record.weight,
            })
    return rows


def write_report_tables(report: Report, output_dir: Path | None = None) -> Dict[str, Path]:
    """Write one parquet table per report section and return their paths.

    Entities without categories and categories without records produce no
    rows; an empty report still yields both files with their fixed columns.
    """
    logger = logging.getLogger(__name__)
    output = output_dir or REPORTS_DIR
    output.mkdir(parents=True, exist_ok=True)

    tables = {
        "top_entities": _entity_rows(report),
        "top_categories": _category_rows(report),
    }
    generated: Dict[str, Path] = {}
    for name, rows in tables.items():
        artefact = output / f"{name}.parquet"
        frame = pd.DataFrame(rows, columns=_EMPTY_SCHEMAS[name])
        frame.to_parquet(artefact, index=False)
        generated[name] = artefact
        logger.info(f"Saved {name}: {len(frame):,} rows -> {artefact}")
    return generated
