"""Decoding of raw review rows into the canonical record columns."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
import functools
import logging
import re

import pandas as pd

from review_stats.settings import WEIGHT_MAX

ENTITY = "entity"
CATEGORY = "category"
TEXT = "text"
WEIGHT = "weight"
RECORD_COLUMNS = [ENTITY, CATEGORY, TEXT, WEIGHT]

_WEIGHT_PATTERN = re.compile(r"\+?[0-9]+")
# Bytes that are not valid UTF-8 are read with ``surrogateescape`` and show up as lone surrogates.
_UNDECODED_PATTERN = "[\ud800-\udfff]"


@dataclass(frozen=True)
class RecordSchema:
    """Raw column names that map onto the four record fields."""

    entity: str = "app_name"
    category: str = "language"
    text: str = "review"
    weight: str = "votes_helpful"

    @property
    def columns(self) -> list[str]:
        return [self.entity, self.category, self.text, self.weight]

    def missing_columns(self, header: Iterable[str]) -> list[str]:
        present = set(header)
        return [column for column in self.columns if column not in present]


@dataclass(frozen=True)
class Record:
    """One decoded review row."""

    entity_name: str
    category: str
    text: str
    weight: int


@functools.lru_cache(maxsize=4096)
def parse_weight(value: object) -> int | None:
    """Return the vote count as an int, or ``None`` when it is not an unsigned 32-bit integer."""
    if not isinstance(value, str) or not _WEIGHT_PATTERN.fullmatch(value):
        return None
    weight = int(value)
    if weight > WEIGHT_MAX:
        return None
    return weight


def decode_frame(frame: pd.DataFrame, schema: RecordSchema) -> pd.DataFrame:
    """Decode a raw chunk into the canonical ``entity/category/text/weight`` columns.

    Rows with a missing field, text that is not valid UTF-8, or an unparseable
    weight are dropped silently (a debug line reports how many). The result has
    a fresh ``RangeIndex``.
    """
    logger = logging.getLogger(__name__)

    raw = frame[schema.columns]
    complete_mask = raw.notna().all(axis=1)
    undecoded_mask = pd.Series(False, index=raw.index)
    for column in (schema.entity, schema.category, schema.text):
        undecoded_mask |= raw[column].astype(str).str.contains(_UNDECODED_PATTERN, regex=True)
    weights = raw[schema.weight].map(parse_weight)
    valid_mask = complete_mask & ~undecoded_mask & weights.notna()

    kept = raw[valid_mask]
    decoded = pd.DataFrame(
        {
            ENTITY: kept[schema.entity].astype(str),
            CATEGORY: kept[schema.category].astype(str),
            TEXT: kept[schema.text].astype(str),
            WEIGHT: weights[valid_mask].astype("int64"),
        },
        columns=RECORD_COLUMNS,
    ).reset_index(drop=True)

    dropped = len(frame) - len(decoded)
    if dropped:
        logger.debug(f"Dropped {dropped:,} of {len(frame):,} rows with missing fields, undecodable text or invalid weights")
    return decoded


def records_to_frame(records: Iterable[Record]) -> pd.DataFrame:
    """Build a decoded batch from already-typed records."""
    rows = [(record.entity_name, record.category, record.text, record.weight) for record in records]
    frame = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    frame[WEIGHT] = frame[WEIGHT].astype("int64")
    return frame
