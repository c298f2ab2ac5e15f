"""Projection of merged statistics into the ranked top-N report."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
import heapq
import logging

from review_stats.aggregations.stats import CategoryStats, EntityStats, StatsAccumulator
from review_stats.settings import (
    TOP_CATEGORIES_LIMIT,
    TOP_ENTITIES_LIMIT,
    TOP_ENTITY_CATEGORIES_LIMIT,
    TOP_RECORDS_LIMIT,
)


@dataclass(frozen=True)
class RankedRecord:
    text: str
    weight: int


@dataclass(frozen=True)
class CategoryHighlight:
    """One category of a top entity together with its best record."""

    category: str
    record_count: int
    top_record: RankedRecord


@dataclass(frozen=True)
class EntitySummary:
    entity: str
    record_count: int
    categories: Tuple[CategoryHighlight, ...]


@dataclass(frozen=True)
class CategorySummary:
    category: str
    record_count: int
    top_records: Tuple[RankedRecord, ...]


@dataclass(frozen=True)
class Report:
    top_entities: Tuple[EntitySummary, ...] = ()
    top_categories: Tuple[CategorySummary, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.top_entities and not self.top_categories


_EMPTY_RECORD = RankedRecord(text="", weight=0)


def _count_then_name(item: Tuple[str, int]) -> Tuple[int, str]:
    name, count = item
    return (-count, name)


def _summarise_entity(name: str, info: EntityStats, category_limit: int) -> EntitySummary:
    ranked = heapq.nsmallest(category_limit, info.count_by_category.items(), key=_count_then_name)
    highlights = []
    for category, count in ranked:
        best = info.best_by_category.get(category)
        top_record = RankedRecord(*best) if best is not None else _EMPTY_RECORD
        highlights.append(CategoryHighlight(category=category, record_count=count, top_record=top_record))
    return EntitySummary(entity=name, record_count=info.total_count, categories=tuple(highlights))


def _summarise_category(name: str, info: CategoryStats, record_limit: int) -> CategorySummary:
    records = tuple(RankedRecord(text, weight) for text, weight in info.top_records[:record_limit])
    return CategorySummary(category=name, record_count=info.total_count, top_records=records)


def rank(
    stats: StatsAccumulator,
    *,
    entity_limit: int = TOP_ENTITIES_LIMIT,
    entity_category_limit: int = TOP_ENTITY_CATEGORIES_LIMIT,
    category_limit: int = TOP_CATEGORIES_LIMIT,
    record_limit: int = TOP_RECORDS_LIMIT,
) -> Report:
    """Build the top-N :class:`Report` from fully merged statistics.

    Entities and categories are ordered by record count descending, ties broken
    by name ascending, so the report never depends on dictionary order. Raises
    :class:`~review_stats.errors.InvariantViolation` if ``stats`` is
    inconsistent.
    """
    logger = logging.getLogger(__name__)
    stats.check_invariants()

    entity_totals = ((name, info.total_count) for name, info in stats.entities.items())
    top_entities = tuple(
        _summarise_entity(name, stats.entities[name], entity_category_limit)
        for name, _ in heapq.nsmallest(entity_limit, entity_totals, key=_count_then_name)
    )

    category_totals = ((name, info.total_count) for name, info in stats.categories.items())
    top_categories = tuple(
        _summarise_category(name, stats.categories[name], record_limit)
        for name, _ in heapq.nsmallest(category_limit, category_totals, key=_count_then_name)
    )

    logger.info(
        f"Ranked {len(top_entities)} of {len(stats.entities):,} entities and "
        f"{len(top_categories)} of {len(stats.categories):,} categories"
    )
    return Report(top_entities=top_entities, top_categories=top_categories)
