"""Statistics accumulators shared by the map, reduce and ranking stages.

A :class:`StatsAccumulator` is used both for the partial statistics of one
batch and for the global statistics of a whole run; the two are structurally
identical.

Records are compared with a total order: higher weight first, then lower text
(code-point order). Two records that compare equal are the same value, so every
selection made with this order is independent of the order records or partial
accumulators arrive in.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple
import heapq

from review_stats.errors import InvariantViolation
from review_stats.settings import TOP_RECORDS_LIMIT

TopRecord = Tuple[str, int]


def record_sort_key(record: TopRecord) -> Tuple[int, str]:
    text, weight = record
    return (-weight, text)


def outranks(candidate: TopRecord, current: TopRecord) -> bool:
    """True when ``candidate`` should replace ``current`` as the best record."""
    return record_sort_key(candidate) < record_sort_key(current)


def cap_records(records: Iterable[TopRecord], limit: int = TOP_RECORDS_LIMIT) -> List[TopRecord]:
    """Return the ``limit`` best records, best first."""
    return heapq.nsmallest(limit, records, key=record_sort_key)


@dataclass
class EntityStats:
    total_count: int = 0
    count_by_category: Dict[str, int] = field(default_factory=dict)
    best_by_category: Dict[str, TopRecord] = field(default_factory=dict)

    def add_count(self, category: str, count: int) -> None:
        self.total_count += count
        self.count_by_category[category] = self.count_by_category.get(category, 0) + count

    def offer_best(self, category: str, record: TopRecord) -> None:
        current = self.best_by_category.get(category)
        if current is None or outranks(record, current):
            self.best_by_category[category] = record


@dataclass
class CategoryStats:
    total_count: int = 0
    top_records: List[TopRecord] = field(default_factory=list)


@dataclass
class StatsAccumulator:
    entities: Dict[str, EntityStats] = field(default_factory=dict)
    categories: Dict[str, CategoryStats] = field(default_factory=dict)

    def entity(self, name: str) -> EntityStats:
        entry = self.entities.get(name)
        if entry is None:
            entry = self.entities[name] = EntityStats()
        return entry

    def category(self, name: str) -> CategoryStats:
        entry = self.categories.get(name)
        if entry is None:
            entry = self.categories[name] = CategoryStats()
        return entry

    @property
    def record_count(self) -> int:
        return sum(info.total_count for info in self.entities.values())

    def check_invariants(self, top_limit: int = TOP_RECORDS_LIMIT) -> None:
        """Raise :class:`InvariantViolation` if the counters disagree with each other."""
        per_category: Dict[str, int] = {}
        for name, info in self.entities.items():
            category_total = sum(info.count_by_category.values())
            if info.total_count != category_total:
                raise InvariantViolation(
                    f"Entity {name!r} total {info.total_count} != sum of category counts {category_total}"
                )
            unknown = set(info.best_by_category) - set(info.count_by_category)
            if unknown:
                raise InvariantViolation(f"Entity {name!r} has best records for uncounted categories {sorted(unknown)}")
            for category, count in info.count_by_category.items():
                per_category[category] = per_category.get(category, 0) + count

        for name, info in self.categories.items():
            if info.total_count != per_category.get(name, 0):
                raise InvariantViolation(
                    f"Category {name!r} total {info.total_count} != entity contributions {per_category.get(name, 0)}"
                )
            if len(info.top_records) > top_limit:
                raise InvariantViolation(f"Category {name!r} keeps {len(info.top_records)} records (limit {top_limit})")
            if info.top_records != sorted(info.top_records, key=record_sort_key):
                raise InvariantViolation(f"Category {name!r} top records are out of order")

        missing = set(per_category) - set(self.categories)
        if missing:
            raise InvariantViolation(f"Categories counted by entities but not tracked: {sorted(missing)}")
