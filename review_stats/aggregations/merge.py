"""Combining partial statistics into a single accumulator (the reduce stage)."""
from __future__ import annotations

from typing import Iterable

from review_stats.aggregations.stats import StatsAccumulator, cap_records
from review_stats.settings import TOP_RECORDS_LIMIT


def merge_into(
    source: StatsAccumulator,
    destination: StatsAccumulator,
    *,
    top_limit: int = TOP_RECORDS_LIMIT,
) -> StatsAccumulator:
    """Fold ``source`` into ``destination`` and return ``destination``.

    ``source`` is left untouched and nothing in ``destination`` aliases it.
    Callers must not merge into the same destination from two threads at once.
    """
    _merge_entities(source, destination)
    _merge_categories(source, destination, top_limit)
    return destination


def _merge_entities(source: StatsAccumulator, destination: StatsAccumulator) -> None:
    for name, info in source.entities.items():
        entry = destination.entity(name)
        for category, count in info.count_by_category.items():
            entry.add_count(category, count)
        for category, record in info.best_by_category.items():
            entry.offer_best(category, record)


def _merge_categories(source: StatsAccumulator, destination: StatsAccumulator, top_limit: int) -> None:
    for name, info in source.categories.items():
        entry = destination.category(name)
        entry.total_count += info.total_count
        entry.top_records = cap_records(entry.top_records + info.top_records, top_limit)


def fold_linear(partials: Iterable[StatsAccumulator], *, top_limit: int = TOP_RECORDS_LIMIT) -> StatsAccumulator:
    merged = StatsAccumulator()
    for partial in partials:
        merge_into(partial, merged, top_limit=top_limit)
    return merged


def fold_tree(partials: Iterable[StatsAccumulator], *, top_limit: int = TOP_RECORDS_LIMIT) -> StatsAccumulator:
    """Pairwise reduction: neighbours are merged level by level until one accumulator is left."""
    level = list(partials)
    if not level:
        return StatsAccumulator()

    while len(level) > 1:
        next_level = []
        for left, right in zip(level[0::2], level[1::2]):
            pair = merge_into(left, StatsAccumulator(), top_limit=top_limit)
            next_level.append(merge_into(right, pair, top_limit=top_limit))
        if len(level) % 2:
            next_level.append(level[-1])
        level = next_level

    return merge_into(level[0], StatsAccumulator(), top_limit=top_limit)
