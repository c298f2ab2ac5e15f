"""Per-batch partial aggregation (the map stage)."""
from __future__ import annotations

import pandas as pd

from review_stats.aggregations.stats import StatsAccumulator
from review_stats.ingest.records import CATEGORY, ENTITY, TEXT, WEIGHT
from review_stats.settings import TOP_RECORDS_LIMIT


def aggregate_batch(batch: pd.DataFrame, *, top_limit: int = TOP_RECORDS_LIMIT) -> StatsAccumulator:
    """Summarise one decoded batch into a fresh :class:`StatsAccumulator`.

    Pure function of ``batch``: it touches no shared state, so any number of
    workers can run it concurrently. Category record lists are capped to
    ``top_limit`` here already; capping again when partials are merged gives
    the same result as capping once over all records.
    """
    stats = StatsAccumulator()
    if batch.empty:
        return stats

    # Best record first: highest weight, then lowest text.
    ranked = batch.sort_values([WEIGHT, TEXT], ascending=[False, True], kind="mergesort")

    pair_counts = batch.groupby([ENTITY, CATEGORY], sort=True).size()
    for (entity, category), count in pair_counts.items():
        stats.entity(entity).add_count(category, int(count))

    best = ranked.drop_duplicates(subset=[ENTITY, CATEGORY], keep="first")
    for entity, category, text, weight in best[[ENTITY, CATEGORY, TEXT, WEIGHT]].itertuples(index=False, name=None):
        stats.entity(entity).offer_best(category, (text, int(weight)))

    category_counts = batch[CATEGORY].value_counts(sort=False)
    for category, count in category_counts.items():
        stats.category(category).total_count += int(count)

    top = ranked.groupby(CATEGORY, sort=False).head(top_limit)
    for category, text, weight in top[[CATEGORY, TEXT, WEIGHT]].itertuples(index=False, name=None):
        stats.category(category).top_records.append((text, int(weight)))

    return stats
