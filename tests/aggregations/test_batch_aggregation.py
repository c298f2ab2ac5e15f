"""Tests for the per-batch map stage."""

import random

from review_stats.aggregations.batch import aggregate_batch
from review_stats.aggregations.stats import StatsAccumulator, cap_records
from review_stats.ingest.records import Record, records_to_frame


def reference_aggregate(records, top_limit=10):
    """Record-at-a-time aggregation used as an oracle for the vectorised version."""
    stats = StatsAccumulator()
    for record in records:
        entity = stats.entity(record.entity_name)
        entity.add_count(record.category, 1)
        entity.offer_best(record.category, (record.text, record.weight))
        category = stats.category(record.category)
        category.total_count += 1
        category.top_records.append((record.text, record.weight))
    for category in stats.categories.values():
        category.top_records = cap_records(category.top_records, top_limit)
    return stats


def test_aggregate_batch_counts_and_best_records():
    batch = records_to_frame(
        [
            Record("EntityA", "en", "great", 5),
            Record("EntityA", "en", "ok", 9),
            Record("EntityA", "es", "bien", 2),
            Record("EntityB", "es", "excelente", 7),
        ]
    )

    stats = aggregate_batch(batch)

    entity_a = stats.entities["EntityA"]
    assert entity_a.total_count == 3
    assert entity_a.count_by_category == {"en": 2, "es": 1}
    assert entity_a.best_by_category == {"en": ("ok", 9), "es": ("bien", 2)}
    assert stats.entities["EntityB"].best_by_category == {"es": ("excelente", 7)}

    assert stats.categories["en"].total_count == 2
    assert stats.categories["en"].top_records == [("ok", 9), ("great", 5)]
    assert stats.categories["es"].top_records == [("excelente", 7), ("bien", 2)]
    stats.check_invariants()


def test_equal_weights_prefer_lowest_text():
    batch = records_to_frame(
        [
            Record("EntityA", "en", "zebra", 4),
            Record("EntityA", "en", "apple", 4),
            Record("EntityA", "en", "mango", 4),
        ]
    )

    stats = aggregate_batch(batch)

    assert stats.entities["EntityA"].best_by_category["en"] == ("apple", 4)
    assert stats.categories["en"].top_records == [("apple", 4), ("mango", 4), ("zebra", 4)]


def test_category_lists_are_capped_per_batch():
    batch = records_to_frame([Record("EntityA", "en", f"r{i:02d}", i) for i in range(25)])

    stats = aggregate_batch(batch, top_limit=10)

    top = stats.categories["en"].top_records
    assert len(top) == 10
    assert [weight for _, weight in top] == list(range(24, 14, -1))
    assert stats.categories["en"].total_count == 25


def test_empty_batch_gives_empty_stats():
    stats = aggregate_batch(records_to_frame([]))

    assert stats.entities == {}
    assert stats.categories == {}
    assert stats.record_count == 0


def test_matches_record_at_a_time_reference():
    rng = random.Random(7)
    records = [
        Record(
            rng.choice(["A", "B", "C", ""]),
            rng.choice(["en", "es", "de"]),
            rng.choice(["x", "y", "z", "w", "v"]) + str(rng.randint(0, 3)),
            rng.randint(0, 6),
        )
        for _ in range(500)
    ]

    assert aggregate_batch(records_to_frame(records)) == reference_aggregate(records)


def test_batch_is_not_modified():
    batch = records_to_frame([Record("EntityA", "en", "b", 1), Record("EntityA", "en", "a", 2)])
    before = batch.copy()

    aggregate_batch(batch)

    assert batch.equals(before)
