"""Batch aggregation, merging and ranking of review statistics."""

from .batch import aggregate_batch
from .merge import fold_linear, fold_tree, merge_into
from .pipeline import PipelineConfig, PipelineResult, build_report, run_pipeline
from .ranking import Report, rank
from .stats import CategoryStats, EntityStats, StatsAccumulator

__all__ = [
    "CategoryStats",
    "EntityStats",
    "PipelineConfig",
    "PipelineResult",
    "Report",
    "StatsAccumulator",
    "aggregate_batch",
    "build_report",
    "fold_linear",
    "fold_tree",
    "merge_into",
    "rank",
    "run_pipeline",
]
