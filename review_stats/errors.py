"""Exceptions raised by the review statistics pipeline."""
from __future__ import annotations


class ReviewStatsError(Exception):
    """Base class for errors that abort a pipeline run."""


class InvalidInputPath(ReviewStatsError, ValueError):
    """The input path does not exist or is not a directory."""


class WorkerPoolError(ReviewStatsError, RuntimeError):
    """The worker pool could not be created."""


class InvariantViolation(ReviewStatsError, AssertionError):
    """Accumulated statistics are internally inconsistent."""
