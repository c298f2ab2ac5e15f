"""Synthetic review data generation."""

from .review_generator import ReviewDataGenerator

__all__ = ["ReviewDataGenerator"]
