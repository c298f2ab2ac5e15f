"""Review statistics pipeline package."""

from importlib.metadata import PackageNotFoundError, version

__all__ = [
    "__version__",
]

try:
    __version__ = version("review-stats")
except PackageNotFoundError:  # pragma: no cover - distribution not installed
    __version__ = "0.0.0"
