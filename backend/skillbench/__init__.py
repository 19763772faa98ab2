"""Industry benchmarking and privacy-preserving peer comparison."""

__version__ = "0.1.0"
