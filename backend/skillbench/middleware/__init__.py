"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus metrics collection
- Engine-level metric helpers
"""

from skillbench.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
    CACHE_HITS,
    CACHE_MISSES,
    ASSESSMENT_LATENCY,
    COMPARISONS_SKIPPED,
    COHORTS_SUPPRESSED,
    OBSERVATIONS_RECORDED,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "CACHE_HITS",
    "CACHE_MISSES",
    "ASSESSMENT_LATENCY",
    "COMPARISONS_SKIPPED",
    "COHORTS_SUPPRESSED",
    "OBSERVATIONS_RECORDED",
]
