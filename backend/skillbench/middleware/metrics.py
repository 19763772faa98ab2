"""
Prometheus Metrics Middleware

Provides request/response metrics for monitoring:
- HTTP request latency (p50, p95, p99)
- Request count by endpoint and status
- Active request gauge
- Stats cache hit/miss rates

Domain metrics:
- Market readiness assessment latency
- Per-skill comparisons skipped, by reason
- Cohorts withheld by the minimum group size gate
- Peer observations recorded

Usage:
    from skillbench.middleware.metrics import setup_metrics

    # In main.py
    app = FastAPI()
    setup_metrics(app)

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method", "endpoint"]
)

# Cache metrics
CACHE_HITS = Counter(
    "cache_hits_total",
    "Total cache hits",
    ["layer"]  # peer_stats, analysis
)

CACHE_MISSES = Counter(
    "cache_misses_total",
    "Total cache misses",
    ["layer"]
)

# Engine metrics
ASSESSMENT_LATENCY = Histogram(
    "readiness_assessment_seconds",
    "Time to produce a market readiness assessment",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

COMPARISONS_SKIPPED = Counter(
    "comparisons_skipped_total",
    "Per-skill comparisons dropped from a result",
    ["kind", "reason"]  # kind: industry, peer; reason: no_benchmark, timeout, upstream_error, ...
)

COHORTS_SUPPRESSED = Counter(
    "peer_cohorts_suppressed_total",
    "Peer cohorts withheld because they are below the minimum group size"
)

OBSERVATIONS_RECORDED = Counter(
    "peer_observations_recorded_total",
    "Anonymized observations folded into peer cohorts"
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for Prometheus metrics collection.

    Records:
    - Request latency
    - Request count by status code
    - Active request count
    """

    def __init__(self, app: FastAPI, app_name: str = "skillbench"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        """Process request and record metrics."""
        endpoint = self._get_endpoint(request)
        method = request.method

        if endpoint == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status = str(response.status_code)
        except Exception as e:
            status = "500"
            logger.error(f"Request error: {e}")
            raise
        finally:
            duration = time.perf_counter() - start_time

            REQUEST_LATENCY.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).observe(duration)

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            ACTIVE_REQUESTS.labels(
                method=method,
                endpoint=endpoint
            ).dec()

        return response

    def _get_endpoint(self, request: Request) -> str:
        """
        Get normalized endpoint path from request.

        Uses the route pattern (e.g. /api/peers/stats/{skill_id}/{experience_level})
        so user ids and skill ids do not become label values.
        """
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return route.path

        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    """Prometheus scrape endpoint."""
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI) -> None:
    """
    Configure Prometheus metrics for FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(PrometheusMiddleware, app_name="skillbench")
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    logger.info("Prometheus metrics configured")


# ==================== Helper Functions ====================

def record_cache_hit(layer: str) -> None:
    CACHE_HITS.labels(layer=layer).inc()


def record_cache_miss(layer: str) -> None:
    CACHE_MISSES.labels(layer=layer).inc()


def record_assessment_latency(duration: float) -> None:
    ASSESSMENT_LATENCY.observe(duration)


def record_comparison_skipped(kind: str, reason: str) -> None:
    """Record a per-skill comparison dropped from a result (kind: industry/peer)."""
    COMPARISONS_SKIPPED.labels(kind=kind, reason=reason).inc()


def record_cohort_suppressed() -> None:
    COHORTS_SUPPRESSED.inc()


def record_observation() -> None:
    OBSERVATIONS_RECORDED.inc()
