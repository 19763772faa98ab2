"""
Skill Benchmark API - Main Application Entry Point

This module initializes the FastAPI application with:
- Database connection and schema initialization
- Reference dataset loading and periodic refresh
- Benchmark engine wiring (stores, reference data, cache)
- CORS middleware for frontend communication
- Prometheus metrics and error handling
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware (localhost:3000)
    ├── Prometheus Middleware (/metrics)
    └── API Router (/api)
        ├── /benchmarks - Industry comparison and market readiness
        └── /peers - Anonymized peer comparison, rankings and statistics
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skillbench.api import api_router
from skillbench.api.deps import get_engine
from skillbench.config import get_settings
from skillbench.database import async_session, init_db
from skillbench.exceptions import BenchmarkEngineError
from skillbench.middleware.metrics import setup_metrics
from skillbench.scheduler import start_scheduler, stop_scheduler
from skillbench.services.cache import get_cache
from skillbench.services.engine import BenchmarkEngine
from skillbench.services.peer_cohorts import PeerCohortStore
from skillbench.services.progress_store import SkillProgressRepository
from skillbench.services.reference_data import ReferenceDataStore

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_dir(database_url: str) -> None:
    if database_url.startswith("sqlite") and ":///" in database_url:
        db_path = database_url.split(":///", 1)[1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Initialize database tables
        2. Load reference datasets (fails fast if malformed)
        3. Build the benchmark engine
        4. Start the reference data refresh scheduler

    Shutdown:
        1. Stop the scheduler
        2. Close the Redis connection
    """
    _ensure_sqlite_dir(settings.database_url)
    await init_db()

    reference = ReferenceDataStore.from_paths(settings.benchmark_dataset_path, settings.job_catalog_path)
    cache = await get_cache(settings.redis_url)

    app.state.reference = reference
    app.state.engine = BenchmarkEngine(
        snapshots=SkillProgressRepository(async_session),
        benchmarks=reference,
        cohorts=PeerCohortStore(
            async_session,
            noise_amplitude=settings.peer_noise_amplitude,
            contributor_salt=settings.peer_contributor_salt,
        ),
        catalog=reference,
        reference=reference,
        settings=settings,
        cache=cache,
    )

    start_scheduler(reference)
    yield
    stop_scheduler()
    await cache.close()


app = FastAPI(
    title="Skill Benchmark API",
    description="Industry benchmarking and privacy-preserving peer comparison",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)


@app.exception_handler(BenchmarkEngineError)
async def engine_error_handler(request: Request, exc: BenchmarkEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router)


@app.get("/health")
async def health_check(engine: BenchmarkEngine = Depends(get_engine)):
    """Liveness plus cache reachability; an unreachable cache only degrades caching."""
    if engine.cache is None:
        cache_status = "disabled"
    elif await engine.cache.health_check():
        cache_status = "ok"
    else:
        cache_status = "unavailable"
    return {"status": "healthy", "cache": cache_status}
