from fastapi import APIRouter
from skillbench.api import benchmarks, peers

api_router = APIRouter(prefix="/api")
api_router.include_router(benchmarks.router, prefix="/benchmarks", tags=["benchmarks"])
api_router.include_router(peers.router, prefix="/peers", tags=["peers"])
