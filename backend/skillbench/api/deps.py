from fastapi import Request

from skillbench.services.engine import BenchmarkEngine


def get_engine(request: Request) -> BenchmarkEngine:
    """Engine built during application startup."""
    return request.app.state.engine
