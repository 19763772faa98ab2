from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from skillbench.api.deps import get_engine
from skillbench.schemas import BenchmarkComparison, MarketReadinessAssessment
from skillbench.services.engine import BenchmarkEngine

router = APIRouter()


@router.get("/users/{user_id}/industry", response_model=List[BenchmarkComparison])
async def compare_to_industry(
    user_id: str,
    target_experience_level: Optional[str] = Query(None, description="entry, junior, mid, senior, lead or principal"),
    engine: BenchmarkEngine = Depends(get_engine),
):
    return await engine.compare_to_industry(user_id, target_experience_level)


@router.get("/users/{user_id}/readiness", response_model=MarketReadinessAssessment)
async def market_readiness(
    user_id: str,
    target_role: Optional[str] = Query(None, max_length=100),
    target_industry: Optional[str] = Query(None, max_length=100),
    engine: BenchmarkEngine = Depends(get_engine),
):
    return await engine.generate_market_readiness_assessment(user_id, target_role, target_industry)
