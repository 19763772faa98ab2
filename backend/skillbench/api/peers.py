from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from skillbench.api.deps import get_engine
from skillbench.exceptions import InsufficientDataError
from skillbench.schemas import (
    AnalysisRequest,
    AnonymizedPeerComparison,
    ExperienceLevel,
    ObservationRequest,
    ObservationResponse,
    PeerGroupStats,
    PeerRanking,
    StatisticalAnalysis,
)
from skillbench.services.engine import BenchmarkEngine

router = APIRouter()


@router.get("/users/{user_id}/comparisons", response_model=List[AnonymizedPeerComparison])
async def compare_to_peers(
    user_id: str,
    skill_id: Optional[str] = None,
    experience_level: Optional[str] = None,
    engine: BenchmarkEngine = Depends(get_engine),
):
    return await engine.compare_to_peers(user_id, skill_id, experience_level)


@router.get("/users/{user_id}/rankings/{skill_id}", response_model=PeerRanking)
async def anonymized_ranking(
    user_id: str,
    skill_id: str,
    engine: BenchmarkEngine = Depends(get_engine),
):
    ranking = await engine.generate_anonymized_ranking(user_id, skill_id)
    if ranking is None:
        raise HTTPException(status_code=404, detail="Ranking not available for this skill")
    return ranking


@router.post("/users/{user_id}/observations", response_model=ObservationResponse)
async def record_observations(
    user_id: str,
    body: ObservationRequest,
    engine: BenchmarkEngine = Depends(get_engine),
):
    recorded = await engine.record_user_progress(user_id, body.privacy, body.region)
    return ObservationResponse(user_id=user_id, recorded=recorded)


@router.get("/stats/{skill_id}/{experience_level}", response_model=PeerGroupStats)
async def peer_group_stats(
    skill_id: str,
    experience_level: str,
    region: Optional[str] = Query(None, max_length=64),
    engine: BenchmarkEngine = Depends(get_engine),
):
    stats = await engine.get_peer_group_stats(skill_id, ExperienceLevel.parse(experience_level), region)
    if stats is None:
        raise HTTPException(status_code=404, detail="Peer group not available")
    return stats


@router.get("/analysis/{skill_id}/{experience_level}", response_model=StatisticalAnalysis)
async def cohort_analysis(
    skill_id: str,
    experience_level: str,
    engine: BenchmarkEngine = Depends(get_engine),
):
    analysis = await engine.perform_statistical_analysis(skill_id, ExperienceLevel.parse(experience_level))
    if analysis is None:
        raise HTTPException(status_code=404, detail="Not enough data for analysis")
    return analysis


@router.post("/analysis", response_model=StatisticalAnalysis)
async def sample_analysis(
    body: AnalysisRequest,
    engine: BenchmarkEngine = Depends(get_engine),
):
    analysis = engine.analyze_values(body.values)
    if analysis is None:
        raise InsufficientDataError(len(body.values), engine.min_group_size)
    return analysis
