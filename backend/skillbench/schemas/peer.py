from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from skillbench.schemas.common import DistributionType, ExperienceLevel, RelativePerformance


class ScoreRange(BaseModel):
    min: float
    max: float


class SkillDistribution(BaseModel):
    """Five-point summary of a cohort. Never holds individual data points."""

    p25: float
    p50: float
    p75: float
    p90: float
    std_dev: float = Field(0.0, ge=0)
    range: ScoreRange

    @model_validator(mode="after")
    def check_ordering(self) -> "SkillDistribution":
        knots = [self.range.min, self.p25, self.p50, self.p75, self.p90, self.range.max]
        if any(b < a for a, b in zip(knots, knots[1:])):
            raise ValueError("distribution points must be non-decreasing from min to max")
        return self


class PeerCohort(BaseModel):
    skill_id: str
    experience_level: ExperienceLevel
    region: Optional[str] = None
    member_count: int = Field(..., ge=0)
    mean_score: float
    distribution: SkillDistribution


class PeerGroupStats(BaseModel):
    group_size: int
    average_score: float
    median_score: float
    top_percentile_threshold: float
    skill_distribution: SkillDistribution
    experience_level: ExperienceLevel
    region: Optional[str] = None


class ConfidenceInterval(BaseModel):
    lower: float
    upper: float


class AnonymizedPeerComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    comparison_id: str
    user_id: str
    skill_id: str
    user_percentile: float
    peer_group_stats: PeerGroupStats
    relative_performance: RelativePerformance
    improvement_potential: float = Field(..., ge=0, le=100)
    anonymized_insights: List[str]
    comparison_date: datetime


class PeerRanking(BaseModel):
    ranking_id: str
    skill_id: str
    anonymized_rank: str
    percentile_range: str
    peer_group_size: int
    confidence_interval: ConfidenceInterval
    last_updated: datetime


class StatisticalAnalysis(BaseModel):
    skill_id: Optional[str] = None
    sample_size: int
    mean: float
    median: float
    standard_deviation: float
    variance: float
    skewness: float
    kurtosis: float
    confidence_interval_95: ConfidenceInterval
    outlier_thresholds: ConfidenceInterval
    distribution_type: DistributionType
