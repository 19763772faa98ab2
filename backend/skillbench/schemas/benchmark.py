from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skillbench.schemas.common import DifficultyLevel, ExperienceLevel, PerformanceLevel


class PercentileRange(BaseModel):
    percentile: int = Field(..., ge=0, le=100)
    min_score: float
    max_score: float
    description: str = ""


class SalaryRange(BaseModel):
    min: int
    max: int
    median: int
    currency: str = "USD"


class ExperienceLevelProfile(BaseModel):
    level: ExperienceLevel
    years_of_experience: int = 0
    description: str = ""
    required_skills: List[str] = []
    typical_responsibilities: List[str] = []


class IndustryBenchmark(BaseModel):
    """Benchmark curve for one skill at one experience level."""

    benchmark_id: str
    skill_id: str
    skill_name: str
    industry: str = "Software Development"
    experience_level: ExperienceLevel
    average_score: float
    percentile_ranges: List[PercentileRange]
    sample_size: int = 0
    data_source: str = ""
    region: str = "Global"
    valid_until: Optional[datetime] = None
    salary_range: Optional[SalaryRange] = None

    @field_validator("percentile_ranges")
    @classmethod
    def sort_ranges(cls, ranges: List[PercentileRange]) -> List[PercentileRange]:
        return sorted(ranges, key=lambda r: r.percentile)


class GapAnalysis(BaseModel):
    score_gap: float
    percentile_gap: float
    time_to_target: int
    difficulty_level: DifficultyLevel
    key_improvement_areas: List[str] = []


class BenchmarkComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    comparison_id: str
    user_id: str
    skill_id: str
    user_score: float
    industry_benchmark: IndustryBenchmark
    percentile_rank: int
    performance_level: PerformanceLevel
    gap_analysis: GapAnalysis
    recommendations: List[str]
    comparison_date: datetime
