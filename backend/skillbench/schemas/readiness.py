from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from skillbench.schemas.benchmark import ExperienceLevelProfile, SalaryRange
from skillbench.schemas.common import ActionType, ExperienceLevel, MarketValue, Priority


class LearningResource(BaseModel):
    resource_id: str
    type: str = Field(..., pattern="^(course|tutorial|documentation|project|certification)$")
    title: str
    description: str = ""
    url: Optional[str] = None
    provider: str = ""
    difficulty: str = Field("intermediate", pattern="^(beginner|intermediate|advanced)$")
    estimated_duration: int = 0
    cost: float = 0
    currency: str = "USD"
    rating: Optional[float] = None
    review_count: Optional[int] = None


class SkillGap(BaseModel):
    skill_id: str
    skill_name: str
    current_level: float
    required_level: float
    industry_average: float
    score_gap: float
    priority: Priority
    estimated_time_to_close: int
    recommended_resources: List[LearningResource] = []


class SkillStrength(BaseModel):
    skill_id: str
    skill_name: str
    current_level: float
    industry_percentile: int
    market_value: MarketValue
    related_opportunities: List[str] = []


class RecommendedAction(BaseModel):
    action_id: str
    type: ActionType
    title: str
    description: str
    priority: Priority
    estimated_effort: int
    expected_impact: float
    resources: List[LearningResource] = []


class SkillRequirement(BaseModel):
    skill_id: str
    skill_name: str = ""
    minimum_level: int = Field(..., ge=0, le=5)
    weight: float = Field(..., ge=0, le=1)
    category: str = Field("technical", pattern="^(technical|soft|domain)$")


class JobOpportunity(BaseModel):
    opportunity_id: str
    title: str
    company: str
    location: str = ""
    remote: bool = False
    industry: str = "Software Development"
    experience_level: ExperienceLevel
    required_skills: List[SkillRequirement] = []
    optional_skills: List[SkillRequirement] = []
    salary_range: Optional[SalaryRange] = None
    match_score: float = 0
    skills_match: float = 0
    experience_match: float = 0
    description: str = ""
    application_url: Optional[str] = None
    posted_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None


class MarketReadinessAssessment(BaseModel):
    assessment_id: str
    user_id: str
    overall_readiness: float = Field(..., ge=0, le=100)
    experience_level: ExperienceLevelProfile
    skill_gaps: List[SkillGap]
    strengths: List[SkillStrength]
    recommended_actions: List[RecommendedAction]
    job_opportunities: List[JobOpportunity]
    assessment_date: datetime
    next_review_date: datetime
