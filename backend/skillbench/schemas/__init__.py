from skillbench.schemas.common import (
    ActionType,
    DifficultyLevel,
    DistributionType,
    ExperienceLevel,
    MarketValue,
    PerformanceLevel,
    Priority,
    RelativePerformance,
)
from skillbench.schemas.progress import PrivacySettings, SkillObservation, SkillSnapshot
from skillbench.schemas.benchmark import (
    BenchmarkComparison,
    ExperienceLevelProfile,
    GapAnalysis,
    IndustryBenchmark,
    PercentileRange,
    SalaryRange,
)
from skillbench.schemas.peer import (
    AnonymizedPeerComparison,
    ConfidenceInterval,
    PeerCohort,
    PeerGroupStats,
    PeerRanking,
    ScoreRange,
    SkillDistribution,
    StatisticalAnalysis,
)
from skillbench.schemas.requests import AnalysisRequest, ObservationRequest, ObservationResponse
from skillbench.schemas.readiness import (
    JobOpportunity,
    LearningResource,
    MarketReadinessAssessment,
    RecommendedAction,
    SkillGap,
    SkillRequirement,
    SkillStrength,
)

__all__ = [
    "ActionType",
    "DifficultyLevel",
    "DistributionType",
    "ExperienceLevel",
    "MarketValue",
    "PerformanceLevel",
    "Priority",
    "RelativePerformance",
    "PrivacySettings",
    "SkillObservation",
    "SkillSnapshot",
    "BenchmarkComparison",
    "ExperienceLevelProfile",
    "GapAnalysis",
    "IndustryBenchmark",
    "PercentileRange",
    "SalaryRange",
    "AnonymizedPeerComparison",
    "ConfidenceInterval",
    "PeerCohort",
    "PeerGroupStats",
    "PeerRanking",
    "ScoreRange",
    "SkillDistribution",
    "StatisticalAnalysis",
    "JobOpportunity",
    "LearningResource",
    "MarketReadinessAssessment",
    "RecommendedAction",
    "SkillGap",
    "SkillRequirement",
    "SkillStrength",
    "AnalysisRequest",
    "ObservationRequest",
    "ObservationResponse",
]
