"""
Shared enumerations.

Level and band names arrive as strings from reference data, query strings
and stored aggregates; they are parsed into these enums at the boundary so
an unknown value fails immediately instead of silently falling through a
lookup table mid-pipeline.
"""

from enum import Enum
from typing import List

from skillbench.exceptions import InvalidExperienceLevelError


class ExperienceLevel(str, Enum):
    """Career experience bands, ordered from least to most senior."""

    ENTRY = "entry"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    PRINCIPAL = "principal"

    @property
    def index(self) -> int:
        return _LEVEL_ORDER.index(self)

    @classmethod
    def parse(cls, value: "str | ExperienceLevel") -> "ExperienceLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidExperienceLevelError(str(value)) from None


_LEVEL_ORDER: List[ExperienceLevel] = list(ExperienceLevel)


class PerformanceLevel(str, Enum):
    BELOW_AVERAGE = "below_average"
    AVERAGE = "average"
    ABOVE_AVERAGE = "above_average"
    EXCEPTIONAL = "exceptional"


class RelativePerformance(str, Enum):
    WELL_BELOW = "well_below"
    BELOW = "below"
    AVERAGE = "average"
    ABOVE = "above"
    WELL_ABOVE = "well_above"


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    CHALLENGING = "challenging"
    DIFFICULT = "difficult"


class DistributionType(str, Enum):
    NORMAL = "normal"
    SKEWED_LEFT = "skewed_left"
    SKEWED_RIGHT = "skewed_right"
    BIMODAL = "bimodal"
    UNIFORM = "uniform"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MarketValue(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXCEPTIONAL = "exceptional"


class ActionType(str, Enum):
    SKILL_DEVELOPMENT = "skill_development"
    CERTIFICATION = "certification"
    PROJECT_EXPERIENCE = "project_experience"
    NETWORKING = "networking"
