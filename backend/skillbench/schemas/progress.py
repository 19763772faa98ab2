from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SkillObservation(BaseModel):
    """
    One skill from a user's progress snapshot.

    Out-of-range values are clamped rather than rejected: a freshly
    initialised skill may legitimately arrive as level 0 / 0 XP.
    """

    model_config = ConfigDict(frozen=True)

    skill_id: str
    skill_name: str = ""
    current_level: int = 0
    experience_points: int = 0

    @field_validator("current_level", mode="before")
    @classmethod
    def clamp_level(cls, value) -> int:
        return max(0, min(5, int(value or 0)))

    @field_validator("experience_points", mode="before")
    @classmethod
    def clamp_experience(cls, value) -> int:
        return max(0, int(value or 0))

    @property
    def display_name(self) -> str:
        return self.skill_name or self.skill_id


# skill_id -> observation
SkillSnapshot = Dict[str, SkillObservation]

# anonymization_level -> multiplier on the configured peer noise amplitude
NOISE_MULTIPLIERS = {"basic": 0.5, "enhanced": 1.0, "maximum": 2.0}


class PrivacySettings(BaseModel):
    """Per-user consent for contributing to peer cohorts."""

    enable_peer_comparison: bool = True
    share_skill_levels: bool = True
    share_experience_data: bool = True
    share_progress_trends: bool = False
    anonymization_level: str = Field("enhanced", pattern="^(basic|enhanced|maximum)$")
    opt_out_of_aggregation: bool = False

    @property
    def allows_aggregation(self) -> bool:
        return (
            self.enable_peer_comparison
            and self.share_skill_levels
            and not self.opt_out_of_aggregation
        )

    @property
    def noise_multiplier(self) -> float:
        return NOISE_MULTIPLIERS[self.anonymization_level]
