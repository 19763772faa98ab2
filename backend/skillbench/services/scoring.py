"""
Score Normalizer - Skill Level to Comparable Score

Maps a skill's (level, experience points) pair to a single 0-100 score:

    score = min(100, level * 20 + min(20, xp / 50))

Level dominates (five buckets of 20 points); experience adds a bounded
bonus of up to 20 points so two users at the same level remain
distinguishable. Inputs are clamped, never rejected.

Also classifies a whole snapshot into an experience band from the
average level and total experience across all skills.
"""

from typing import Iterable, List, Tuple

from skillbench.schemas.common import ExperienceLevel
from skillbench.schemas.progress import SkillObservation

MAX_LEVEL = 5
POINTS_PER_LEVEL = 20
XP_PER_BONUS_POINT = 50
MAX_XP_BONUS = 20

# (minimum average level, minimum total XP, band), most senior first
EXPERIENCE_THRESHOLDS: List[Tuple[float, int, ExperienceLevel]] = [
    (4.0, 2000, ExperienceLevel.PRINCIPAL),
    (3.5, 1500, ExperienceLevel.LEAD),
    (3.0, 1000, ExperienceLevel.SENIOR),
    (2.5, 500, ExperienceLevel.MID),
    (2.0, 200, ExperienceLevel.JUNIOR),
]


def normalize_score(level: int, experience_points: int) -> float:
    """
    Convert a skill level and experience points to a 0-100 score.

    Args:
        level: Skill level, nominally 1-5 (clamped to 0-5)
        experience_points: Accumulated XP (negative values treated as 0)

    Returns:
        Score in [0, 100]

    Example:
        >>> normalize_score(4, 1200)
        100.0
        >>> normalize_score(2, 250)
        45.0
    """
    level = max(0, min(MAX_LEVEL, level))
    experience_points = max(0, experience_points)

    base_score = level * POINTS_PER_LEVEL
    experience_bonus = min(MAX_XP_BONUS, experience_points / XP_PER_BONUS_POINT)
    return float(max(0.0, min(100.0, base_score + experience_bonus)))


def score_observation(observation: SkillObservation) -> float:
    return normalize_score(observation.current_level, observation.experience_points)


def classify_experience_level(observations: Iterable[SkillObservation]) -> ExperienceLevel:
    """
    Classify a user's overall experience band.

    Uses the average skill level and the total experience points across
    all skills. An empty snapshot is classified as entry level.
    """
    observations = list(observations)
    if not observations:
        return ExperienceLevel.ENTRY

    average_level = sum(o.current_level for o in observations) / len(observations)
    total_experience = sum(o.experience_points for o in observations)

    for min_average, min_total, level in EXPERIENCE_THRESHOLDS:
        if average_level >= min_average and total_experience >= min_total:
            return level
    return ExperienceLevel.ENTRY
