"""
Job Opportunity Matching - Weighted Skill and Experience Fit

Scores every catalog opportunity against a user's skill snapshot:

    skills_match     = 100 * sum(weight_i * meets_i) / sum(weight_i)
                       over required + optional skills, where meets_i is 1
                       when the user's level >= the requirement's minimum
    experience_match = 100 when the user's level index >= the job's,
                       otherwise max(0, 100 - 25 * level_gap)
    match_score      = 0.7 * skills_match + 0.3 * experience_match

Only opportunities scoring at least the threshold (default 60) are
returned, best first. The sort is stable, so ties keep catalog order.
"""

from typing import Iterable, List, Optional

from skillbench.schemas.common import ExperienceLevel
from skillbench.schemas.progress import SkillSnapshot
from skillbench.schemas.readiness import JobOpportunity

SKILLS_WEIGHT = 0.7
EXPERIENCE_WEIGHT = 0.3
LEVEL_GAP_PENALTY = 25
DEFAULT_MATCH_THRESHOLD = 60.0


def skills_match(snapshot: SkillSnapshot, opportunity: JobOpportunity) -> float:
    requirements = list(opportunity.required_skills) + list(opportunity.optional_skills)
    total_weight = sum(r.weight for r in requirements)
    if total_weight <= 0:
        return 0.0

    matched_weight = 0.0
    for requirement in requirements:
        observation = snapshot.get(requirement.skill_id)
        if observation is not None and observation.current_level >= requirement.minimum_level:
            matched_weight += requirement.weight

    return 100.0 * matched_weight / total_weight


def experience_match(user_level: ExperienceLevel, required_level: ExperienceLevel) -> float:
    level_gap = required_level.index - user_level.index
    if level_gap <= 0:
        return 100.0
    return float(max(0, 100 - LEVEL_GAP_PENALTY * level_gap))


def filter_catalog(
    catalog: Iterable[JobOpportunity],
    target_role: Optional[str] = None,
    target_industry: Optional[str] = None,
) -> List[JobOpportunity]:
    """Narrow the catalog by title substring and industry (both case-insensitive)."""
    role = target_role.strip().lower() if target_role else None
    industry = target_industry.strip().lower() if target_industry else None

    return [
        opportunity
        for opportunity in catalog
        if (not role or role in opportunity.title.lower())
        and (not industry or industry == opportunity.industry.lower())
    ]


def match_opportunities(
    snapshot: SkillSnapshot,
    user_level: ExperienceLevel,
    catalog: Iterable[JobOpportunity],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    target_role: Optional[str] = None,
    target_industry: Optional[str] = None,
) -> List[JobOpportunity]:
    """
    Score, filter and rank job opportunities for a user.

    Args:
        snapshot: User's skills keyed by skill_id
        user_level: User's classified experience level
        catalog: Candidate opportunities (not mutated)
        threshold: Minimum match score to keep an opportunity
        target_role: Optional title filter applied before scoring
        target_industry: Optional industry filter applied before scoring

    Returns:
        Copies of the matching opportunities with match fields filled in,
        sorted by match_score descending

    Example:
        >>> matches = match_opportunities(snapshot, ExperienceLevel.MID, catalog)
        >>> [m.match_score for m in matches]
        [100.0, 82.5]
    """
    scored: List[JobOpportunity] = []

    for opportunity in filter_catalog(catalog, target_role, target_industry):
        skills_score = skills_match(snapshot, opportunity)
        experience_score = experience_match(user_level, opportunity.experience_level)
        match_score = round(SKILLS_WEIGHT * skills_score + EXPERIENCE_WEIGHT * experience_score, 1)

        if match_score < threshold:
            continue

        scored.append(
            opportunity.model_copy(
                update={
                    "match_score": match_score,
                    "skills_match": round(skills_score, 1),
                    "experience_match": round(experience_score, 1),
                }
            )
        )

    scored.sort(key=lambda o: o.match_score, reverse=True)
    return scored
