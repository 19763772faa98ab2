"""
Market Readiness Assessor - Gaps, Strengths, Actions and Overall Score

Turns a set of BenchmarkComparisons into the parts of a
MarketReadinessAssessment:

    - skill gaps: comparisons performing below average, prioritized by
      score gap (>20 critical, >10 high, else medium), largest gap first
    - strengths: above-average and exceptional comparisons, valued by
      percentile (>90 exceptional, >75 high, >50 medium, else low),
      highest percentile first
    - recommended actions: one skill-development action for each of the
      top three gaps, plus a networking action for each of the top two
      strengths rated high or exceptional
    - overall readiness: average percentile - 5 per gap + 3 per strength,
      clamped to 0-100

A comparison lands in at most one of gaps / strengths: "average"
comparisons are in neither.
"""

from typing import Callable, List, Sequence

from skillbench.schemas.benchmark import BenchmarkComparison
from skillbench.schemas.common import ActionType, MarketValue, PerformanceLevel, Priority
from skillbench.schemas.readiness import (
    LearningResource,
    RecommendedAction,
    SkillGap,
    SkillStrength,
)

GAP_PENALTY = 5
STRENGTH_BONUS = 3
MAX_GAP_ACTIONS = 3
MAX_STRENGTH_ACTIONS = 2
HOURS_PER_WEEK = 10
STRENGTH_ACTION_EFFORT = 20
STRENGTH_ACTION_IMPACT = 80

STRENGTH_LEVELS = (PerformanceLevel.ABOVE_AVERAGE, PerformanceLevel.EXCEPTIONAL)


def _no_resources(skill_id: str) -> List[LearningResource]:
    return []


def _no_opportunities(skill_id: str) -> List[str]:
    return []


def gap_priority(score_gap: float) -> Priority:
    if score_gap > 20:
        return Priority.CRITICAL
    if score_gap > 10:
        return Priority.HIGH
    return Priority.MEDIUM


def market_value(percentile: float) -> MarketValue:
    if percentile > 90:
        return MarketValue.EXCEPTIONAL
    if percentile > 75:
        return MarketValue.HIGH
    if percentile > 50:
        return MarketValue.MEDIUM
    return MarketValue.LOW


def identify_skill_gaps(
    comparisons: Sequence[BenchmarkComparison],
    resources_for: Callable[[str], List[LearningResource]] = _no_resources,
) -> List[SkillGap]:
    gaps = [
        SkillGap(
            skill_id=c.skill_id,
            skill_name=c.industry_benchmark.skill_name,
            current_level=c.user_score,
            required_level=c.industry_benchmark.average_score,
            industry_average=c.industry_benchmark.average_score,
            score_gap=c.gap_analysis.score_gap,
            priority=gap_priority(c.gap_analysis.score_gap),
            estimated_time_to_close=c.gap_analysis.time_to_target,
            recommended_resources=resources_for(c.skill_id),
        )
        for c in comparisons
        if c.performance_level == PerformanceLevel.BELOW_AVERAGE
    ]
    gaps.sort(key=lambda g: g.score_gap, reverse=True)
    return gaps


def identify_strengths(
    comparisons: Sequence[BenchmarkComparison],
    opportunities_for: Callable[[str], List[str]] = _no_opportunities,
) -> List[SkillStrength]:
    strengths = [
        SkillStrength(
            skill_id=c.skill_id,
            skill_name=c.industry_benchmark.skill_name,
            current_level=c.user_score,
            industry_percentile=c.percentile_rank,
            market_value=market_value(c.percentile_rank),
            related_opportunities=opportunities_for(c.skill_id),
        )
        for c in comparisons
        if c.performance_level in STRENGTH_LEVELS
    ]
    strengths.sort(key=lambda s: s.industry_percentile, reverse=True)
    return strengths


def generate_recommended_actions(
    skill_gaps: Sequence[SkillGap],
    strengths: Sequence[SkillStrength],
) -> List[RecommendedAction]:
    actions: List[RecommendedAction] = []

    for gap in skill_gaps[:MAX_GAP_ACTIONS]:
        actions.append(
            RecommendedAction(
                action_id=f"action_gap_{gap.skill_id}",
                type=ActionType.SKILL_DEVELOPMENT,
                title=f"Improve {gap.skill_name} Skills",
                description=f"Focus on closing the gap in {gap.skill_name} to reach industry standards",
                priority=gap.priority,
                estimated_effort=gap.estimated_time_to_close * HOURS_PER_WEEK,
                expected_impact=min(100.0, gap.required_level - gap.current_level),
                resources=gap.recommended_resources,
            )
        )

    for strength in strengths[:MAX_STRENGTH_ACTIONS]:
        if strength.market_value not in (MarketValue.HIGH, MarketValue.EXCEPTIONAL):
            continue
        actions.append(
            RecommendedAction(
                action_id=f"action_strength_{strength.skill_id}",
                type=ActionType.NETWORKING,
                title=f"Leverage {strength.skill_name} Expertise",
                description=(
                    f"Your {strength.skill_name} skills are above average. "
                    f"Consider mentoring others or seeking leadership opportunities."
                ),
                priority=Priority.MEDIUM,
                estimated_effort=STRENGTH_ACTION_EFFORT,
                expected_impact=STRENGTH_ACTION_IMPACT,
            )
        )

    return actions


def calculate_overall_readiness(
    comparisons: Sequence[BenchmarkComparison],
    gap_count: int,
    strength_count: int,
) -> float:
    """
    Composite readiness score in [0, 100].

    Example:
        >>> calculate_overall_readiness([c90, c25], gap_count=1, strength_count=1)
        55.5
    """
    if not comparisons:
        return 0.0

    average_percentile = sum(c.percentile_rank for c in comparisons) / len(comparisons)
    readiness = average_percentile - GAP_PENALTY * gap_count + STRENGTH_BONUS * strength_count
    return round(max(0.0, min(100.0, readiness)), 2)
