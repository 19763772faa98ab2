"""
Peer Comparison - Percentiles and Insights Against Anonymized Cohorts

A cohort is only ever seen through its SkillDistribution (min, p25, p50,
p75, p90, max) and member count. The user's percentile is read off that
summary by piecewise-linear interpolation between the known points:

    (min, 0) - (p25, 25) - (p50, 50) - (p75, 75) - (p90, 90) - (max, 100)

Privacy rules enforced here:
    - cohorts below the minimum group size are never compared against
    - insight strings come from fixed templates keyed only on the
      percentile band and a coarse cohort size band; no identifier of the
      subject or of any peer can reach them
"""

import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from skillbench.schemas.common import RelativePerformance
from skillbench.schemas.peer import (
    AnonymizedPeerComparison,
    ConfidenceInterval,
    PeerCohort,
    PeerGroupStats,
    PeerRanking,
    SkillDistribution,
)

MIN_GROUP_SIZE = 10
Z_95 = 1.96

LARGE_COHORT = 100


def _knots(distribution: SkillDistribution) -> List[Tuple[float, float]]:
    return [
        (distribution.range.min, 0.0),
        (distribution.p25, 25.0),
        (distribution.p50, 50.0),
        (distribution.p75, 75.0),
        (distribution.p90, 90.0),
        (distribution.range.max, 100.0),
    ]


def interpolate_percentile(score: float, distribution: SkillDistribution) -> float:
    """
    Estimate a score's percentile within a cohort distribution.

    Uses the highest segment whose lower bound the score reaches, which
    keeps the result monotonic when adjacent summary points coincide.
    Zero-width segments return their lower percentile.

    Example:
        >>> dist = SkillDistribution(p25=50, p50=65, p75=75, p90=85, range={"min": 20, "max": 100})
        >>> interpolate_percentile(70, dist)
        62.5
    """
    knots = _knots(distribution)
    lowest_score = knots[0][0]
    highest_score = knots[-1][0]

    if score <= lowest_score:
        return 0.0
    if score >= highest_score:
        return 100.0

    for (lower_score, lower_pct), (upper_score, upper_pct) in reversed(list(zip(knots, knots[1:]))):
        if score >= lower_score:
            width = upper_score - lower_score
            if width <= 0:
                return lower_pct
            fraction = (score - lower_score) / width
            return lower_pct + fraction * (upper_pct - lower_pct)

    return 0.0


def determine_relative_performance(percentile: float) -> RelativePerformance:
    if percentile >= 90:
        return RelativePerformance.WELL_ABOVE
    if percentile >= 75:
        return RelativePerformance.ABOVE
    if percentile >= 25:
        return RelativePerformance.AVERAGE
    if percentile >= 10:
        return RelativePerformance.BELOW
    return RelativePerformance.WELL_BELOW


def calculate_improvement_potential(user_score: float, distribution: SkillDistribution) -> float:
    """Share of the user's remaining headroom needed to reach the cohort's 75th percentile."""
    potential_gain = max(0.0, distribution.p75 - user_score)
    headroom = max(1.0, 100.0 - user_score)
    return min(100.0, 100.0 * potential_gain / headroom)


def ranking_confidence_interval(percentile: float, member_count: int) -> ConfidenceInterval:
    """Binomial-style interval on a single user's percentile, clamped to [0, 100]."""
    p = max(0.0, min(100.0, percentile))
    margin = Z_95 * math.sqrt(p * (100.0 - p) / max(1, member_count))
    return ConfidenceInterval(lower=max(0.0, p - margin), upper=min(100.0, p + margin))


def anonymized_rank(percentile: float) -> str:
    if percentile >= 95:
        return "Top 5%"
    if percentile >= 90:
        return "Top 10%"
    if percentile >= 75:
        return "Above Average"
    if percentile >= 50:
        return "Average"
    if percentile >= 25:
        return "Below Average"
    return "Bottom Quartile"


def percentile_range_label(percentile: float) -> str:
    if math.isnan(percentile):
        return "0-5th percentile"
    lower = int(min(95, max(0, math.floor(percentile / 5) * 5)))
    upper = min(100, lower + 5)
    return f"{lower}-{upper}th percentile"


def _cohort_size_band(member_count: int) -> Optional[str]:
    if member_count > 500:
        return "500+"
    if member_count > LARGE_COHORT:
        return "100+"
    return None


def generate_anonymized_insights(percentile: float, member_count: int) -> List[str]:
    """
    Insight text for a peer comparison.

    Only the percentile band and a coarse cohort size feed the templates.
    """
    insights: List[str] = []

    if percentile >= 75:
        insights.append("This skill is above average compared to peers at the same experience level")
        insights.append(f"Performing better than {round(percentile)}% of similar developers")
    elif percentile >= 25:
        insights.append("This skill is in the average range for the peer group")
        insights.append("Focus on consistent practice to move into the top quartile")
    else:
        insights.append("There is significant room for improvement in this skill")
        insights.append("Consider dedicating more time to this skill to catch up with peers")

    size_band = _cohort_size_band(member_count)
    if size_band:
        insights.append(f"This comparison is based on a large peer group of {size_band} developers")

    return insights


def build_peer_group_stats(cohort: PeerCohort) -> PeerGroupStats:
    return PeerGroupStats(
        group_size=cohort.member_count,
        average_score=round(cohort.mean_score, 2),
        median_score=cohort.distribution.p50,
        top_percentile_threshold=cohort.distribution.p90,
        skill_distribution=cohort.distribution,
        experience_level=cohort.experience_level,
        region=cohort.region,
    )


def is_exposable(cohort: Optional[PeerCohort], min_group_size: int = MIN_GROUP_SIZE) -> bool:
    """k-anonymity gate: only cohorts with enough members may be shown."""
    return cohort is not None and cohort.member_count >= max(MIN_GROUP_SIZE, min_group_size)


def compare_to_cohort(
    user_id: str,
    skill_id: str,
    user_score: float,
    cohort: PeerCohort,
) -> AnonymizedPeerComparison:
    """
    Compare one user score against an exposable cohort.

    The caller is responsible for applying is_exposable() first.
    """
    distribution = cohort.distribution
    percentile = interpolate_percentile(user_score, distribution)

    return AnonymizedPeerComparison(
        comparison_id=f"peer_{uuid.uuid4().hex}",
        user_id=user_id,
        skill_id=skill_id,
        user_percentile=round(percentile, 2),
        peer_group_stats=build_peer_group_stats(cohort),
        relative_performance=determine_relative_performance(percentile),
        improvement_potential=round(calculate_improvement_potential(user_score, distribution), 2),
        anonymized_insights=generate_anonymized_insights(percentile, cohort.member_count),
        comparison_date=datetime.now(timezone.utc),
    )


def build_ranking(skill_id: str, user_score: float, cohort: PeerCohort) -> PeerRanking:
    percentile = interpolate_percentile(user_score, cohort.distribution)
    return PeerRanking(
        ranking_id=f"ranking_{uuid.uuid4().hex}",
        skill_id=skill_id,
        anonymized_rank=anonymized_rank(percentile),
        percentile_range=percentile_range_label(percentile),
        peer_group_size=cohort.member_count,
        confidence_interval=ranking_confidence_interval(percentile, cohort.member_count),
        last_updated=datetime.now(timezone.utc),
    )
