"""
Industry Benchmark Comparator

Compares one normalized user score against a skill/experience-level
benchmark curve and produces a BenchmarkComparison:

    1. Percentile rank: highest percentile range whose min score the user
       reaches (10th percentile floor when below every range)
    2. Performance level: >=90 exceptional, >=75 above average,
       >=25 average, otherwise below average
    3. Gap analysis: distance from the benchmark average and from the
       75th-percentile threshold, with a weeks-to-target estimate
    4. Recommendations: deterministic template text keyed on the gap sign

Everything here is pure; fetching benchmarks is the caller's concern.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from skillbench.schemas.benchmark import BenchmarkComparison, GapAnalysis, IndustryBenchmark
from skillbench.schemas.common import DifficultyLevel, PerformanceLevel

FLOOR_PERCENTILE = 10
TARGET_PERCENTILE = 75
# Percentile points a learner is expected to close per week
POINTS_PER_WEEK = 5

DEFAULT_IMPROVEMENT_AREAS = ["Code quality", "Best practices", "Performance"]


def calculate_percentile_rank(score: float, benchmark: IndustryBenchmark) -> int:
    """
    Find the percentile bracket a score falls into.

    Returns the highest percentile whose lower bound the score reaches.
    Derived curves can have overlapping or inverted bounds (lead and
    principal standards), so the answer never depends on range order and
    a higher score never gets a lower percentile.
    """
    return max(
        (r.percentile for r in benchmark.percentile_ranges if score >= r.min_score),
        default=FLOOR_PERCENTILE,
    )


def determine_performance_level(percentile_rank: float) -> PerformanceLevel:
    if percentile_rank >= 90:
        return PerformanceLevel.EXCEPTIONAL
    if percentile_rank >= 75:
        return PerformanceLevel.ABOVE_AVERAGE
    if percentile_rank >= 25:
        return PerformanceLevel.AVERAGE
    return PerformanceLevel.BELOW_AVERAGE


def _difficulty_for(percentile_gap: float) -> DifficultyLevel:
    # Already at or past the target: nothing left to climb
    if percentile_gap <= 0:
        return DifficultyLevel.EASY

    gap = abs(percentile_gap)
    if gap > 30:
        return DifficultyLevel.DIFFICULT
    if gap > 20:
        return DifficultyLevel.CHALLENGING
    if gap > 10:
        return DifficultyLevel.MODERATE
    return DifficultyLevel.EASY


def analyze_gap(
    score: float,
    benchmark: IndustryBenchmark,
    improvement_areas: Optional[List[str]] = None,
) -> GapAnalysis:
    """
    Analyze the distance between a score and the benchmark targets.

    Args:
        score: Normalized user score (0-100)
        benchmark: Benchmark curve for the skill/level
        improvement_areas: Skill-specific focus areas (generic list if None)

    Returns:
        GapAnalysis. A negative score_gap means the user is above average.
    """
    score_gap = benchmark.average_score - score

    target_score = next(
        (r.min_score for r in benchmark.percentile_ranges if r.percentile == TARGET_PERCENTILE),
        benchmark.average_score,
    )
    percentile_gap = target_score - score

    return GapAnalysis(
        score_gap=round(score_gap, 2),
        percentile_gap=round(percentile_gap, 2),
        time_to_target=max(1, math.ceil(abs(percentile_gap) / POINTS_PER_WEEK)),
        difficulty_level=_difficulty_for(percentile_gap),
        key_improvement_areas=list(improvement_areas or DEFAULT_IMPROVEMENT_AREAS),
    )


def generate_recommendations(gap_analysis: GapAnalysis, skill_name: str) -> List[str]:
    if gap_analysis.score_gap > 0:
        return [
            f"Focus on improving {skill_name} - you're {gap_analysis.score_gap:.1f} points "
            f"below industry average",
            f"Estimated time to reach target: {gap_analysis.time_to_target} weeks "
            f"with consistent practice",
        ]
    return [
        f"Great job! Your {skill_name} skills are at or above industry average",
        "Consider mentoring others or taking on more challenging projects",
    ]


def compare_to_benchmark(
    user_id: str,
    skill_id: str,
    score: float,
    benchmark: IndustryBenchmark,
    skill_name: Optional[str] = None,
    improvement_areas: Optional[List[str]] = None,
) -> BenchmarkComparison:
    """
    Build the full comparison record for one skill.

    Example:
        >>> comparison = compare_to_benchmark("u1", "JavaScript", 100.0, benchmark)
        >>> comparison.performance_level
        <PerformanceLevel.EXCEPTIONAL: 'exceptional'>
    """
    percentile_rank = calculate_percentile_rank(score, benchmark)
    gap_analysis = analyze_gap(score, benchmark, improvement_areas)

    return BenchmarkComparison(
        comparison_id=f"comparison_{uuid.uuid4().hex}",
        user_id=user_id,
        skill_id=skill_id,
        user_score=score,
        industry_benchmark=benchmark,
        percentile_rank=percentile_rank,
        performance_level=determine_performance_level(percentile_rank),
        gap_analysis=gap_analysis,
        recommendations=generate_recommendations(gap_analysis, skill_name or skill_id),
        comparison_date=datetime.now(timezone.utc),
    )
