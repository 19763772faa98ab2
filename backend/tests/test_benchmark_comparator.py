"""
Tests for the industry benchmark comparator.

Run with: cd backend && pytest tests/test_benchmark_comparator.py -v
"""
import pytest

from skillbench.schemas import (
    DifficultyLevel,
    ExperienceLevel,
    IndustryBenchmark,
    PercentileRange,
    PerformanceLevel,
)
from skillbench.services.benchmark_comparator import (
    DEFAULT_IMPROVEMENT_AREAS,
    analyze_gap,
    calculate_percentile_rank,
    compare_to_benchmark,
    determine_performance_level,
    generate_recommendations,
)
from skillbench.services.scoring import normalize_score


@pytest.fixture
def mid_javascript() -> IndustryBenchmark:
    """JavaScript at mid level: min 60, max 80, average 70."""
    return IndustryBenchmark(
        benchmark_id="benchmark_JavaScript_mid",
        skill_id="JavaScript",
        skill_name="JavaScript",
        experience_level=ExperienceLevel.MID,
        average_score=70,
        percentile_ranges=[
            PercentileRange(percentile=90, min_score=75, max_score=80),
            PercentileRange(percentile=25, min_score=60, max_score=70),
            PercentileRange(percentile=75, min_score=70, max_score=75),
            PercentileRange(percentile=50, min_score=70, max_score=70),
        ],
        sample_size=1000,
    )


class TestPercentileRank:
    """Tests for calculate_percentile_rank()."""

    def test_ranges_are_sorted_on_construction(self, mid_javascript):
        assert [r.percentile for r in mid_javascript.percentile_ranges] == [25, 50, 75, 90]

    @pytest.mark.parametrize(
        "score,expected",
        [(100, 90), (75, 90), (74.9, 75), (70, 75), (65, 25), (60, 25), (59.9, 10), (0, 10)],
    )
    def test_highest_satisfied_range_wins(self, mid_javascript, score, expected):
        assert calculate_percentile_rank(score, mid_javascript) == expected

    def test_ties_resolve_to_higher_percentile(self, mid_javascript):
        """50th and 75th share min score 70; a score of 70 is 75th."""
        assert calculate_percentile_rank(70, mid_javascript) == 75


class TestPerformanceLevel:
    @pytest.mark.parametrize(
        "percentile,expected",
        [
            (95, PerformanceLevel.EXCEPTIONAL),
            (90, PerformanceLevel.EXCEPTIONAL),
            (75, PerformanceLevel.ABOVE_AVERAGE),
            (50, PerformanceLevel.AVERAGE),
            (25, PerformanceLevel.AVERAGE),
            (10, PerformanceLevel.BELOW_AVERAGE),
        ],
    )
    def test_threshold_mapping(self, percentile, expected):
        assert determine_performance_level(percentile) == expected


class TestGapAnalysis:
    """Tests for analyze_gap()."""

    def test_below_average_gap(self, mid_javascript):
        gap = analyze_gap(52, mid_javascript)

        assert gap.score_gap == 18
        assert gap.percentile_gap == 18  # 75th threshold is 70
        assert gap.time_to_target == 4  # ceil(18 / 5)
        assert gap.difficulty_level == DifficultyLevel.MODERATE

    @pytest.mark.parametrize(
        "score,difficulty",
        [(69, DifficultyLevel.EASY), (48, DifficultyLevel.CHALLENGING), (30, DifficultyLevel.DIFFICULT)],
    )
    def test_difficulty_bands(self, mid_javascript, score, difficulty):
        assert analyze_gap(score, mid_javascript).difficulty_level == difficulty

    def test_above_target_is_easy(self, mid_javascript):
        gap = analyze_gap(100, mid_javascript)

        assert gap.score_gap == -30
        assert gap.difficulty_level == DifficultyLevel.EASY
        assert gap.time_to_target >= 1

    def test_time_to_target_is_at_least_one_week(self, mid_javascript):
        assert analyze_gap(70, mid_javascript).time_to_target == 1

    def test_default_improvement_areas(self, mid_javascript):
        assert analyze_gap(50, mid_javascript).key_improvement_areas == DEFAULT_IMPROVEMENT_AREAS

    def test_custom_improvement_areas(self, mid_javascript):
        areas = ["Async programming"]
        assert analyze_gap(50, mid_javascript, areas).key_improvement_areas == areas


class TestRecommendations:
    def test_below_average_mentions_gap(self, mid_javascript):
        recommendations = generate_recommendations(analyze_gap(52, mid_javascript), "JavaScript")

        assert "18.0 points below industry average" in recommendations[0]
        assert "4 weeks" in recommendations[1]

    def test_above_average_is_encouraging(self, mid_javascript):
        recommendations = generate_recommendations(analyze_gap(90, mid_javascript), "JavaScript")

        assert recommendations[0].startswith("Great job!")
        assert len(recommendations) == 2


class TestCompareToBenchmark:
    """End-to-end comparison for a single skill."""

    def test_level_four_javascript_is_exceptional(self, mid_javascript):
        score = normalize_score(4, 1200)
        comparison = compare_to_benchmark("user-1", "JavaScript", score, mid_javascript)

        assert score == 100
        assert comparison.percentile_rank >= 90
        assert comparison.performance_level == PerformanceLevel.EXCEPTIONAL
        assert comparison.gap_analysis.score_gap == -30
        assert comparison.gap_analysis.difficulty_level == DifficultyLevel.EASY

    def test_comparison_is_immutable(self, mid_javascript):
        comparison = compare_to_benchmark("user-1", "JavaScript", 50, mid_javascript)

        with pytest.raises(Exception):
            comparison.user_score = 99

    def test_comparison_ids_are_unique(self, mid_javascript):
        first = compare_to_benchmark("user-1", "JavaScript", 50, mid_javascript)
        second = compare_to_benchmark("user-1", "JavaScript", 50, mid_javascript)

        assert first.comparison_id != second.comparison_id


class TestPackagedCurves:
    """Every curve derived from the packaged dataset must rank scores monotonically."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", list(ExperienceLevel))
    async def test_percentile_never_decreases(self, reference, level):
        for skill_id in reference.skill_ids():
            benchmark = await reference.get_benchmark(skill_id, level)
            ranks = [calculate_percentile_rank(score, benchmark) for score in range(0, 101)]

            assert ranks == sorted(ranks), f"{skill_id}/{level.value}"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", list(ExperienceLevel))
    async def test_performance_level_never_drops(self, reference, level):
        order = list(PerformanceLevel)
        for skill_id in reference.skill_ids():
            benchmark = await reference.get_benchmark(skill_id, level)
            levels = [
                order.index(determine_performance_level(calculate_percentile_rank(score, benchmark)))
                for score in range(0, 101)
            ]

            assert levels == sorted(levels), f"{skill_id}/{level.value}"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "level,score,expected",
        [
            (ExperienceLevel.LEAD, 95, 90),
            (ExperienceLevel.LEAD, 97, 90),
            (ExperienceLevel.LEAD, 100, 90),
            (ExperienceLevel.PRINCIPAL, 96, 90),
            (ExperienceLevel.PRINCIPAL, 99, 90),
            (ExperienceLevel.PRINCIPAL, 100, 90),
        ],
    )
    async def test_top_of_overlapping_curves_is_exceptional(self, reference, level, score, expected):
        benchmark = await reference.get_benchmark("JavaScript", level)

        assert calculate_percentile_rank(score, benchmark) == expected

    def test_range_order_does_not_matter(self, mid_javascript):
        shuffled = mid_javascript.model_copy(
            update={"percentile_ranges": list(reversed(mid_javascript.percentile_ranges))}
        )

        for score in (0, 60, 70, 72, 75, 100):
            assert calculate_percentile_rank(score, shuffled) == calculate_percentile_rank(score, mid_javascript)
