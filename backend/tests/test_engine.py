"""
Tests for the benchmark engine facade.

Run with: cd backend && pytest tests/test_engine.py -v

Benchmarks and the job catalog come from the packaged reference data;
user snapshots and peer cohorts are in-memory fakes.
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import numpy as np
import pytest
import pytest_asyncio

from skillbench.exceptions import InvalidExperienceLevelError, NotFoundError, UpstreamUnavailableError
from skillbench.schemas import (
    ExperienceLevel,
    MarketValue,
    PerformanceLevel,
    Priority,
    PrivacySettings,
    SkillObservation,
)
from skillbench.services.engine import BenchmarkEngine
from skillbench.services.peer_comparison import build_peer_group_stats

from conftest import FakeCohorts, FakeSnapshots, SlowBenchmarks, make_cohort


@pytest.fixture
def cohorts():
    fake = FakeCohorts(
        cohorts=[
            make_cohort("JavaScript", ExperienceLevel.MID, member_count=50),
            make_cohort("React", ExperienceLevel.MID, member_count=5),
            make_cohort("JavaScript", ExperienceLevel.MID, member_count=12, region="EU"),
        ],
        samples={
            ("JavaScript", ExperienceLevel.MID): [float(v) for v in range(40, 60)],
            ("React", ExperienceLevel.MID): [50.0, 55.0, 60.0, 65.0, 70.0],
        },
    )
    fake.failing_skills.add("TypeScript")
    return fake


@pytest.fixture
def engine(mid_level_user, reference, cohorts, settings):
    return BenchmarkEngine(
        snapshots=FakeSnapshots({"user-1": mid_level_user}),
        benchmarks=reference,
        cohorts=cohorts,
        catalog=reference,
        reference=reference,
        settings=settings,
    )


class TestCompareToIndustry:
    @pytest.mark.asyncio
    async def test_skills_without_benchmark_are_skipped(self, engine):
        comparisons = await engine.compare_to_industry("user-1")

        assert sorted(c.skill_id for c in comparisons) == ["JavaScript", "React", "TypeScript"]

    @pytest.mark.asyncio
    async def test_uses_classified_level(self, engine):
        comparisons = {c.skill_id: c for c in await engine.compare_to_industry("user-1")}

        assert comparisons["JavaScript"].industry_benchmark.experience_level == ExperienceLevel.MID
        assert comparisons["JavaScript"].percentile_rank == 90
        assert comparisons["JavaScript"].performance_level == PerformanceLevel.EXCEPTIONAL
        assert comparisons["React"].percentile_rank == 10
        assert comparisons["TypeScript"].performance_level == PerformanceLevel.AVERAGE

    @pytest.mark.asyncio
    async def test_target_experience_level(self, engine):
        comparisons = await engine.compare_to_industry("user-1", target_experience_level="senior")

        assert {c.industry_benchmark.experience_level for c in comparisons} == {ExperienceLevel.SENIOR}

    @pytest.mark.asyncio
    async def test_comparison_carries_skill_specifics(self, engine):
        comparisons = {c.skill_id: c for c in await engine.compare_to_industry("user-1")}

        react = comparisons["React"]
        assert react.gap_analysis.key_improvement_areas == ["Hooks optimization", "State management", "Performance tuning"]
        assert react.industry_benchmark.salary_range.median == round(115000 * 1.1)

    @pytest.mark.asyncio
    async def test_unknown_target_level_is_rejected(self, engine):
        with pytest.raises(InvalidExperienceLevelError):
            await engine.compare_to_industry("user-1", target_experience_level="guru")

    @pytest.mark.asyncio
    async def test_unknown_user_is_fatal(self, engine):
        with pytest.raises(NotFoundError):
            await engine.compare_to_industry("user-404")

    @pytest.mark.asyncio
    async def test_slow_benchmark_drops_only_that_skill(self, mid_level_user, reference, cohorts, settings):
        engine = BenchmarkEngine(
            snapshots=FakeSnapshots({"user-1": mid_level_user}),
            benchmarks=SlowBenchmarks(reference, slow_skills={"React"}),
            cohorts=cohorts,
            catalog=reference,
            reference=reference,
            settings=settings,
        )

        comparisons = await engine.compare_to_industry("user-1")

        assert sorted(c.skill_id for c in comparisons) == ["JavaScript", "TypeScript"]

    @pytest.mark.asyncio
    async def test_slow_snapshot_is_fatal(self, reference, cohorts, settings):
        class StalledSnapshots:
            async def get_snapshot(self, user_id):
                await asyncio.sleep(1)

        snapshots = StalledSnapshots()
        engine = BenchmarkEngine(snapshots, reference, cohorts, reference, settings=settings)

        with pytest.raises(UpstreamUnavailableError):
            await engine.compare_to_industry("user-1")


class TestMarketReadiness:
    @pytest_asyncio.fixture
    async def assessment(self, engine):
        return await engine.generate_market_readiness_assessment("user-1")

    @pytest.mark.asyncio
    async def test_gaps_and_strengths(self, assessment):
        assert [g.skill_id for g in assessment.skill_gaps] == ["React"]
        assert [s.skill_id for s in assessment.strengths] == ["JavaScript"]

        gap = assessment.skill_gaps[0]
        assert gap.score_gap == 55
        assert gap.priority == Priority.CRITICAL
        assert gap.estimated_time_to_close == 11
        assert [r.resource_id for r in gap.recommended_resources] == ["react_course_1"]

        strength = assessment.strengths[0]
        assert strength.market_value == MarketValue.HIGH
        assert "Frontend Developer" in strength.related_opportunities

    @pytest.mark.asyncio
    async def test_overall_readiness(self, assessment):
        # (90 + 10 + 25) / 3 - 5 * 1 gap + 3 * 1 strength
        assert assessment.overall_readiness == pytest.approx(39.67)

    @pytest.mark.asyncio
    async def test_recommended_actions(self, assessment):
        actions = {a.action_id: a for a in assessment.recommended_actions}

        assert set(actions) == {"action_gap_React", "action_strength_JavaScript"}
        assert actions["action_gap_React"].estimated_effort == 110
        assert actions["action_gap_React"].expected_impact == 55
        assert actions["action_strength_JavaScript"].type.value == "networking"

    @pytest.mark.asyncio
    async def test_job_opportunities(self, assessment):
        assert [j.opportunity_id for j in assessment.job_opportunities] == ["job_4", "job_1", "job_2"]

    @pytest.mark.asyncio
    async def test_profile_and_review_date(self, assessment):
        assert assessment.experience_level.level == ExperienceLevel.MID
        assert assessment.experience_level.years_of_experience == 3
        assert assessment.next_review_date - assessment.assessment_date == timedelta(days=30)

    @pytest.mark.asyncio
    async def test_target_role_narrows_opportunities(self, engine):
        assessment = await engine.generate_market_readiness_assessment("user-1", target_role="frontend")

        assert [j.opportunity_id for j in assessment.job_opportunities] == ["job_1"]

    @pytest.mark.asyncio
    async def test_no_benchmarked_skills(self, reference, cohorts, settings):
        user = [SkillObservation(skill_id="COBOL", current_level=5, experience_points=9000)]
        engine = BenchmarkEngine(FakeSnapshots({"u": user}), reference, cohorts, reference, settings=settings)

        assessment = await engine.generate_market_readiness_assessment("u")

        assert assessment.overall_readiness == 0
        assert assessment.skill_gaps == []
        assert assessment.strengths == []

    @pytest.mark.asyncio
    async def test_gaps_and_strengths_never_overlap(self, reference, cohorts, settings):
        rng = np.random.default_rng(5)
        skills = ["JavaScript", "TypeScript", "React", "Node.js"]
        users = {
            f"u{i}": [
                SkillObservation(
                    skill_id=skill,
                    current_level=int(rng.integers(0, 6)),
                    experience_points=int(rng.integers(0, 1500)),
                )
                for skill in skills
            ]
            for i in range(25)
        }
        engine = BenchmarkEngine(FakeSnapshots(users), reference, cohorts, reference, settings=settings)

        for user_id in users:
            assessment = await engine.generate_market_readiness_assessment(user_id)
            gap_ids = {g.skill_id for g in assessment.skill_gaps}
            strength_ids = {s.skill_id for s in assessment.strengths}
            assert not gap_ids & strength_ids
            assert 0 <= assessment.overall_readiness <= 100


class TestPeerOperations:
    @pytest.mark.asyncio
    async def test_compare_to_peers_applies_gate_and_skips_failures(self, engine):
        comparisons = await engine.compare_to_peers("user-1")

        # React cohort has 5 members, TypeScript lookup fails, COBOL has no cohort
        assert [c.skill_id for c in comparisons] == ["JavaScript"]
        assert comparisons[0].user_percentile == 100

    @pytest.mark.asyncio
    async def test_compare_to_peers_single_skill(self, engine):
        assert await engine.compare_to_peers("user-1", skill_id="React") == []
        assert await engine.compare_to_peers("user-1", skill_id="Haskell") == []

    @pytest.mark.asyncio
    async def test_compare_to_peers_other_level(self, engine):
        assert await engine.compare_to_peers("user-1", experience_level="senior") == []

    @pytest.mark.asyncio
    async def test_peer_group_stats(self, engine):
        stats = await engine.get_peer_group_stats("JavaScript", ExperienceLevel.MID)

        assert stats.group_size == 50
        assert stats.median_score == 65

    @pytest.mark.asyncio
    async def test_peer_group_stats_by_region(self, engine):
        stats = await engine.get_peer_group_stats("JavaScript", ExperienceLevel.MID, region="EU")

        assert stats.group_size == 12
        assert stats.region == "EU"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("member_count", [0, 1, 5, 9])
    async def test_small_cohorts_are_never_exposed(self, reference, settings, member_count):
        cohorts = FakeCohorts([make_cohort("Go", ExperienceLevel.MID, member_count=member_count)])
        engine = BenchmarkEngine(FakeSnapshots({}), reference, cohorts, reference, settings=settings)

        assert await engine.get_peer_group_stats("Go", ExperienceLevel.MID) is None

    @pytest.mark.asyncio
    async def test_anonymized_ranking(self, engine):
        ranking = await engine.generate_anonymized_ranking("user-1", "JavaScript")

        assert ranking.anonymized_rank == "Top 5%"
        assert ranking.peer_group_size == 50

    @pytest.mark.asyncio
    async def test_ranking_unavailable(self, engine):
        assert await engine.generate_anonymized_ranking("user-1", "React") is None
        assert await engine.generate_anonymized_ranking("user-1", "Haskell") is None


class TestStatisticalAnalysis:
    @pytest.mark.asyncio
    async def test_cohort_sample(self, engine):
        analysis = await engine.perform_statistical_analysis("JavaScript", ExperienceLevel.MID)

        assert analysis.skill_id == "JavaScript"
        assert analysis.sample_size == 20
        assert analysis.mean == pytest.approx(49.5)

    @pytest.mark.asyncio
    async def test_small_cohort_sample(self, engine):
        assert await engine.perform_statistical_analysis("React", ExperienceLevel.MID) is None

    def test_analyze_values_respects_group_size(self, engine):
        assert engine.analyze_values([10, 20, 30, 40, 50]) is None
        assert engine.analyze_values(list(range(10))).sample_size == 10


class TestRecordUserProgress:
    @pytest.mark.asyncio
    async def test_observations_recorded_at_classified_level(self, engine, cohorts):
        recorded = await engine.record_user_progress("user-1", PrivacySettings(), region="EU")

        assert recorded == 4
        assert {o[1] for o in cohorts.observations} == {ExperienceLevel.MID}
        assert {o[3] for o in cohorts.observations} == {"EU"}
        assert ("JavaScript", ExperienceLevel.MID, 100.0, "EU") in cohorts.observations

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "privacy",
        [
            PrivacySettings(opt_out_of_aggregation=True),
            PrivacySettings(enable_peer_comparison=False),
            PrivacySettings(share_skill_levels=False),
        ],
    )
    async def test_opted_out_users_contribute_nothing(self, engine, cohorts, privacy):
        assert await engine.record_user_progress("user-1", privacy) == 0
        assert cohorts.observations == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level,scale", [("basic", 0.5), ("enhanced", 1.0), ("maximum", 2.0)])
    async def test_anonymization_level_scales_noise(self, engine, cohorts, level, scale):
        await engine.record_user_progress("user-1", PrivacySettings(anonymization_level=level))

        assert {o["noise_scale"] for o in cohorts.write_options} == {scale}

    @pytest.mark.asyncio
    async def test_user_is_the_contributor(self, engine, cohorts):
        await engine.record_user_progress("user-1", PrivacySettings())

        assert {o["contributor_id"] for o in cohorts.write_options} == {"user-1"}

    @pytest.mark.asyncio
    async def test_failed_write_is_raised(self, engine, cohorts):
        cohorts.failing_writes.add("React")

        with pytest.raises(UpstreamUnavailableError):
            await engine.record_user_progress("user-1", PrivacySettings())

        assert sorted(o[0] for o in cohorts.observations) == ["COBOL", "JavaScript", "TypeScript"]


class TestEngineCache:
    @pytest.fixture
    def cache(self):
        cache = AsyncMock()
        cache.get_peer_stats.return_value = None
        cache.get_analysis.return_value = None
        return cache

    @pytest.fixture
    def cached_engine(self, engine, cache):
        engine.cache = cache
        return engine

    @pytest.mark.asyncio
    async def test_stats_written_on_miss(self, cached_engine, cache):
        stats = await cached_engine.get_peer_group_stats("JavaScript", ExperienceLevel.MID)

        cache.set_peer_stats.assert_awaited_once_with("JavaScript", "mid", None, stats)

    @pytest.mark.asyncio
    async def test_suppressed_cohort_not_cached(self, cached_engine, cache):
        assert await cached_engine.get_peer_group_stats("React", ExperienceLevel.MID) is None
        cache.set_peer_stats.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_hit_skips_store(self, cached_engine, cache, cohorts):
        cached = make_cohort("Go", ExperienceLevel.MID)

        cache.get_peer_stats.return_value = build_peer_group_stats(cached)

        stats = await cached_engine.get_peer_group_stats("Go", ExperienceLevel.MID)

        assert stats.group_size == 50

    @pytest.mark.asyncio
    async def test_recording_invalidates_buckets(self, cached_engine, cache):
        await cached_engine.record_user_progress("user-1", PrivacySettings())

        invalidated = {call.args for call in cache.invalidate_bucket.await_args_list}
        assert invalidated == {("JavaScript", "mid"), ("React", "mid"), ("TypeScript", "mid"), ("COBOL", "mid")}

    @pytest.mark.asyncio
    async def test_written_buckets_invalidated_when_one_write_fails(self, cached_engine, cache, cohorts):
        cohorts.failing_writes.add("React")

        with pytest.raises(UpstreamUnavailableError):
            await cached_engine.record_user_progress("user-1", PrivacySettings())

        invalidated = {call.args for call in cache.invalidate_bucket.await_args_list}
        assert invalidated == {("JavaScript", "mid"), ("TypeScript", "mid"), ("COBOL", "mid")}
