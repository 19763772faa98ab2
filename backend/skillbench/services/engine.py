"""
Benchmark Engine - Orchestration of Industry, Peer and Readiness Analysis

The engine is the only component that talks to external collaborators.
It fetches a user's skill snapshot, fans out one task per skill with
asyncio.gather, and hands the fetched reference data to the pure
comparison functions.

Failure policy:
    - User snapshot fetch: NotFoundError and UpstreamUnavailableError
      (including timeouts) propagate; the whole operation fails.
    - Per-skill benchmark / cohort fetch: a timeout, upstream error or
      missing record drops that one skill from the result and is logged
      and counted; the rest of the operation continues.
    - Cohorts below the minimum group size are never exposed. Operations
      return None / an empty list instead of raising.

Usage:
    engine = BenchmarkEngine(
        snapshots=SkillProgressRepository(async_session),
        benchmarks=reference,
        cohorts=PeerCohortStore(async_session),
        catalog=reference,
        reference=reference,
    )
    assessment = await engine.generate_market_readiness_assessment("user-42")
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Awaitable, List, Optional, Sequence, TypeVar

from skillbench.config import Settings, get_settings
from skillbench.exceptions import UpstreamUnavailableError
from skillbench.middleware.metrics import (
    record_assessment_latency,
    record_cohort_suppressed,
    record_comparison_skipped,
    record_observation,
)
from skillbench.schemas.benchmark import BenchmarkComparison, ExperienceLevelProfile
from skillbench.schemas.common import ExperienceLevel
from skillbench.schemas.peer import (
    AnonymizedPeerComparison,
    PeerCohort,
    PeerGroupStats,
    PeerRanking,
    StatisticalAnalysis,
)
from skillbench.schemas.progress import PrivacySettings, SkillObservation, SkillSnapshot
from skillbench.schemas.readiness import JobOpportunity, MarketReadinessAssessment
from skillbench.services.benchmark_comparator import compare_to_benchmark
from skillbench.services.cache import StatsCache
from skillbench.services.job_matching import match_opportunities
from skillbench.services.peer_comparison import (
    MIN_GROUP_SIZE,
    build_peer_group_stats,
    build_ranking,
    compare_to_cohort,
    is_exposable,
)
from skillbench.services.providers import (
    BenchmarkProvider,
    JobCatalogProvider,
    PeerCohortProvider,
    SkillSnapshotProvider,
)
from skillbench.services.readiness import (
    calculate_overall_readiness,
    generate_recommended_actions,
    identify_skill_gaps,
    identify_strengths,
)
from skillbench.services.reference_data import ReferenceDataStore
from skillbench.services.scoring import classify_experience_level, score_observation
from skillbench.services.statistical_analysis import analyze_sample

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BenchmarkEngine:
    """
    Facade over the comparison, statistics and readiness services.

    Attributes:
        snapshots: Source of user skill snapshots
        benchmarks: Source of industry benchmark curves
        cohorts: Source (and sink) of anonymized peer cohorts
        catalog: Source of job opportunities
        reference: Optional reference dataset for resources, focus areas
            and experience level profiles
        cache: Optional Redis cache for peer stats and analyses
    """

    def __init__(
        self,
        snapshots: SkillSnapshotProvider,
        benchmarks: BenchmarkProvider,
        cohorts: PeerCohortProvider,
        catalog: JobCatalogProvider,
        reference: Optional[ReferenceDataStore] = None,
        settings: Optional[Settings] = None,
        cache: Optional[StatsCache] = None,
    ):
        settings = settings or get_settings()
        self.snapshots = snapshots
        self.benchmarks = benchmarks
        self.cohorts = cohorts
        self.catalog = catalog
        self.reference = reference
        self.cache = cache

        self.min_group_size = max(MIN_GROUP_SIZE, settings.min_group_size)
        self.fetch_timeout = settings.fetch_timeout_seconds
        self.job_match_threshold = settings.job_match_threshold
        self.next_review_days = settings.next_review_days

    # ==================== Fetch helpers ====================

    async def _get_snapshot(self, user_id: str) -> SkillSnapshot:
        try:
            return await asyncio.wait_for(self.snapshots.get_snapshot(user_id), self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Skill snapshot fetch timed out after {self.fetch_timeout}s")
            raise UpstreamUnavailableError("skill progress store", "timed out") from None

    async def _fetch_optional(
        self, call: Awaitable[Optional[T]], kind: str, skill_id: str
    ) -> Optional[T]:
        """Await a per-skill fetch; any timeout or upstream failure yields None."""
        try:
            return await asyncio.wait_for(call, self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Skipping {kind} comparison for {skill_id}: fetch timed out")
            record_comparison_skipped(kind, "timeout")
        except (UpstreamUnavailableError, OSError) as e:
            logger.warning(f"Skipping {kind} comparison for {skill_id}: {e}")
            record_comparison_skipped(kind, "upstream_error")
        return None

    async def _exposable_cohort(
        self,
        skill_id: str,
        experience_level: ExperienceLevel,
        region: Optional[str] = None,
    ) -> Optional[PeerCohort]:
        cohort = await self._fetch_optional(
            self.cohorts.get_cohort(skill_id, experience_level, region), "peer", skill_id
        )
        if cohort is None:
            return None
        if not is_exposable(cohort, self.min_group_size):
            logger.info(
                f"Peer cohort {skill_id}/{experience_level.value} withheld: "
                f"below minimum group size of {self.min_group_size}"
            )
            record_cohort_suppressed()
            return None
        return cohort

    def _improvement_areas(self, skill_id: str) -> Optional[List[str]]:
        return self.reference.improvement_areas(skill_id) if self.reference else None

    def _experience_profile(self, level: ExperienceLevel) -> ExperienceLevelProfile:
        if self.reference:
            return self.reference.experience_profile(level)
        return ExperienceLevelProfile(level=level)

    # ==================== Industry comparison ====================

    async def _compare_skill_to_industry(
        self,
        user_id: str,
        observation: SkillObservation,
        level: ExperienceLevel,
    ) -> Optional[BenchmarkComparison]:
        benchmark = await self._fetch_optional(
            self.benchmarks.get_benchmark(observation.skill_id, level),
            "industry",
            observation.skill_id,
        )
        if benchmark is None:
            logger.debug(f"No benchmark for {observation.skill_id}/{level.value}")
            record_comparison_skipped("industry", "no_benchmark")
            return None

        benchmark = benchmark.model_copy(update={"skill_name": observation.display_name})
        return compare_to_benchmark(
            user_id,
            observation.skill_id,
            score_observation(observation),
            benchmark,
            skill_name=observation.display_name,
            improvement_areas=self._improvement_areas(observation.skill_id),
        )

    async def _industry_comparisons(
        self,
        user_id: str,
        snapshot: SkillSnapshot,
        level: ExperienceLevel,
    ) -> List[BenchmarkComparison]:
        results = await asyncio.gather(
            *(self._compare_skill_to_industry(user_id, obs, level) for obs in snapshot.values())
        )
        return [r for r in results if r is not None]

    async def compare_to_industry(
        self,
        user_id: str,
        target_experience_level: Optional[str] = None,
    ) -> List[BenchmarkComparison]:
        """
        Compare every skill of a user against the industry benchmark.

        Args:
            user_id: User whose snapshot is compared
            target_experience_level: Level to benchmark against; defaults
                to the user's classified level

        Raises:
            NotFoundError: User has no progress snapshot
            UpstreamUnavailableError: Snapshot fetch failed
            InvalidExperienceLevelError: Unknown target level
        """
        level = ExperienceLevel.parse(target_experience_level) if target_experience_level else None
        snapshot = await self._get_snapshot(user_id)
        level = level or classify_experience_level(snapshot.values())
        return await self._industry_comparisons(user_id, snapshot, level)

    # ==================== Peer comparison ====================

    async def _compare_skill_to_peers(
        self,
        user_id: str,
        observation: SkillObservation,
        level: ExperienceLevel,
    ) -> Optional[AnonymizedPeerComparison]:
        cohort = await self._exposable_cohort(observation.skill_id, level)
        if cohort is None:
            return None
        return compare_to_cohort(user_id, observation.skill_id, score_observation(observation), cohort)

    async def compare_to_peers(
        self,
        user_id: str,
        skill_id: Optional[str] = None,
        experience_level: Optional[str] = None,
    ) -> List[AnonymizedPeerComparison]:
        """
        Compare a user's skills against anonymized peer cohorts.

        Skills whose cohort is missing or too small are left out.
        """
        level = ExperienceLevel.parse(experience_level) if experience_level else None
        snapshot = await self._get_snapshot(user_id)
        level = level or classify_experience_level(snapshot.values())

        if skill_id is not None:
            observations = [snapshot[skill_id]] if skill_id in snapshot else []
        else:
            observations = list(snapshot.values())

        results = await asyncio.gather(
            *(self._compare_skill_to_peers(user_id, obs, level) for obs in observations)
        )
        return [r for r in results if r is not None]

    async def get_peer_group_stats(
        self,
        skill_id: str,
        experience_level: ExperienceLevel,
        region: Optional[str] = None,
    ) -> Optional[PeerGroupStats]:
        """Summary of a cohort, or None when it is missing or below the minimum size."""
        experience_level = ExperienceLevel.parse(experience_level)

        if self.cache:
            cached = await self.cache.get_peer_stats(skill_id, experience_level.value, region)
            if cached is not None:
                return cached

        cohort = await self._exposable_cohort(skill_id, experience_level, region)
        if cohort is None:
            return None

        stats = build_peer_group_stats(cohort)
        if self.cache:
            await self.cache.set_peer_stats(skill_id, experience_level.value, region, stats)
        return stats

    async def generate_anonymized_ranking(self, user_id: str, skill_id: str) -> Optional[PeerRanking]:
        """
        Coarse rank of one user skill within its peer cohort.

        Returns None when the user lacks the skill or the cohort is not exposable.
        """
        snapshot = await self._get_snapshot(user_id)
        observation = snapshot.get(skill_id)
        if observation is None:
            return None

        level = classify_experience_level(snapshot.values())
        cohort = await self._exposable_cohort(skill_id, level)
        if cohort is None:
            return None
        return build_ranking(skill_id, score_observation(observation), cohort)

    # ==================== Statistical analysis ====================

    async def perform_statistical_analysis(
        self, skill_id: str, experience_level: ExperienceLevel
    ) -> Optional[StatisticalAnalysis]:
        """Descriptive statistics over a cohort's anonymized sample."""
        experience_level = ExperienceLevel.parse(experience_level)

        if self.cache:
            cached = await self.cache.get_analysis(skill_id, experience_level.value)
            if cached is not None:
                return cached

        sample = await self._fetch_optional(
            self.cohorts.get_anonymized_sample(skill_id, experience_level), "peer", skill_id
        )
        analysis = analyze_sample(sample or [], self.min_group_size, skill_id=skill_id)
        if analysis is None:
            logger.info(f"Statistical analysis for {skill_id}/{experience_level.value} withheld: sample too small")
            return None

        if self.cache:
            await self.cache.set_analysis(skill_id, experience_level.value, analysis)
        return analysis

    def analyze_values(self, values: Sequence[float]) -> Optional[StatisticalAnalysis]:
        """Descriptive statistics over a caller-supplied sample."""
        return analyze_sample(values, self.min_group_size)

    # ==================== Market readiness ====================

    async def _job_catalog(self) -> List[JobOpportunity]:
        try:
            return await asyncio.wait_for(self.catalog.get_job_catalog(), self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning("Job catalog fetch timed out; assessing without opportunities")
        except (UpstreamUnavailableError, OSError) as e:
            logger.warning(f"Job catalog unavailable; assessing without opportunities: {e}")
        return []

    async def generate_market_readiness_assessment(
        self,
        user_id: str,
        target_role: Optional[str] = None,
        target_industry: Optional[str] = None,
    ) -> MarketReadinessAssessment:
        """
        Build a complete readiness assessment for a user.

        Raises:
            NotFoundError: User has no progress snapshot
            UpstreamUnavailableError: Snapshot fetch failed
        """
        start_time = time.perf_counter()

        snapshot = await self._get_snapshot(user_id)
        level = classify_experience_level(snapshot.values())

        comparisons, catalog = await asyncio.gather(
            self._industry_comparisons(user_id, snapshot, level),
            self._job_catalog(),
        )

        skill_gaps = identify_skill_gaps(
            comparisons,
            self.reference.learning_resources if self.reference else lambda _: [],
        )
        strengths = identify_strengths(
            comparisons,
            self.reference.related_opportunities if self.reference else lambda _: [],
        )

        assessment_date = datetime.now(timezone.utc)
        assessment = MarketReadinessAssessment(
            assessment_id=f"assessment_{uuid.uuid4().hex}",
            user_id=user_id,
            overall_readiness=calculate_overall_readiness(comparisons, len(skill_gaps), len(strengths)),
            experience_level=self._experience_profile(level),
            skill_gaps=skill_gaps,
            strengths=strengths,
            recommended_actions=generate_recommended_actions(skill_gaps, strengths),
            job_opportunities=match_opportunities(
                snapshot,
                level,
                catalog,
                threshold=self.job_match_threshold,
                target_role=target_role,
                target_industry=target_industry,
            ),
            assessment_date=assessment_date,
            next_review_date=assessment_date + timedelta(days=self.next_review_days),
        )

        duration = time.perf_counter() - start_time
        record_assessment_latency(duration)
        logger.info(
            f"Readiness assessment: {len(comparisons)}/{len(snapshot)} skills compared, "
            f"{len(skill_gaps)} gaps, {len(strengths)} strengths in {duration:.3f}s"
        )
        return assessment

    # ==================== Cohort contribution ====================

    async def record_user_progress(
        self,
        user_id: str,
        privacy: PrivacySettings,
        region: Optional[str] = None,
    ) -> int:
        """
        Contribute a user's current skill scores to the peer cohorts.

        Users who opted out contribute nothing. Each skill is anonymized
        and aggregated by the cohort store, with noise scaled by the
        user's anonymization level. A user is counted at most once per
        cohort, so repeating the call records nothing new.

        Cache entries are invalidated for every bucket that was written,
        even when another bucket's write failed; the first failure is then
        re-raised.

        Returns:
            Number of observations recorded
        """
        if not privacy.allows_aggregation:
            logger.info("Skipping cohort contribution: user opted out of aggregation")
            return 0

        snapshot = await self._get_snapshot(user_id)
        level = classify_experience_level(snapshot.values())
        observations = list(snapshot.values())

        results = await asyncio.gather(
            *(
                self.cohorts.add_observation(
                    obs.skill_id,
                    level,
                    score_observation(obs),
                    region,
                    contributor_id=user_id,
                    noise_scale=privacy.noise_multiplier,
                )
                for obs in observations
            ),
            return_exceptions=True,
        )

        recorded = 0
        failures: List[BaseException] = []
        for obs, result in zip(observations, results):
            if isinstance(result, BaseException):
                failures.append(result)
                continue
            if result is None:
                continue
            recorded += 1
            record_observation()
            if self.cache:
                await self.cache.invalidate_bucket(obs.skill_id, level.value)

        if failures:
            logger.warning(f"Cohort contribution: {len(failures)}/{len(observations)} writes failed")
            raise failures[0]

        return recorded
