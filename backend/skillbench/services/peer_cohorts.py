"""
Peer Cohort Store - Anonymized aggregate statistics per skill bucket

Cohorts are built incrementally from individual observations, but no
individual record is kept. Each observation is:

    1. Perturbed with zero-mean uniform noise (+/- noise_amplitude points)
    2. Folded into the bucket's running mean / variance (Welford update)
    3. Counted into a 0-100 integer histogram

A contributor is counted at most once per bucket. When a contributor id
is given, a salted hash of it and the cohort key is stored as a marker;
later observations from the same contributor for that bucket are ignored.
Without this a single user could repeat an observation until the bucket
passed the minimum group size.

The noise is a privacy-by-obscurity measure, NOT formal differential
privacy: it carries no epsilon/delta guarantee. A deployment that needs
real guarantees should replace anonymize_score() with a calibrated
Laplace or Gaussian mechanism.

Concurrency:
    Updates to one (skill_id, experience_level) bucket are serialized by
    a per-bucket asyncio.Lock, so concurrent observations cannot lose
    updates to the running statistics. Reads take no lock.

Usage:
    store = PeerCohortStore(session_factory=async_session)
    await store.add_observation("JavaScript", ExperienceLevel.MID, 72.0)
    cohort = await store.get_cohort("JavaScript", ExperienceLevel.MID)
"""

import asyncio
import hashlib
import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillbench.exceptions import UpstreamUnavailableError
from skillbench.models.peer_cohort import (
    GLOBAL_REGION,
    HISTOGRAM_BINS,
    PeerCohortAggregate,
    PeerContribution,
    cohort_key,
)
from skillbench.schemas.common import ExperienceLevel
from skillbench.schemas.peer import PeerCohort, ScoreRange, SkillDistribution

logger = logging.getLogger(__name__)


def summarize_histogram(histogram: List[int]) -> Optional[SkillDistribution]:
    """
    Derive the five-point summary from binned counts.

    Each percentile is the smallest score whose cumulative count reaches
    that share of the total, which keeps min <= p25 <= ... <= max.
    """
    counts = np.asarray(histogram, dtype=float)
    total = counts.sum()
    if total <= 0:
        return None

    cumulative = np.cumsum(counts)
    occupied = np.flatnonzero(counts)

    def quantile(share: float) -> float:
        return float(np.searchsorted(cumulative, share * total, side="left"))

    return SkillDistribution(
        p25=quantile(0.25),
        p50=quantile(0.50),
        p75=quantile(0.75),
        p90=quantile(0.90),
        std_dev=0.0,
        range=ScoreRange(min=float(occupied[0]), max=float(occupied[-1])),
    )


class PeerCohortStore:
    """
    SQLAlchemy-backed PeerCohortProvider.

    Attributes:
        session_factory: Callable returning a new AsyncSession
        noise_amplitude: Half-width of the uniform noise added per observation
        contributor_salt: Secret mixed into contribution marker hashes
        rng: numpy Generator used for noise (seedable for tests)
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        noise_amplitude: float = 5.0,
        contributor_salt: str = "",
        rng: Optional[np.random.Generator] = None,
    ):
        self.session_factory = session_factory
        self.noise_amplitude = noise_amplitude
        self.contributor_salt = contributor_salt
        self.rng = rng or np.random.default_rng()
        self._locks: Dict[Tuple[str, ExperienceLevel], asyncio.Lock] = defaultdict(asyncio.Lock)

    def contribution_id(self, contributor_id: str, key: str) -> str:
        return hashlib.sha256(f"{self.contributor_salt}:{key}:{contributor_id}".encode()).hexdigest()

    def bucket_lock(self, skill_id: str, experience_level: ExperienceLevel) -> asyncio.Lock:
        return self._locks[(skill_id, experience_level)]

    def anonymize_score(self, score: float, noise_scale: float = 1.0) -> float:
        """Add zero-mean uniform noise (noise_amplitude * noise_scale) and clamp to 0-100."""
        amplitude = self.noise_amplitude * noise_scale
        noise = self.rng.uniform(-amplitude, amplitude) if amplitude else 0.0
        return float(max(0.0, min(100.0, score + noise)))

    async def add_observation(
        self,
        skill_id: str,
        experience_level: ExperienceLevel,
        score: float,
        region: Optional[str] = None,
        contributor_id: Optional[str] = None,
        noise_scale: float = 1.0,
    ) -> Optional[int]:
        """
        Fold one anonymized observation into the bucket.

        The global cohort is always updated; a regional cohort is updated
        as well when a region is given. With a contributor_id, each cohort
        skips contributors it has already counted.

        Returns:
            Member count of the updated cohort (the global one when it was
            updated), or None when the contributor was already counted in
            every cohort
        """
        noisy_score = self.anonymize_score(score, noise_scale)
        regions = [GLOBAL_REGION] + ([region] if region and region != GLOBAL_REGION else [])

        async with self.bucket_lock(skill_id, experience_level):
            try:
                async with self.session_factory() as session:
                    member_count = None
                    for bucket_region in regions:
                        key = cohort_key(skill_id, experience_level.value, bucket_region)
                        if contributor_id is not None:
                            marker = self.contribution_id(contributor_id, key)
                            if await session.get(PeerContribution, marker) is not None:
                                continue
                            session.add(PeerContribution(id=marker))

                        row = await self._get_or_create(session, skill_id, experience_level, bucket_region)
                        self._fold(row, noisy_score)
                        if member_count is None:
                            member_count = row.member_count
                    await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Failed to record peer observation for {skill_id}/{experience_level.value}: {e}")
                raise UpstreamUnavailableError("peer cohort store", str(e)) from e

        return member_count

    async def get_cohort(
        self,
        skill_id: str,
        experience_level: ExperienceLevel,
        region: Optional[str] = None,
    ) -> Optional[PeerCohort]:
        """
        Load the cohort aggregate for a bucket.

        Returns the cohort regardless of size; callers apply the
        k-anonymity gate before exposing anything.
        """
        row = await self._load(skill_id, experience_level, region or GLOBAL_REGION)
        if row is None or row.member_count == 0:
            return None

        distribution = summarize_histogram(row.histogram)
        if distribution is None:
            return None

        std_dev = (row.m2 / (row.member_count - 1)) ** 0.5 if row.member_count > 1 else 0.0
        distribution = distribution.model_copy(update={"std_dev": round(std_dev, 4)})

        return PeerCohort(
            skill_id=skill_id,
            experience_level=experience_level,
            region=region,
            member_count=row.member_count,
            mean_score=row.mean,
            distribution=distribution,
        )

    async def get_anonymized_sample(
        self, skill_id: str, experience_level: ExperienceLevel
    ) -> List[float]:
        """Expand the global histogram into its binned (already noisy) scores."""
        row = await self._load(skill_id, experience_level, GLOBAL_REGION)
        if row is None:
            return []
        counts = np.asarray(row.histogram, dtype=int)
        return np.repeat(np.arange(HISTOGRAM_BINS), counts).astype(float).tolist()

    async def _load(
        self, skill_id: str, experience_level: ExperienceLevel, region: str
    ) -> Optional[PeerCohortAggregate]:
        try:
            async with self.session_factory() as session:
                return await session.get(
                    PeerCohortAggregate, cohort_key(skill_id, experience_level.value, region)
                )
        except SQLAlchemyError as e:
            logger.warning(f"Peer cohort lookup failed for {skill_id}/{experience_level.value}: {e}")
            raise UpstreamUnavailableError("peer cohort store", str(e)) from e

    @staticmethod
    async def _get_or_create(
        session: AsyncSession,
        skill_id: str,
        experience_level: ExperienceLevel,
        region: str,
    ) -> PeerCohortAggregate:
        key = cohort_key(skill_id, experience_level.value, region)
        row = await session.get(PeerCohortAggregate, key)
        if row is None:
            row = PeerCohortAggregate(
                id=key,
                skill_id=skill_id,
                experience_level=experience_level.value,
                region=region,
                member_count=0,
                mean=0.0,
                m2=0.0,
                histogram=[0] * HISTOGRAM_BINS,
            )
            session.add(row)
        return row

    @staticmethod
    def _fold(row: PeerCohortAggregate, value: float) -> None:
        count = row.member_count + 1
        delta = value - row.mean
        mean = row.mean + delta / count
        row.m2 = row.m2 + delta * (value - mean)
        row.mean = mean
        row.member_count = count

        # Reassign so SQLAlchemy sees the JSON column change
        histogram = list(row.histogram)
        histogram[int(round(value))] += 1
        row.histogram = histogram
