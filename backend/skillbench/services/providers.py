"""
Provider Protocols - External collaborators of the engine

The engine never talks to storage directly. It depends on these four
interfaces, which keeps every algorithm testable with in-memory fakes:

    - SkillSnapshotProvider: user progress (NotFoundError when missing)
    - BenchmarkProvider: industry benchmark curves
    - PeerCohortProvider: anonymized cohort aggregates
    - JobCatalogProvider: static job opportunity catalog
"""

from typing import List, Optional, Protocol, runtime_checkable

from skillbench.schemas.benchmark import IndustryBenchmark
from skillbench.schemas.common import ExperienceLevel
from skillbench.schemas.peer import PeerCohort
from skillbench.schemas.progress import SkillSnapshot
from skillbench.schemas.readiness import JobOpportunity


@runtime_checkable
class SkillSnapshotProvider(Protocol):
    async def get_snapshot(self, user_id: str) -> SkillSnapshot:
        """Return the user's skills; raise NotFoundError if the user is unknown."""
        ...


@runtime_checkable
class BenchmarkProvider(Protocol):
    async def get_benchmark(
        self, skill_id: str, experience_level: ExperienceLevel
    ) -> Optional[IndustryBenchmark]:
        """Return the benchmark curve, or None when none is published."""
        ...


@runtime_checkable
class PeerCohortProvider(Protocol):
    async def get_cohort(
        self,
        skill_id: str,
        experience_level: ExperienceLevel,
        region: Optional[str] = None,
    ) -> Optional[PeerCohort]:
        """Return the cohort aggregate for a bucket, or None when it does not exist."""
        ...

    async def get_anonymized_sample(
        self, skill_id: str, experience_level: ExperienceLevel
    ) -> List[float]:
        """Return the noisy, binned scores backing a bucket."""
        ...

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
        Fold one observation into the bucket; return the new member count.

        A contributor already counted in the bucket is skipped and None is
        returned.
        """
        ...


@runtime_checkable
class JobCatalogProvider(Protocol):
    async def get_job_catalog(self) -> List[JobOpportunity]:
        ...
