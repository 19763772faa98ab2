"""
Shared fixtures: in-memory providers and the packaged reference data.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from skillbench.config import DATA_DIR, Settings
from skillbench.exceptions import NotFoundError, UpstreamUnavailableError
from skillbench.schemas import (
    ExperienceLevel,
    PeerCohort,
    ScoreRange,
    SkillDistribution,
    SkillObservation,
)
from skillbench.services.reference_data import ReferenceDataStore


class FakeSnapshots:
    """SkillSnapshotProvider backed by a dict."""

    def __init__(self, users: Dict[str, List[SkillObservation]]):
        self.users = {user_id: {o.skill_id: o for o in obs} for user_id, obs in users.items()}

    async def get_snapshot(self, user_id: str):
        if user_id not in self.users:
            raise NotFoundError(user_id)
        return dict(self.users[user_id])


class FakeCohorts:
    """PeerCohortProvider backed by a dict; records observations it receives."""

    def __init__(self, cohorts: Optional[List[PeerCohort]] = None, samples=None):
        self.cohorts = {(c.skill_id, c.experience_level, c.region): c for c in cohorts or []}
        self.samples: Dict[Tuple[str, ExperienceLevel], List[float]] = samples or {}
        self.observations: List[tuple] = []
        self.failing_skills: set = set()
        self.failing_writes: set = set()
        self.write_options: List[dict] = []

    async def get_cohort(self, skill_id, experience_level, region=None):
        if skill_id in self.failing_skills:
            raise UpstreamUnavailableError("peer cohort store", "connection refused")
        return self.cohorts.get((skill_id, experience_level, region))

    async def get_anonymized_sample(self, skill_id, experience_level):
        return list(self.samples.get((skill_id, experience_level), []))

    async def add_observation(
        self, skill_id, experience_level, score, region=None, contributor_id=None, noise_scale=1.0
    ):
        if skill_id in self.failing_writes:
            raise UpstreamUnavailableError("peer cohort store", "disk I/O error")
        self.write_options.append({"contributor_id": contributor_id, "noise_scale": noise_scale})
        self.observations.append((skill_id, experience_level, score, region))
        return len(self.observations)


class SlowBenchmarks:
    """Delegates to a real provider but stalls on selected skills."""

    def __init__(self, inner, slow_skills, delay: float = 1.0):
        self.inner = inner
        self.slow_skills = set(slow_skills)
        self.delay = delay

    async def get_benchmark(self, skill_id, experience_level):
        if skill_id in self.slow_skills:
            await asyncio.sleep(self.delay)
        return await self.inner.get_benchmark(skill_id, experience_level)


def make_cohort(
    skill_id: str = "JavaScript",
    experience_level: ExperienceLevel = ExperienceLevel.MID,
    member_count: int = 50,
    region: Optional[str] = None,
) -> PeerCohort:
    return PeerCohort(
        skill_id=skill_id,
        experience_level=experience_level,
        region=region,
        member_count=member_count,
        mean_score=64.0,
        distribution=SkillDistribution(
            p25=50, p50=65, p75=75, p90=85, std_dev=14.2, range=ScoreRange(min=20, max=100)
        ),
    )


@pytest.fixture
def reference() -> ReferenceDataStore:
    return ReferenceDataStore.from_paths(DATA_DIR / "benchmarks.json", DATA_DIR / "job_catalog.json")


@pytest.fixture
def settings() -> Settings:
    return Settings(fetch_timeout_seconds=0.2, min_group_size=10)


@pytest.fixture
def mid_level_user() -> List[SkillObservation]:
    """
    Classified as mid (average level 2.5, 1300 XP). Scores:
    JavaScript 100, React 20, TypeScript 60, COBOL (no benchmark) 42.
    """
    return [
        SkillObservation(skill_id="JavaScript", skill_name="JavaScript", current_level=4, experience_points=1200),
        SkillObservation(skill_id="React", skill_name="React", current_level=1, experience_points=0),
        SkillObservation(skill_id="TypeScript", skill_name="TypeScript", current_level=3, experience_points=0),
        SkillObservation(skill_id="COBOL", skill_name="COBOL", current_level=2, experience_points=100),
    ]
