#!/usr/bin/env python3
"""
Peer Cohort Seed Script

Populates the peer cohort aggregates with synthetic observations so the
peer comparison endpoints have exposable cohorts in development.

Observations go through PeerCohortStore.add_observation, so the same
noise and aggregation rules apply as for real contributions. Scores are
drawn from a normal distribution per experience level:

    entry 35, junior 50, mid 65, senior 80, lead 90, principal 95 (sd 15)

Usage:
    # 50 observations per skill and level, all skills in the benchmark dataset
    python scripts/seed_peer_cohorts.py --per-bucket 50

    # Only some skills, with a regional cohort as well
    python scripts/seed_peer_cohorts.py --skills JavaScript React --region EU

    # Also store a demo user's progress snapshot
    python scripts/seed_peer_cohorts.py --demo-user demo
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np

from skillbench.config import get_settings
from skillbench.database import async_session, init_db
from skillbench.schemas import ExperienceLevel, SkillObservation
from skillbench.services.peer_cohorts import PeerCohortStore
from skillbench.services.progress_store import SkillProgressRepository
from skillbench.services.reference_data import ReferenceDataStore

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

settings = get_settings()

LEVEL_MEANS = {
    ExperienceLevel.ENTRY: 35,
    ExperienceLevel.JUNIOR: 50,
    ExperienceLevel.MID: 65,
    ExperienceLevel.SENIOR: 80,
    ExperienceLevel.LEAD: 90,
    ExperienceLevel.PRINCIPAL: 95,
}
STANDARD_DEVIATION = 15

DEMO_SKILLS = [
    SkillObservation(skill_id="JavaScript", skill_name="JavaScript", current_level=3, experience_points=600),
    SkillObservation(skill_id="React", skill_name="React", current_level=3, experience_points=400),
    SkillObservation(skill_id="TypeScript", skill_name="TypeScript", current_level=2, experience_points=150),
    SkillObservation(skill_id="Node.js", skill_name="Node.js", current_level=2, experience_points=100),
]


async def seed_cohorts(
    skills: List[str],
    per_bucket: int,
    region: Optional[str],
    seed: Optional[int],
) -> int:
    rng = np.random.default_rng(seed)
    store = PeerCohortStore(async_session, noise_amplitude=settings.peer_noise_amplitude, rng=rng)

    total = 0
    for skill_id in skills:
        for level, mean in LEVEL_MEANS.items():
            scores = np.clip(rng.normal(mean, STANDARD_DEVIATION, per_bucket), 0, 100)
            for score in scores:
                await store.add_observation(skill_id, level, float(score), region)
            total += per_bucket
        logger.info(f"Seeded {skill_id}: {per_bucket} observations x {len(LEVEL_MEANS)} levels")

    return total


async def seed_demo_user(user_id: str) -> None:
    repository = SkillProgressRepository(async_session)
    for observation in DEMO_SKILLS:
        await repository.save_observation(user_id, observation)
    logger.info(f"Stored {len(DEMO_SKILLS)} skills for demo user")


async def main(args: argparse.Namespace) -> None:
    await init_db()

    skills = args.skills
    if not skills:
        reference = ReferenceDataStore.from_paths(settings.benchmark_dataset_path, settings.job_catalog_path)
        skills = reference.skill_ids()

    total = await seed_cohorts(skills, args.per_bucket, args.region, args.seed)
    logger.info(f"Done: {total} observations recorded")

    if args.demo_user:
        await seed_demo_user(args.demo_user)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed peer cohorts with synthetic observations")
    parser.add_argument("--skills", nargs="*", help="Skill ids to seed (default: every benchmarked skill)")
    parser.add_argument("--per-bucket", type=int, default=50, help="Observations per skill and level")
    parser.add_argument("--region", help="Also feed a regional cohort")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible data")
    parser.add_argument("--demo-user", help="Store a demo progress snapshot under this user id")

    asyncio.run(main(parser.parse_args()))
