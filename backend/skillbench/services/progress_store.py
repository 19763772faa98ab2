"""
Skill Progress Repository - SQLAlchemy-backed user snapshots

Implements SkillSnapshotProvider on top of the skill_progress table.
Each call opens its own session so concurrent fetches never share one.
"""

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillbench.exceptions import NotFoundError, UpstreamUnavailableError
from skillbench.models.skill_progress import SkillProgress
from skillbench.schemas.progress import SkillObservation, SkillSnapshot

logger = logging.getLogger(__name__)


class SkillProgressRepository:
    """
    Reads and writes per-user skill progress.

    Attributes:
        session_factory: Callable returning a new AsyncSession
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def get_snapshot(self, user_id: str) -> SkillSnapshot:
        """
        Load all skills for a user.

        Raises:
            NotFoundError: User has no recorded progress
            UpstreamUnavailableError: Database query failed
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(SkillProgress).where(SkillProgress.user_id == user_id)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Skill progress query failed: {e}")
            raise UpstreamUnavailableError("skill progress store", str(e)) from e

        if not rows:
            raise NotFoundError(user_id)

        return {
            row.skill_id: SkillObservation(
                skill_id=row.skill_id,
                skill_name=row.skill_name or row.skill_id,
                current_level=row.current_level,
                experience_points=row.experience_points,
            )
            for row in rows
        }

    async def save_observation(self, user_id: str, observation: SkillObservation) -> None:
        """Insert or update one skill for a user."""
        try:
            async with self.session_factory() as session:
                row = await session.get(SkillProgress, (user_id, observation.skill_id))
                if row is None:
                    row = SkillProgress(user_id=user_id, skill_id=observation.skill_id)
                    session.add(row)
                row.skill_name = observation.skill_name
                row.current_level = observation.current_level
                row.experience_points = observation.experience_points
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save skill progress: {e}")
            raise UpstreamUnavailableError("skill progress store", str(e)) from e
