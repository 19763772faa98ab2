"""
Tests for the SQLAlchemy-backed skill progress repository.

Uses a temporary aiosqlite database per test.
"""
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from skillbench.database import init_db
from skillbench.exceptions import NotFoundError
from skillbench.schemas import SkillObservation
from skillbench.services.progress_store import SkillProgressRepository


@pytest_asyncio.fixture
async def repository(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'progress.db'}")
    await init_db(engine)
    yield SkillProgressRepository(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    await engine.dispose()


class TestSkillProgressRepository:
    @pytest.mark.asyncio
    async def test_unknown_user(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            await repository.get_snapshot("ghost")

        assert exc_info.value.details == {"user_id": "ghost"}

    @pytest.mark.asyncio
    async def test_saved_skills_form_snapshot(self, repository):
        await repository.save_observation(
            "u1", SkillObservation(skill_id="React", skill_name="React", current_level=3, experience_points=400)
        )
        await repository.save_observation("u1", SkillObservation(skill_id="Go", current_level=1))

        snapshot = await repository.get_snapshot("u1")

        assert set(snapshot) == {"React", "Go"}
        assert snapshot["React"].experience_points == 400
        assert snapshot["Go"].skill_name == "Go"

    @pytest.mark.asyncio
    async def test_save_updates_existing_skill(self, repository):
        await repository.save_observation("u1", SkillObservation(skill_id="React", current_level=2))
        await repository.save_observation("u1", SkillObservation(skill_id="React", current_level=4, experience_points=50))

        snapshot = await repository.get_snapshot("u1")

        assert snapshot["React"].current_level == 4
        assert snapshot["React"].experience_points == 50

    @pytest.mark.asyncio
    async def test_snapshots_are_per_user(self, repository):
        await repository.save_observation("u1", SkillObservation(skill_id="React", current_level=2))

        with pytest.raises(NotFoundError):
            await repository.get_snapshot("u2")
