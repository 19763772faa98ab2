"""
SkillProgress Model - Per-user skill levels

One row per (user, skill). Owned by the surrounding learning platform;
this service only reads it to build assessment snapshots.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from skillbench.database import Base


class SkillProgress(Base):
    __tablename__ = "skill_progress"

    user_id = Column(String, primary_key=True)
    skill_id = Column(String, primary_key=True)
    skill_name = Column(String, nullable=False, default="")
    current_level = Column(Integer, nullable=False, default=0)
    experience_points = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("ix_skill_progress_user", "user_id"),)
