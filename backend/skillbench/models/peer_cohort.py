"""
PeerCohortAggregate Model - Anonymized cohort statistics

Stores only aggregates per (skill, experience level, region) bucket:
    - member_count: number of distinct contributors folded in
    - mean / m2: running mean and sum of squared deviations (Welford)
    - histogram: 101 integer counts of noisy scores rounded to 0..100

PeerContribution rows record, as salted hashes, which contributors have
already been counted in a bucket so nobody is counted twice.

No user identifiers and no individual scores are stored.
"""

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from skillbench.database import Base

GLOBAL_REGION = "global"
HISTOGRAM_BINS = 101


def cohort_key(skill_id: str, experience_level: str, region: str = GLOBAL_REGION) -> str:
    return f"{skill_id}:{experience_level}:{region}"


class PeerCohortAggregate(Base):
    __tablename__ = "peer_cohort_aggregates"

    id = Column(String, primary_key=True)
    skill_id = Column(String, nullable=False, index=True)
    experience_level = Column(String, nullable=False)
    region = Column(String, nullable=False, default=GLOBAL_REGION)
    member_count = Column(Integer, nullable=False, default=0)
    mean = Column(Float, nullable=False, default=0.0)
    m2 = Column(Float, nullable=False, default=0.0)
    histogram = Column(JSON, nullable=False, default=lambda: [0] * HISTOGRAM_BINS)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PeerContribution(Base):
    """
    Marks that a contributor has been counted in a cohort bucket.

    The id is a salted hash of the contributor and the cohort key, so rows
    cannot be joined across buckets or traced back to a user. No score is
    stored.
    """

    __tablename__ = "peer_contributions"

    id = Column(String(64), primary_key=True)
    created_at = Column(DateTime, server_default=func.now())
