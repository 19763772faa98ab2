"""
Reference Data Store - Versioned Benchmark and Job Catalog Datasets

Industry benchmark curves and the job catalog are configuration data, not
code. They ship as JSON files (skillbench/data/) and are loaded into
validated pydantic models at startup:

    benchmarks.json   - per skill/level standards {min, max, average} plus
                        experience level profiles, salary bands, focus
                        areas, learning resources and related job titles
    job_catalog.json  - static list of JobOpportunity records

An IndustryBenchmark is derived from a standard as four percentile ranges:

    25th: [min, min + 10)
    50th: [min + 10, average)
    75th: [average, max - 5)
    90th: [max - 5, max]

reload() swaps both datasets in a single assignment, so readers see either
the old version or the new one, never a mix. A failed reload keeps the
previous version.

Usage:
    store = ReferenceDataStore.from_paths(benchmarks_path, catalog_path)
    benchmark = await store.get_benchmark("JavaScript", ExperienceLevel.MID)
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from skillbench.exceptions import ReferenceDataError
from skillbench.schemas.benchmark import (
    ExperienceLevelProfile,
    IndustryBenchmark,
    PercentileRange,
    SalaryRange,
)
from skillbench.schemas.common import ExperienceLevel
from skillbench.schemas.readiness import JobOpportunity, LearningResource

logger = logging.getLogger(__name__)


class LevelStandard(BaseModel):
    min: float = Field(..., ge=0, le=100)
    max: float = Field(..., ge=0, le=100)
    average: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_bounds(self) -> "LevelStandard":
        if not self.min <= self.average <= self.max:
            raise ValueError("expected min <= average <= max")
        return self


class SalaryBand(BaseModel):
    min: int
    max: int
    median: int


class LevelProfileData(BaseModel):
    years_of_experience: int = 0
    description: str = ""
    required_skills: List[str] = []
    typical_responsibilities: List[str] = []


class BenchmarkDataset(BaseModel):
    version: str
    valid_until: Optional[datetime] = None
    source: str = ""
    industry: str = "Software Development"
    region: str = "Global"
    sample_size: int = 1000
    experience_levels: Dict[ExperienceLevel, LevelProfileData] = {}
    standards: Dict[str, Dict[ExperienceLevel, LevelStandard]]
    salary_bands: Dict[ExperienceLevel, SalaryBand] = {}
    salary_multipliers: Dict[str, float] = {}
    improvement_areas: Dict[str, List[str]] = {}
    learning_resources: Dict[str, List[LearningResource]] = {}
    related_opportunities: Dict[str, List[str]] = {}

    @field_validator("valid_until")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class JobCatalogDataset(BaseModel):
    version: str
    opportunities: List[JobOpportunity] = []


@dataclass(frozen=True)
class _Snapshot:
    benchmarks: BenchmarkDataset
    catalog: JobCatalogDataset
    loaded_at: datetime


def _read_json(path: Path, model):
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise ReferenceDataError(str(path), "file not found") from None
    except json.JSONDecodeError as e:
        raise ReferenceDataError(str(path), f"invalid JSON: {e}") from e

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise ReferenceDataError(str(path), str(e)) from e


def build_percentile_ranges(standard: LevelStandard) -> List[PercentileRange]:
    return [
        PercentileRange(
            percentile=25,
            min_score=standard.min,
            max_score=standard.min + 10,
            description="Below Average",
        ),
        PercentileRange(
            percentile=50,
            min_score=standard.min + 10,
            max_score=standard.average,
            description="Average",
        ),
        PercentileRange(
            percentile=75,
            min_score=standard.average,
            max_score=standard.max - 5,
            description="Above Average",
        ),
        PercentileRange(
            percentile=90,
            min_score=standard.max - 5,
            max_score=standard.max,
            description="Exceptional",
        ),
    ]


class ReferenceDataStore:
    """
    In-memory holder for the benchmark and job catalog datasets.

    Implements both BenchmarkProvider and JobCatalogProvider.

    Attributes:
        benchmarks_path: Path to benchmarks.json
        catalog_path: Path to job_catalog.json
    """

    def __init__(self, benchmarks_path: Path, catalog_path: Path):
        self.benchmarks_path = Path(benchmarks_path)
        self.catalog_path = Path(catalog_path)
        self._snapshot: Optional[_Snapshot] = None

    @classmethod
    def from_paths(cls, benchmarks_path: Path, catalog_path: Path) -> "ReferenceDataStore":
        store = cls(benchmarks_path, catalog_path)
        store.reload()
        return store

    def reload(self) -> bool:
        """
        Load both datasets from disk and swap them in.

        Returns:
            True when the new version was installed. On failure the previous
            version stays active; with no previous version the error is raised.
        """
        try:
            benchmarks = _read_json(self.benchmarks_path, BenchmarkDataset)
            catalog = _read_json(self.catalog_path, JobCatalogDataset)
        except ReferenceDataError as e:
            if self._snapshot is None:
                raise
            logger.error(f"Reference data reload failed, keeping version "
                         f"{self._snapshot.benchmarks.version}: {e.message}")
            return False

        self._snapshot = _Snapshot(
            benchmarks=benchmarks,
            catalog=catalog,
            loaded_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"Loaded reference data: benchmarks v{benchmarks.version} "
            f"({len(benchmarks.standards)} skills), "
            f"job catalog v{catalog.version} ({len(catalog.opportunities)} opportunities)"
        )
        return True

    @property
    def _data(self) -> _Snapshot:
        if self._snapshot is None:
            raise ReferenceDataError(str(self.benchmarks_path), "reference data not loaded")
        return self._snapshot

    @property
    def version(self) -> str:
        return self._data.benchmarks.version

    @property
    def loaded_at(self) -> datetime:
        return self._data.loaded_at

    def skill_ids(self) -> List[str]:
        return list(self._data.benchmarks.standards)

    async def get_benchmark(
        self, skill_id: str, experience_level: ExperienceLevel
    ) -> Optional[IndustryBenchmark]:
        """
        Build the benchmark curve for a skill at a level.

        Returns None when the dataset has no standard for the pair.
        """
        dataset = self._data.benchmarks
        standard = dataset.standards.get(skill_id, {}).get(experience_level)
        if standard is None:
            return None

        if dataset.valid_until and dataset.valid_until < datetime.now(timezone.utc):
            logger.warning(f"Benchmark dataset v{dataset.version} expired on {dataset.valid_until.date()}")

        return IndustryBenchmark(
            benchmark_id=f"benchmark_{skill_id}_{experience_level.value}",
            skill_id=skill_id,
            skill_name=skill_id,
            industry=dataset.industry,
            experience_level=experience_level,
            average_score=standard.average,
            percentile_ranges=build_percentile_ranges(standard),
            sample_size=dataset.sample_size,
            data_source=dataset.source,
            region=dataset.region,
            valid_until=dataset.valid_until,
            salary_range=self.salary_range(skill_id, experience_level),
        )

    async def get_job_catalog(self) -> List[JobOpportunity]:
        return list(self._data.catalog.opportunities)

    def salary_range(self, skill_id: str, experience_level: ExperienceLevel) -> Optional[SalaryRange]:
        dataset = self._data.benchmarks
        band = dataset.salary_bands.get(experience_level) or dataset.salary_bands.get(ExperienceLevel.ENTRY)
        if band is None:
            return None
        multiplier = dataset.salary_multipliers.get(skill_id, 1.0)
        return SalaryRange(
            min=round(band.min * multiplier),
            max=round(band.max * multiplier),
            median=round(band.median * multiplier),
        )

    def experience_profile(self, experience_level: ExperienceLevel) -> ExperienceLevelProfile:
        data = self._data.benchmarks.experience_levels.get(experience_level, LevelProfileData())
        return ExperienceLevelProfile(level=experience_level, **data.model_dump())

    def improvement_areas(self, skill_id: str) -> Optional[List[str]]:
        return self._data.benchmarks.improvement_areas.get(skill_id)

    def learning_resources(self, skill_id: str) -> List[LearningResource]:
        return list(self._data.benchmarks.learning_resources.get(skill_id, []))

    def related_opportunities(self, skill_id: str) -> List[str]:
        return list(self._data.benchmarks.related_opportunities.get(skill_id, []))
