from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/skillbench.db"

    # Redis configuration
    redis_url: str = "redis://localhost:6379"

    # Reference datasets (versioned JSON, refreshed out-of-band)
    benchmark_dataset_path: Path = DATA_DIR / "benchmarks.json"
    job_catalog_path: Path = DATA_DIR / "job_catalog.json"
    reference_refresh_hours: int = 24

    # Privacy: cohorts smaller than this are never exposed
    min_group_size: int = Field(10, ge=10)
    # Half-width of the uniform noise added to each cohort observation
    peer_noise_amplitude: float = Field(5.0, ge=0.0)
    # Mixed into the hashed contributor markers that stop double counting
    peer_contributor_salt: str = "skillbench-local"

    # Assessment settings
    job_match_threshold: float = 60.0
    fetch_timeout_seconds: float = 5.0
    next_review_days: int = 30

    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")


@lru_cache
def get_settings() -> Settings:
    return Settings()
