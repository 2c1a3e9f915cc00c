"""Configuration for the maturity scoring engine."""

from typing import List
from pydantic_settings import BaseSettings


class ScoringConfig(BaseSettings):
    """Scoring engine configuration settings."""

    # Reference data (empty = packaged catalog)
    data_dir: str = ""

    # Settings store
    store_dir: str = "./data/store"
    backup_retention: int = 10

    # Scoring defaults
    gap_threshold: float = 0.5
    roadmap_limit: int = 10
    missing_evidence_multiplier: float = 1.0
    default_enabled_frameworks: List[str] = ["NIST_AI_RMF", "ISO_27001_27002", "LGPD"]

    # Export settings
    output_dir: str = "./outputs"

    class Config:
        env_prefix = "AISEC_"
        env_file = ".env"
        env_file_encoding = "utf-8"


def get_config() -> ScoringConfig:
    """Get scoring configuration."""
    return ScoringConfig()
