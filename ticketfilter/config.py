"""
Configuration management for the ticket filter engine.
Uses pydantic-settings for environment-based configuration.
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./ticketfilter.db"

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    # Application
    app_name: str = "Ticket Filter Rules"

    # Evaluation
    record_matches: bool = True
    # A rule with no requirements matches unless a conflict fires
    empty_requirements_match: bool = True

    # Display name catalogs (gettext .mo files)
    locale_dir: Path = Path(__file__).parent / "locale"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
