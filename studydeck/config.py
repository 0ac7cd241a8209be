"""Configuration management for studydeck."""

# This module centralizes all environment variable loading and configuration
# for studydeck, including the database path and review defaults.

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_PATH = "data/studydeck.db"

# Review session limits
DEFAULT_REVIEW_LIMIT = 20  # Cards per study session


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Database
    database_path: str = DEFAULT_DATABASE_PATH

    # User
    user_id: int = 1

    # Reviews
    review_limit: int = DEFAULT_REVIEW_LIMIT

    @staticmethod
    def _safe_int(value: str, default: int = 0) -> int:
        """Safely parse an integer, returning default if invalid."""
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        return cls(
            database_path=os.environ.get("DATABASE_PATH", DEFAULT_DATABASE_PATH),
            user_id=cls._safe_int(os.environ.get("STUDYDECK_USER_ID", "1"), 1),
            review_limit=cls._safe_int(
                os.environ.get("REVIEW_LIMIT", str(DEFAULT_REVIEW_LIMIT)), DEFAULT_REVIEW_LIMIT
            ),
        )

    def ensure_database_dir(self) -> None:
        """Ensure the database directory exists."""
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
