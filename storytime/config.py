"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .database import Database

# Load environment variables
load_dotenv()


def _parse_float(value: str | None, default: float) -> float:
    """Parse float from environment variable."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


class Config:
    """Application configuration from environment."""
    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/storytime.db"))
    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Optional API key guard; empty disables auth (local development)
    AUTH_API_KEY: str = os.getenv("AUTH_API_KEY", "")

    # Store access
    STORE_TIMEOUT_SECONDS: float = _parse_float(os.getenv("STORE_TIMEOUT_SECONDS"), 5.0)
    STORE_RETRY_ATTEMPTS: int = int(os.getenv("STORE_RETRY_ATTEMPTS", "3"))

    # Discovery defaults
    DISCOVERY_LIMIT: int = int(os.getenv("DISCOVERY_LIMIT", "180"))
    ALGO_WINDOW_DAYS: int = int(os.getenv("ALGO_WINDOW_DAYS", "180"))
    HOT_CANDIDATE_LIMIT: int = int(os.getenv("HOT_CANDIDATE_LIMIT", "320"))

    # Requests per minute for event ingestion and feed actions (<= 0 disables)
    RATE_LIMIT_PER_MINUTE: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "120"))

    def auth_enabled(self) -> bool:
        """Check if API key auth is configured."""
        return bool(self.AUTH_API_KEY)


config = Config()


class AppState:
    """Shared application state."""
    db: "Database | None" = None


state = AppState()


def get_db() -> "Database":
    """Dependency to get database instance."""
    if not state.db:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return state.db
