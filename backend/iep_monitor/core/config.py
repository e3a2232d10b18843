from pydantic_settings import BaseSettings
from typing import List, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "IEP Compliance Monitor"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./iep_monitor.db"
    DB_ECHO: bool = False

    # ==========================================
    # Identity (resolved upstream, trusted here)
    # ==========================================
    ACTOR_HEADER: str = "X-User-Id"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Empty disables the rotating file handler

    # ==========================================
    # Compliance Rules
    # ==========================================
    DUE_SOON_DAYS: int = 7
    UPCOMING_REVIEW_DAYS: int = 30
    STALE_PROGRESS_DAYS: int = 30

    # Scan alerts carry a dedup key; only checked when enabled
    SCAN_DEDUPE_ENABLED: bool = False
    SCAN_DEDUPE_BUCKET: str = "day"  # "day" or "week"
    SCAN_TIMEOUT_SECONDS: float = 60.0

    # ==========================================
    # Analytics
    # ==========================================
    TREND_BUCKETS: int = 6

    # ==========================================
    # Listing Limits
    # ==========================================
    NOTIFICATION_LIST_LIMIT: int = 20
    REPORT_LIST_LIMIT: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


settings = Settings()
