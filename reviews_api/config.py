import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./db/reviews.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "20"))
    DB_POOL_TIMEOUT: float = float(os.getenv("DB_POOL_TIMEOUT", "2.0"))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "30"))
    DB_ECHO: bool = _env_flag("DB_ECHO", "false")
    CREATE_TABLES: bool = _env_flag("CREATE_TABLES", "true")
    APP_PORT: int = int(os.getenv("APP_PORT", "3333"))
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()

# Listing defaults. Change values here, not in individual files.
DEFAULT_PAGE_COUNT = 5
MAX_PAGE_COUNT = 100
SORT_KEYS = ("relevance", "helpful", "newest")
DEFAULT_SORT = "relevance"

# Input length limits for review submissions.
MAX_SUMMARY = 60
MAX_BODY = 1000
MAX_REVIEWER_NAME = 60
MAX_REVIEWER_EMAIL = 60
MAX_PHOTO_URL = 500
MAX_PHOTOS = 5
MIN_RATING = 1
MAX_RATING = 5
