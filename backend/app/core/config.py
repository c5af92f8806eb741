"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ──────────────────────────────
    POSTGRES_USER: str = "projectdesk_user"
    POSTGRES_PASSWORD: str = "projectdesk_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "projectdesk_db"

    # Full URL override (e.g. sqlite+aiosqlite:///./projectdesk.db for local runs)
    SQLALCHEMY_DATABASE_URI: str = ""
    DB_ECHO: bool = False

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Sync URL for Alembic migrations (psycopg2)."""
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI.replace("+asyncpg", "").replace("+aiosqlite", "")
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ── Redis / Celery ────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── File Storage ──────────────────────────
    STORAGE_ENDPOINT: str = "http://localhost:9000"
    STORAGE_ACCESS_KEY: str = "minioadmin"
    STORAGE_SECRET_KEY: str = "minioadmin"
    STORAGE_REGION: str = "us-east-1"
    STORAGE_BUCKET_NAME: str = "task-attachments"
    STORAGE_SIGNED_URL_TTL_SECONDS: int = 3600

    # ── Auth / JWT ────────────────────────────
    JWT_SECRET_KEY: str = "change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    CORS_ORIGINS: list[str] = ["*"]

    # ── Business rules ────────────────────────
    COMMENT_EDIT_WINDOW_MINUTES: int = 5
    AUTO_ARCHIVE_AFTER_HOURS: int = 24
    ATTACHMENT_MAX_BYTES: int = 10 * 1024 * 1024
    RECURRING_DUE_SOON_DAYS: int = 7
    RECURRING_UPCOMING_DAYS: int = 30
    NOTIFICATIONS_LIST_LIMIT: int = 50
    ARCHIVED_PAGE_SIZES: list[int] = [10, 25, 50, 100]
    DEFAULT_CURRENCY: str = "USD"

    # ── Realtime ──────────────────────────────
    REALTIME_QUEUE_SIZE: int = 100

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
