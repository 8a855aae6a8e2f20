"""
Application configuration module.

Loads settings from environment variables (or .env file) using pydantic-settings.
Secrets (DB credentials, the JWT signing key) come from the environment and are
never hardcoded for production use.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Signing key used when nothing else is configured.  Accepted only in SQLite
# (local / test) mode; the validator below rejects it everywhere else.
DEV_JWT_SECRET = "investtrack-dev-secret-change-me"


class Settings(BaseSettings):
    """
    Central configuration for the InvestTrack API.

    Environment variables are loaded automatically from .env if present.
    """

    PROJECT_NAME: str = "InvestTrack API"
    API_PREFIX: str = "/api"

    # ── SQLite mode (no external DB required) ──
    USE_SQLITE: bool = False

    # ── PostgreSQL connection parameters ──
    # Empty defaults so USE_SQLITE=true works without dummy PG variables;
    # the validator enforces them in PostgreSQL mode.
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = ""
    POSTGRES_DB: str = ""
    POSTGRES_PORT: int = 5432

    # ── Authentication ──
    JWT_SECRET_KEY: str = DEV_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 600

    @model_validator(mode="after")
    def _require_production_secrets(self) -> "Settings":
        """Fail fast if PostgreSQL mode is missing credentials or a real JWT key."""
        if self.USE_SQLITE:
            return self

        missing = [
            name
            for name in (
                "POSTGRES_USER",
                "POSTGRES_PASSWORD",
                "POSTGRES_SERVER",
                "POSTGRES_DB",
            )
            if not getattr(self, name)
        ]
        if not self.JWT_SECRET_KEY or self.JWT_SECRET_KEY == DEV_JWT_SECRET:
            missing.append("JWT_SECRET_KEY")

        if missing:
            vars_list = ", ".join(missing)
            raise ValueError(
                f"PostgreSQL mode requires these environment variables: "
                f"{vars_list}.\n\n"
                f"Set them in a .env file in the project root or export them "
                f"before starting the server:\n"
                f"       POSTGRES_USER=investtrack\n"
                f"       POSTGRES_PASSWORD=investtrack\n"
                f"       POSTGRES_SERVER=127.0.0.1\n"
                f"       POSTGRES_DB=investtrack\n"
                f"       JWT_SECRET_KEY=<random 32+ byte string>\n\n"
                f"Or skip PostgreSQL entirely (in-memory SQLite):\n"
                f"       USE_SQLITE=true uvicorn invest_track.main:app"
            )
        return self

    # ── Connection pool tuning ──
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30  # seconds to wait for a connection from the pool
    DB_POOL_RECYCLE: int = 1800  # seconds before a connection is recycled

    # ── CORS ──
    # Comma-separated list of allowed origins.  The bundled SPA runs on :3000.
    CORS_ORIGINS: str = "http://localhost:3000"

    # ── Logging ──
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5

    @property
    def DATABASE_URL(self) -> str:
        """Construct the async database DSN.

        Returns an in-memory SQLite URL when ``USE_SQLITE`` is enabled,
        otherwise a PostgreSQL DSN for asyncpg.
        """
        if self.USE_SQLITE:
            return "sqlite+aiosqlite://"
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
