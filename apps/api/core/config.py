"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance, including the knobs
the statement engine exposes (dedup keys, chunk sizes, CRDB date format,
customer directory source and cache lifetime).
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from packages.statement_engine.models import BankFormat


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(..., description="Supabase anon/public key")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service-role key (directory reads, CLI imports)",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    # Customer directory
    CUSTOMER_SHEET_URL: str = Field(
        default="",
        description="Published CSV export of the customer sheet; the table is used when empty",
    )
    MAPPINGS_CACHE_TTL_HOURS: float = Field(
        default=24, gt=0, description="Lifetime of the cached customer mappings"
    )

    # Statement engine
    DEDUP_CHUNK_SIZE: int = Field(default=100, ge=1, description="Keys per existence query")
    WRITE_CHUNK_SIZE: int = Field(default=100, ge=1, description="Rows per insert call")
    NMB_DEDUP_KEY: str = Field(default="account_or_user_id")
    CRDB_DEDUP_KEY: str = Field(default="reference_id")
    CRDB_DATE_SEPARATOR: str = Field(default="-", description="'-' or '/'")
    PERSIST_FAILED_LINES: bool = Field(
        default=False, description="Store failed lines as audit rows"
    )

    @field_validator("CRDB_DATE_SEPARATOR")
    @classmethod
    def _check_separator(cls, value: str) -> str:
        if value not in ("-", "/"):
            raise ValueError("CRDB_DATE_SEPARATOR must be '-' or '/'")
        return value

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def dedup_keys(self) -> dict[BankFormat, str]:
        return {BankFormat.NMB: self.NMB_DEDUP_KEY, BankFormat.CRDB: self.CRDB_DEDUP_KEY}

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings, overridable in tests."""
    return Settings()


# Module-level singleton (lazy: only created when first accessed)
try:
    settings = get_settings()
except Exception:
    # Env vars may be unset under test; callers fall back to defaults
    settings = None  # type: ignore[assignment]
