"""Runtime settings for the migration, loaded from the environment.

Values come from process environment variables, optionally seeded from a
``.env`` file in the working directory:

- DATABASE_URL: SQLAlchemy URL of the application database
- DB_KEY_BASE: master secret the token encryption keys are derived from
- MIGRATION_BATCH_SIZE: records fetched per selector query (default 1)
- LOG_LEVEL: logging level for the entry point (default INFO)
"""

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .core.constants import DEFAULT_BATCH_SIZE
from .exceptions import ConfigError


class MigrationSettings(BaseModel):
    """Settings consumed by the migration entry point."""
    database_url: Optional[str] = Field(None, description="SQLAlchemy database URL")
    db_key_base: Optional[str] = Field(None, description="Master secret for attribute encryption")
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1, description="Records per selector query")
    log_level: str = Field("INFO", description="Logging level")

    def require_database_url(self) -> str:
        if not self.database_url:
            raise ConfigError("DATABASE_URL is not set")
        return self.database_url

    def require_db_key_base(self) -> str:
        if not self.db_key_base:
            raise ConfigError("DB_KEY_BASE is not set")
        return self.db_key_base


@lru_cache(maxsize=1)
def get_settings() -> MigrationSettings:
    """Load settings from the environment (cached)."""
    load_dotenv()
    try:
        return MigrationSettings(
            database_url=os.getenv("DATABASE_URL"),
            db_key_base=os.getenv("DB_KEY_BASE"),
            batch_size=os.getenv("MIGRATION_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid migration settings: {e}") from e
