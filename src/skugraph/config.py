# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_url: str
    environment: str = "production"
    log_level: str = "info"
    cors_origins: list[str] = []
    database_pool_size: int = 20

    # Code generation
    # Upper bound on suffixed candidates tried for one base code before giving up.
    sku_max_reserve_attempts: int = 1000
    sku_min_length: int = 3

    model_config = {"env_file": ".env", "env_prefix": "SKUGRAPH_"}

    @model_validator(mode="after")
    def _validate_limits(self) -> "Settings":
        if self.sku_max_reserve_attempts < 1:
            raise ValueError("sku_max_reserve_attempts must be at least 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Lazy-loaded to avoid import-time failures."""
    return Settings()
