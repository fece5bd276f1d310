# src/storefront/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Storefront Catalog Proxy"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Loyverse API
    loyverse_api_url: str = Field(default="https://api.loyverse.com/v1.0")
    loyverse_token: str = Field(default="")
    upstream_timeout_seconds: float = 15.0
    upstream_page_size: int = Field(default=250, ge=1, le=250)

    # Inventory lookups: the inventory endpoint accepts at most 250 variant ids per query
    inventory_chunk_size: int = Field(default=250, ge=1, le=250)
    inventory_max_concurrency: int = Field(default=5, ge=1)

    # Backoff on HTTP 429
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_max_delay_seconds: float = Field(default=8.0, ge=0)
    retry_jitter: float = Field(default=0.1, ge=0, le=1)

    # Listings
    listing_quota: int = Field(default=12, ge=1)
    listing_in_stock_only: bool = True
    catalog_in_stock_only: bool = True
    search_in_stock_only: bool = True

    # Result set cache: 1 keeps only the most recent filter view
    catalog_cache_max_entries: int = Field(default=1, ge=1)
    catalog_cache_ttl_seconds: int = Field(default=0, ge=0)

    # SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 30.0

    # Rate Limiting
    email_rate_limit: str = "5/minute"

    # CORS
    cors_origins: list[str] = Field(default=["*"])

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
