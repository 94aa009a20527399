from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    service_name: str = Field(default="wave-billing-gpt-backend", alias="SERVICE_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    internal_api_secret: Optional[str] = Field(default=None, alias="INTERNAL_API_SECRET")
    wave_access_token: Optional[str] = Field(default=None, alias="WAVE_ACCESS_TOKEN")
    wave_graphql_url: str = Field(
        default="https://gql.waveapps.com/graphql/public",
        alias="WAVE_GRAPHQL_URL",
    )

    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECONDS")

    # Per-business entries. Field names match the environment variable names.
    wave_business_id_manna: Optional[str] = None
    wave_business_id_bako: Optional[str] = None
    wave_business_id_socialion: Optional[str] = None

    wave_anchor_account_id_manna: Optional[str] = None
    wave_anchor_account_id_bako: Optional[str] = None
    wave_anchor_account_id_socialion: Optional[str] = None

    wave_sales_account_id_manna: Optional[str] = None
    wave_sales_account_id_bako: Optional[str] = None
    wave_sales_account_id_socialion: Optional[str] = None

    wave_generic_product_id_manna: Optional[str] = None
    wave_generic_product_id_bako: Optional[str] = None
    wave_generic_product_id_socialion: Optional[str] = None

    wave_line_item_account_id_manna: Optional[str] = None
    wave_line_item_account_id_bako: Optional[str] = None
    wave_line_item_account_id_socialion: Optional[str] = None

    def read_entry(self, env_name: str) -> Optional[str]:
        """Return a per-business entry by environment variable name, or None when unset."""
        value = getattr(self, env_name.lower(), None)
        if value is None:
            return None
        value = value.strip()
        return value or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
