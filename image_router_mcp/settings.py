from __future__ import annotations

from functools import lru_cache
from typing import ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .shard import constants as C


class Settings(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(env_nested_delimiter="__")

    replicate_api_token: str | None = Field(default=None, description="API token for Replicate")
    replicate_base_url: str = Field(default=C.REPLICATE_BASE_URL, description="Base URL of the Replicate HTTP API")

    catalog_collection: str = Field(default=C.DEFAULT_COLLECTION, description="Replicate collection slug the catalog is built from")
    catalog_ttl_seconds: float = Field(default=C.CATALOG_TTL_SECONDS, gt=0, description="Lifetime of a fetched catalog snapshot")
    catalog_timeout_seconds: float = Field(default=C.CATALOG_TIMEOUT_SECONDS, gt=0, description="Network timeout for catalog refreshes")
    generation_timeout_seconds: float = Field(default=C.GENERATION_TIMEOUT_SECONDS, gt=0, description="Network timeout for prediction requests")

    summary_snapshot_path: str = Field(default=C.DEFAULT_SUMMARY_SNAPSHOT_PATH, description="Path of the model summary snapshot JSON")
    summary_api_key: str | None = Field(default=None, description="API key for the OpenAI-compatible summary endpoint")
    summary_base_url: str = Field(default=C.DEFAULT_SUMMARY_BASE_URL, description="Base URL of the OpenAI-compatible summary endpoint")
    summary_model: str = Field(default=C.DEFAULT_SUMMARY_MODEL, description="Chat model used to write model summaries")

    @property
    def use_replicate(self) -> bool:
        """Determine if the live Replicate catalog and predictions can be used."""
        return bool(self.replicate_api_token)

    @property
    def use_summaries(self) -> bool:
        """Determine if model summaries can be generated with the configured endpoint."""
        return bool(self.summary_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
