from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application configuration."""

    app_name: str = Field(default="Restaurant Orders API")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)

    # MongoDB clusters
    bhawarchi_mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("BHAWARCHI_MONGO_URI", "BHAWARCHI_URI"),
    )
    bansari_mongo_uri: str = Field(
        default="mongodb://localhost:27018",
        validation_alias=AliasChoices("BANSARI_MONGO_URI", "BANSARI_URI"),
    )
    mongo_server_selection_timeout_ms: int = Field(default=5000)

    default_restaurant: str = Field(default="bansari")

    allowed_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias="ALLOWED_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def cluster_uris(self) -> dict[str, str]:
        return {
            "bhawarchi": self.bhawarchi_mongo_uri,
            "bansari": self.bansari_mongo_uri,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
