"""
Gateway settings.

Loaded once at startup from the environment (and `.env` when present), then
passed into the app explicitly. Instances are frozen.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    keycloak_url: str = Field(default="http://localhost:8080", alias="KEYCLOAK_URL")
    realm: str = Field(default="master", alias="REALM")

    admin_username: str = Field(default="", alias="ADMIN_USERNAME")
    admin_password: str = Field(default="", alias="ADMIN_PASSWORD")
    admin_client_id: str = Field(default="admin-cli", alias="ADMIN_CLIENT_ID")
    mobile_client_id: str = Field(default="", alias="MOBILE_CLIENT_ID")

    http_timeout_s: float = Field(default=30.0, gt=0, alias="HTTP_TIMEOUT_S")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_allowed_origins: str = Field(default="", alias="CORS_ALLOWED_ORIGINS")

    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=5000, alias="APP_PORT")

    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
