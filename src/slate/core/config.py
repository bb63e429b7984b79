"""Configuration management."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ArangoDB
    arango_url: str = Field(default="http://localhost:8529", description="Coordinator URL")
    arango_database: str = Field(default="_system", description="Database the builders query")
    arango_username: str = "root"
    arango_password: SecretStr = SecretStr("")
    arango_batch_size: int | None = Field(
        default=None,
        ge=1,
        description="Documents fetched per cursor round trip, server default when unset",
    )
    arango_timeout: float = Field(default=60.0, gt=0, description="HTTP timeout in seconds")
    arango_verify_tls: bool = True

    # App config
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SLATE_",
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
    )


settings = Settings()
