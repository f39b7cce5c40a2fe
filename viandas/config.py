"""Runtime configuration for the API, read from the environment or .env."""
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIANDAS_",
        extra="ignore",
    )

    app_name: str = "Viandas API"
    version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./viandas.db"

    # Auth
    jwt_secret: str = "dev-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    password_hash_rounds: int = 29000

    # Uploads
    max_file_size: int = 10 * 1024 * 1024
    allowed_file_types: Annotated[List[str], NoDecode] = ["image/jpeg", "image/png", "image/gif", "application/pdf"]

    # HTTP
    cors_origins: Annotated[List[str], NoDecode] = ["*"]
    # declared for deployments that front the API with a limiter; not enforced here
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 900

    # Object storage
    storage_backend: str = "memory"
    s3_bucket: Optional[str] = None
    s3_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    public_base_url: Optional[str] = None

    @field_validator("allowed_file_types", "cors_origins", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
