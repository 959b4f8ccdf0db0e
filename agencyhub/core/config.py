from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./agencyhub.db"

    # Auth (tokens are issued by the hosted auth backend; we only verify them)
    auth_jwt_secret: str = "changeme"  # override in .env
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: str | None = "authenticated"
    access_token_expire_minutes: int = 60

    # Sales: share of gross revenue kept by the agency after chatter commission
    sale_net_revenue_rate: Decimal = Decimal("0.80")

    # File storage
    file_storage_root: str = "uploads"
    attachment_max_files: int = 10

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
