"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "Journal Insights"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Analytics ---
    analytics_config_path: str = ""  # empty = bundled analytics_config.yaml
    seed_data_path: str = ""  # optional JSON export loaded into the in-memory stores

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8081"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
