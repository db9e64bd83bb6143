"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with MONSPARK_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="MONSPARK_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_name: str = "MONSpark Backend API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 5000
    database_url: str = "sqlite+aiosqlite:///./data/monspark.db"
    redis_url: str = ""  # empty disables rate limiting
    cors_origins: list[str] = ["http://localhost:8080"]
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Chain ---
    rpc_url: str = "http://127.0.0.1:8545"
    private_key: str = ""
    chain_id: int | None = None
    rpc_timeout_seconds: int = 30
    tx_receipt_timeout_seconds: int = 120
    deployment_file: str = "contracts/deployments.json"
    gas_manager_address: str | None = None
    quest_hub_address: str | None = None
    bridge_manager_address: str | None = None

    # --- Ledger ---
    activity_feed_max_items: int = 100
    native_unit: str = "MON"
    gas_revert_onchain: bool = False
    bridge_estimated_time: str = "2-5 minutes"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
