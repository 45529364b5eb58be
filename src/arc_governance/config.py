from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: str = "dev"
    log_level: str = "INFO"
    dao_name: str = "arc-governance"

    eth_rpc_url: str = "http://127.0.0.1:8545"
    default_account: str | None = None
    gas_limit: int = 6_500_000
    receipt_timeout_seconds: float = 120.0


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
