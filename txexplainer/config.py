"""Centralized configuration via pydantic-settings. All secrets from .env."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Hedera Mirror Node
    hedera_mirror_url: str = "https://mainnet-public.mirrornode.hedera.com/api/v1"
    hedera_api_key: str = ""

    # Sui: Blockberry primary, full node fallback
    blockberry_url: str = "https://api.blockberry.one/sui/v1"
    blockberry_api_key: str = ""
    sui_rpc_url: str = "https://fullnode.mainnet.sui.io:443"

    # LLM
    anthropic_api_key: str = ""
    ai_model: str = "claude-sonnet-4-20250514"
    ai_timeout: float = 20.0
    ai_model_cache_ttl: float = 300.0

    # Lookups
    http_timeout: float = 15.0
    name_cache_size: int = 4096
    receiver_lookup_limit: int = 10


@lru_cache
def get_settings() -> Settings:
    return Settings()
