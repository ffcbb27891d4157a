"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database configuration (in-memory store when unset)
    database_url: str | None = None
    pool_min_size: int = 1
    pool_max_size: int = 5

    # Name service
    network: Literal["mainnet", "testnet"] = "mainnet"
    name_suffix: str = ".base.eth"
    chain_label: str = "Base"
    instruction_window_minutes: int = 10
    neutral_reply: str = "I'm good"
    dedupe_active_requests: bool = True

    # Deposit monitor
    deposit_interval_seconds: float = 5.0
    deposit_max_attempts: int = 720  # 12 checks per minute for an hour

    # Refund processor
    refund_interval_seconds: float = 60.0
    refund_gas_limit: int = 21_000
    refund_internal_gas_limit: int = 500_000  # Smart-contract wallet overhead
    refund_buffer_wei: int = 5_000_000_000_000

    # Block explorer
    explorer_api_url: str = ""  # Derived from network when empty
    explorer_api_key: str = ""
    explorer_timeout_seconds: float = 30.0

    # Social replies
    reply_dry_run: bool = True

    # Operator authentication (bcrypt hash; empty denies every request)
    operator_username: str = "operator"
    operator_password_hash: str = ""

    # Wiring: "package.module:callable" returning Collaborators
    collaborators_factory: str = ""
    start_workers: bool = True

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
