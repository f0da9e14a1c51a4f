"""
Ledger Settings for investments and payouts.

Policy constants for the funding ledger and payout distribution. These
are configuration rather than hard-coded law and can be changed per
deployment.

Environment variables use the LEDGER_ prefix:
    LEDGER_MIN_INVESTMENT_FLOOR_CENTS=10000
    LEDGER_CANCELLATION_WINDOW_HOURS=24
    LEDGER_PLATFORM_FEE_BPS=200
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Configurable ledger policy.

    All settings can be overridden via environment variables with LEDGER_ prefix.
    All monetary values are in cents.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Reservations ===
    min_investment_floor_cents: int = Field(
        default=10_000,
        ge=0,
        description="Fixed floor of the per-investment minimum ($100)",
    )
    min_investment_bps: int = Field(
        default=100,
        ge=0,
        le=10_000,
        description="Per-investment minimum as basis points of principal (1%)",
    )
    cancellation_window_hours: int = Field(
        default=24,
        ge=0,
        description="Hours after creation during which an investment can be cancelled",
    )

    # === Settlement ===
    platform_fee_bps: int = Field(
        default=200,
        ge=0,
        le=10_000,
        description="Platform fee on buyer payments in basis points (2%)",
    )
    default_grace_days: int = Field(
        default=30,
        ge=0,
        description="Days past maturity before a default can be determined",
    )

    # === Concurrency ===
    max_cas_retries: int = Field(
        default=8,
        ge=1,
        description="Compare-and-swap attempts per invoice write before giving up",
    )
    cas_backoff_seconds: float = Field(
        default=0.005,
        ge=0.0,
        description="Base backoff between compare-and-swap attempts",
    )


@lru_cache
def get_ledger_settings() -> LedgerSettings:
    """Get cached ledger settings instance."""
    return LedgerSettings()


ledger_settings = get_ledger_settings()
