"""
Configuration Management for the Savings Fund

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Fund rules that used to be hard-coded (default password for imported
members, minimum password length, loan percentage) live here so they can
be changed per deployment without touching the services.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the fund's collections are kept."""

    model_config = SettingsConfigDict(
        env_prefix="FUND_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        description="Storage backend: 'json' (directory of files) or 'memory'"
    )
    data_dir: str = Field(
        default="./fund-data",
        description="Directory for the JSON collections"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Persist audit events alongside the fund data"
    )

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"json", "memory"}:
            raise ValueError(f"Unsupported storage backend: {v}. Use 'json' or 'memory'")
        return v


class FundSettings(BaseSettings):
    """
    Fund rules.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Membership
    min_password_length: int = Field(
        default=6,
        ge=1,
        le=128,
        description="Minimum password length on registration"
    )
    default_member_password: str = Field(
        default="123456",
        description="Password given to members created by an admin or by import"
    )

    # Bootstrap admin (created on startup if set and missing)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_name: str = "Administrator"
    bootstrap_admin_password: Optional[str] = None

    # Loans
    default_loan_percentage: Decimal = Field(
        default=Decimal("80"),
        gt=0,
        le=100,
        description="Share of a member's savings they may borrow"
    )
    default_term_months: int = Field(
        default=12,
        ge=1,
        le=360,
        description="Default loan term for analysis"
    )

    # Reporting
    trend_months: int = Field(
        default=6,
        ge=1,
        le=60,
        description="Number of trailing months in the monthly trend"
    )

    # Preference defaults for new users
    currency: str = "USD"
    language: str = "es"

    # Label written on ledger entries created by import
    import_entry_description: str = "Imported from spreadsheet"


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def fund(self) -> FundSettings:
        return FundSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
