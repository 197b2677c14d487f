"""Configuration package."""

from savings_fund.config.settings import (
    FundSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "FundSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
