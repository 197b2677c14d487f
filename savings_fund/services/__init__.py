"""Services package."""

from savings_fund.services.storage import (
    CorruptDataError,
    FundRepository,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    StorageError,
)

__all__ = [
    # Storage services
    "CorruptDataError",
    "FundRepository",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageError",
]
