"""
Storage Services Package

Provides the abstract key/value store, local implementations of it and the
typed repository every service works through.
"""

from savings_fund.services.storage.interface import (
    CorruptDataError,
    KeyValueStore,
    StorageError,
)
from savings_fund.services.storage.local import JsonFileStore, MemoryStore
from savings_fund.services.storage.repository import FundRepository

__all__ = [
    # Interfaces
    "KeyValueStore",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Implementations
    "FundRepository",
    "JsonFileStore",
    "MemoryStore",
]
