"""
Storage Services Package

Provides the abstract record store interface and its two implementations:
a write-through JSON file store and a SQL database store.
"""

from expense_tracker.services.storage.interface import (
    NotFoundError,
    StorageError,
    StorageUnavailableError,
    TransactionStorageInterface,
)
from expense_tracker.services.storage.flat_file import (
    FlatFileTransactionStorage,
    initialize_data_files,
)
from expense_tracker.services.storage.database import DatabaseTransactionStorage

__all__ = [
    # Interface
    "TransactionStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    # Implementations
    "DatabaseTransactionStorage",
    "FlatFileTransactionStorage",
    "initialize_data_files",
]
