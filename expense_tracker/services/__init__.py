"""Services package."""

from expense_tracker.services.storage import (
    DatabaseTransactionStorage,
    FlatFileTransactionStorage,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
    TransactionStorageInterface,
)

__all__ = [
    "DatabaseTransactionStorage",
    "FlatFileTransactionStorage",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    "TransactionStorageInterface",
]
