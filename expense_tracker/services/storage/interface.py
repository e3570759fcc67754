"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for transaction storage.
This allows us to:
1. Run from a JSON file with zero setup, or from a SQL database
2. Pick the backend once at startup
3. Keep the listing/summary logic decoupled from storage

Every implementation must return the same records, in the same order,
with the same aggregates, for the same data.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from expense_tracker.models.transaction import (
    BreakdownEntry,
    SummaryResult,
    Transaction,
    TransactionFilter,
    TransactionIn,
)
from expense_tracker.queries.pagination import PageRequest


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Ordering contract for find_all/find_page: date descending, then
    creation order descending (most recently created first).
    """

    # Human-readable backend name, reported by the health check
    storage_name: str = "unknown"

    @abstractmethod
    async def insert(self, payload: TransactionIn) -> Transaction:
        """
        Store a new transaction.

        Args:
            payload: Validated transaction fields

        Returns:
            The stored record, with id and timestamps assigned

        Raises:
            StorageUnavailableError: If the backend cannot be written
        """
        pass

    @abstractmethod
    async def find_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_all(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> list[Transaction]:
        """
        All transactions matching the filter, in listing order.

        Args:
            filters: Predicate to apply; None matches everything
        """
        pass

    async def find_page(
        self,
        filters: Optional[TransactionFilter],
        request: PageRequest,
    ) -> tuple[list[Transaction], int]:
        """
        One page of find_all() plus the total number of matches.

        Backends that can page natively should override this.
        """
        records = await self.find_all(filters)
        return request.slice(records), len(records)

    @abstractmethod
    async def update(
        self,
        transaction_id: UUID,
        payload: TransactionIn,
    ) -> Optional[Transaction]:
        """
        Replace the fields the caller supplied.

        Returns:
            The updated record, or None if the id is unknown
        """
        pass

    @abstractmethod
    async def delete(self, transaction_id: UUID) -> bool:
        """
        Permanently delete a transaction.

        Returns:
            True if a record was removed, False if the id is unknown
        """
        pass

    @abstractmethod
    async def summarize(self, owner_id: Optional[str] = None) -> SummaryResult:
        """Income/expense totals, optionally for one owner."""
        pass

    @abstractmethod
    async def breakdown(self, owner_id: Optional[str] = None) -> list[BreakdownEntry]:
        """Expense totals per category, optionally for one owner."""
        pass

    async def close(self) -> None:
        """Release backend resources. Nothing to do by default."""
        return None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageUnavailableError(StorageError):
    """The storage backend could not be reached, read or written."""
    pass
