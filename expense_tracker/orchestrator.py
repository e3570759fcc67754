"""
Main Orchestrator for the Expense Tracker

This module ties together the record store, the query helpers and the
audit logger, and exposes the logical operations the HTTP layer calls:

    list_transactions, get_transaction, create_transaction,
    update_transaction, delete_transaction, get_summary, get_breakdown

DESIGN DECISION: The service only talks to TransactionStorageInterface.
Which backend sits behind it is decided once, in create_store().
"""

from typing import Any, Awaitable, Optional, TypeVar
from uuid import UUID

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import StorageSettings, get_settings
from expense_tracker.models.transaction import (
    BreakdownEntry,
    SummaryResult,
    Transaction,
    TransactionFilter,
    TransactionIn,
    TransactionPage,
)
from expense_tracker.queries.pagination import DEFAULT_LIMIT, PageRequest, build_pagination
from expense_tracker.services.storage import (
    DatabaseTransactionStorage,
    FlatFileTransactionStorage,
    NotFoundError,
    StorageUnavailableError,
    TransactionStorageInterface,
)


T = TypeVar("T")


class TransactionService:
    """
    Request-level operations over a transaction store.

    Every call is independent. Storage failures are audited and re-raised;
    unknown ids raise NotFoundError.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        default_limit: int = DEFAULT_LIMIT,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._default_limit = default_limit

    @property
    def storage(self) -> TransactionStorageInterface:
        return self._storage

    @property
    def storage_name(self) -> str:
        return self._storage.storage_name

    async def _call(
        self,
        operation: str,
        awaitable: Awaitable[T],
        correlation_id: Optional[UUID],
    ) -> T:
        try:
            return await awaitable
        except StorageUnavailableError as e:
            self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    def _not_found(
        self,
        transaction_id: UUID,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> NotFoundError:
        self._audit_logger.log_not_found(
            transaction_id=transaction_id,
            operation=operation,
            correlation_id=correlation_id,
        )
        return NotFoundError(f"Transaction not found: {transaction_id}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        page: Any = None,
        limit: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionPage:
        """
        One page of matching transactions, newest first.

        Args:
            filters: Predicate from queries.build_filter(); None lists everything
            page: 1-based page number (coerced, default 1)
            limit: Page size (coerced, default from settings)
        """
        correlation_id = correlation_id or create_correlation_id()
        request = PageRequest.from_params(page, limit, default_limit=self._default_limit)

        records, total = await self._call(
            "list_transactions",
            self._storage.find_page(filters, request),
            correlation_id,
        )

        self._audit_logger.log_query_executed(
            filters=filters.model_dump(mode="json", exclude_none=True) if filters else {},
            page=request.page,
            limit=request.limit,
            result_count=len(records),
            total=total,
            correlation_id=correlation_id,
        )
        return TransactionPage(records=records, pagination=build_pagination(request, total))

    async def get_transaction(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        correlation_id = correlation_id or create_correlation_id()
        txn = await self._call(
            "get_transaction",
            self._storage.find_by_id(transaction_id),
            correlation_id,
        )
        if txn is None:
            raise self._not_found(transaction_id, "get", correlation_id)
        return txn

    async def get_summary(
        self,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SummaryResult:
        """Totals over all transactions, or one owner's."""
        correlation_id = correlation_id or create_correlation_id()
        summary = await self._call(
            "get_summary",
            self._storage.summarize(owner_id),
            correlation_id,
        )
        self._audit_logger.log_summary_computed(
            owner_id=owner_id,
            transaction_count=summary.transaction_count,
            correlation_id=correlation_id,
        )
        return summary

    async def get_breakdown(
        self,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[BreakdownEntry]:
        """Expense totals per category, largest first."""
        correlation_id = correlation_id or create_correlation_id()
        breakdown = await self._call(
            "get_breakdown",
            self._storage.breakdown(owner_id),
            correlation_id,
        )
        self._audit_logger.log_breakdown_computed(
            owner_id=owner_id,
            category_count=len(breakdown),
            correlation_id=correlation_id,
        )
        return breakdown

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_transaction(
        self,
        payload: TransactionIn,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        correlation_id = correlation_id or create_correlation_id()
        txn = await self._call(
            "create_transaction",
            self._storage.insert(payload),
            correlation_id,
        )
        self._audit_logger.log_transaction_created(
            transaction_id=txn.id,
            transaction_type=txn.type.value,
            amount=str(txn.amount),
            correlation_id=correlation_id,
        )
        return txn

    async def update_transaction(
        self,
        transaction_id: UUID,
        payload: TransactionIn,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        correlation_id = correlation_id or create_correlation_id()
        txn = await self._call(
            "update_transaction",
            self._storage.update(transaction_id, payload),
            correlation_id,
        )
        if txn is None:
            raise self._not_found(transaction_id, "update", correlation_id)

        self._audit_logger.log_transaction_updated(
            transaction_id=txn.id,
            fields=sorted(payload.model_fields_set),
            correlation_id=correlation_id,
        )
        return txn

    async def delete_transaction(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Permanently delete a transaction.

        Raises NotFoundError (and changes nothing) for an unknown id.
        """
        correlation_id = correlation_id or create_correlation_id()
        deleted = await self._call(
            "delete_transaction",
            self._storage.delete(transaction_id),
            correlation_id,
        )
        if not deleted:
            raise self._not_found(transaction_id, "delete", correlation_id)

        self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        return True

    async def close(self) -> None:
        await self._storage.close()


def create_store(settings: Optional[StorageSettings] = None) -> TransactionStorageInterface:
    """
    Build the configured record store.

    Raises:
        StorageUnavailableError: If the backend cannot be opened
    """
    settings = settings or get_settings().storage

    if settings.backend == "database":
        store = DatabaseTransactionStorage(settings.database_url)
        store.connect()
        return store

    return FlatFileTransactionStorage(settings.data_dir)


def create_app_components(
    storage: Optional[TransactionStorageInterface] = None,
) -> TransactionService:
    """
    Factory function to create the transaction service.

    Args:
        storage: Store to use. Built from settings when omitted.
    """
    settings = get_settings()
    return TransactionService(
        storage=storage or create_store(settings.storage),
        audit_logger=AuditLogger(),
        default_limit=settings.app.default_page_limit,
    )
