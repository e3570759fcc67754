"""
Flat File Storage Implementation

DESIGN DECISION: The flat file backend keeps the whole collection in
memory and writes it through to a JSON file on every change:
1. No database needed for a single-user install
2. The file is human-readable and easy to back up
3. Reads never touch the disk

CONCURRENCY:
- Mutations are serialized by one asyncio.Lock per store instance.
  Inside the lock we build a new tuple, persist it (temp file + rename),
  and only then swap it in.
- Reads take the current tuple reference without locking. The swap is a
  single assignment, so a reader sees either the old or the new
  collection, never a half-applied one.

TRADEOFFS:
- Every write rewrites the whole file (fine for personal use)
- Aggregates are computed in Python over the in-memory copy
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from expense_tracker.models.transaction import (
    BreakdownEntry,
    SummaryResult,
    Transaction,
    TransactionFilter,
    TransactionIn,
)
from expense_tracker.queries import aggregation
from expense_tracker.queries.filters import owner_filter
from expense_tracker.services.storage.interface import (
    StorageUnavailableError,
    TransactionStorageInterface,
)


TRANSACTIONS_FILE = "transactions.json"
USERS_FILE = "users.json"

logger = structlog.get_logger(__name__)


def initialize_data_files(data_dir: Union[str, Path]) -> Path:
    """
    Make sure the data directory and both collection files exist.

    Existing files are left untouched. Returns the resolved directory.
    """
    root = Path(data_dir)
    try:
        root.mkdir(parents=True, exist_ok=True)
        for name in (TRANSACTIONS_FILE, USERS_FILE):
            path = root / name
            if not path.exists():
                path.write_text("[]\n", encoding="utf-8")
                logger.info("data_file_created", path=str(path))
    except OSError as e:
        raise StorageUnavailableError(f"Cannot initialize data directory {root}: {e}") from e
    return root


class FlatFileTransactionStorage(TransactionStorageInterface):
    """
    JSON file implementation of transaction storage.

    The file holds one array of transaction objects with camelCase keys.
    Amounts are written as decimal strings so they survive a reload exactly.
    """

    storage_name = "JSON Files"

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = initialize_data_files(data_dir)
        self._path = self._data_dir / TRANSACTIONS_FILE
        self._lock = asyncio.Lock()
        self._records: tuple[Transaction, ...] = self._read()
        logger.info(
            "flat_file_loaded",
            path=str(self._path),
            transaction_count=len(self._records),
        )

    @property
    def path(self) -> Path:
        return self._path

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _to_document(self, txn: Transaction) -> dict:
        """Convert a Transaction to a JSON document."""
        return {
            "id": str(txn.id),
            "title": txn.title,
            "type": txn.type.value,
            "amount": str(txn.amount),
            "category": txn.category.value,
            "date": txn.date.isoformat(),
            "ownerId": txn.owner_id,
            "description": txn.description,
            "createdAt": txn.created_at.isoformat(),
            "updatedAt": txn.updated_at.isoformat(),
        }

    def _from_document(self, document: dict) -> Transaction:
        """Convert a JSON document back to a Transaction."""
        return Transaction.model_validate(document)

    def _read(self) -> tuple[Transaction, ...]:
        try:
            with open(self._path, encoding="utf-8") as fh:
                documents = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailableError(f"Failed to read {self._path}: {e}") from e

        if not isinstance(documents, list):
            raise StorageUnavailableError(f"{self._path} does not hold a JSON array")

        try:
            return tuple(self._from_document(doc) for doc in documents)
        except ValidationError as e:
            raise StorageUnavailableError(f"Malformed transaction in {self._path}: {e}") from e

    def _write(self, records: tuple[Transaction, ...]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        documents = [self._to_document(txn) for txn in records]
        try:
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(documents, fh, indent=2, ensure_ascii=False)
                fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageUnavailableError(f"Failed to write {self._path}: {e}") from e

    async def _persist(self, records: tuple[Transaction, ...]) -> None:
        await asyncio.to_thread(self._write, records)
        self._records = records

    async def _commit(self, records: tuple[Transaction, ...]) -> None:
        """
        Persist, then publish. Caller must hold the lock.

        A cancelled caller still waits for the write to land and be
        published, so the file and the in-memory copy never diverge and
        the lock is not released mid-write.
        """
        task = asyncio.ensure_future(self._persist(records))
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            await task
            raise

    # -------------------------------------------------------------------------
    # Mutations (serialized)
    # -------------------------------------------------------------------------

    async def insert(self, payload: TransactionIn) -> Transaction:
        txn = Transaction.create(payload)
        async with self._lock:
            await self._commit(self._records + (txn,))
        logger.debug("transaction_persisted", transaction_id=str(txn.id))
        return txn

    async def update(
        self,
        transaction_id: UUID,
        payload: TransactionIn,
    ) -> Optional[Transaction]:
        async with self._lock:
            records = self._records
            for idx, current in enumerate(records):
                if current.id == transaction_id:
                    updated = current.apply(payload)
                    await self._commit(records[:idx] + (updated,) + records[idx + 1:])
                    return updated
        return None

    async def delete(self, transaction_id: UUID) -> bool:
        async with self._lock:
            records = self._records
            remaining = tuple(txn for txn in records if txn.id != transaction_id)
            if len(remaining) == len(records):
                return False
            await self._commit(remaining)
        return True

    # -------------------------------------------------------------------------
    # Reads (lock-free snapshot)
    # -------------------------------------------------------------------------

    async def find_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        for txn in self._records:
            if txn.id == transaction_id:
                return txn
        return None

    async def find_all(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> list[Transaction]:
        # Newest insert first, so the stable sort keeps creation order
        # descending among equal (date, created_at) keys.
        matched = [
            txn for txn in reversed(self._records)
            if filters is None or filters.matches(txn)
        ]
        matched.sort(key=lambda txn: (txn.date, txn.created_at), reverse=True)
        return matched

    async def summarize(self, owner_id: Optional[str] = None) -> SummaryResult:
        return aggregation.summarize(await self.find_all(owner_filter(owner_id)))

    async def breakdown(self, owner_id: Optional[str] = None) -> list[BreakdownEntry]:
        return aggregation.breakdown_by_category(await self.find_all(owner_filter(owner_id)))
