"""
Database Storage Implementation

DESIGN DECISION: The database backend pushes all the work to the server:
1. Filtering is a WHERE clause
2. Paging is OFFSET/LIMIT plus a COUNT
3. Summary and breakdown are GROUP BY queries with SUM/COUNT,
   and the percentage share is a window SUM over the groups

so large collections are never pulled into process memory.

The numbers must match queries.aggregation exactly, which is why:
- amounts are stored as integer cents (exact SUMs on every engine)
- creation order is a sequence column (stable tie-break)
- search runs against a case-folded copy of the title, folded in Python,
  so SQL LIKE and str.casefold() agree on non-ASCII titles

Works with any SQLAlchemy URL; SQLite is the default.
"""

import asyncio
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import (
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    case,
    create_engine,
    delete,
    event,
    func,
    select,
    text,
    type_coerce,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_tracker.models.transaction import (
    BreakdownEntry,
    SummaryResult,
    Transaction,
    TransactionCategory,
    TransactionFilter,
    TransactionIn,
    TransactionType,
)
from expense_tracker.queries.pagination import PageRequest
from expense_tracker.services.storage.interface import (
    StorageUnavailableError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


class TransactionRecord(Base):
    __tablename__ = "transactions"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    title_folded: Mapped[str] = mapped_column(String(400), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    txn_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    owner_id: Mapped[Optional[str]] = mapped_column(String(64))
    description: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_transactions_owner_date", "owner_id", "date"),
    )


# Listing order shared by find_all and find_page
LISTING_ORDER = (
    TransactionRecord.txn_date.desc(),
    TransactionRecord.created_at.desc(),
    TransactionRecord.seq.desc(),
)


def _to_cents(amount: Decimal) -> int:
    return int(amount.scaleb(2))


def _from_cents(cents: Any) -> Decimal:
    return Decimal(int(cents or 0)).scaleb(-2)


def _to_naive_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _enable_sqlite_pragmas(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.close()


def _create_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    kwargs: dict[str, Any] = {}
    is_sqlite_file = False
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise each thread sees an empty DB
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            is_sqlite_file = True
    else:
        kwargs["pool_pre_ping"] = True

    eng = create_engine(url, **kwargs)
    if is_sqlite_file:
        event.listen(eng, "connect", _enable_sqlite_pragmas)
    return eng


def filter_clauses(filters: Optional[TransactionFilter]) -> list:
    """Translate a TransactionFilter into SQL WHERE clauses."""
    if filters is None:
        return []

    clauses = []
    if filters.type is not None:
        clauses.append(TransactionRecord.type == filters.type.value)
    if filters.category is not None:
        clauses.append(TransactionRecord.category == filters.category)
    if filters.start_date is not None:
        clauses.append(TransactionRecord.txn_date >= filters.start_date)
    if filters.end_date is not None:
        clauses.append(TransactionRecord.txn_date <= filters.end_date)
    if filters.search is not None:
        clauses.append(
            TransactionRecord.title_folded.contains(filters.search, autoescape=True)
        )
    if filters.owner_id is not None:
        clauses.append(TransactionRecord.owner_id == filters.owner_id)
    return clauses


class DatabaseTransactionStorage(TransactionStorageInterface):
    """
    SQL implementation of transaction storage.

    Call connect() once at startup; it checks connectivity (with retries)
    and creates the table. Request-time operations never retry.
    """

    storage_name = "SQL Database"

    def __init__(self, database_url: str):
        self._database_url = database_url
        try:
            self._engine = _create_engine(database_url)
        except (OSError, SQLAlchemyError) as e:
            raise StorageUnavailableError(f"Cannot set up database {database_url}: {e}") from e
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    def _ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def connect(self) -> None:
        """Check the database is reachable and create the schema."""
        try:
            self._ping()
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageUnavailableError(
                f"Failed to connect to database: {e}"
            ) from e
        logger.info("database_connected", backend=self._engine.url.get_backend_name())

    async def close(self) -> None:
        await asyncio.to_thread(self._engine.dispose)

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def _run(self, operation: Callable[..., T], *args: Any) -> T:
        """Run a blocking database call off the event loop."""
        try:
            return await asyncio.to_thread(operation, *args)
        except SQLAlchemyError as e:
            logger.error(
                "database_operation_failed",
                operation=operation.__name__,
                error=str(e),
            )
            raise StorageUnavailableError(f"Database operation failed: {e}") from e

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    def _to_model(self, row: TransactionRecord) -> Transaction:
        return Transaction(
            id=UUID(row.id),
            title=row.title,
            type=TransactionType(row.type),
            amount=_from_cents(row.amount_cents),
            category=TransactionCategory(row.category),
            date=row.txn_date,
            owner_id=row.owner_id,
            description=row.description,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _fill_row(self, row: TransactionRecord, txn: Transaction) -> TransactionRecord:
        row.id = str(txn.id)
        row.title = txn.title
        row.title_folded = txn.title_folded
        row.type = txn.type.value
        row.amount_cents = _to_cents(txn.amount)
        row.category = txn.category.value
        row.txn_date = txn.date
        row.owner_id = txn.owner_id
        row.description = txn.description
        row.created_at = _to_naive_utc(txn.created_at)
        row.updated_at = _to_naive_utc(txn.updated_at)
        return row

    # -------------------------------------------------------------------------
    # Blocking implementations
    # -------------------------------------------------------------------------

    def _insert_sync(self, txn: Transaction) -> None:
        with self._session_scope() as session:
            session.add(self._fill_row(TransactionRecord(), txn))

    def _find_by_id_sync(self, transaction_id: UUID) -> Optional[Transaction]:
        with self._session_scope() as session:
            row = session.scalar(
                select(TransactionRecord).where(TransactionRecord.id == str(transaction_id))
            )
            return self._to_model(row) if row is not None else None

    def _find_all_sync(self, filters: Optional[TransactionFilter]) -> list[Transaction]:
        stmt = select(TransactionRecord).where(*filter_clauses(filters)).order_by(*LISTING_ORDER)
        with self._session_scope() as session:
            return [self._to_model(row) for row in session.scalars(stmt)]

    def _find_page_sync(
        self,
        filters: Optional[TransactionFilter],
        request: PageRequest,
    ) -> tuple[list[Transaction], int]:
        clauses = filter_clauses(filters)
        count_stmt = select(func.count()).select_from(TransactionRecord).where(*clauses)
        with self._session_scope() as session:
            total = int(session.scalar(count_stmt) or 0)
            # Past the last match: empty page, and no OFFSET the engine may not fit
            if request.offset >= total:
                return [], total

            page_stmt = (
                select(TransactionRecord)
                .where(*clauses)
                .order_by(*LISTING_ORDER)
                .offset(request.offset)
                .limit(request.limit)
            )
            records = [self._to_model(row) for row in session.scalars(page_stmt)]
        return records, total

    def _update_sync(
        self,
        transaction_id: UUID,
        payload: TransactionIn,
    ) -> Optional[Transaction]:
        with self._session_scope() as session:
            row = session.scalar(
                select(TransactionRecord).where(TransactionRecord.id == str(transaction_id))
            )
            if row is None:
                return None
            updated = self._to_model(row).apply(payload)
            self._fill_row(row, updated)
            return updated

    def _delete_sync(self, transaction_id: UUID) -> bool:
        with self._session_scope() as session:
            result = session.execute(
                delete(TransactionRecord).where(TransactionRecord.id == str(transaction_id))
            )
            return result.rowcount > 0

    def _summarize_sync(self, owner_id: Optional[str]) -> SummaryResult:
        def total_for(txn_type: TransactionType):
            return func.coalesce(
                func.sum(
                    case(
                        (TransactionRecord.type == txn_type.value, TransactionRecord.amount_cents),
                        else_=0,
                    )
                ),
                0,
            )

        stmt = select(
            total_for(TransactionType.INCOME),
            total_for(TransactionType.EXPENSE),
            func.count(TransactionRecord.seq),
        ).where(*filter_clauses(TransactionFilter(owner_id=owner_id)))

        with self._session_scope() as session:
            income, expenses, count = session.execute(stmt).one()

        return SummaryResult.from_totals(
            _from_cents(income),
            _from_cents(expenses),
            int(count or 0),
        )

    def _breakdown_sync(self, owner_id: Optional[str]) -> list[BreakdownEntry]:
        group_total = func.sum(TransactionRecord.amount_cents)
        share = type_coerce(
            100.0 * group_total / func.sum(group_total).over(),
            Float,
        )
        stmt = (
            select(
                TransactionRecord.category,
                group_total.label("amount_cents"),
                func.count(TransactionRecord.seq).label("count"),
                share.label("percentage"),
            )
            .where(
                TransactionRecord.type == TransactionType.EXPENSE.value,
                *filter_clauses(TransactionFilter(owner_id=owner_id)),
            )
            .group_by(TransactionRecord.category)
            .order_by(group_total.desc(), TransactionRecord.category.asc())
        )

        with self._session_scope() as session:
            rows = session.execute(stmt).all()

        return [
            BreakdownEntry(
                category=TransactionCategory(row.category),
                amount=_from_cents(row.amount_cents),
                count=int(row.count),
                percentage=float(row.percentage),
            )
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    async def insert(self, payload: TransactionIn) -> Transaction:
        txn = Transaction.create(payload)
        await self._run(self._insert_sync, txn)
        return txn

    async def find_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        return await self._run(self._find_by_id_sync, transaction_id)

    async def find_all(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> list[Transaction]:
        return await self._run(self._find_all_sync, filters)

    async def find_page(
        self,
        filters: Optional[TransactionFilter],
        request: PageRequest,
    ) -> tuple[list[Transaction], int]:
        return await self._run(self._find_page_sync, filters, request)

    async def update(
        self,
        transaction_id: UUID,
        payload: TransactionIn,
    ) -> Optional[Transaction]:
        return await self._run(self._update_sync, transaction_id, payload)

    async def delete(self, transaction_id: UUID) -> bool:
        return await self._run(self._delete_sync, transaction_id)

    async def summarize(self, owner_id: Optional[str] = None) -> SummaryResult:
        return await self._run(self._summarize_sync, owner_id)

    async def breakdown(self, owner_id: Optional[str] = None) -> list[BreakdownEntry]:
        return await self._run(self._breakdown_sync, owner_id)
