"""
Sample data seeding.

    python -m expense_tracker.seed [--clear] [--owner-id ID]

Inserts a month of example income and expenses into the configured store.
"""

import argparse
import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from expense_tracker.audit import configure_logging
from expense_tracker.config import get_settings
from expense_tracker.models.transaction import (
    Transaction,
    TransactionCategory,
    TransactionIn,
    TransactionType,
)
from expense_tracker.orchestrator import create_store
from expense_tracker.services.storage import TransactionStorageInterface


logger = structlog.get_logger(__name__)

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE

SAMPLE_TRANSACTIONS = [
    ("Monthly Salary", INCOME, "3500.00", TransactionCategory.SALARY,
     date(2024, 1, 1), "Monthly salary payment"),
    ("Grocery Shopping", EXPENSE, "85.50", TransactionCategory.FOOD,
     date(2024, 1, 15), "Weekly grocery shopping at supermarket"),
    ("Gas Bill", EXPENSE, "120.00", TransactionCategory.BILLS,
     date(2024, 1, 10), "Monthly gas utility bill"),
    ("Uber Ride", EXPENSE, "25.75", TransactionCategory.TRANSPORT,
     date(2024, 1, 12), "Ride to downtown"),
    ("Freelance Project", INCOME, "800.00", TransactionCategory.FREELANCE,
     date(2024, 1, 8), "Web development project payment"),
    ("Online Shopping", EXPENSE, "150.25", TransactionCategory.SHOPPING,
     date(2024, 1, 14), "Clothes and accessories"),
    ("Restaurant Dinner", EXPENSE, "65.00", TransactionCategory.FOOD,
     date(2024, 1, 16), "Dinner with friends"),
    ("Electricity Bill", EXPENSE, "95.30", TransactionCategory.BILLS,
     date(2024, 1, 5), "Monthly electricity bill"),
]


def sample_payloads(owner_id: Optional[str] = None) -> list[TransactionIn]:
    return [
        TransactionIn(
            title=title,
            type=txn_type,
            amount=Decimal(amount),
            category=category,
            date=txn_date,
            description=description,
            owner_id=owner_id,
        )
        for title, txn_type, amount, category, txn_date, description in SAMPLE_TRANSACTIONS
    ]


async def seed_store(
    store: TransactionStorageInterface,
    clear: bool = False,
    owner_id: Optional[str] = None,
) -> list[Transaction]:
    """
    Insert the sample transactions.

    Args:
        store: Target record store
        clear: Delete every existing transaction first
        owner_id: Owner to attach to the samples

    Returns:
        The stored sample records
    """
    if clear:
        existing = await store.find_all()
        for txn in existing:
            await store.delete(txn.id)
        logger.info("store_cleared", deleted=len(existing))

    created = [await store.insert(payload) for payload in sample_payloads(owner_id)]
    logger.info("store_seeded", storage=store.storage_name, created=len(created))
    return created


async def _run(clear: bool, owner_id: Optional[str]) -> int:
    store = create_store()
    try:
        created = await seed_store(store, clear=clear, owner_id=owner_id)
    finally:
        await store.close()
    return len(created)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the expense tracker with sample data.")
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing transactions before seeding.",
    )
    parser.add_argument(
        "--owner-id",
        default=None,
        help="Owner id to attach to the sample transactions.",
    )
    args = parser.parse_args(argv)

    configure_logging(get_settings().app.log_level)
    count = asyncio.run(_run(args.clear, args.owner_id))
    print(f"Created {count} transactions")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
