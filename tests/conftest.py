"""
Shared fixtures.

Stores are created per test under tmp_path. The `store` fixture is
parametrized so store-level tests run against both backends.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.models.transaction import (
    TransactionCategory,
    TransactionIn,
    TransactionType,
)
from expense_tracker.services.storage import (
    DatabaseTransactionStorage,
    FlatFileTransactionStorage,
)


def _build_payload(**overrides) -> TransactionIn:
    fields = {
        "title": "Coffee",
        "type": TransactionType.EXPENSE,
        "amount": Decimal("4.50"),
        "category": TransactionCategory.FOOD,
        "date": date(2024, 1, 15),
    }
    fields.update(overrides)
    return TransactionIn(**fields)


@pytest.fixture
def make_payload():
    """Factory for valid TransactionIn payloads with keyword overrides."""
    return _build_payload


@pytest.fixture
def scenario_payloads():
    """One income and two expenses; balance comes out at zero."""
    return [
        _build_payload(
            title="Salary",
            type=TransactionType.INCOME,
            amount=Decimal("100"),
            category=TransactionCategory.SALARY,
            date=date(2024, 1, 1),
        ),
        _build_payload(
            title="Groceries",
            amount=Decimal("40"),
            category=TransactionCategory.FOOD,
            date=date(2024, 1, 2),
        ),
        _build_payload(
            title="Power bill",
            amount=Decimal("60"),
            category=TransactionCategory.BILLS,
            date=date(2024, 1, 3),
        ),
    ]


@pytest.fixture
def flat_store(tmp_path):
    return FlatFileTransactionStorage(tmp_path / "data")


@pytest.fixture
def db_store(tmp_path):
    store = DatabaseTransactionStorage(f"sqlite:///{tmp_path / 'expenses.db'}")
    store.connect()
    yield store
    asyncio.run(store.close())


@pytest.fixture(params=["file", "database"])
def store(request, tmp_path):
    if request.param == "file":
        yield FlatFileTransactionStorage(tmp_path / "data")
    else:
        db = DatabaseTransactionStorage(f"sqlite:///{tmp_path / 'expenses.db'}")
        db.connect()
        yield db
        asyncio.run(db.close())


@pytest.fixture
def seeded_store(store, scenario_payloads):
    async def _seed():
        for payload in scenario_payloads:
            await store.insert(payload)

    asyncio.run(_seed())
    return store
