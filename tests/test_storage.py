"""
Record store tests.

Everything here runs once per backend through the parametrized `store`
fixture, so both stores are held to the same contract.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from expense_tracker.models.transaction import (
    MAX_AMOUNT,
    TransactionCategory,
    TransactionFilter,
    TransactionType,
)
from expense_tracker.queries import PageRequest, build_filter


class TestCrud:
    """Insert, read, update and delete."""

    def test_insert_and_find_by_id(self, store, make_payload):
        """Test that an inserted record can be read back unchanged."""
        async def run():
            created = await store.insert(make_payload(
                title="Dinner",
                amount=Decimal("65.00"),
                description="With friends",
                owner_id="user-1",
            ))
            return created, await store.find_by_id(created.id)

        created, found = asyncio.run(run())
        assert found == created
        assert found.amount == Decimal("65.00")
        assert found.owner_id == "user-1"
        assert found.description == "With friends"

    def test_find_by_unknown_id(self, store):
        """Test that an unknown id returns None."""
        assert asyncio.run(store.find_by_id(uuid4())) is None

    def test_update_replaces_fields(self, store, make_payload):
        """Test update keeps id and created_at but replaces the rest."""
        async def run():
            created = await store.insert(make_payload())
            updated = await store.update(created.id, make_payload(
                title="Train ticket",
                amount=Decimal("12.40"),
                category=TransactionCategory.TRANSPORT,
            ))
            return created, updated, await store.find_by_id(created.id)

        created, updated, found = asyncio.run(run())
        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert found.title == "Train ticket"
        assert found.amount == Decimal("12.40")
        assert found.category == TransactionCategory.TRANSPORT

    def test_update_unknown_id(self, store, make_payload):
        """Test that updating an unknown id returns None."""
        assert asyncio.run(store.update(uuid4(), make_payload())) is None

    def test_delete(self, store, make_payload):
        """Test that a deleted record is gone."""
        async def run():
            created = await store.insert(make_payload())
            deleted = await store.delete(created.id)
            return deleted, await store.find_by_id(created.id)

        deleted, found = asyncio.run(run())
        assert deleted is True
        assert found is None

    def test_delete_unknown_id_changes_nothing(self, seeded_store):
        """Test that deleting an unknown id leaves the store unchanged."""
        async def run():
            before = await seeded_store.find_all()
            deleted = await seeded_store.delete(uuid4())
            return before, deleted, await seeded_store.find_all()

        before, deleted, after = asyncio.run(run())
        assert deleted is False
        assert after == before


class TestListing:
    """Ordering, filtering and paging."""

    def test_sorted_by_date_descending(self, seeded_store):
        """Test newest date first."""
        records = asyncio.run(seeded_store.find_all())
        assert [r.date for r in records] == [
            date(2024, 1, 3),
            date(2024, 1, 2),
            date(2024, 1, 1),
        ]

    def test_same_date_newest_created_first(self, store, make_payload):
        """Test creation order descending breaks date ties."""
        async def run():
            for title in ("first", "second", "third"):
                await store.insert(make_payload(title=title, date=date(2024, 3, 1)))
            return await store.find_all()

        records = asyncio.run(run())
        assert [r.title for r in records] == ["third", "second", "first"]

    def test_type_filter(self, seeded_store):
        """Test filtering by type."""
        records = asyncio.run(seeded_store.find_all(build_filter(type="income")))
        assert [r.title for r in records] == ["Salary"]

    def test_category_filter(self, seeded_store):
        """Test filtering by category, including an unknown one."""
        bills = asyncio.run(seeded_store.find_all(build_filter(category="bills")))
        assert [r.title for r in bills] == ["Power bill"]
        assert asyncio.run(seeded_store.find_all(build_filter(category="gambling"))) == []

    def test_date_range_is_inclusive(self, seeded_store):
        """Test start and end dates are inclusive."""
        records = asyncio.run(seeded_store.find_all(
            build_filter(start_date="2024-01-02", end_date="2024-01-03")
        ))
        assert [r.title for r in records] == ["Power bill", "Groceries"]

    def test_search_case_insensitive(self, seeded_store):
        """Test title search ignores case."""
        records = asyncio.run(seeded_store.find_all(build_filter(search="GROC")))
        assert [r.title for r in records] == ["Groceries"]

    def test_search_treats_wildcards_literally(self, store, make_payload):
        """Test that % and _ in a search term are plain characters."""
        async def run():
            await store.insert(make_payload(title="50% off sale"))
            await store.insert(make_payload(title="500 club"))
            return await store.find_all(build_filter(search="50%"))

        records = asyncio.run(run())
        assert [r.title for r in records] == ["50% off sale"]

    def test_owner_filter(self, store, make_payload):
        """Test filtering by owner."""
        async def run():
            await store.insert(make_payload(title="mine", owner_id="alice"))
            await store.insert(make_payload(title="theirs", owner_id="bob"))
            return await store.find_all(build_filter(owner_id="alice"))

        records = asyncio.run(run())
        assert [r.title for r in records] == ["mine"]

    def test_combined_filters_are_intersection(self, seeded_store):
        """Test that combined filters equal the intersection of each."""
        async def run():
            by_type = await seeded_store.find_all(build_filter(type="expense"))
            by_date = await seeded_store.find_all(build_filter(end_date="2024-01-02"))
            both = await seeded_store.find_all(
                build_filter(type="expense", end_date="2024-01-02")
            )
            return by_type, by_date, both

        by_type, by_date, both = asyncio.run(run())
        expected = {r.id for r in by_type} & {r.id for r in by_date}
        assert {r.id for r in both} == expected
        assert [r.title for r in both] == ["Groceries"]

    def test_filters_only_narrow(self, seeded_store):
        """Test a filtered result is a subset of the unfiltered one."""
        async def run():
            everything = await seeded_store.find_all(TransactionFilter())
            some = await seeded_store.find_all(build_filter(search="e"))
            return everything, some

        everything, some = asyncio.run(run())
        assert {r.id for r in some} <= {r.id for r in everything}

    def test_find_page(self, seeded_store):
        """Test one window plus the total match count."""
        async def run():
            first = await seeded_store.find_page(None, PageRequest(page=1, limit=2))
            second = await seeded_store.find_page(None, PageRequest(page=2, limit=2))
            beyond = await seeded_store.find_page(None, PageRequest(page=5, limit=2))
            return first, second, beyond

        (first, total), (second, total2), (beyond, total3) = asyncio.run(run())
        assert [r.title for r in first] == ["Power bill", "Groceries"]
        assert [r.title for r in second] == ["Salary"]
        assert beyond == []
        assert total == total2 == total3 == 3

    @pytest.mark.parametrize("page", ["4", "99999999999999999999"])
    def test_page_past_the_end_is_empty(self, seeded_store, page):
        """Test any page beyond the last one is empty, however large."""
        records, total = asyncio.run(
            seeded_store.find_page(None, PageRequest.from_params(page, "10"))
        )
        assert records == []
        assert total == 3

    def test_huge_page_on_empty_store(self, store):
        """Test a huge page over no matches."""
        records, total = asyncio.run(
            store.find_page(None, PageRequest.from_params("99999999999999999999", "10"))
        )
        assert records == []
        assert total == 0


class TestAmountLimits:
    """Largest accepted amounts."""

    def test_max_amount_stored_exactly(self, store, make_payload):
        """Test the largest allowed amount round-trips and sums exactly."""
        async def run():
            created = await store.insert(make_payload(amount=MAX_AMOUNT))
            await store.insert(make_payload(amount=MAX_AMOUNT))
            return created, await store.find_by_id(created.id), await store.summarize()

        created, found, summary = asyncio.run(run())
        assert found.amount == MAX_AMOUNT
        assert summary.total_expenses == MAX_AMOUNT * 2


class TestAggregates:
    """Summary and breakdown computed by the store."""

    def test_summary_scenario(self, seeded_store):
        """Test the three-record scenario totals."""
        summary = asyncio.run(seeded_store.summarize())
        assert summary.total_income == Decimal("100")
        assert summary.total_expenses == Decimal("100")
        assert summary.current_balance == Decimal("0")
        assert summary.transaction_count == 3

    def test_breakdown_scenario(self, seeded_store):
        """Test bills 60 then food 40."""
        entries = asyncio.run(seeded_store.breakdown())
        assert [(e.category, e.amount, e.count) for e in entries] == [
            (TransactionCategory.BILLS, Decimal("60"), 1),
            (TransactionCategory.FOOD, Decimal("40"), 1),
        ]
        assert entries[0].percentage == pytest.approx(60.0)
        assert entries[1].percentage == pytest.approx(40.0)

    def test_empty_store(self, store):
        """Test aggregates over an empty store."""
        summary = asyncio.run(store.summarize())
        assert summary.transaction_count == 0
        assert summary.current_balance == 0
        assert asyncio.run(store.breakdown()) == []

    def test_aggregates_per_owner(self, store, make_payload):
        """Test owner scoping of summary and breakdown."""
        async def run():
            await store.insert(make_payload(
                type=TransactionType.INCOME,
                amount=Decimal("500"),
                category=TransactionCategory.SALARY,
                owner_id="alice",
            ))
            await store.insert(make_payload(amount=Decimal("20"), owner_id="alice"))
            await store.insert(make_payload(amount=Decimal("99"), owner_id="bob"))
            return await store.summarize("alice"), await store.breakdown("alice")

        summary, entries = asyncio.run(run())
        assert summary.total_income == Decimal("500")
        assert summary.total_expenses == Decimal("20")
        assert summary.transaction_count == 2
        assert len(entries) == 1
        assert entries[0].amount == Decimal("20")
        assert entries[0].percentage == pytest.approx(100.0)

    def test_cents_are_exact(self, store, make_payload):
        """Test many small amounts add up exactly."""
        async def run():
            for _ in range(10):
                await store.insert(make_payload(amount=Decimal("0.10")))
            return await store.summarize()

        assert asyncio.run(run()).total_expenses == Decimal("1.00")

    def test_breakdown_ties(self, store, make_payload):
        """Test equal amounts are ordered by category name."""
        async def run():
            await store.insert(make_payload(amount=Decimal("20"), category=TransactionCategory.TRANSPORT))
            await store.insert(make_payload(amount=Decimal("20"), category=TransactionCategory.BILLS))
            return await store.breakdown()

        entries = asyncio.run(run())
        assert [e.category.value for e in entries] == ["bills", "transport"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
